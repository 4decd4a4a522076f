import hashlib
import json


def payload_hash(payload) -> str:
    """Stable SHA-256 over a dict or pydantic model."""
    if hasattr(payload, "model_dump"):
        payload = payload.model_dump(mode="json")
    s = json.dumps(payload, sort_keys=True, default=str)
    return hashlib.sha256(s.encode()).hexdigest()


def cache_key(prefix: str, *parts) -> str:
    return f"{prefix}:" + payload_hash([p.model_dump(mode="json") if hasattr(p, "model_dump") else p for p in parts])
