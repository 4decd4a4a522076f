import pytest

from tourquote.main import app
from tourquote.core.security import get_current_user

PICKUP = {
    "day": 1,
    "description": "Airport pickup",
    "category": "transportation",
    "location": "Cairo",
    "cost_basis": "per_group",
}


@pytest.mark.integration
class TestMonitoring:

    async def test_health_endpoint(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["service"] == "Tour Quotation Service"

    async def test_readiness_without_redis(self, test_client):
        response = await test_client.get("/readiness")
        assert response.status_code == 503
        assert response.json()["ready"] is False

    async def test_metrics_endpoint(self, test_client):
        await test_client.get("/")
        response = await test_client.get("/metrics")
        assert response.status_code == 200
        assert "http_requests_total" in response.text

    async def test_root(self, test_client):
        response = await test_client.get("/")
        assert response.json()["docs"] == "/docs"


@pytest.mark.integration
class TestQuoteEndpoints:

    async def test_calc_quote(self, test_client):
        response = await test_client.post("/quotes/calc", json={
            "services": [PICKUP],
            "num_people": 2,
        })
        assert response.status_code == 200
        body = response.json()

        assert body["matches"][0]["matched"] is True
        assert body["matches"][0]["price"] == 20
        assert body["matches"][0]["confidence"] == 100
        assert body["totals"]["sell_per_group"] == pytest.approx(26.88)
        assert body["display"]["sell_per_group"] == 50
        assert body["analysis"]["completion_rate"] == 100

    async def test_calc_quote_with_config(self, test_client):
        response = await test_client.post("/quotes/calc", json={
            "services": [{**PICKUP, "cost_basis": "per_person", "description": "Lunch",
                          "category": "meals", "location": "Giza"}],
            "num_people": 3,
            "config": {"tax_rate": 0, "markup_rate": 0, "rounding_increment": 1},
        })
        assert response.status_code == 200
        totals = response.json()["totals"]
        assert totals["net_per_person"] == 15
        assert totals["sell_per_group"] == 45

    @pytest.mark.parametrize("payload", [
        {"services": [PICKUP], "num_people": 0},
        {"services": [{**PICKUP, "day": 0}], "num_people": 2},
        {"services": [{**PICKUP, "cost_basis": "hourly"}], "num_people": 2},
        {"services": [PICKUP], "num_people": 2, "config": {"tax_rate": 2}},
        {"services": [PICKUP], "num_people": 2, "config": {"profile": "Deluxe"}},
    ])
    async def test_calc_quote_rejects_invalid_input(self, test_client, payload):
        response = await test_client.post("/quotes/calc", json=payload)
        assert response.status_code == 422

    async def test_calc_quote_empty_services(self, test_client):
        response = await test_client.post("/quotes/calc", json={"services": [], "num_people": 2})
        assert response.status_code == 200
        assert response.json()["totals"]["sell_per_group"] == 0

    async def test_analyze_itinerary(self, test_client):
        response = await test_client.post("/quotes/analyze", json={
            "itinerary_text": "Day 1: Arrival in Cairo. Airport pickup by private car.",
            "num_days": 1,
            "num_people": 2,
        })
        assert response.status_code == 200
        body = response.json()
        assert body["detected_services"][0]["category"] == "transportation"
        assert body["matches"][0]["matched"] is True
        assert body["analysis"]["cities"] == ["Cairo"]

    async def test_analyze_nothing_detected(self, test_client):
        response = await test_client.post("/quotes/analyze", json={
            "itinerary_text": "We will relax all week long.",
            "num_days": 2,
            "num_people": 2,
        })
        assert response.status_code == 502

    async def test_analyze_requires_authentication(self, test_client):
        app.dependency_overrides.pop(get_current_user)
        response = await test_client.post("/quotes/analyze", json={
            "itinerary_text": "Day 1: Airport pickup in Cairo.",
            "num_days": 1,
            "num_people": 2,
        })
        assert response.status_code == 401


@pytest.mark.integration
class TestCatalogPermissions:

    async def test_agent_cannot_create_entries(self, test_client):
        response = await test_client.post("/catalog/", json={
            "service_name": "Felucca ride",
            "cost_basis": "per_group",
            "unit_price": 30,
        })
        assert response.status_code == 403

    async def test_agent_cannot_import(self, test_client):
        response = await test_client.post(
            "/catalog/import",
            files={"file": ("prices.csv", b"Service Name\nGuide\n", "text/csv")},
            data={"location": "Cairo"},
        )
        assert response.status_code == 403

    async def test_import_rejects_non_csv(self, test_client, admin_user):
        app.dependency_overrides[get_current_user] = lambda: admin_user
        response = await test_client.post(
            "/catalog/import",
            files={"file": ("prices.xlsx", b"binary", "application/octet-stream")},
            data={"location": "Cairo"},
        )
        assert response.status_code == 400

    @pytest.mark.parametrize("field", ["service_name", "cost_basis", "unit_price", "currency", "is_active"])
    async def test_update_rejects_null_required_fields(self, test_client, admin_user, field):
        app.dependency_overrides[get_current_user] = lambda: admin_user
        response = await test_client.put("/catalog/1", json={field: None})
        assert response.status_code == 422


@pytest.mark.integration
class TestQuotationBundles:

    async def test_unmatched_result_above_threshold_is_rejected(self, test_client):
        response = await test_client.post("/quotations/", json={
            "num_people": 2,
            "detected_services": [PICKUP],
            "match_results": [{"service": PICKUP, "matched": False, "confidence": 95}],
            "pricing_config": {},
            "totals": {},
        })
        assert response.status_code == 422
