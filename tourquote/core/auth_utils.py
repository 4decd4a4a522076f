"""Authorization and lookup helpers shared by the routers"""
from fastapi import HTTPException
from typing import Optional
from tourquote.core.enums import UserRole


def filter_by_owner(query, model, current_user):
    """Agents only see their own quotations; admins see everything."""
    if current_user.role == UserRole.AGENT:
        return query.where(model.created_by == int(current_user.id))
    return query


def check_ownership(item, current_user, resource_name: str = "Resource") -> None:

    if current_user.role == UserRole.AGENT and item.created_by != int(current_user.id):
        raise HTTPException(
            status_code=403,
            detail=f"Forbidden: You can only access your own {resource_name}s"
        )


def check_not_found(item, resource_name: str = "Resource", resource_id: Optional[int] = None) -> None:

    if not item:
        if resource_id:
            raise HTTPException(
                status_code=404,
                detail=f"{resource_name} with id {resource_id} not found"
            )
        raise HTTPException(status_code=404, detail=f"{resource_name} not found")
