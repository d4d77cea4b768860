"""User record endpoints."""

from typing import Any

from fastapi import APIRouter, Body, Depends, Query, status

from src.userstore.api.http.deps import get_user_service
from src.userstore.api.http.schemas import Pagination, envelope
from src.userstore.core.errors import ValidationError
from src.userstore.core.services import UserService
from src.userstore.entities.user import UserFilters

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(
    payload: Any = Body(...),
    service: UserService = Depends(get_user_service),
) -> dict[str, Any]:
    """Create a new user."""
    user = service.create(payload)
    return envelope(success=True, message="User created successfully", data=user)


@router.get("")
def list_users(
    limit: int | None = Query(default=None, ge=0),
    offset: int | None = Query(default=None, ge=0),
    city: str | None = None,
    gender: str | None = None,
    search: str | None = None,
    service: UserService = Depends(get_user_service),
) -> dict[str, Any]:
    """List users, newest first, with optional filters and paging.

    A limit of 0 means no limit.
    """
    limit = limit or None
    filters = UserFilters(city=city or None, gender=gender or None, search=search or None)
    users, total = service.list(filters, limit=limit, offset=offset)
    return envelope(
        success=True,
        message="Users retrieved successfully",
        data=users,
        pagination=Pagination(
            total=total, limit=limit, offset=offset or 0, count=len(users)
        ),
    )


# Fixed paths are registered before /{user_id} so they are not read as ids
@router.get("/search")
def search_users(
    q: str | None = None,
    service: UserService = Depends(get_user_service),
) -> dict[str, Any]:
    """Case-insensitive substring search over name and email."""
    if q is None or not q.strip():
        raise ValidationError([], message="Search query is required")
    users = service.search(q)
    return envelope(
        success=True,
        message="Search completed successfully",
        data=users,
        count=len(users),
        query=q,
    )


@router.get("/stats")
def get_stats(service: UserService = Depends(get_user_service)) -> dict[str, Any]:
    return envelope(
        success=True,
        message="Statistics retrieved successfully",
        data=service.stats(),
    )


@router.get("/city/{city}")
def get_users_by_city(
    city: str,
    service: UserService = Depends(get_user_service),
) -> dict[str, Any]:
    users = service.by_city(city)
    return envelope(
        success=True,
        message=f"Users in {city} retrieved successfully",
        data=users,
        count=len(users),
    )


@router.get("/gender/{gender}")
def get_users_by_gender(
    gender: str,
    service: UserService = Depends(get_user_service),
) -> dict[str, Any]:
    users = service.by_gender(gender)
    return envelope(
        success=True,
        message=f"Users with gender {gender} retrieved successfully",
        data=users,
        count=len(users),
    )


@router.get("/{user_id}")
def get_user(
    user_id: str,
    service: UserService = Depends(get_user_service),
) -> dict[str, Any]:
    """Get a user by ID."""
    user = service.get(user_id)
    return envelope(success=True, message="User retrieved successfully", data=user)


@router.post("/{user_id}")
def update_user(
    user_id: str,
    payload: Any = Body(...),
    service: UserService = Depends(get_user_service),
) -> dict[str, Any]:
    """Replace a user's fields."""
    user = service.update(user_id, payload)
    return envelope(success=True, message="User updated successfully", data=user)


@router.delete("/{user_id}")
def delete_user(
    user_id: str,
    service: UserService = Depends(get_user_service),
) -> dict[str, Any]:
    """Delete a user."""
    service.delete(user_id)
    return envelope(success=True, message="User deleted successfully")
