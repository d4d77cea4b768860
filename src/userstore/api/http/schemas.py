"""Response envelope shared by every endpoint."""

from typing import Any

from pydantic import BaseModel, Field


class Pagination(BaseModel):
    total: int = Field(description="Rows matching the city/gender filters")
    limit: int | None = Field(default=None, description="Requested page size")
    offset: int = Field(default=0, description="Requested page offset")
    count: int = Field(description="Rows in this page")


class ApiResponse(BaseModel):
    """``{success, message, data?, errors?, count?, pagination?}``.

    Optional members are omitted from the JSON body unless passed explicitly.
    """

    success: bool
    message: str
    data: Any | None = None
    errors: list[str] | None = None
    count: int | None = None
    pagination: Pagination | None = None
    query: str | None = None
    error: str | None = None


def envelope(**fields: Any) -> dict[str, Any]:
    """Render an envelope, dropping the members that were not provided."""
    return ApiResponse(**fields).model_dump(mode="json", exclude_unset=True)
