"""
Response shapes used by more than one router.

ErrorResponse     — body of every 4xx/5xx (see errors.AppError.to_dict)
HealthResponse    — GET /health
MessageResponse   — acknowledgement for writes that return no resource
PaginationMeta    — paging block of every list response
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class ErrorResponse(BaseModel):
    error: str
    code: str
    field: Optional[str] = None
    details: Optional[Any] = None


# Documented on api_router so every endpoint lists its error shape
ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    status: {"model": ErrorResponse} for status in (400, 401, 403, 404, 409, 429)
}


class HealthResponse(BaseModel):
    status: str
    checks: dict[str, str]


class MessageResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: Optional[str] = None


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    has_next: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PaginationMeta":
        return cls(page=page, limit=limit, total=total, has_next=page * limit < total)
