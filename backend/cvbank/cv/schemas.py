"""CV bank request schemas."""

from pydantic import BaseModel, Field


class BulkDeleteRequest(BaseModel):
    ids: list[str] = Field(..., max_length=500)
