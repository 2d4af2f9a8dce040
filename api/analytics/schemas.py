"""
Page-view schemas.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class TrackViewRequest(BaseModel):
    page_type: str = Field(..., min_length=1, max_length=50)
    page_identifier: str | None = Field(default=None, max_length=255)
    referer: str | None = Field(default=None, max_length=500)
