"""
Pydantic schemas for technology endpoints.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class LinkTechnologyRequest(BaseModel):
    usage_type: Literal["primary", "secondary", "tool"] = "secondary"
    proficiency_shown: Literal["beginner", "intermediate", "advanced", "expert"] = "intermediate"
