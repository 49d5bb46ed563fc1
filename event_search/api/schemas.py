"""Request bodies accepted by the API."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RefreshRequest(BaseModel):
    """Body of ``POST /api/refresh``; every field is optional."""

    model_config = ConfigDict(populate_by_name=True)

    cities: Optional[List[str]] = None
    date_from: Optional[str] = Field(default=None, alias="dateFrom")
    date_to: Optional[str] = Field(default=None, alias="dateTo")
    wait: bool = False

__all__ = ["RefreshRequest"]
