"""
Schemas for records persisted in the key-value store.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

SortKey = Literal["name", "size", "dateModified"]
SortOrder = Literal["asc", "desc"]
ViewMode = Literal["list", "grid"]
ItemSize = Literal["small", "medium", "large"]


class DirConfig(BaseModel):
    """Per-directory display settings."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    sort: SortKey = "name"
    order: SortOrder = "asc"
    view: ViewMode = "list"
    item_size: ItemSize = Field(default="medium", alias="itemSize")

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


class VideoInfo(BaseModel):
    """Probe result for the first video stream."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    codec_name: str = Field(alias="codecName")
    width: int = Field(ge=0)
    height: int = Field(ge=0)
    duration: float

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)
