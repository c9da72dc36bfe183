"""
Schema of the user configuration file (`config.json`).
"""

from __future__ import annotations

import json
import os
from typing import Any, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ...errors import ConfigInvalid


class AppConfig(BaseModel):
    """
    Immutable configuration snapshot.

    Keys are camelCase in the file; unknown keys are ignored. `folders` keeps
    its order (the home listing shows roots in this order) and drops duplicates.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    host: str = "127.0.0.1"
    port: int = Field(default=60001, ge=1, le=65535)
    folders: Tuple[str, ...] = ()
    hide_dotfiles: bool = Field(default=True, alias="hideDotfiles")
    launch_browser: bool = Field(default=True, alias="launchBrowser")
    bring_folder_to_top: bool = Field(default=False, alias="bringFolderToTop")
    bring_folder_to_top_done: bool = Field(default=False, alias="bringFolderToTopDone")
    update_date_accessed: bool = Field(default=False, alias="updateDateAccessed")

    @field_validator("folders")
    @classmethod
    def _validate_folders(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        seen: set[str] = set()
        out: list[str] = []
        for raw in value:
            folder = str(raw).strip()
            if not folder:
                continue
            if "\x00" in folder:
                raise ValueError("folder path contains a NUL byte")
            if not os.path.isabs(folder):
                raise ValueError(f"folder must be an absolute path: {folder}")
            key = os.path.normcase(os.path.normpath(folder))
            if key in seen:
                continue
            seen.add(key)
            out.append(folder)
        return tuple(out)

    def to_file_dict(self) -> dict[str, Any]:
        data = self.model_dump(by_alias=True)
        data["folders"] = list(self.folders)
        return data


def parse_config_text(text: str) -> AppConfig:
    """
    Parse and validate config file contents.

    Raises:
        ConfigInvalid: the text is not JSON or does not match the schema.
    """
    try:
        raw = json.loads(text) if text.strip() else None
    except json.JSONDecodeError as exc:
        raise ConfigInvalid(f"Config file is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigInvalid("Config file must contain a JSON object")
    try:
        return AppConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigInvalid(f"Config file does not match the schema: {exc}") from exc


def default_config_text() -> str:
    return json.dumps(AppConfig().to_file_dict(), indent=2) + "\n"
