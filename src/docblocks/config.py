"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


CONFIG_FILE = "config.yaml"


class Settings(BaseModel):
    app_name:               str = "docblocks"
    root_folder:            str = Field(default="docgen_data", description="Root folder; documents live in <root>/documents")
    log_level:              str = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR)$")
    preview_length:         int = Field(default=100, ge=4, description="Max chars of heading/markdown previews")
    caption_preview_length: int = Field(default=80,  ge=4, description="Max chars of image caption previews")
    snippet_context:        int = Field(default=50,  ge=0, description="Chars kept on each side of a search match")
    locking:                str = Field(default="none", pattern="^(none|thread)$", description="Per-document write guard")

    @property
    def documents_folder(self) -> Path:
        return Path(self.root_folder) / "documents"


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then DOCBLOCKS_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e

    for name in Settings.model_fields:
        if val := os.getenv(f"DOCBLOCKS_{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
