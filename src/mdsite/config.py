"""Application configuration: settings schema and mdsite.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from mdsite.errors import ConfigurationError


CONFIG_FILE = "mdsite.yaml"


class Settings(BaseModel):
    app_name:            str  = "mdsite"
    source_dir:          str  = Field(default="content", description="Directory scanned for front matter documents")
    output_dir:          str  = Field(default="dist", description="Directory for exported JSON artifacts")
    workers:             int  = Field(default=1, ge=1, description="Threads used to parse and normalize; 1 = serial")
    max_reference_depth: int  = Field(default=1, ge=1, description="Max hops a series-relative reference may walk")
    include_drafts:      bool = Field(default=False, description="Keep documents marked 'published: false'")
    post_permalink:      str  = Field(default="/{year}/{month}/{day}/{slug}/", description="URL pattern for posts")
    page_permalink:      str  = Field(default="/{slug}/", description="URL pattern for pages")
    parser_config:       str  = Field(default="gfm-like", description="MarkdownIt parser preset name")
    log_level:           str  = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from mdsite.yaml, then MDSITE_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Invalid {CONFIG_FILE}: expected a mapping")

    for name in Settings.model_fields:
        if val := os.getenv(f"MDSITE_{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return Settings(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings: {e}") from e
