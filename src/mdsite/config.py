"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from mdsite.core.permalink import check_pattern


CONFIG_FILE = "config.yaml"
# Fields an empty MDSITE_<FIELD>= turns off.
NULLABLE = ("default_layout",)


class Settings(BaseModel):
    site_title:     str = "mdsite"
    site_url:       str = ""
    posts_dir:      str = Field(default="_posts",   description="Directory holding YYYY-MM-DD-slug.ext posts")
    output_dir:     str = Field(default="_site",    description="Directory for rendered pages and JSON indices")
    layouts_dir:    str = Field(default="_layouts", description="Directory of Jinja2 *.html layouts")
    extensions:     list[str] = Field(default=[".md", ".markdown", ".mdx"], description="Post file extensions")
    permalink:      str = Field(default="/:year/:month/:day/:slug/", description="Permalink pattern")
    excerpt_separator: str = Field(default="\n\n", description="Excerpt cut marker")
    default_layout: Optional[str] = Field(default="post", description="Layout for posts that declare none")
    strict:         bool = Field(default=False, description="Treat any failure or issue as build-breaking")
    workers:        int = Field(default=4, ge=1, description="Parallel per-document workers")
    parser_config:  str = Field(default="gfm-like", description="MarkdownIt parser preset name")
    highlight_style: str = Field(default="default", description="Pygments style name")
    log_level:      str = Field(default="WARNING", description="Logging level name")
    log_format:     str = Field(default="console", pattern="^(console|json)$", description="console or json")

    @field_validator("permalink")
    @classmethod
    def check_permalink(cls, v: str) -> str:
        return check_pattern(v)


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then MDSITE_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping, got {type(data).__name__}")

    for name in Settings.model_fields:
        val = os.getenv(f"MDSITE_{name.upper()}")
        if val:
            data[name] = val.split(",") if name == "extensions" else val
        elif val == "" and name in NULLABLE:
            data[name] = None

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
