from __future__ import annotations

import os
from pathlib import Path
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, Field

Service = Literal["compute", "network", "image", "object_store"]

ALL_SERVICES: List[Service] = ["compute", "network", "image", "object_store"]


class Settings(BaseModel):
    cloud: Optional[str] = None
    # DevStack commonly publishes only public endpoints
    interface: str = "public"
    region_name: Optional[str] = None
    page_size: int = Field(default=100, gt=0)
    connect_retries: int = Field(default=3, ge=0)
    services: List[Service] = Field(default_factory=lambda: list(ALL_SERVICES))
    timeout_seconds: Optional[float] = Field(default=None, gt=0)

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        return cls.model_validate(data)


def _env_overrides() -> dict:
    out: dict = {}
    if os.environ.get("OS_CLOUD"):
        out["cloud"] = os.environ["OS_CLOUD"]
    if os.environ.get("OS_INTERFACE"):
        out["interface"] = os.environ["OS_INTERFACE"]
    if os.environ.get("OS_REGION_NAME"):
        out["region_name"] = os.environ["OS_REGION_NAME"]
    if os.environ.get("STACKFIND_PAGE_SIZE"):
        out["page_size"] = os.environ["STACKFIND_PAGE_SIZE"]
    if os.environ.get("STACKFIND_CONNECT_RETRIES"):
        out["connect_retries"] = os.environ["STACKFIND_CONNECT_RETRIES"]
    return out


def load_settings(path: Path | None = None) -> Settings:
    """
    Load settings from an optional YAML file, then apply environment overrides.

    A missing ``path`` is an error; with no path at all only the defaults and
    the ``OS_*`` / ``STACKFIND_*`` environment variables are used.
    """
    data: dict = {}
    if path is not None:
        if not path.exists():
            raise FileNotFoundError(f"Settings file not found: {path}")
        data = yaml.safe_load(path.read_text()) or {}
        if not isinstance(data, dict):
            raise ValueError("Settings file must contain a mapping")
    data.update(_env_overrides())
    return Settings.from_dict(data)
