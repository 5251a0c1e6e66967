# apfed/config.py
"""
Client configuration.

Loaded from a YAML file:

    timeout: 10
    user_agent: "myserver/1.0"
    page_limit: 5
    strict_headers: true

The file path can also be given through the APFED_CONFIG environment
variable. Missing keys keep their defaults.
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from . import __version__

CONFIG_ENV_VAR = "APFED_CONFIG"


@dataclass
class ClientConfig:
    """
    Settings for FederationClient.

    Attributes:
        timeout: Transport timeout in seconds
        user_agent: User-Agent header sent on every request
        page_limit: Default page bound for get_all_pages_in_collection
        strict_headers: Fail verification when a signed header is missing
            from the received request
    """
    timeout: float = 30.0
    user_agent: str = f"apfed/{__version__}"
    page_limit: int = 5
    strict_headers: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClientConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")
        return cls(**data)

    @classmethod
    def from_yaml(cls, yaml_content: str) -> "ClientConfig":
        """Parse config from YAML string."""
        data = yaml.safe_load(yaml_content) or {}
        if not isinstance(data, dict):
            raise ValueError("Config must be a YAML mapping")
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: Path | str) -> "ClientConfig":
        """Load config from YAML file."""
        with open(path, "r") as f:
            return cls.from_yaml(f.read())

    @classmethod
    def load(cls, path: Optional[Path | str] = None) -> "ClientConfig":
        """Load from path, else $APFED_CONFIG, else defaults."""
        path = path or os.environ.get(CONFIG_ENV_VAR)
        if path:
            return cls.from_file(path)
        return cls()
