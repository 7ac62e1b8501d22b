"""YAML config loading with env var expansion."""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import FragstoreConfig


def load_config(cli_path: str | None = None) -> FragstoreConfig:
    """Load config with resolution order: CLI > project-local > user-global > defaults."""
    config_paths = [
        Path(cli_path) if cli_path else None,
        Path("./fragstore.yaml"),
        Path.home() / ".fragstore" / "config.yaml",
    ]

    if cli_path and not Path(cli_path).exists():
        raise ValueError(f"Config file not found: {cli_path}")

    for path in config_paths:
        if path and path.exists():
            try:
                with open(path) as f:
                    raw = yaml.safe_load(f)
                if raw is None:
                    continue
                raw = _expand_env_vars(raw)
                return FragstoreConfig(**raw)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e
            except ValidationError as e:
                raise ValueError(f"Invalid config in {path}: {e}") from e

    return FragstoreConfig()


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(obj, str):
        return re.sub(r"\$\{(\w+)\}", lambda m: os.environ.get(m.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `fragstore config init`
DEFAULT_CONFIG_TEMPLATE = """\
# fragstore.yaml

# Base URL used to build fragment Location URLs
api_url: "http://localhost:8080"

# Metadata + payload backend
backend:
  provider: "sqlite"           # memory | sqlite
  path: ".fragstore/fragments.db"

# Content types accepted on create (remove entries to disable them)
supported_types:
  - text/plain
  - text/markdown
  - text/html
  - application/json
  - image/png
  - image/jpeg
  - image/webp
  - image/gif

# Conversion
conversion:
  markdown:
    extensions: [fenced_code, tables]
  images:
    jpeg_quality: 90
    webp_quality: 80
    webp_lossless: false
    background: "#ffffff"      # fill used when dropping alpha for JPEG
  max_image_pixels: 89478485

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
