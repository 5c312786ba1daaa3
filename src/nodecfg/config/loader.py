# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/nodecfg/config/loader.py

import logging
import os
import yaml
from pathlib import Path
from typing import Optional

from .errors import MalformedFieldError
from .registry import DocumentRegistry, default_registry

log = logging.getLogger("nodecfg")


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Recursively merge *override* into *base* (mutates base).
    Only overwrites when the override value is non-empty.
    """
    for key, value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, dict)
        ):
            _deep_merge(base[key], value)
        else:
            if value not in (None, ""):
                base[key] = value
    return base


def _find_secrets_file(config_path: Path) -> Optional[Path]:
    """
    Locate the secrets overlay:

    1. NODECFG_SECRETS_FILE environment variable (explicit override)
    2. secrets.yaml in the same directory as the machine config
    """
    env = os.environ.get("NODECFG_SECRETS_FILE")
    if env:
        p = Path(env)
        if p.is_file():
            return p
        log.warning("NODECFG_SECRETS_FILE=%s does not exist, skipping", env)
        return None

    p = config_path.parent / "secrets.yaml"
    if p.is_file():
        return p

    return None


def _parse_yaml(text: str, source: str) -> dict:
    """Parse YAML text, expanding ${ENV_VAR} references."""
    try:
        data = yaml.safe_load(os.path.expandvars(text))
    except yaml.YAMLError as exc:
        raise MalformedFieldError.single("", f"{source}: invalid YAML: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise MalformedFieldError.single(
            "", f"{source}: expected a mapping at the top level, got {type(data).__name__}"
        )
    return data


def _load_yaml(path: Path) -> dict:
    return _parse_yaml(path.read_text(), str(path))


def load_config_text(text: str, registry: Optional[DocumentRegistry] = None):
    """Decode a machine config held in memory."""
    registry = registry or default_registry()
    return registry.decode_document(_parse_yaml(text, "<text>"))


def load_config(path, registry: Optional[DocumentRegistry] = None):
    """
    Load a machine config file and decode it by its ``version``.

    Secrets (tokens, CA keys) can live in a separate overlay whose
    structure mirrors the config; it is deep-merged before decoding.
    Discovery order:
      1. ``NODECFG_SECRETS_FILE`` env var, explicit path
      2. ``secrets.yaml`` next to the config file

    ``${ENV_VAR}`` placeholders in either file are expanded at load time.
    """
    path = Path(path)
    data = _load_yaml(path)

    secrets_path = _find_secrets_file(path)
    if secrets_path:
        log.debug("Merging secrets from %s", secrets_path)
        _deep_merge(data, _load_yaml(secrets_path))
    else:
        log.debug("No secrets overlay found, proceeding without merge")

    registry = registry or default_registry()
    return registry.decode_document(data)
