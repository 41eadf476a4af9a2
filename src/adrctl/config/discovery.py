"""Config file discovery.

Walk-up finder locates ``adrs.toml``, similar to how git finds ``.git/``.
Supports the ADRCTL_CONFIG env var and ``--config`` CLI flag overrides.
Repositories set up by adr-tools carry a ``.adr-dir`` file instead; it is
found the same way and implies legacy mode.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "adrs.toml"
CONFIG_ENV_VAR = "ADRCTL_CONFIG"
LEGACY_DIR_FILENAME = ".adr-dir"


def _walk_up(filename: str, start: Path | None) -> Path | None:
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / filename
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for adrs.toml.

    Returns the path to the config file, or None if not found.
    Checks ADRCTL_CONFIG env var first.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        if p.is_file():
            return p
        return None
    return _walk_up(CONFIG_FILENAME, start)


def find_legacy_dir_file(start: Path | None = None) -> Path | None:
    """Walk up from *start* looking for an adr-tools ``.adr-dir`` file."""
    return _walk_up(LEGACY_DIR_FILENAME, start)


def read_legacy_dir_file(path: Path) -> str:
    """Records directory named by a ``.adr-dir`` file (first line)."""
    content = path.read_text(encoding="utf-8").strip()
    return content.splitlines()[0].strip() if content else ""
