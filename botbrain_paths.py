"""Path resolution for botbrain data (checkpoints, logs).

Resolution order (first match wins):
    1. BOTBRAIN_HOME environment variable
    2. ~/.botbrain.conf JSON config file  {"botbrain_home": "/path/..."}
    3. Default: ~/.botbrain
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional


_CONF_FILE = "~/.botbrain.conf"
_DEFAULT_HOME = "~/.botbrain"


def get_botbrain_home() -> Path:
    """Return the data directory all checkpoints and logs live under."""
    env_home = os.environ.get("BOTBRAIN_HOME")
    if env_home:
        return Path(env_home).expanduser().resolve()

    home = read_conf()
    if home:
        return Path(home).expanduser().resolve()

    return Path(_DEFAULT_HOME).expanduser().resolve()


def get_checkpoint_dir() -> Path:
    return get_botbrain_home() / "checkpoints"


def get_checkpoint_path() -> Path:
    """Default network checkpoint file."""
    return get_checkpoint_dir() / "network.msgpack"


def get_log_dir() -> Path:
    return get_botbrain_home() / "logs"


def read_conf(conf_path: Optional[str] = None) -> Optional[str]:
    """Configured data directory, or None if the file is missing or unreadable."""
    target = Path(conf_path or _CONF_FILE).expanduser()
    if not target.is_file():
        return None
    try:
        data = json.loads(target.read_text())
    except (json.JSONDecodeError, OSError):
        return None
    if not isinstance(data, dict):
        return None
    home = str(data.get("botbrain_home", "")).strip()
    return home or None
