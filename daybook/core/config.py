"""
FILE: daybook/core/config.py
PURPOSE: Environment-driven configuration and owner resolution
EXPORTS:
  - data_dir() -> Path
  - log_level() -> str
  - resolve_owner(explicit) -> Optional[str]
  - set_owner_override(owner) -> None
DEPENDENCIES:
  - os, getpass, pathlib (stdlib)
NOTES:
  - DAYBOOK_HOME overrides the data directory (default ~/.daybook)
  - DAYBOOK_OWNER overrides the owner identity (default: login name)
  - DAYBOOK_LOG_LEVEL sets the CLI's default log level
  - The CLI's --owner option installs a process-wide override
"""

import getpass
import os
from pathlib import Path
from typing import Optional

DEFAULT_HOME = Path.home() / ".daybook"
DEFAULT_LOG_LEVEL = "WARNING"

_owner_override: Optional[str] = None


def data_dir() -> Path:
    """Directory holding the database file."""
    home = os.environ.get("DAYBOOK_HOME")
    return Path(home).expanduser() if home else DEFAULT_HOME


def log_level() -> str:
    return os.environ.get("DAYBOOK_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()


def set_owner_override(owner: Optional[str]) -> None:
    """Pin the owner for the rest of the process (None clears it)."""
    global _owner_override
    _owner_override = owner.strip() if owner and owner.strip() else None


def resolve_owner(explicit: Optional[str] = None) -> Optional[str]:
    """
    Work out which owner an operation runs as.

    Resolution order: explicit argument, CLI override, DAYBOOK_OWNER,
    login name. Returns None when none of them yields a non-empty value;
    callers decide whether that is an empty result (reads) or an
    AuthResolutionError (writes).
    """
    for candidate in (explicit, _owner_override, os.environ.get("DAYBOOK_OWNER")):
        if candidate is not None:
            candidate = candidate.strip()
            return candidate or None

    try:
        login = getpass.getuser()
    except (KeyError, OSError):
        return None
    return login.strip() or None
