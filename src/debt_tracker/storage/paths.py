"""Per-user file locations for the debt tracker client.

Persistent locations are resolved once here so the credential store and the
settings share a single canonical path.  Directory creation is deferred to
:func:`ensure_parents`, keeping imports side-effect-free.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Union

from platformdirs import user_config_dir

APP_NAME = "debt-tracker"

CONFIG_DIR: Path = Path(user_config_dir(APP_NAME))

TOKENS_FILE = CONFIG_DIR / "tokens.json"
ENV_FILE = CONFIG_DIR / ".env"


def ensure_parents(path: Path) -> Path:
    """Create all parent directories for *path* if they do not exist.

    Returns *path* unchanged so the call can be used inline.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError:
        pass
    return path


def atomic_write(path: Path, data: Union[str, bytes]) -> None:
    """Write *data* to *path* atomically (write-to-tmp then replace).

    Raises :class:`OSError` if the file cannot be written; the temporary
    file is removed in that case.
    """
    tmp = path.with_suffix(path.suffix + ".tmp")
    ensure_parents(tmp)

    text = data.decode() if isinstance(data, bytes) else data
    try:
        with tmp.open("w", encoding="utf-8") as fh:
            fh.write(text)
        # os.replace is atomic on POSIX, near-atomic on Windows.
        os.replace(tmp, path)
    except OSError:
        try:
            if tmp.exists():
                tmp.unlink()
        except OSError:
            pass
        raise
