"""Where headtrack looks for its face cascade.

Lookup order:

1. ``HEADTRACK_CASCADE`` pointing straight at a cascade JSON file.
2. ``facecascade.json`` in ``HEADTRACK_MODELS_DIR``.
3. ``facecascade.json`` in ``$HEADTRACK_HOME/models`` (``~/.headtrack/models``).

Relative environment paths resolve against the current directory.
"""

import os
from pathlib import Path
from typing import Optional

CASCADE_FILENAME = "facecascade.json"


def _env_path(name: str) -> Optional[Path]:
    value = os.environ.get(name)
    if not value:
        return None
    path = Path(value).expanduser()
    return path if path.is_absolute() else Path.cwd() / path


def get_home_dir() -> Path:
    return _env_path("HEADTRACK_HOME") or Path.home() / ".headtrack"


def get_models_dir(create: bool = False) -> Path:
    """Directory holding cascade models.

    Args:
        create: Create the directory when it does not exist yet.
    """
    models_dir = _env_path("HEADTRACK_MODELS_DIR") or get_home_dir() / "models"
    if create:
        models_dir.mkdir(parents=True, exist_ok=True)
    return models_dir


def get_cascade_path() -> Path:
    """Face cascade file, following the lookup order above."""
    return _env_path("HEADTRACK_CASCADE") or get_models_dir() / CASCADE_FILENAME


__all__ = ["CASCADE_FILENAME", "get_home_dir", "get_models_dir", "get_cascade_path"]
