"""File helpers for config, job and program files.

Program files are written atomically (temp file, fsync, rename) so a
G-code sender watching the output directory never picks up a
half-written job.
"""

import os
from pathlib import Path
from typing import Any, Union

import yaml

PathLike = Union[str, Path]


def ensure_dir(p: PathLike) -> Path:
    """Create *p* (and parents) if missing; return it as a Path."""
    p = Path(p)
    p.mkdir(parents=True, exist_ok=True)
    return p


def atomic_write_text(path: PathLike, text: str, encoding: str = "utf-8") -> None:
    """Replace *path* with *text* in one rename.

    Parameters
    ----------
    path : str | Path
        Target file; its directory is created when missing.
    text : str
        Full file content.
    encoding : str
        Text encoding, default "utf-8".

    Raises
    ------
    RuntimeError
        If writing or renaming fails.  The temp file is removed.
    """
    path = Path(path)
    tmp = path.with_name(path.name + ".tmp")
    try:
        ensure_dir(path.parent)
        with open(tmp, "w", encoding=encoding, newline="\n") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        tmp.replace(path)
    except OSError as e:
        if tmp.exists():
            tmp.unlink()
        raise RuntimeError(f"Failed to write {path} atomically: {e}") from e


def load_yaml(path: PathLike) -> Any:
    """Parse a YAML file with ``yaml.safe_load``.

    Returns ``None`` for an empty file.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    yaml.YAMLError
        If the file is not valid YAML; the message names the file.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"YAML file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        try:
            return yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Failed to parse YAML file {path}: {e}") from e
