"""
abigen.fs
=========

Filesystem helpers for writing binding trees:

- `ensure_dir()`  idempotent directory creation (raises BindingsIoError)
- `write_text()`  create-or-truncate a file (raises BindingsIoError)
- `temp_dir()`    scratch directory context manager with robust cleanup
"""

from __future__ import annotations

import contextlib
import shutil
import tempfile
from pathlib import Path
from typing import Iterator, Union

from .errors import BindingsIoError

PathLike = Union[str, Path]


def ensure_dir(path: PathLike) -> Path:
    """Create a directory (and parents) if missing. Returns the `Path`."""
    p = Path(path).expanduser()
    try:
        p.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise BindingsIoError(f"cannot create directory: {e}", path=p) from e
    return p


def write_text(path: PathLike, text: str) -> Path:
    """Create or truncate `path` and write `text` as UTF-8 with `\\n` line endings."""
    p = Path(path)
    try:
        with open(p, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
    except OSError as e:
        raise BindingsIoError(f"cannot write file: {e}", path=p) from e
    return p


@contextlib.contextmanager
def temp_dir(*, prefix: str = "abigen_", keep: bool = False) -> Iterator[Path]:
    """
    Yield the `Path` of a fresh temporary directory, removed on exit unless `keep`.

    Example
    -------
    >>> with temp_dir() as d:
    ...     (d / "mod.py").write_text("# ok")
    """
    path = Path(tempfile.mkdtemp(prefix=prefix))
    try:
        yield path
    finally:
        if not keep:
            shutil.rmtree(path, ignore_errors=True)


__all__ = ["ensure_dir", "write_text", "temp_dir"]
