"""
Run generated source through an external formatter (black by default).

The formatter is a separate program: `format_source` pipes the text to its
stdin and returns stdout. Any failure (binary missing, non-zero exit,
timeout) is raised as `FormatError`; callers that treat formatting as
cosmetic catch it and keep the unformatted text.
"""

from __future__ import annotations

import shlex
import subprocess
from typing import Optional, Sequence

from .config import AbigenConfig
from .errors import FormatError


def format_source(
    text: str,
    command: Optional[Sequence[str] | str] = None,
    *,
    timeout: Optional[float] = None,
) -> str:
    """Return `text` formatted by `command` (default: `AbigenConfig.formatter`)."""
    if command is None or timeout is None:
        cfg = AbigenConfig.from_env()
        command = cfg.formatter_argv() if command is None else command
        timeout = cfg.format_timeout if timeout is None else timeout
    argv = shlex.split(command) if isinstance(command, str) else list(command)
    if not argv:
        raise FormatError("empty formatter command")
    shown = " ".join(argv)
    try:
        proc = subprocess.run(
            argv,
            input=text,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as e:
        raise FormatError(f"formatter not found: {argv[0]}", command=shown) from e
    except subprocess.TimeoutExpired as e:
        raise FormatError(f"formatter timed out after {timeout}s", command=shown) from e
    except OSError as e:
        raise FormatError(f"cannot run formatter: {e}", command=shown) from e
    if proc.returncode != 0:
        raise FormatError(
            f"formatter exited with status {proc.returncode}: {proc.stderr.strip()[:200]}",
            command=shown,
        )
    return proc.stdout


__all__ = ["format_source"]
