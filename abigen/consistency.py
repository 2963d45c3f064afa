"""
abigen.consistency
==================

Check that committed bindings match what the generator produces today.

`ensure_consistent` regenerates a batch into a scratch directory and compares
every freshly written file with the file of the same name in the existing
module. The check is one-directional: a file that exists in the module but is
no longer generated is not reported.

`diff_bindings` runs the same comparison and returns the drift instead of a
boolean, with a unified diff per changed file, for CI messages.
"""

from __future__ import annotations

import contextlib
import difflib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Iterator, List, Optional, Tuple, Union

from .fs import temp_dir

if TYPE_CHECKING:  # pragma: no cover
    from .multi import MultiAbigen

log = logging.getLogger(__name__)

__all__ = ["BindingsDrift", "ensure_consistent", "diff_bindings"]


@dataclass(frozen=True)
class BindingsDrift:
    """One generated file that is missing from, or differs in, the existing module."""

    file_name: str
    missing: bool
    diff: str = ""

    def describe(self) -> str:
        if self.missing:
            return f"{self.file_name}: not present in the existing bindings"
        return f"{self.file_name}: content differs\n{self.diff}"


def _fresh_files(batch: "MultiAbigen", scratch: Path) -> List[Path]:
    fresh = scratch / "contracts"
    batch.write_to_module(fresh)
    return sorted((p for p in fresh.iterdir() if p.is_file()), key=lambda p: p.name)


def _compare(
    batch: "MultiAbigen", module: Union[str, Path]
) -> Iterator[Tuple[str, Optional[bytes], bytes]]:
    """Yield (file name, existing bytes or None, fresh bytes) for each fresh file."""
    existing_root = Path(module)
    with temp_dir(prefix="abigen_check_") as scratch:
        for fresh in _fresh_files(batch, scratch):
            existing = existing_root / fresh.name
            yield fresh.name, existing.read_bytes() if existing.is_file() else None, fresh.read_bytes()


def ensure_consistent(batch: "MultiAbigen", module: Union[str, Path]) -> bool:
    """
    True if every file a fresh run of `batch` produces exists in `module`
    with byte-identical content.
    """
    with contextlib.closing(_compare(batch, module)) as pairs:
        for name, existing, fresh in pairs:
            if existing is None:
                log.info("generated file missing from existing bindings", extra={"file": name})
                return False
            if existing != fresh:
                log.info("generated file differs from existing bindings", extra={"file": name})
                return False
    return True


def diff_bindings(batch: "MultiAbigen", module: Union[str, Path]) -> List[BindingsDrift]:
    """Every fresh file that is missing from `module` or differs from it."""
    drift: List[BindingsDrift] = []
    for name, existing, fresh in _compare(batch, module):
        if existing is None:
            drift.append(BindingsDrift(file_name=name, missing=True))
        elif existing != fresh:
            diff = difflib.unified_diff(
                existing.decode("utf-8", errors="replace").splitlines(keepends=True),
                fresh.decode("utf-8", errors="replace").splitlines(keepends=True),
                fromfile=f"existing/{name}",
                tofile=f"generated/{name}",
            )
            drift.append(BindingsDrift(file_name=name, missing=False, diff="".join(diff)))
    return drift
