"""
Typed error classes for abigen.

Every failure the generator can report derives from `AbigenError`, so callers
can catch one base class while still telling the failure modes apart:

- SourceError      : an ABI source string could not be classified, read or fetched
- AbiParseError    : an ABI entry is structurally invalid (missing field, bad type)
- CodegenError     : bindings cannot be emitted (unknown alias, name collision)
- BindingsIoError  : writing generated files failed
- FormatError      : the external formatter failed (never escapes ContractBindings)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

__all__ = [
    "AbigenError",
    "SourceErrorKind",
    "SourceError",
    "AbiParseError",
    "CodegenError",
    "BindingsIoError",
    "FormatError",
]


@dataclass(eq=False)
class AbigenError(Exception):
    """Base class for all abigen errors."""

    message: str

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    @property
    def code(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe view for logs and CLI output."""
        out: Dict[str, Any] = {"code": self.code, "message": self.message}
        for k, v in self.__dict__.items():
            if k == "message" or k.startswith("_") or v is None:
                continue
            out[k] = v.value if isinstance(v, Enum) else str(v) if isinstance(v, Path) else v
        return out


class SourceErrorKind(str, Enum):
    UNRECOGNIZED = "unrecognized"
    IO = "io"
    FETCH = "fetch"


@dataclass(eq=False)
class SourceError(AbigenError):
    """
    Raised when an ABI source cannot be classified (`UNRECOGNIZED`), when a
    file source cannot be read (`IO`) or when a remote source cannot be
    fetched (`FETCH`).
    """

    kind: SourceErrorKind = SourceErrorKind.UNRECOGNIZED
    source: Optional[str] = None

    def __str__(self) -> str:
        where = f" [{self.source}]" if self.source else ""
        return f"SourceError({self.kind.value}){where}: {self.message}"


@dataclass(eq=False)
class AbiParseError(AbigenError):
    """
    Raised when an ABI entry is structurally invalid.

    Typical causes: missing `stateMutability`, unknown type string, unbalanced
    tuple, a human-readable line that is not a declaration.
    """

    entry: Optional[str] = None
    field: Optional[str] = None

    def __str__(self) -> str:
        where = []
        if self.entry:
            where.append(f"entry={self.entry}")
        if self.field:
            where.append(f"field={self.field}")
        where_s = (" [" + ", ".join(where) + "]") if where else ""
        return f"AbiParseError{where_s}: {self.message}"


@dataclass(eq=False)
class CodegenError(AbigenError):
    """Raised when bindings cannot be generated from a valid ABI."""

    contract: Optional[str] = None
    identifier: Optional[str] = None

    def __str__(self) -> str:
        where = []
        if self.contract:
            where.append(f"contract={self.contract}")
        if self.identifier:
            where.append(f"ident={self.identifier}")
        where_s = (" [" + ", ".join(where) + "]") if where else ""
        return f"CodegenError{where_s}: {self.message}"


@dataclass(eq=False)
class BindingsIoError(AbigenError):
    """Raised when a generated file or directory cannot be created or written."""

    path: Optional[Path] = None

    def __str__(self) -> str:
        suffix = f" path={self.path}" if self.path else ""
        return f"BindingsIoError{suffix}: {self.message}"


@dataclass(eq=False)
class FormatError(AbigenError):
    """Raised by `abigen.formatter.format_source`; swallowed by ContractBindings."""

    command: Optional[str] = None
