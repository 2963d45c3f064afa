"""
abigen.bindings
===============

Per-contract generation: `Abigen` configures one contract, `ContractBindings`
holds what it generated.

Quickstart
----------
    from abigen import Abigen

    (
        Abigen.new("ERC20Token", "./abi/ERC20.json")
        .add_method_alias("transferFrom(address,address,uint256)", "transfer_from_to")
        .add_event_derive("functools.total_ordering")
        .generate()
        .write_to_file("erc20_token.py")
    )

`Abigen` is immutable: every builder method returns a new unit, so a unit
handed to a batch cannot be changed behind the batch's back. The ABI must
declare `stateMutability` on every function; nothing is inferred from legacy
`constant` flags.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable, Mapping, Optional, TextIO, Tuple, Union

from .config import AbigenConfig
from .errors import BindingsIoError, CodegenError
from .expand import Expander, GeneratedSource, PythonExpander
from .formatter import format_source
from .source import Source, parse_source

log = logging.getLogger(__name__)

Formatter = Callable[[str], str]

__all__ = ["Abigen", "ContractBindings", "Formatter"]


@dataclass(frozen=True)
class Abigen:
    """Builder for the bindings of one contract."""

    contract_name: str
    abi_source: Source
    method_aliases: Mapping[str, str] = field(default_factory=dict)
    event_aliases: Mapping[str, str] = field(default_factory=dict)
    event_derives: Tuple[str, ...] = ()
    format: bool = True
    expander: Optional[Expander] = field(default=None, compare=False, repr=False)
    formatter: Optional[Formatter] = field(default=None, compare=False, repr=False)
    config: Optional[AbigenConfig] = field(default=None, compare=False, repr=False)

    def __hash__(self) -> int:
        return hash(
            (
                self.contract_name,
                self.abi_source,
                tuple(sorted(self.method_aliases.items())),
                tuple(sorted(self.event_aliases.items())),
                self.event_derives,
                self.format,
            )
        )

    @classmethod
    def new(
        cls,
        contract_name: str,
        abi_source: str,
        *,
        expander: Optional[Expander] = None,
        formatter: Optional[Formatter] = None,
        config: Optional[AbigenConfig] = None,
    ) -> "Abigen":
        """
        Create a builder for `contract_name` from a raw ABI source string
        (inline JSON, inline human-readable, file path or remote reference).

        Raises `SourceError` if the source cannot be classified. Files and
        remote sources are only read by `generate()`.
        """
        if not contract_name:
            raise CodegenError("contract name must be non-empty")
        return cls(
            contract_name=contract_name,
            abi_source=parse_source(abi_source, config),
            expander=expander,
            formatter=formatter,
            config=config,
        )

    def add_method_alias(self, signature: str, alias: str) -> "Abigen":
        """
        Name the method generated for `signature` (e.g. `getValue(uint256)`).
        Methods without an alias use their snake_cased ABI name.
        """
        return replace(self, method_aliases={**self.method_aliases, signature: alias})

    def add_event_alias(self, signature: str, alias: str) -> "Abigen":
        """Name the event class generated for `signature`; `Event` is appended."""
        return replace(self, event_aliases={**self.event_aliases, signature: alias})

    def add_event_derive(self, derive: str) -> "Abigen":
        """
        Add a class decorator (dotted import path, e.g. `functools.total_ordering`)
        applied to every generated event class, after the ones already added.
        """
        return replace(self, event_derives=self.event_derives + (derive,))

    def set_format(self, enabled: bool) -> "Abigen":
        """
        Whether to run the formatter when writing. If the formatter is
        missing or fails, the unformatted code is written.
        """
        return replace(self, format=bool(enabled))

    def generate(self) -> "ContractBindings":
        """
        Load the ABI and expand it into bindings.

        Raises `SourceError` (unreadable file / failed fetch), `AbiParseError`
        (invalid entry) or `CodegenError` (unknown alias, name collision).
        """
        log.debug("generating bindings", extra={"contract": self.contract_name, "source": self.abi_source.describe()})
        document = self.abi_source.load(self.config)
        expander = self.expander or PythonExpander()
        source = expander.expand(
            self.contract_name,
            document,
            dict(self.method_aliases),
            dict(self.event_aliases),
            list(self.event_derives),
        )
        return ContractBindings(source=source, format=self.format, formatter=self.formatter, config=self.config)


@dataclass(frozen=True)
class ContractBindings:
    """Generated bindings for one contract, ready to be written or embedded."""

    source: GeneratedSource
    format: bool = True
    formatter: Optional[Formatter] = field(default=None, compare=False, repr=False)
    config: Optional[AbigenConfig] = field(default=None, compare=False, repr=False)

    def to_text(self) -> str:
        """The text `write` emits: formatted when enabled and the formatter succeeds."""
        raw = self.source.text
        if not self.format:
            return raw
        try:
            if self.formatter is not None:
                return self.formatter(raw)
            if self.config is not None:
                return format_source(raw, self.config.formatter_argv(), timeout=self.config.format_timeout)
            return format_source(raw)
        except Exception as e:
            # Formatter failures never escape; the raw source is written instead.
            log.debug(
                "formatter failed, keeping unformatted source",
                extra={"contract": self.source.contract_name, "error": str(e)},
            )
            return raw

    def write(self, sink: TextIO) -> None:
        """Write the bindings to a text stream."""
        text = self.to_text()
        try:
            sink.write(text)
        except OSError as e:
            raise BindingsIoError(f"cannot write bindings: {e}") from e

    def write_to_file(self, path: Union[str, Path]) -> None:
        """Create or truncate `path` and write the bindings to it."""
        p = Path(path)
        try:
            f = open(p, "w", encoding="utf-8", newline="\n")
        except OSError as e:
            raise BindingsIoError(f"cannot create file: {e}", path=p) from e
        with f:
            self.write(f)

    def into_raw(self) -> GeneratedSource:
        """The unformatted generated source, for embedding into a larger module."""
        return self.source
