"""
abigen.multi
============

Generate bindings for a series of contracts into one Python package directory.

    abi/                       src/contracts/
    ├── ERC20.json      ->     ├── mod.py
    ├── Contract1.json         ├── erc20.py
    └── Contract2.abi          ├── contract1.py
                               └── contract2.py

`mod.py` is the single import point: a header comment followed by one sorted
`from . import <module>` line per contract. With `single_file()` every
contract's source is appended to `mod.py` instead, followed by one sorted
`__all__` naming the exports of every contract, and no other file is written.

The intended workflow is to generate the bindings once into the source tree,
commit them, and keep a test that calls `ensure_consistent_bindings` so CI
fails when the committed bindings drift from what the generator produces:

    def test_generated_bindings_are_fresh():
        gen = MultiAbigen.from_json_files(ROOT / "abi")
        assert gen.ensure_consistent_bindings(ROOT / "src" / "contracts")
"""

from __future__ import annotations

import io
import keyword
import logging
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from . import logging as alog
from .bindings import Abigen
from .config import AbigenConfig
from .consistency import ensure_consistent
from .errors import AbigenError, BindingsIoError, CodegenError, SourceError, SourceErrorKind
from .expand import Expander, snake_case
from .fs import ensure_dir, write_text
from .source import SOURCE_EXTENSIONS

log = logging.getLogger(__name__)

MODULE_EXT = "py"
MANIFEST_FILE = f"mod.{MODULE_EXT}"
MANIFEST_HEADER = "# This module contains all the autogenerated abigen contract bindings\n"

_MODULE_RE = re.compile(r"^[a-z_][a-z0-9_]*$")

__all__ = ["MultiAbigen", "module_name_for", "MANIFEST_FILE", "MANIFEST_HEADER"]


def module_name_for(contract_name: str) -> str:
    """Module name for a contract: its snake_cased name, validated as an identifier."""
    name = snake_case(contract_name)
    if not _MODULE_RE.match(name) or keyword.iskeyword(name) or name == "mod":
        raise CodegenError(
            f"contract name {contract_name!r} does not give a valid module name ({name!r})",
            contract=contract_name,
            identifier=name,
        )
    return name


def _read_abi_file(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise SourceError(f"ABI file is not valid UTF-8: {e}", kind=SourceErrorKind.IO, source=str(path)) from e


def _combined_all(names: List[str]) -> str:
    # Written after the last unit; replaces every per-unit `__all__`.
    body = "".join(f"    {n!r},\n" for n in sorted(set(names)))
    return f"\n\n__all__ = [\n{body}]\n"


class MultiAbigen:
    """An ordered batch of `Abigen` units written as one module."""

    def __init__(self, abigens: Iterable[Abigen] = (), *, single_file: bool = False):
        # Batch policy: every unit is formatted on write.
        self.abigens: List[Abigen] = [a.set_format(True) for a in abigens]
        self.single_file_output = single_file

    def __repr__(self) -> str:
        names = ", ".join(a.contract_name for a in self.abigens)
        return f"MultiAbigen([{names}], single_file={self.single_file_output})"

    # --- construction -------------------------------------------------------

    @classmethod
    def from_abigen(cls, abigens: Iterable[Abigen]) -> "MultiAbigen":
        """Create a batch from already configured units."""
        return cls(abigens)

    @classmethod
    def new(
        cls,
        abis: Iterable[Tuple[str, str]],
        *,
        expander: Optional[Expander] = None,
        config: Optional[AbigenConfig] = None,
    ) -> "MultiAbigen":
        """
        Create a batch from `(contract name, abi source)` pairs; see `Abigen.new`.

        The first source that cannot be classified aborts the whole construction.
        """
        units = [
            Abigen.new(name, source, expander=expander, config=config) for name, source in abis
        ]
        return cls.from_abigen(units)

    @classmethod
    def from_json_files(
        cls,
        directory: Union[str, Path],
        *,
        expander: Optional[Expander] = None,
        config: Optional[AbigenConfig] = None,
    ) -> "MultiAbigen":
        """
        Read every `*.json` / `*.abi` file directly inside `directory` (sorted by
        file name) and use each file's stem as the contract name.
        """
        root = Path(directory)
        try:
            files = sorted(
                (p for p in root.iterdir() if p.is_file() and p.suffix.lower() in SOURCE_EXTENSIONS),
                key=lambda p: p.name,
            )
            abis = [(p.stem, _read_abi_file(p)) for p in files]
        except OSError as e:
            raise BindingsIoError(f"cannot read ABI directory: {e}", path=root) from e
        log.debug("found ABI files", extra={"target": str(root), "count": len(abis)})
        return cls.new(abis, expander=expander, config=config)

    def single_file(self) -> "MultiAbigen":
        """Write all bindings into `mod.py` instead of one module per contract."""
        self.single_file_output = True
        return self

    def push(self, abigen: Abigen) -> "MultiAbigen":
        """Append a unit to the batch (formatted on write, like every unit)."""
        self.abigens.append(abigen.set_format(True))
        return self

    # --- generation ---------------------------------------------------------

    def module_names(self) -> List[str]:
        """Module names in unit order; raises `CodegenError` on invalid or colliding names."""
        owners: Dict[str, str] = {}
        names: List[str] = []
        for unit in self.abigens:
            name = module_name_for(unit.contract_name)
            if name in owners:
                raise CodegenError(
                    f"contracts {owners[name]!r} and {unit.contract_name!r} both map to module {name!r}",
                    contract=unit.contract_name,
                    identifier=name,
                )
            owners[name] = unit.contract_name
            names.append(name)
        return names

    def write_to_module(self, module: Union[str, Path]) -> None:
        """
        Generate every contract and write the module tree at `module`.

        Units are generated in order. If one fails, the error propagates and
        files already written for earlier units stay on disk.
        """
        names = self.module_names()
        target = ensure_dir(module)
        manifest = io.StringIO()
        manifest.write(MANIFEST_HEADER)

        exports: List[str] = []
        names_in_file: List[str] = []
        with alog.scope(target=str(target)):
            for unit, name in zip(self.abigens, names):
                with alog.scope(contract=unit.contract_name, module=name):
                    try:
                        bindings = unit.generate()
                        if self.single_file_output:
                            bindings.write(manifest)
                            names_in_file.extend(bindings.source.exports)
                        else:
                            bindings.write_to_file(target / f"{name}.{MODULE_EXT}")
                            exports.append(name)
                    except AbigenError:
                        log.error("generation aborted; earlier modules were left on disk")
                        raise
                    log.debug("generated bindings")

            if exports:
                manifest.write("".join(f"from . import {name}\n" for name in sorted(exports)))
            elif names_in_file:
                manifest.write(_combined_all(names_in_file))

            write_text(target / MANIFEST_FILE, manifest.getvalue())
            log.info(
                "wrote bindings module",
                extra={"contracts": len(self.abigens), "single_file": self.single_file_output},
            )

    def ensure_consistent_bindings(self, module: Union[str, Path]) -> bool:
        """
        True if every file a fresh run produces already exists in `module` with
        identical content. See `abigen.consistency.ensure_consistent`.
        """
        return ensure_consistent(self, module)
