"""
abigen
======

Generate typed Python bindings for smart-contract ABIs.

Submodules
----------
- source      : classify and load ABI sources (inline JSON / human-readable, files, URLs)
- abi         : validated ABI document model
- expand      : ABI document -> Python module text
- bindings    : `Abigen` (one contract) and `ContractBindings` (its output)
- multi       : `MultiAbigen`, a batch written as one module directory
- consistency : regenerate-and-compare check for committed bindings
- runtime     : `BaseContract` / `ContractCall` used by generated code

Typical usage
-------------
    from abigen import Abigen, MultiAbigen

    Abigen.new("Counter", "function getValue() view returns (uint256)").generate().write_to_file("counter.py")

    gen = MultiAbigen.from_json_files("./abi")
    gen.write_to_module("./src/contracts")
    assert gen.ensure_consistent_bindings("./src/contracts")
"""

from __future__ import annotations

from .abi import AbiDocument, AbiEvent, AbiFunction, AbiParam
from .bindings import Abigen, ContractBindings
from .config import AbigenConfig
from .consistency import BindingsDrift, diff_bindings, ensure_consistent
from .errors import (AbigenError, AbiParseError, BindingsIoError, CodegenError,
                     FormatError, SourceError, SourceErrorKind)
from .expand import Expander, GeneratedSource, PythonExpander
from .multi import MultiAbigen
from .source import (FilePath, InlineJson, InlineSchema, RemoteRef, Source,
                     parse_source)
from .version import __version__

__all__ = [
    "__version__",
    "Abigen",
    "ContractBindings",
    "MultiAbigen",
    "ensure_consistent",
    "diff_bindings",
    "BindingsDrift",
    "AbigenConfig",
    "Source",
    "InlineJson",
    "InlineSchema",
    "FilePath",
    "RemoteRef",
    "parse_source",
    "AbiDocument",
    "AbiFunction",
    "AbiEvent",
    "AbiParam",
    "Expander",
    "GeneratedSource",
    "PythonExpander",
    "AbigenError",
    "SourceError",
    "SourceErrorKind",
    "AbiParseError",
    "CodegenError",
    "BindingsIoError",
    "FormatError",
]
