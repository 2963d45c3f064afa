"""
abigen.expand
=============

Expand a validated ABI document into Python binding source.

The generated module exposes, for a contract named `Counter`:

- a class `Counter(BaseContract)` with one method per ABI function, named in
  snake_case (or by its method alias). Each method returns a typed
  `ContractCall` that can be configured and then `.call()`-ed or `.send()`-ed:

      def get_value(self) -> ContractCall[int]:
          return self._method("getValue()", [], ("uint256",))

- per event, a frozen dataclass `<Name>Event` (or the event alias) carrying the
  decoded fields, decorated with the configured derives in order, plus a
  decoder `decode_<name>_event(log, codec)`.

Expansion is a pure function of its inputs: the same document, aliases and
derives always produce the same text.
"""

from __future__ import annotations

import keyword
import re
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

from .abi import AbiDocument, AbiEvent, AbiFunction, AbiParam, canonical_type
from .errors import AbiParseError, CodegenError

__all__ = [
    "GeneratedSource",
    "Expander",
    "PythonExpander",
    "expand",
    "snake_case",
    "py_ident",
    "canonical_signature",
]

_PY_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_SIG_RE = re.compile(r"^\s*([A-Za-z_$][A-Za-z0-9_$]*)\s*\((.*)\)\s*$", re.S)

# Attributes of abigen.runtime.BaseContract that generated methods must not shadow.
_RESERVED_MEMBERS = frozenset({"address", "transport", "codec", "abi", "ABI", "_method"})
# Modules the generated header always imports.
_HEADER_IMPORTS = frozenset({"dataclasses", "json", "typing"})


@dataclass(frozen=True)
class GeneratedSource:
    """Unformatted generated module text for one contract."""

    contract_name: str
    text: str
    exports: Tuple[str, ...] = ()

    def __str__(self) -> str:
        return self.text


class Expander(Protocol):
    def expand(
        self,
        contract_name: str,
        document: AbiDocument,
        method_aliases: Mapping[str, str],
        event_aliases: Mapping[str, str],
        event_derives: Sequence[str],
    ) -> GeneratedSource: ...


# ---------- Name & type mapping utilities ------------------------------------


def snake_case(name: str) -> str:
    """camelCase / PascalCase -> snake_case; other punctuation becomes `_`."""
    s1 = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    snake = re.sub("([a-z0-9])([A-Z])", r"\1_\2", s1).lower()
    return re.sub(r"[^a-z0-9_]", "_", snake)


def py_ident(name: str, *, reserved: frozenset = frozenset()) -> str:
    """Return a safe Python identifier (snake_case), avoiding keywords."""
    if not name:
        return "arg"
    snake = snake_case(name)
    if not _PY_IDENT_RE.match(snake):
        snake = f"_{snake}"
    if keyword.iskeyword(snake) or snake in reserved or snake == "self":
        snake = f"{snake}_"
    return snake


def pascal_case(name: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in re.split(r"[^A-Za-z0-9]+", name) if part)


def canonical_signature(signature: str) -> str:
    """Normalize a user-supplied signature (`foo(uint, address)` -> `foo(uint256,address)`)."""
    m = _SIG_RE.match(signature)
    if not m:
        raise CodegenError(f"not a signature: {signature!r}", identifier=signature)
    try:
        types = canonical_type(f"({m.group(2)})")
    except AbiParseError as e:
        raise CodegenError(f"bad types in signature {signature!r}: {e.message}", identifier=signature) from e
    return m.group(1) + types


def _split_tuple(t: str) -> List[str]:
    inner = t[1:-1]
    out: List[str] = []
    depth = 0
    buf: List[str] = []
    for ch in inner:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch == "," and depth == 0:
            out.append("".join(buf))
            buf = []
            continue
        buf.append(ch)
    if buf:
        out.append("".join(buf))
    return out


def py_type(t: str) -> str:
    """Map a canonical ABI type to a Python type hint."""
    if t.endswith("]"):
        return f"list[{py_type(t[: t.rindex('[')])}]"
    if t.startswith("("):
        elems = [py_type(e) for e in _split_tuple(t)]
        return f"tuple[{', '.join(elems)}]" if elems else "tuple[()]"
    if t.startswith(("uint", "int")):
        return "int"
    if t == "bool":
        return "bool"
    if t in ("string", "address"):
        return "str"
    if t.startswith("bytes"):
        return "bytes"
    return "typing.Any"


def _return_type(outputs: Sequence[AbiParam]) -> str:
    if not outputs:
        return "None"
    if len(outputs) == 1:
        return py_type(outputs[0].type)
    return "tuple[" + ", ".join(py_type(p.type) for p in outputs) + "]"


def _param_names(params: Sequence[AbiParam]) -> List[str]:
    names: List[str] = []
    for i, p in enumerate(params):
        base = py_ident(p.name) if p.name else f"arg{i}"
        name = base
        k = 1
        while name in names:
            name = f"{base}_{k}"
            k += 1
        names.append(name)
    return names


def _derive_decorator(path: str, contract_name: str) -> Tuple[Optional[str], str]:
    """Return (module to import, decorator expression) for a derive path."""
    parts = path.split(".")
    if not all(_PY_IDENT_RE.match(p) for p in parts):
        raise CodegenError(f"derive is not a dotted Python path: {path!r}", contract=contract_name, identifier=path)
    if len(parts) == 1:
        return None, path
    return ".".join(parts[:-1]), path


# ---------- Emission ----------------------------------------------------------

_HEADER = '''# Generated bindings for the "{contract_name}" contract.
# Do not edit by hand; regenerate with abigen.
import dataclasses
import json
import typing
{derive_imports}
from abigen.runtime import BaseContract, ContractCall, decode_log

{abi_var} = json.loads({abi_literal!r})
'''

_CLASS_TMPL = '''

class {class_name}(BaseContract):
    """Typed bindings for the "{contract_name}" contract."""

    ABI = {abi_var}
'''

_FN_TMPL = '''
    def {py_name}(self{sig_args}) -> ContractCall[{ret_py}]:
        """{kind}: {signature}{returns_doc}"""
        return self._method({signature!r}, [{arg_names}], {output_types!r})
'''

_EVENT_TMPL = '''

{decorators}@dataclasses.dataclass(frozen=True)
class {class_name}:
    """Event {signature}"""

    SIGNATURE: typing.ClassVar[str] = {signature!r}
{fields}

def decode_{decoder_name}(log: typing.Mapping[str, typing.Any], codec: typing.Any) -> {class_name}:
    """Decode one raw log into a `{class_name}`."""
    return {class_name}(*decode_log(codec, {signature!r}, {inputs!r}, log, anonymous={anonymous!r}))
'''


class PythonExpander:
    """Default expansion step producing Python modules."""

    def expand(
        self,
        contract_name: str,
        document: AbiDocument,
        method_aliases: Mapping[str, str],
        event_aliases: Mapping[str, str],
        event_derives: Sequence[str],
    ) -> GeneratedSource:
        methods = self._method_names(contract_name, document.functions, method_aliases)
        events = self._event_names(contract_name, document.events, event_aliases)

        derive_mods: List[str] = []
        decorators = ""
        for path in event_derives:
            mod, expr = _derive_decorator(path, contract_name)
            if mod and mod not in derive_mods and mod not in _HEADER_IMPORTS:
                derive_mods.append(mod)
            decorators += f"@{expr}\n"

        abi_var = f"{snake_case(contract_name).upper()}_ABI"
        class_name = pascal_case(contract_name)
        if not _PY_IDENT_RE.match(class_name) or keyword.iskeyword(class_name):
            raise CodegenError(f"contract name is not usable as a class name: {contract_name!r}", contract=contract_name)

        src = _HEADER.format(
            contract_name=contract_name,
            derive_imports="".join(f"import {m}\n" for m in sorted(derive_mods)),
            abi_var=abi_var,
            abi_literal=document.canonical_json(),
        )
        src += _CLASS_TMPL.format(class_name=class_name, contract_name=contract_name, abi_var=abi_var)
        for fn, py_name in zip(document.functions, methods):
            src += self._emit_fn(fn, py_name)

        exported = [class_name]
        for ev, ev_class in zip(document.events, events):
            src += self._emit_event(ev, ev_class, decorators)
            exported += [ev_class, f"decode_{snake_case(ev_class)}"]

        src += "\n\n__all__ = [" + ", ".join(repr(n) for n in exported) + "]\n"
        return GeneratedSource(contract_name=contract_name, text=src, exports=tuple(exported))

    # --- naming -----------------------------------------------------------

    @staticmethod
    def _resolve_aliases(
        contract_name: str, aliases: Mapping[str, str], known: Sequence[str], kind: str
    ) -> Dict[str, str]:
        resolved: Dict[str, str] = {}
        for sig, alias in aliases.items():
            csig = canonical_signature(sig)
            if csig not in known:
                raise CodegenError(
                    f"{kind} alias refers to unknown signature {sig!r}", contract=contract_name, identifier=sig
                )
            if not _PY_IDENT_RE.match(alias) or keyword.iskeyword(alias) or alias in _RESERVED_MEMBERS:
                raise CodegenError(
                    f"{kind} alias {alias!r} is not a valid identifier", contract=contract_name, identifier=alias
                )
            resolved[csig] = alias
        return resolved

    def _method_names(
        self, contract_name: str, functions: Sequence[AbiFunction], aliases: Mapping[str, str]
    ) -> List[str]:
        resolved = self._resolve_aliases(contract_name, aliases, [f.signature for f in functions], "method")
        names: List[str] = []
        owners: Dict[str, str] = {}
        for fn in functions:
            name = resolved.get(fn.signature) or py_ident(fn.name, reserved=_RESERVED_MEMBERS)
            if name in owners:
                raise CodegenError(
                    f"{fn.signature} and {owners[name]} both generate method {name!r}; add a method alias",
                    contract=contract_name,
                    identifier=name,
                )
            owners[name] = fn.signature
            names.append(name)
        return names

    def _event_names(
        self, contract_name: str, events: Sequence[AbiEvent], aliases: Mapping[str, str]
    ) -> List[str]:
        resolved = self._resolve_aliases(contract_name, aliases, [e.signature for e in events], "event")
        names: List[str] = []
        owners: Dict[str, str] = {}
        for ev in events:
            name = f"{resolved.get(ev.signature) or pascal_case(ev.name)}Event"
            if name in owners:
                raise CodegenError(
                    f"{ev.signature} and {owners[name]} both generate class {name!r}; add an event alias",
                    contract=contract_name,
                    identifier=name,
                )
            owners[name] = ev.signature
            names.append(name)
        return names

    # --- emission ---------------------------------------------------------

    @staticmethod
    def _emit_fn(fn: AbiFunction, py_name: str) -> str:
        arg_names = _param_names(fn.inputs)
        sig_args = "".join(f", {n}: {py_type(p.type)}" for n, p in zip(arg_names, fn.inputs))
        ret_py = _return_type(fn.outputs)
        return _FN_TMPL.format(
            py_name=py_name,
            sig_args=sig_args,
            ret_py=ret_py,
            kind="Read-only call" if fn.is_read_only else f"{fn.state_mutability.capitalize()} transaction",
            signature=fn.signature,
            returns_doc=f" -> {ret_py}" if fn.outputs else "",
            arg_names=", ".join(arg_names),
            output_types=tuple(p.type for p in fn.outputs),
        )

    @staticmethod
    def _emit_event(ev: AbiEvent, class_name: str, decorators: str) -> str:
        field_names = _param_names(ev.inputs)
        fields = "".join(f"    {n}: {py_type(p.type)}\n" for n, p in zip(field_names, ev.inputs))
        return _EVENT_TMPL.format(
            decorators=decorators,
            class_name=class_name,
            signature=ev.signature,
            fields=fields,
            decoder_name=snake_case(class_name),
            inputs=tuple((p.type, p.indexed) for p in ev.inputs),
            anonymous=ev.anonymous,
        )


_DEFAULT = PythonExpander()


def expand(
    contract_name: str,
    document: AbiDocument,
    method_aliases: Mapping[str, str],
    event_aliases: Mapping[str, str],
    event_derives: Sequence[str],
) -> GeneratedSource:
    """Functional form of `PythonExpander().expand`."""
    return _DEFAULT.expand(contract_name, document, method_aliases, event_aliases, event_derives)
