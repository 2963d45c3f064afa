"""
ABI document model & validation.

This module defines:
- Frozen dataclasses for ABI entries (functions/events/parameters)
- A validator/normalizer turning JSON ABI values into an `AbiDocument`
- Helpers to compute canonical type strings and signatures

Validation is structural and type-string aware. Nothing is inferred: a
function without an explicit `stateMutability` is rejected rather than guessed
from legacy `constant`/`payable` flags.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .errors import AbiParseError

MUTABILITIES = ("view", "pure", "nonpayable", "payable")

# Entry kinds that carry no callable surface for bindings.
_IGNORED_ENTRIES = ("constructor", "fallback", "receive", "error")

_ARRAY_SUFFIX_RE = re.compile(r"(\[\]|\[\d+\])$")
_INT_RE = re.compile(r"^u?int(\d*)$")
_FIXED_BYTES_RE = re.compile(r"^bytes(\d+)$")
_IDENT_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


# --- Type-string parsing -----------------------------------------------------


def _split_top_level_commas(s: str) -> List[str]:
    """Split on commas but ignore commas inside nested tuples."""
    out: List[str] = []
    depth = 0
    buf: List[str] = []
    for ch in s:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                raise AbiParseError("Unbalanced parentheses in tuple type")
        elif ch == "," and depth == 0:
            out.append("".join(buf).strip())
            buf = []
            continue
        buf.append(ch)
    if depth != 0:
        raise AbiParseError("Unbalanced parentheses in tuple type")
    if buf or out:
        out.append("".join(buf).strip())
    return out


def _peel_array_suffixes(t: str) -> Tuple[str, str]:
    """Return (base, suffix) where suffix is the concatenated array dimensions."""
    suffix = ""
    while True:
        m = _ARRAY_SUFFIX_RE.search(t)
        if not m:
            break
        dim = m.group(1)
        if dim != "[]" and int(dim[1:-1]) <= 0:
            raise AbiParseError("Fixed array dimension must be positive")
        suffix = dim + suffix
        t = t[: -len(dim)]
    return t, suffix


def _canonical_scalar(t: str) -> str:
    m = _INT_RE.match(t)
    if m:
        bits = m.group(1)
        if not bits:
            return f"{t}256"
        n = int(bits)
        if n < 8 or n > 256 or n % 8:
            raise AbiParseError(f"Invalid integer width: {t}")
        return t
    m = _FIXED_BYTES_RE.match(t)
    if m:
        if not 1 <= int(m.group(1)) <= 32:
            raise AbiParseError(f"Invalid fixed bytes width: {t}")
        return t
    if t in ("address", "bool", "string", "bytes"):
        return t
    raise AbiParseError(f"Unsupported base type: {t!r}")


def canonical_type(type_str: str, components: Optional[Sequence["AbiParam"]] = None) -> str:
    """
    Normalize an ABI type string: strip whitespace, widen `uint`/`int` to 256
    bits and render tuples as `(t1,t2)` followed by any array dimensions.

    `components` are required when the base type is the JSON `tuple` keyword.
    """
    s = re.sub(r"\s+", "", str(type_str))
    if not s:
        raise AbiParseError("Empty type string")
    base, suffix = _peel_array_suffixes(s)
    if base == "tuple":
        if components is None:
            raise AbiParseError("tuple type requires components", field="components")
        return "(" + ",".join(c.type for c in components) + ")" + suffix
    if base.startswith("(") and base.endswith(")"):
        elems = _split_top_level_commas(base[1:-1])
        return "(" + ",".join(canonical_type(e) for e in elems) + ")" + suffix
    return _canonical_scalar(base) + suffix


def is_valid_type(type_str: str) -> bool:
    try:
        canonical_type(type_str)
        return True
    except AbiParseError:
        return False


# --- ABI shapes --------------------------------------------------------------


@dataclass(frozen=True)
class AbiParam:
    name: str
    type: str
    indexed: bool = False
    components: Tuple["AbiParam", ...] = ()

    def to_json(self, *, with_indexed: bool = False) -> Dict[str, Any]:
        out: Dict[str, Any] = {"name": self.name, "type": self.type}
        if with_indexed:
            out["indexed"] = self.indexed
        if self.components:
            out["components"] = [c.to_json() for c in self.components]
        return out


@dataclass(frozen=True)
class AbiFunction:
    name: str
    inputs: Tuple[AbiParam, ...]
    outputs: Tuple[AbiParam, ...]
    state_mutability: str

    @property
    def signature(self) -> str:
        """e.g. transfer(address,uint256)"""
        return f"{self.name}({','.join(p.type for p in self.inputs)})"

    @property
    def is_read_only(self) -> bool:
        return self.state_mutability in ("view", "pure")

    def to_json(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "name": self.name,
            "inputs": [p.to_json() for p in self.inputs],
            "outputs": [p.to_json() for p in self.outputs],
            "stateMutability": self.state_mutability,
        }


@dataclass(frozen=True)
class AbiEvent:
    name: str
    inputs: Tuple[AbiParam, ...]
    anonymous: bool = False

    @property
    def signature(self) -> str:
        # Canonical event signature includes indexed and non-indexed inputs alike.
        return f"{self.name}({','.join(p.type for p in self.inputs)})"

    def to_json(self) -> Dict[str, Any]:
        return {
            "type": "event",
            "name": self.name,
            "inputs": [p.to_json(with_indexed=True) for p in self.inputs],
            "anonymous": self.anonymous,
        }


@dataclass(frozen=True)
class AbiDocument:
    functions: Tuple[AbiFunction, ...] = ()
    events: Tuple[AbiEvent, ...] = field(default=())

    def function_signatures(self) -> List[str]:
        return [f.signature for f in self.functions]

    def event_signatures(self) -> List[str]:
        return [e.signature for e in self.events]

    def to_json(self) -> List[Dict[str, Any]]:
        return [f.to_json() for f in self.functions] + [e.to_json() for e in self.events]

    def canonical_json(self) -> str:
        """Compact, key-sorted JSON used when embedding the ABI into generated code."""
        return json.dumps(self.to_json(), sort_keys=True, separators=(",", ":"))


# --- Validation & normalization ---------------------------------------------


def _require(cond: bool, msg: str, *, entry: Optional[str] = None, field: Optional[str] = None) -> None:
    if not cond:
        raise AbiParseError(msg, entry=entry, field=field)


def _validate_param(p: Any, ctx: str) -> AbiParam:
    _require(isinstance(p, Mapping), f"{ctx}: parameter must be an object", entry=ctx)
    name = p.get("name", "") or ""
    _require(isinstance(name, str), f"{ctx}: param.name must be string", entry=ctx, field="name")
    typ = p.get("type")
    _require(isinstance(typ, str) and bool(typ), f"{ctx}: param.type must be a non-empty string", entry=ctx, field="type")
    components: Tuple[AbiParam, ...] = ()
    raw_components = p.get("components")
    if raw_components is not None:
        _require(isinstance(raw_components, list), f"{ctx}: components must be a list", entry=ctx, field="components")
        components = tuple(_validate_param(c, f"{ctx} component") for c in raw_components)
    try:
        ctyp = canonical_type(typ, components if raw_components is not None else None)
    except AbiParseError as e:
        raise AbiParseError(f"{ctx}: {e.message}", entry=ctx, field="type") from e
    return AbiParam(name=name, type=ctyp, indexed=bool(p.get("indexed", False)), components=components)


def _validate_name(e: Mapping[str, Any], kind: str) -> str:
    name = e.get("name")
    _require(isinstance(name, str) and bool(name), f"{kind}.name must be non-empty string", field="name")
    _require(bool(_IDENT_RE.match(name)), f"{kind}.name is not an identifier: {name!r}", entry=name, field="name")
    return name


def _validate_fn(e: Mapping[str, Any]) -> AbiFunction:
    name = _validate_name(e, "function")
    inputs = e.get("inputs", [])
    outputs = e.get("outputs", [])
    _require(isinstance(inputs, list), "function.inputs must be a list", entry=name, field="inputs")
    _require(isinstance(outputs, list), "function.outputs must be a list", entry=name, field="outputs")
    mut = e.get("stateMutability")
    _require(mut is not None, f"function {name} has no stateMutability", entry=name, field="stateMutability")
    _require(mut in MUTABILITIES, f"function {name} has invalid stateMutability {mut!r}", entry=name, field="stateMutability")
    return AbiFunction(
        name=name,
        inputs=tuple(_validate_param(p, f"function {name} input") for p in inputs),
        outputs=tuple(_validate_param(p, f"function {name} output") for p in outputs),
        state_mutability=mut,
    )


def _validate_event(e: Mapping[str, Any]) -> AbiEvent:
    name = _validate_name(e, "event")
    inputs = e.get("inputs", [])
    _require(isinstance(inputs, list), "event.inputs must be a list", entry=name, field="inputs")
    return AbiEvent(
        name=name,
        inputs=tuple(_validate_param(p, f"event {name} input") for p in inputs),
        anonymous=bool(e.get("anonymous", False)),
    )


def validate_abi(abi: Any) -> AbiDocument:
    """
    Validate and normalize an ABI value.

    Accepts a list of entries or a compiler artifact object carrying an `abi`
    list. Canonicalizes all type strings and rejects duplicate signatures;
    overloads (same name, different inputs) are kept.
    """
    if isinstance(abi, Mapping) and "abi" in abi:
        abi = abi["abi"]
    _require(isinstance(abi, list), "ABI must be a list of entries")
    functions: List[AbiFunction] = []
    events: List[AbiEvent] = []
    seen: set[Tuple[str, str]] = set()
    for i, raw in enumerate(abi):
        _require(isinstance(raw, Mapping), f"ABI entry at index {i} must be an object")
        etype = raw.get("type", "function")
        if etype in _IGNORED_ENTRIES:
            continue
        _require(etype in ("function", "event"), f"Unsupported ABI entry type: {etype!r}", field="type")
        if etype == "function":
            fn = _validate_fn(raw)
            key = ("function", fn.signature)
            functions.append(fn)
        else:
            ev = _validate_event(raw)
            key = ("event", ev.signature)
            events.append(ev)
        _require(key not in seen, f"Duplicate ABI entry: {key[0]} {key[1]}", entry=key[1])
        seen.add(key)
    return AbiDocument(functions=tuple(functions), events=tuple(events))


def parse_abi_json(text: str) -> AbiDocument:
    """Parse JSON ABI text into a validated `AbiDocument`."""
    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        raise AbiParseError(f"ABI is not valid JSON: {e.msg} (line {e.lineno}, column {e.colno})") from e
    return validate_abi(value)


__all__ = [
    "MUTABILITIES",
    "AbiParam",
    "AbiFunction",
    "AbiEvent",
    "AbiDocument",
    "canonical_type",
    "is_valid_type",
    "validate_abi",
    "parse_abi_json",
]
