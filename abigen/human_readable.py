"""
Human-readable ABI parsing (subset).

Accepts one declaration per line, optionally wrapped in `[ ... ]`:

    function balanceOf(address owner) view returns (uint256)
    function transfer(address to, uint256 amount) returns (bool)
    event Transfer(address indexed from, address indexed to, uint256 value)
    getValue() (uint256)

The last form is shorthand for a nonpayable function with the given return
types. `struct`, `constructor`, `error`, `fallback` and `receive` declarations
are skipped; struct-typed parameters are not supported.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Tuple

from .abi import AbiDocument, canonical_type, validate_abi
from .errors import AbiParseError

_SKIPPED = ("struct", "constructor", "error", "fallback", "receive")
_MODIFIERS = ("view", "pure", "payable", "nonpayable")
_IGNORED_WORDS = ("external", "public", "internal", "memory", "calldata", "storage")
_NAME_RE = re.compile(r"^([A-Za-z_$][A-Za-z0-9_$]*)\s*\(")


def _matching_paren(s: str, start: int) -> int:
    """Index of the `)` closing the `(` at `start`."""
    depth = 0
    for i in range(start, len(s)):
        if s[i] == "(":
            depth += 1
        elif s[i] == ")":
            depth -= 1
            if depth == 0:
                return i
    raise AbiParseError(f"Unbalanced parentheses in declaration: {s!r}")


def _split_params(s: str) -> List[str]:
    out: List[str] = []
    depth = 0
    buf: List[str] = []
    for ch in s:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch == "," and depth == 0:
            out.append("".join(buf).strip())
            buf = []
            continue
        buf.append(ch)
    tail = "".join(buf).strip()
    if tail or out:
        out.append(tail)
    return out


def _parse_param(raw: str, decl: str) -> Dict[str, Any]:
    s = raw.strip()
    if not s:
        raise AbiParseError(f"Empty parameter in {decl!r}", entry=decl)
    if s.startswith("tuple("):
        s = s[len("tuple"):]
    if s.startswith("("):
        end = _matching_paren(s, 0)
        m = re.match(r"^((?:\[\d*\])*)", s[end + 1:])
        dims = m.group(1) if m else ""
        typ = s[: end + 1] + dims
        rest = s[end + 1 + len(dims):].split()
    else:
        head, *rest = s.split()
        typ = head
        if typ == "address" and rest[:1] == ["payable"]:
            rest = rest[1:]
    try:
        ctyp = canonical_type(typ)
    except AbiParseError as e:
        raise AbiParseError(f"{decl!r}: {e.message}", entry=decl, field="type") from e
    indexed = "indexed" in rest
    words = [w for w in rest if w != "indexed" and w not in _IGNORED_WORDS]
    if len(words) > 1:
        raise AbiParseError(f"Unexpected tokens {words!r} in parameter {raw!r}", entry=decl)
    param: Dict[str, Any] = {"name": words[0] if words else "", "type": ctyp}
    if indexed:
        param["indexed"] = True
    return param


def _parse_signature(body: str, decl: str) -> Tuple[str, List[Dict[str, Any]], str]:
    """Split `name(params) rest` into its parts."""
    m = _NAME_RE.match(body)
    if not m:
        raise AbiParseError(f"Not a declaration: {decl!r}", entry=decl)
    open_at = m.end() - 1
    close_at = _matching_paren(body, open_at)
    params = [_parse_param(p, decl) for p in _split_params(body[open_at + 1: close_at])]
    return m.group(1), params, body[close_at + 1:].strip()


def _parse_function(body: str, decl: str) -> Dict[str, Any]:
    name, inputs, rest = _parse_signature(body, decl)
    outputs: List[Dict[str, Any]] = []
    mutability = "nonpayable"
    while rest:
        if rest.startswith("returns"):
            rest = rest[len("returns"):].strip()
        if rest.startswith("("):
            close_at = _matching_paren(rest, 0)
            outputs = [_parse_param(p, decl) for p in _split_params(rest[1:close_at])]
            rest = rest[close_at + 1:].strip()
            continue
        word, _, rest = rest.partition(" ")
        rest = rest.strip()
        if word in _MODIFIERS:
            mutability = word
        elif word not in _IGNORED_WORDS:
            raise AbiParseError(f"Unexpected token {word!r} in {decl!r}", entry=decl)
    return {
        "type": "function",
        "name": name,
        "inputs": inputs,
        "outputs": outputs,
        "stateMutability": mutability,
    }


def _parse_event(body: str, decl: str) -> Dict[str, Any]:
    name, inputs, rest = _parse_signature(body, decl)
    if rest not in ("", "anonymous"):
        raise AbiParseError(f"Unexpected trailer {rest!r} in {decl!r}", entry=decl)
    return {"type": "event", "name": name, "inputs": inputs, "anonymous": rest == "anonymous"}


def _declarations(text: str) -> Iterable[str]:
    s = text.strip()
    if s.startswith("[") and s.endswith("]"):
        s = s[1:-1]
    in_block = False
    for line in s.splitlines():
        line = line.split("//", 1)[0].strip().rstrip(";,").strip()
        if not line:
            continue
        if in_block:
            in_block = "}" not in line
            continue
        head = line.split("(")[0].split()
        if head and head[0] in _SKIPPED:
            in_block = "{" in line and "}" not in line
            continue
        yield line


def parse_human_readable(text: str) -> AbiDocument:
    """Parse human-readable declarations into a validated `AbiDocument`."""
    entries: List[Dict[str, Any]] = []
    for decl in _declarations(text):
        if decl.startswith("function "):
            entries.append(_parse_function(decl[len("function "):].strip(), decl))
        elif decl.startswith("event "):
            entries.append(_parse_event(decl[len("event "):].strip(), decl))
        else:
            entries.append(_parse_function(decl, decl))
    return validate_abi(entries)


__all__ = ["parse_human_readable"]
