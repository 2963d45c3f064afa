"""
abigen.source
=============

Classify raw ABI source strings and load them into an `AbiDocument`.

A source string is one of (first match wins):

1. inline human-readable ABI  - `function get() view returns (uint256)`, `[ event E(uint8) ]`
2. inline JSON ABI            - text starting with `[` or `{`
3. file path                  - `./abi/ERC20.json`, `/abs/path`, `Token.abi`
4. remote reference           - `https://...` or `<registry>:<identifier>`
                                (`etherscan:0xdead...`, `npm:@scope/pkg/abi.json`)

Classification never touches the filesystem or the network; a missing file or
an unreachable URL is reported by `Source.load()`, when the content is needed.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import requests

from .abi import AbiDocument, validate_abi
from .config import AbigenConfig
from .errors import AbiParseError, SourceError, SourceErrorKind
from .human_readable import parse_human_readable

log = logging.getLogger(__name__)

SOURCE_EXTENSIONS = (".json", ".abi")

_HUMAN_READABLE_RE = re.compile(r"^(?:(?:function|event)\s|constructor\b|\[\s*[A-Za-z_$])")
_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")
_DRIVE_RE = re.compile(r"^[A-Za-z]:[\\/]")


def is_human_readable(text: str) -> bool:
    return bool(_HUMAN_READABLE_RE.match(text.strip()))


def parse_document(text: str) -> AbiDocument:
    """
    Parse ABI content (JSON or human-readable) into a validated document.

    A JSON array of strings is treated as a list of human-readable declarations.
    """
    s = text.strip()
    if is_human_readable(s):
        return parse_human_readable(s)
    if not s.startswith(("[", "{")):
        raise AbiParseError("ABI content is neither JSON nor human-readable declarations")
    try:
        value = json.loads(s)
    except json.JSONDecodeError as e:
        raise AbiParseError(f"ABI is not valid JSON: {e.msg} (line {e.lineno}, column {e.colno})") from e
    if isinstance(value, list) and value and all(isinstance(v, str) for v in value):
        return parse_human_readable("\n".join(value))
    return validate_abi(value)


class Source:
    """Where the ABI of one contract lives. See the concrete subclasses."""

    def load(self, config: Optional[AbigenConfig] = None) -> AbiDocument:  # pragma: no cover - abstract
        raise NotImplementedError

    def describe(self) -> str:  # pragma: no cover - abstract
        raise NotImplementedError


@dataclass(frozen=True)
class InlineJson(Source):
    text: str

    def load(self, config: Optional[AbigenConfig] = None) -> AbiDocument:
        return parse_document(self.text)

    def describe(self) -> str:
        return "<inline json>"


@dataclass(frozen=True)
class InlineSchema(Source):
    text: str

    def load(self, config: Optional[AbigenConfig] = None) -> AbiDocument:
        return parse_human_readable(self.text)

    def describe(self) -> str:
        return "<inline human-readable>"


@dataclass(frozen=True)
class FilePath(Source):
    path: Path

    def load(self, config: Optional[AbigenConfig] = None) -> AbiDocument:
        p = self.path.expanduser()
        log.debug("reading ABI file", extra={"path": str(p)})
        try:
            text = p.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise SourceError(
                f"cannot read ABI file: {e}", kind=SourceErrorKind.IO, source=str(self.path)
            ) from e
        return parse_document(text)

    def describe(self) -> str:
        return str(self.path)


@dataclass(frozen=True)
class RemoteRef(Source):
    identifier: str

    def url(self, config: AbigenConfig) -> str:
        if "://" in self.identifier:
            return self.identifier
        registry, _, ident = self.identifier.partition(":")
        template = config.registries.get(registry)
        if template is None:
            raise SourceError(
                f"unknown registry {registry!r}", kind=SourceErrorKind.FETCH, source=self.identifier
            )
        return template.format(id=ident)

    def params(self, config: AbigenConfig) -> Dict[str, str]:
        """Query parameters sent alongside `url()`; the API key never appears in the URL."""
        if self.identifier.startswith("etherscan:") and config.etherscan_api_key:
            return {"apikey": config.etherscan_api_key}
        return {}

    def load(self, config: Optional[AbigenConfig] = None) -> AbiDocument:
        cfg = config or AbigenConfig.from_env()
        url = self.url(cfg)
        log.debug("fetching remote ABI", extra={"url": url})
        try:
            resp = requests.get(
                url, params=self.params(cfg), timeout=cfg.fetch_timeout, headers=cfg.http_headers()
            )
        except requests.RequestException as e:
            raise SourceError(
                f"request failed: {e}", kind=SourceErrorKind.FETCH, source=self.identifier
            ) from e
        if not resp.ok:
            raise SourceError(
                f"HTTP {resp.status_code} from {url}", kind=SourceErrorKind.FETCH, source=self.identifier
            )
        body = resp.text
        if self.identifier.startswith("etherscan:"):
            body = _unwrap_etherscan(body, self.identifier)
        return parse_document(body)

    def describe(self) -> str:
        return self.identifier


def _unwrap_etherscan(body: str, identifier: str) -> str:
    """Etherscan wraps the ABI JSON string in {"status", "message", "result"}."""
    try:
        envelope: Any = json.loads(body)
    except json.JSONDecodeError as e:
        raise SourceError(
            "etherscan response is not JSON", kind=SourceErrorKind.FETCH, source=identifier
        ) from e
    if not isinstance(envelope, dict) or str(envelope.get("status")) != "1":
        detail = envelope.get("result") if isinstance(envelope, dict) else envelope
        raise SourceError(
            f"etherscan returned an error: {detail}", kind=SourceErrorKind.FETCH, source=identifier
        )
    return str(envelope.get("result", ""))


def _looks_like_path(s: str) -> bool:
    if "://" in s or "\n" in s:
        return False
    if _SCHEME_RE.match(s) and not _DRIVE_RE.match(s):
        return False
    if s.startswith(("/", "./", "../", "~", ".\\")):
        return True
    if "/" in s or "\\" in s:
        return True
    return s.lower().endswith(SOURCE_EXTENSIONS)


def _looks_like_remote(s: str, config: AbigenConfig) -> bool:
    if re.match(r"^https?://\S+$", s, re.IGNORECASE):
        return True
    registry, sep, ident = s.partition(":")
    return bool(sep) and bool(ident) and registry in config.registries


def parse_source(raw: str, config: Optional[AbigenConfig] = None) -> Source:
    """
    Classify `raw` into a `Source` variant.

    Raises `SourceError(kind=UNRECOGNIZED)` when no form matches.
    """
    s = str(raw).strip()
    if is_human_readable(s):
        return InlineSchema(s)
    if s.startswith(("[", "{")):
        return InlineJson(s)
    if s and _looks_like_path(s):
        return FilePath(Path(s))
    if s and _looks_like_remote(s, config or AbigenConfig.from_env()):
        return RemoteRef(s)
    preview = s if len(s) <= 60 else s[:57] + "..."
    raise SourceError("unrecognized ABI source", kind=SourceErrorKind.UNRECOGNIZED, source=preview)


__all__ = [
    "SOURCE_EXTENSIONS",
    "Source",
    "InlineJson",
    "InlineSchema",
    "FilePath",
    "RemoteRef",
    "parse_source",
    "parse_document",
    "is_human_readable",
]
