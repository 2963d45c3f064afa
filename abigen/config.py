"""
abigen configuration: formatter command, timeouts, remote registries, logging.

- Loads sane defaults and supports overrides via environment variables (ABIGEN_*).
- Registries map the `<registry>:<identifier>` form of a remote ABI source to a URL.
"""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .version import __version__

_DEFAULT_FORMATTER = "black -q -"
_DEFAULT_ETHERSCAN = "https://api.etherscan.io/api?module=contract&action=getabi&address={id}"
_DEFAULT_NPM = "https://unpkg.com/{id}"


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    return v if v is not None else default


def _ensure_template(url: str) -> str:
    lower = url.lower()
    if not (lower.startswith("http://") or lower.startswith("https://")):
        raise ValueError(f"registry URL must start with http:// or https://, got: {url!r}")
    if "{id}" not in url:
        raise ValueError(f"registry URL must contain an '{{id}}' placeholder, got: {url!r}")
    return url


@dataclass(slots=True)
class AbigenConfig:
    # Formatting
    formatter: str = _DEFAULT_FORMATTER
    format_timeout: float = 30.0
    # Remote sources
    fetch_timeout: float = 15.0
    etherscan_url: str = _DEFAULT_ETHERSCAN
    etherscan_api_key: Optional[str] = None
    npm_url: str = _DEFAULT_NPM
    user_agent: str = field(default_factory=lambda: f"abigen-py/{__version__}")
    # Logging
    log_level: str = "INFO"
    log_format: Optional[str] = None

    @classmethod
    def from_env(cls, prefix: str = "ABIGEN_") -> "AbigenConfig":
        """
        Create config from environment variables:

        ABIGEN_FORMATTER          (command line, e.g. "black -q -")
        ABIGEN_FORMAT_TIMEOUT     (float seconds)
        ABIGEN_FETCH_TIMEOUT      (float seconds)
        ABIGEN_ETHERSCAN_URL      (URL template with {id})
        ABIGEN_ETHERSCAN_API_KEY  (str) optional
        ABIGEN_NPM_URL            (URL template with {id})
        ABIGEN_LOG_LEVEL          (DEBUG|INFO|...)
        ABIGEN_LOG_FORMAT         (json|text) optional
        """
        return cls(
            formatter=_env(f"{prefix}FORMATTER", _DEFAULT_FORMATTER) or _DEFAULT_FORMATTER,
            format_timeout=float(_env(f"{prefix}FORMAT_TIMEOUT", "30.0")),
            fetch_timeout=float(_env(f"{prefix}FETCH_TIMEOUT", "15.0")),
            etherscan_url=_ensure_template(_env(f"{prefix}ETHERSCAN_URL", _DEFAULT_ETHERSCAN)),
            etherscan_api_key=_env(f"{prefix}ETHERSCAN_API_KEY", None) or None,
            npm_url=_ensure_template(_env(f"{prefix}NPM_URL", _DEFAULT_NPM)),
            log_level=(_env(f"{prefix}LOG_LEVEL", "INFO") or "INFO").upper(),
            log_format=_env(f"{prefix}LOG_FORMAT", None) or None,
        )

    def with_overrides(self, **overrides: Any) -> "AbigenConfig":
        """
        Copy of this config plus keyword overrides.
        Unknown keys are ignored.
        """
        data = self.to_dict()
        data.update({k: v for k, v in overrides.items() if k in data})
        for key in ("etherscan_url", "npm_url"):
            if key in overrides:
                _ensure_template(data[key])
        return AbigenConfig(**data)

    @property
    def registries(self) -> Dict[str, str]:
        """Registry name -> URL template used for `<registry>:<identifier>` sources."""
        return {"etherscan": self.etherscan_url, "npm": self.npm_url}

    def formatter_argv(self) -> Tuple[str, ...]:
        return tuple(shlex.split(self.formatter))

    def http_headers(self) -> Dict[str, str]:
        return {"Accept": "application/json", "User-Agent": self.user_agent}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "formatter": self.formatter,
            "format_timeout": float(self.format_timeout),
            "fetch_timeout": float(self.fetch_timeout),
            "etherscan_url": self.etherscan_url,
            "etherscan_api_key": self.etherscan_api_key,
            "npm_url": self.npm_url,
            "user_agent": self.user_agent,
            "log_level": self.log_level,
            "log_format": self.log_format,
        }


__all__ = ["AbigenConfig"]
