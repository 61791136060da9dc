# refcheck/config.py
"""
Centralized configuration management.

Handles loading defaults, merging in settings from pyproject.toml,
and applying runtime overrides.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, MutableMapping, Tuple

import tomli

from refcheck.cache import CacheConfig

log = logging.getLogger(__name__)


class ConfigError(ValueError):
    """A configuration value that cannot be used."""


# This is the baseline configuration dictionary.
DEFAULT_CONFIG: dict[str, Any] = {
    "directory_path": ".",
    "directory_index": "index.html",
    "file_extension": ".html",
    # --- Which checkers run ---
    "check_external": True,
    "check_internal": True,
    "check_mailto": True,
    "check_tel": True,
    "enforce_https": False,
    # --- Cache key shaping ---
    "strip_query_string": True,
    "strip_query_excludes": [],
    # --- Skipping ---
    "ignore_urls": [],  # regular expressions, matched with re.search on the href
    "ignore_attribute": "data-proofer-ignore",
    # --- HTTP ---
    "external_timeout": 15.0,
    "concurrency": 16,
    "user_agent": "refcheck (+https://pypi.org/project/refcheck/)",
    "http_headers": {},
    "cache": {
        "enabled": False,
        "directory": ".refcheck_cache",
        "expire_seconds": 14 * 24 * 3600,
        "store_errors": False,
    },
}


@dataclass(frozen=True)
class Options:
    """Typed view of the configuration consumed by the checkers."""

    directory_path: str = "."
    directory_index: str = "index.html"
    file_extension: str = ".html"
    check_external: bool = True
    check_internal: bool = True
    check_mailto: bool = True
    check_tel: bool = True
    enforce_https: bool = False
    strip_query_string: bool = True
    strip_query_excludes: Tuple[str, ...] = ()
    ignore_urls: Tuple[re.Pattern, ...] = ()
    ignore_attribute: str = "data-proofer-ignore"
    external_timeout: float = 15.0
    concurrency: int = 16
    user_agent: str = "refcheck"
    http_headers: Dict[str, str] = field(default_factory=dict)
    cache: CacheConfig = field(default_factory=CacheConfig)

    def http_config(self) -> dict[str, Any]:
        """Keys consumed by HttpProber."""
        return {
            "external_timeout": self.external_timeout,
            "user_agent": self.user_agent,
            "http_headers": dict(self.http_headers),
        }


def _deep_merge_dict(
    base: MutableMapping[str, Any], overrides: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Recursively merge dicts."""
    for key, value in overrides.items():
        if isinstance(value, MutableMapping) and isinstance(
            base.get(key), MutableMapping
        ):
            base[key] = _deep_merge_dict(base[key], value)
        else:
            base[key] = value
    return base


def default_config() -> dict[str, Any]:
    config = DEFAULT_CONFIG.copy()
    config["cache"] = DEFAULT_CONFIG["cache"].copy()
    config["http_headers"] = DEFAULT_CONFIG["http_headers"].copy()
    config["strip_query_excludes"] = DEFAULT_CONFIG["strip_query_excludes"].copy()
    config["ignore_urls"] = DEFAULT_CONFIG["ignore_urls"].copy()
    return config


def load_config(pyproject_path: Path | None = None) -> dict[str, Any]:
    """
    Loads configuration from defaults and merges settings from pyproject.toml.

    1. Starts with DEFAULT_CONFIG.
    2. Looks for `pyproject.toml` (CWD unless a path is given).
    3. If found, merges settings from `[tool.refcheck]` over the defaults.
    """
    config = default_config()

    if pyproject_path is None:
        pyproject_path = Path.cwd() / "pyproject.toml"

    if not pyproject_path.exists():
        log.debug(
            "No pyproject.toml found at %s. Using default config.", pyproject_path
        )
        return config

    try:
        with pyproject_path.open("rb") as f:
            toml_data = tomli.load(f)
    except (OSError, tomli.TOMLDecodeError) as e:
        log.warning(
            "Failed to load or parse %s: %s. Using default config.",
            pyproject_path,
            e,
        )
        return config

    project_config = toml_data.get("tool", {}).get("refcheck", {})
    if project_config:
        log.info("Loading config from %s", pyproject_path)
        config = _deep_merge_dict(config, project_config)  # type: ignore
    else:
        log.debug("No [tool.refcheck] section in %s.", pyproject_path)

    return config


def _compile_patterns(patterns: List[str]) -> Tuple[re.Pattern, ...]:
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as e:
            raise ConfigError(f"Invalid ignore_urls pattern {pattern!r}: {e}") from e
    return tuple(compiled)


def options_from_config(config: MutableMapping[str, Any]) -> Options:
    """Convert a merged config dict into Options."""
    cache_raw = config.get("cache", {})
    cc = CacheConfig(
        enabled=bool(cache_raw.get("enabled", False)),
        directory=str(cache_raw.get("directory", ".refcheck_cache")),
        expire_seconds=int(cache_raw.get("expire_seconds", 14 * 24 * 3600)),
        store_errors=bool(cache_raw.get("store_errors", False)),
    )
    concurrency = int(config.get("concurrency", 16))
    if concurrency < 1:
        raise ConfigError(f"concurrency must be at least 1, got {concurrency}")

    return Options(
        directory_path=str(config.get("directory_path", ".")),
        directory_index=str(config.get("directory_index", "index.html")),
        file_extension=str(config.get("file_extension", ".html")),
        check_external=bool(config.get("check_external", True)),
        check_internal=bool(config.get("check_internal", True)),
        check_mailto=bool(config.get("check_mailto", True)),
        check_tel=bool(config.get("check_tel", True)),
        enforce_https=bool(config.get("enforce_https", False)),
        strip_query_string=bool(config.get("strip_query_string", True)),
        strip_query_excludes=tuple(config.get("strip_query_excludes", [])),
        ignore_urls=_compile_patterns(list(config.get("ignore_urls", []))),
        # bs4 lower-cases attribute names
        ignore_attribute=str(
            config.get("ignore_attribute", "data-proofer-ignore")
        ).lower(),
        external_timeout=float(config.get("external_timeout", 15.0)),
        concurrency=concurrency,
        user_agent=str(config.get("user_agent", "refcheck")),
        http_headers=dict(config.get("http_headers", {})),
        cache=cc,
    )
