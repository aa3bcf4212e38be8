"""Typed helpers for parsing loader configuration dictionaries."""

from __future__ import annotations

import logging

from copy import deepcopy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from nicehtml.constants import (
    DEFAULT_CACHE_BUST_PARAM,
    DEFAULT_ENGINE_KIND,
    DEFAULT_SCRIPT_TYPE,
    DEFAULT_USER_AGENT,
)
from nicehtml.exceptions import ConfigurationError

DEFAULT_CONFIG_PATH = Path("configs/default_config.yaml")


def _optional_path(
    value: Optional[str | Path], *, config_root: Path
) -> Optional[Path]:
    if value is None or value == "":
        return None
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = (config_root / path).resolve()
    return path


def _coerce_timeout(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        timeout = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(
            f"fetch.timeout_s must be a number, got {value!r}"
        ) from exc
    if timeout <= 0:
        raise ConfigurationError("fetch.timeout_s must be positive")
    return timeout


def _coerce_level(value: Any) -> int:
    if isinstance(value, int):
        return value
    level = logging.getLevelName(str(value or "INFO").upper())
    if not isinstance(level, int):
        raise ConfigurationError(f"Unknown logging level {value!r}")
    return level


@dataclass(frozen=True)
class DiscoverySettings:
    script_type: str = DEFAULT_SCRIPT_TYPE


@dataclass(frozen=True)
class FetchSettings:
    cache_bust: bool = True
    cache_bust_param: str = DEFAULT_CACHE_BUST_PARAM
    timeout_s: Optional[float] = None
    user_agent: str = DEFAULT_USER_AGENT
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class EngineSettings:
    kind: str = DEFAULT_ENGINE_KIND
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RuntimeSettings:
    events_path: Optional[Path] = None


@dataclass(frozen=True)
class LoggingSettings:
    level: int = logging.INFO
    log_file: Optional[Path] = None


@dataclass(frozen=True)
class OutputSettings:
    template: Optional[Path] = None
    title: Optional[str] = None


@dataclass(frozen=True)
class LoaderSettings:
    discovery: DiscoverySettings = field(default_factory=DiscoverySettings)
    fetch: FetchSettings = field(default_factory=FetchSettings)
    engine: EngineSettings = field(default_factory=EngineSettings)
    plugin_modules: Tuple[str, ...] = field(default_factory=tuple)
    runtime: RuntimeSettings = field(default_factory=RuntimeSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    output: OutputSettings = field(default_factory=OutputSettings)


def build_loader_settings(
    config: Dict[str, Any], *, config_root: Path
) -> LoaderSettings:
    root_cfg = config.get("nicehtml") or {}

    discovery_cfg = root_cfg.get("discovery") or {}
    script_type = str(
        discovery_cfg.get("script_type") or DEFAULT_SCRIPT_TYPE
    ).strip()
    discovery = DiscoverySettings(script_type=script_type)

    fetch_cfg = root_cfg.get("fetch") or {}
    param = str(
        fetch_cfg.get("cache_bust_param") or DEFAULT_CACHE_BUST_PARAM
    )
    fetch = FetchSettings(
        cache_bust=bool(fetch_cfg.get("cache_bust", True)),
        cache_bust_param=param,
        timeout_s=_coerce_timeout(fetch_cfg.get("timeout_s")),
        user_agent=str(fetch_cfg.get("user_agent") or DEFAULT_USER_AGENT),
        headers={
            str(key): str(value)
            for key, value in (fetch_cfg.get("headers") or {}).items()
        },
    )

    engine_cfg = root_cfg.get("engine") or {}
    engine = EngineSettings(
        kind=str(engine_cfg.get("kind") or DEFAULT_ENGINE_KIND),
        options=deepcopy(engine_cfg.get("options") or {}),
    )

    plugins_cfg = root_cfg.get("plugins") or {}
    modules = plugins_cfg.get("modules") or []
    if isinstance(modules, str):
        modules = [modules]

    runtime_cfg = root_cfg.get("runtime") or {}
    runtime = RuntimeSettings(
        events_path=_optional_path(
            runtime_cfg.get("events_path"), config_root=config_root
        )
    )

    logging_cfg = root_cfg.get("logging") or {}
    logging_settings = LoggingSettings(
        level=_coerce_level(logging_cfg.get("level", "INFO")),
        log_file=_optional_path(
            logging_cfg.get("log_file"), config_root=config_root
        ),
    )

    output_cfg = root_cfg.get("output") or {}
    output = OutputSettings(
        template=_optional_path(
            output_cfg.get("template"), config_root=config_root
        ),
        title=output_cfg.get("title"),
    )

    return LoaderSettings(
        discovery=discovery,
        fetch=fetch,
        engine=engine,
        plugin_modules=tuple(str(mod) for mod in modules if mod),
        runtime=runtime,
        logging=logging_settings,
        output=output,
    )


def load_config(config_path: Path) -> Dict[str, Any]:
    """Read a YAML config file, returning an empty dict for empty files."""

    if not config_path.exists():
        raise FileNotFoundError(f"Config file '{config_path}' not found.")
    data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config file '{config_path}' must contain a mapping"
        )
    return data


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "DiscoverySettings",
    "EngineSettings",
    "FetchSettings",
    "LoaderSettings",
    "LoggingSettings",
    "OutputSettings",
    "RuntimeSettings",
    "build_loader_settings",
    "load_config",
]
