"""Engine plugin registry."""

import logging

from importlib import import_module
from typing import Dict, Iterable, Type

from nicehtml.exceptions import EngineLoadError

from .base import TranspilationEngine
from .nicehtml import NiceHTMLEngine
from .preformatted import PreformattedEngine

LOGGER = logging.getLogger(__name__)

ENGINE_PLUGINS: Dict[str, Type[TranspilationEngine]] = {
    "nicehtml": NiceHTMLEngine,
    "preformatted": PreformattedEngine,
}


def register_engine(name: str, engine_cls: Type[TranspilationEngine]) -> None:
    """Register or override an engine at runtime."""

    ENGINE_PLUGINS[name.lower()] = engine_cls


def unregister_engine(name: str) -> None:
    """Remove an engine that was previously registered."""

    ENGINE_PLUGINS.pop(name.lower(), None)


def import_engine_modules(modules: Iterable[str]) -> None:
    """Import plugin modules so they can call :func:`register_engine`."""

    for mod_name in modules:
        if not mod_name:
            continue
        try:
            import_module(mod_name)
        except Exception as exc:
            LOGGER.warning(
                "Failed to import plugin module '%s': %s", mod_name, exc
            )


def resolve_engine_class(kind: str) -> Type[TranspilationEngine]:
    """Look up ``kind`` in the registry or import it as ``module:Class``."""

    engine_cls = ENGINE_PLUGINS.get(kind.lower())
    if engine_cls is not None:
        return engine_cls
    if ":" not in kind:
        raise EngineLoadError(f"Unknown engine '{kind}'")
    module_name, _, attr = kind.partition(":")
    try:
        module = import_module(module_name)
        engine_cls = getattr(module, attr)
    except (ImportError, AttributeError) as exc:
        raise EngineLoadError(f"Cannot import engine '{kind}': {exc}") from exc
    if not (
        isinstance(engine_cls, type)
        and issubclass(engine_cls, TranspilationEngine)
    ):
        raise EngineLoadError(
            f"'{kind}' is not a TranspilationEngine subclass"
        )
    return engine_cls


__all__ = [
    "ENGINE_PLUGINS",
    "NiceHTMLEngine",
    "PreformattedEngine",
    "TranspilationEngine",
    "import_engine_modules",
    "register_engine",
    "resolve_engine_class",
    "unregister_engine",
]
