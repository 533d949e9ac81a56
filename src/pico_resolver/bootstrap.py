import inspect
import os
from importlib import import_module
from importlib.metadata import entry_points
from types import ModuleType
from typing import TYPE_CHECKING, Any, Iterable, List, Union

from pico_ioc import init as _ioc_init

if TYPE_CHECKING:
    from pico_ioc import PicoContainer

import pico_resolver

from .logging import get_logger

logger = get_logger(__name__)

_IOC_INIT_SIG = inspect.signature(_ioc_init)

PLUGIN_GROUP = "pico_resolver.plugins"
AUTO_PLUGINS_ENV = "PICO_RESOLVER_AUTO_PLUGINS"


def _to_module_list(modules: Union[Any, Iterable[Any]]) -> List[Any]:
    if isinstance(modules, Iterable) and not isinstance(modules, (str, bytes)):
        return list(modules)
    return [modules]


def _import_module_like(obj: Any) -> ModuleType:
    if isinstance(obj, ModuleType):
        return obj
    if isinstance(obj, str):
        return import_module(obj)
    module_name = getattr(obj, "__module__", None) or getattr(obj, "__name__", None)
    if not module_name:
        raise ImportError(f"Cannot determine module for object {obj!r}")
    return import_module(module_name)


def _normalize_modules(raw: Iterable[Any]) -> List[ModuleType]:
    seen: set[str] = set()
    result: List[ModuleType] = []
    for item in raw:
        m = _import_module_like(item)
        if m.__name__ not in seen:
            seen.add(m.__name__)
            result.append(m)
    return result


def _load_plugin_modules(group: str = PLUGIN_GROUP) -> List[ModuleType]:
    """Import modules registered under the *group* entry point.

    Plugins typically provide alternative ``ModelCatalog`` or ``ModelProber``
    implementations for other cloud platforms.  A plugin that fails to
    import is logged and skipped.
    """
    modules: List[ModuleType] = []
    seen: set[str] = set()

    for ep in entry_points().select(group=group):
        if ep.module in ("pico_ioc", "pico_resolver"):
            continue
        try:
            m = import_module(ep.module)
        except Exception as exc:
            logger.warning("Failed to load pico-resolver plugin '%s' (%s): %s", ep.name, ep.module, exc)
            continue
        if m.__name__ not in seen:
            seen.add(m.__name__)
            modules.append(m)

    return modules


def _auto_plugins_enabled() -> bool:
    return os.getenv(AUTO_PLUGINS_ENV, "true").lower() not in ("0", "false", "no")


def init(*args: Any, **kwargs: Any) -> "PicoContainer":
    """Build a pico-ioc container that always includes pico_resolver.

    Accepts exactly the arguments of ``pico_ioc.init``.
    """
    bound = _IOC_INIT_SIG.bind(*args, **kwargs)
    bound.apply_defaults()

    raw = [pico_resolver] + _to_module_list(bound.arguments["modules"])
    modules = _normalize_modules(raw)

    if _auto_plugins_enabled():
        modules = _normalize_modules(modules + _load_plugin_modules())

    bound.arguments["modules"] = modules
    return _ioc_init(*bound.args, **bound.kwargs)


init.__signature__ = _IOC_INIT_SIG
