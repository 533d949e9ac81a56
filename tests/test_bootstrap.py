import pytest
from unittest.mock import AsyncMock, MagicMock
from pico_ioc import PicoContainer

import pico_resolver
from pico_resolver.bootstrap import (
    _auto_plugins_enabled,
    _import_module_like,
    _load_plugin_modules,
    _normalize_modules,
    _to_module_list,
    init,
)
from pico_resolver.config import CapabilityClass, ResolverSettings
from pico_resolver.gate import RequestSpacingGate
from pico_resolver.interfaces import ModelCatalog, ModelProber
from pico_resolver.invoker import SingleAttemptInvoker
from pico_resolver.models import ProbeSweep
from pico_resolver.resolver import CapabilityResolver


class TestToModuleList:
    def test_list_passthrough(self):
        assert _to_module_list(["a", "b"]) == ["a", "b"]

    def test_single_item_wrapped(self):
        assert _to_module_list("mymodule") == ["mymodule"]

    def test_module_object_wrapped(self):
        assert _to_module_list(pico_resolver) == [pico_resolver]


class TestImportModuleLike:
    def test_module_object(self):
        assert _import_module_like(pico_resolver) is pico_resolver

    def test_string_import(self):
        assert _import_module_like("pico_resolver") is pico_resolver

    def test_class_resolves_to_its_module(self):
        assert _import_module_like(CapabilityResolver).__name__ == "pico_resolver.resolver"

    def test_invalid_object_raises(self):
        with pytest.raises(ImportError):
            _import_module_like(object())


class TestNormalizeModules:
    def test_deduplicates(self):
        names = [m.__name__ for m in _normalize_modules(["pico_resolver", "pico_resolver", pico_resolver])]
        assert names == ["pico_resolver"]

    def test_preserves_order(self):
        names = [m.__name__ for m in _normalize_modules(["pico_resolver", "os", "sys"])]
        assert names == ["pico_resolver", "os", "sys"]


class TestPlugins:
    def test_plugin_load_skips_infrastructure(self):
        names = [m.__name__ for m in _load_plugin_modules()]
        assert "pico_ioc" not in names
        assert "pico_resolver" not in names

    @pytest.mark.parametrize("value, enabled", [("false", False), ("0", False), ("no", False), ("true", True)])
    def test_auto_plugins_flag(self, monkeypatch, value, enabled):
        monkeypatch.setenv("PICO_RESOLVER_AUTO_PLUGINS", value)
        assert _auto_plugins_enabled() is enabled


class TestInit:
    def test_init_returns_container(self):
        assert isinstance(init(modules=["pico_resolver"]), PicoContainer)

    def test_pico_resolver_always_included(self):
        container = init(modules=["os"])
        assert container.has(CapabilityResolver)
        assert container.has(SingleAttemptInvoker)
        assert container.has(RequestSpacingGate)

    def test_auto_plugins_disabled_via_env(self, monkeypatch):
        monkeypatch.setenv("PICO_RESOLVER_AUTO_PLUGINS", "false")
        assert isinstance(init(modules=["pico_resolver"]), PicoContainer)

    @pytest.mark.asyncio
    async def test_resolver_wiring_with_overrides(self):
        catalog = MagicMock(spec=ModelCatalog)
        catalog.list_identifiers = AsyncMock(
            return_value=["imagen-3.0-generate-001", "imagen-4.0-generate-001", "gemini-2.0-flash-001"]
        )
        prober = MagicMock(spec=ModelProber)
        prober.find_available = AsyncMock(side_effect=lambda capability, candidates: ProbeSweep(capability))

        container = init(
            modules=["pico_resolver"],
            overrides={
                ResolverSettings: ResolverSettings(project_id="acme"),
                ModelCatalog: catalog,
                ModelProber: prober,
            },
        )
        resolver = container.get(CapabilityResolver)

        assert await resolver.resolve(CapabilityClass.TEXT) == "gemini-2.0-flash-001"
        # Image defaults to probing; nothing answers, so the fallback is used.
        assert await resolver.resolve(CapabilityClass.IMAGE) == "imagen-3.0-generate-001"
        prober.find_available.assert_awaited_once()
