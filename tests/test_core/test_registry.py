"""Tests for the name -> entry registry."""

from __future__ import annotations

import pytest

from backgrounder.core.errors import (
    BackgroundError,
    UnknownHandlerError,
    UnknownNameError,
)
from backgrounder.core.registry import Registry


class _HandlerNames(Registry[str]):
    error_class = UnknownHandlerError


class TestRegistry:
    def test_register_and_get(self):
        registry: Registry[int] = Registry()
        registry.register("one", 1)

        assert registry.get("one") == 1
        assert registry.has("one")
        assert "one" in registry
        assert len(registry) == 1

    def test_names_keep_registration_order(self):
        registry: Registry[int] = Registry()
        registry.register("b", 2)
        registry.register("a", 1)

        assert registry.names() == ["b", "a"]
        assert list(registry) == ["b", "a"]

    def test_duplicate_name_is_rejected(self):
        registry: Registry[int] = Registry()
        registry.register("one", 1)

        with pytest.raises(ValueError, match="already registered"):
            registry.register("one", 11)
        assert registry.get("one") == 1

    def test_replace_overwrites(self):
        registry: Registry[int] = Registry()
        registry.register("one", 1)
        registry.register("one", 11, replace=True)

        assert registry.get("one") == 11

    def test_empty_name_is_rejected(self):
        with pytest.raises(ValueError):
            Registry().register("", 1)

    def test_unregister_is_idempotent(self):
        registry: Registry[int] = Registry()
        registry.register("one", 1)
        registry.unregister("one")
        registry.unregister("one")

        assert not registry.has("one")


class TestUnknownNames:
    def test_unknown_name_lists_available(self):
        registry = _HandlerNames()
        registry.register("disk", "d")
        registry.register("forget", "f")

        with pytest.raises(UnknownHandlerError) as excinfo:
            registry.get("smoke_signal")

        err = excinfo.value
        assert err.name == "smoke_signal"
        assert err.available == ["disk", "forget"]
        assert "Unknown handler 'smoke_signal'" in str(err)
        assert "disk, forget" in str(err)

    def test_unknown_name_error_family(self):
        registry = _HandlerNames()

        with pytest.raises(UnknownNameError):
            registry.get("x")
        with pytest.raises(LookupError):
            registry.get("x")
        with pytest.raises(BackgroundError):
            registry.get("x")

    def test_empty_registry_says_none(self):
        with pytest.raises(UnknownHandlerError, match="Available: none"):
            _HandlerNames().get("x")
