"""Tests for ServiceRegistry and core service wiring."""

import pytest

from domains.core import (
    ServiceRegistry,
    get_service_registry,
    initialize_core_services,
    register_core_services,
)
from domains.note_hub import NoteService, NoteStore


class _Closable:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


# ---------------------------------------------------------------------------
# ServiceRegistry
# ---------------------------------------------------------------------------

class TestServiceRegistry:

    def test_lazy_creation_and_caching(self):
        calls = []
        registry = ServiceRegistry()
        registry.register("svc", lambda: calls.append(1) or object())

        first = registry.get("svc")
        assert registry.get("svc") is first
        assert calls == [1]

    def test_unknown_service(self):
        with pytest.raises(KeyError):
            ServiceRegistry().get("missing")

    def test_dependencies_created_first(self):
        registry = ServiceRegistry()
        registry.register("a", lambda: "A")
        registry.register("b", lambda: "B", dependencies=["a"])

        registry.get("b")
        assert registry.initialized_services == ["a", "b"]

    def test_set_overrides_instance(self):
        registry = ServiceRegistry()
        registry.register("svc", lambda: "real")
        registry.set("svc", "fake")
        assert registry.get("svc") == "fake"

    def test_reset_calls_close(self):
        registry = ServiceRegistry()
        instance = _Closable()
        registry.register("svc", lambda: instance)
        registry.get("svc")

        registry.reset("svc")

        assert instance.closed
        assert "svc" not in registry.initialized_services

    async def test_startup_runs_hooks_once_in_dependency_order(self):
        started = []

        async def _start(instance):
            started.append(instance)

        registry = ServiceRegistry()
        registry.register("b", lambda: "B", dependencies=["a"], on_startup=_start)
        registry.register("a", lambda: "A", on_startup=_start)

        await registry.startup()
        await registry.startup()

        assert started == ["A", "B"]
        assert registry.started_services == ["a", "b"]

    async def test_startup_failure_propagates(self):
        async def _boom(_):
            raise RuntimeError("disk unavailable")

        registry = ServiceRegistry()
        registry.register("svc", lambda: "S", on_startup=_boom)

        with pytest.raises(RuntimeError):
            await registry.startup()
        assert registry.started_services == []

    async def test_async_cleanup_awaited_on_shutdown(self):
        closed = []

        async def _close(instance):
            closed.append(instance)

        registry = ServiceRegistry()
        registry.register("svc", lambda: "S", cleanup=_close)
        registry.get("svc")

        await registry.shutdown()
        assert closed == ["S"]

    async def test_shutdown_in_reverse_order(self):
        order = []
        registry = ServiceRegistry()
        registry.register("a", lambda: "A", cleanup=lambda _: order.append("a"))
        registry.register("b", lambda: "B", dependencies=["a"], cleanup=lambda _: order.append("b"))
        registry.get("b")

        await registry.shutdown()

        assert order == ["b", "a"]
        assert registry.initialized_services == []


# ---------------------------------------------------------------------------
# Core services
# ---------------------------------------------------------------------------

class TestCoreServices:

    async def test_register_and_initialize(self, data_dir):
        registry = register_core_services(data_dir=data_dir, notes_box_name="notes")
        assert registry is get_service_registry()

        await initialize_core_services(registry)

        store = registry.get("note_store")
        service = registry.get("note_service")
        assert isinstance(store, NoteStore)
        assert isinstance(service, NoteService)
        assert service.store is store
        assert store.is_initialized
        assert store.path == data_dir / "notes.json"

    async def test_shutdown_closes_store(self, data_dir):
        registry = register_core_services(data_dir=data_dir)
        await initialize_core_services(registry)
        store = registry.get("note_store")

        await registry.shutdown()

        assert not store.is_initialized
