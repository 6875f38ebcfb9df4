"""Tests for the user-to-socket connection registry."""
from __future__ import annotations

from tutoring_chat.services import ConnectionRegistry


def test_bind_then_get_returns_connection(connection_factory) -> None:
    registry = ConnectionRegistry()
    connection = connection_factory()

    registry.bind(1, connection)

    assert registry.get(1) is connection
    assert 1 in registry
    assert len(registry) == 1


def test_rebinding_replaces_previous_connection(connection_factory) -> None:
    registry = ConnectionRegistry()
    first, second = connection_factory(), connection_factory()

    registry.bind(7, first)
    registry.bind(7, second)

    assert registry.get(7) is second
    assert len(registry) == 1
    # Displaced sockets are not closed by the registry.
    assert first.is_open


def test_bind_is_idempotent(connection_factory) -> None:
    registry = ConnectionRegistry()
    connection = connection_factory()

    registry.bind(3, connection)
    registry.bind(3, connection)

    assert len(registry) == 1
    assert registry.get(3) is connection


def test_get_unknown_user_returns_none() -> None:
    assert ConnectionRegistry().get(42) is None


def test_remove_missing_entry_is_noop(connection_factory) -> None:
    registry = ConnectionRegistry()
    registry.bind(1, connection_factory())

    registry.remove(2)
    registry.remove(1)
    registry.remove(1)

    assert len(registry) == 0


def test_remove_if_only_evicts_matching_connection(connection_factory) -> None:
    registry = ConnectionRegistry()
    stale, current = connection_factory(), connection_factory()
    registry.bind(5, stale)
    registry.bind(5, current)

    assert registry.remove_if(5, stale) is False
    assert registry.get(5) is current

    assert registry.remove_if(5, current) is True
    assert registry.get(5) is None
