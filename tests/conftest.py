from __future__ import annotations

import pytest

from desktop_workbench.connectors.sim import SimConnector, SimElement, demo_desktop
from desktop_workbench.items import Item, Pattern, sequential_ids
from desktop_workbench.session import WorkbenchSession


def make_item(item_id: str, control_type: str = "Pane", name: str = "", patterns=(), children=None, **kwargs) -> Item:
    """Create a detached item for tests that do not need a live element."""
    return Item(
        id=item_id,
        control_type=control_type,
        name=name,
        available_patterns=frozenset(patterns),
        children=list(children or []),
        **kwargs,
    )


def item_named(snapshot, name: str) -> Item:
    for item in snapshot.index.values():
        if item.name == name:
            return item
    raise AssertionError(f"no item named {name!r} in snapshot")


@pytest.fixture
def desktop() -> SimElement:
    return demo_desktop()


@pytest.fixture
def connector(desktop) -> SimConnector:
    return SimConnector(desktop)


@pytest.fixture
def session(connector):
    s = WorkbenchSession(connector, id_factory=sequential_ids())
    yield s
    s.close()


@pytest.fixture
def invoke_only() -> Item:
    return make_item("X", "Button", "OK", patterns=[Pattern.INVOKE])


@pytest.fixture
def window_item() -> Item:
    return make_item("W", "Window", "Editor", patterns=[Pattern.TRANSFORM, Pattern.WINDOW])
