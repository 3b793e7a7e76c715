from __future__ import annotations

import abc
from typing import Any, Optional

from ..actions import ArrangePosition, ExpandCollapseState, WindowVisualState
from ..items import ElementInfo

# Bounded wait for a window to accept input before changing it.
WINDOW_IDLE_TIMEOUT_MS = 10000


class DesktopConnector(abc.ABC):
    """Accessibility provider for one platform.

    Tree reads may raise for any individual element at any time; callers
    treat that as the end of the branch. Capability calls raise
    ``ActionError`` when the element cannot perform the request.
    """

    name = "base"

    @abc.abstractmethod
    def root_element(self) -> Any:
        ...

    @abc.abstractmethod
    def first_child(self, element: Any) -> Optional[Any]:
        ...

    @abc.abstractmethod
    def next_sibling(self, element: Any) -> Optional[Any]:
        ...

    @abc.abstractmethod
    def describe(self, element: Any) -> ElementInfo:
        ...

    @abc.abstractmethod
    def expand_or_collapse(self, element: Any, state: ExpandCollapseState) -> None:
        ...

    @abc.abstractmethod
    def invoke(self, element: Any) -> None:
        ...

    @abc.abstractmethod
    def toggle(self, element: Any) -> None:
        ...

    @abc.abstractmethod
    def arrange(self, element: Any, position: ArrangePosition) -> None:
        ...

    @abc.abstractmethod
    def set_value(self, element: Any, value: str) -> None:
        ...

    @abc.abstractmethod
    def set_window_visual_state(self, element: Any, state: WindowVisualState) -> None:
        ...

    @abc.abstractmethod
    def close_window(self, element: Any) -> None:
        ...


def arrange_geometry(position: ArrangePosition, screen_w: float, screen_h: float) -> tuple:
    """Target (x, y, width, height) for a position; width/height are None when only moving."""
    if position is ArrangePosition.LEFT:
        return (0, 0, screen_w / 2, screen_h)
    if position is ArrangePosition.RIGHT:
        return (screen_w / 2, 0, screen_w / 2, screen_h)
    if position is ArrangePosition.TOP:
        return (0, 0, screen_w, screen_h / 2)
    if position is ArrangePosition.BOTTOM:
        return (0, screen_h / 2, screen_w, screen_h / 2)
    return (50, 50, None, None)
