from __future__ import annotations

from typing import Any, Optional

from ..actions import ArrangePosition, ExpandCollapseState, WindowVisualState
from ..errors import ActionError
from ..items import ElementInfo, Pattern, Property
from .base import WINDOW_IDLE_TIMEOUT_MS, DesktopConnector, arrange_geometry

TOGGLE_ROLES = {"AXCheckBox", "AXRadioButton", "AXSwitch"}
DIALOG_SUBROLES = {"AXDialog", "AXSystemDialog", "AXFloatingWindow"}


class MacOSConnector(DesktopConnector):
    """Maps AX roles, actions and settable attributes onto the UIA-style capability tags.

    The tree is rooted at the frontmost application; macOS exposes no single
    desktop element with sibling links, so siblings are found through the
    parent's children.
    """

    name = "darwin"

    def __init__(self) -> None:
        try:
            from ..ax import AXFinder
        except Exception as e:  # noqa: BLE001
            raise RuntimeError("pyobjc is required on macOS. Install with `pip install pyobjc`.") from e
        self.ax = AXFinder()

    def root_element(self) -> Any:
        if not self.ax.is_accessibility_enabled():
            raise RuntimeError("Accessibility access is not granted to this process")
        return self.ax.frontmost_app()

    def first_child(self, element: Any) -> Optional[Any]:
        children = self.ax.children(element)
        return children[0] if children else None

    def next_sibling(self, element: Any) -> Optional[Any]:
        parent = self.ax.parent(element)
        if parent is None:
            return None
        siblings = self.ax.children(parent)
        idx = self.ax.index_in(siblings, element)
        return siblings[idx + 1] if idx + 1 < len(siblings) else None

    def describe(self, element: Any) -> ElementInfo:
        role = self.ax.role(element)
        subrole = str(self.ax.copy_attribute(element, "AXSubrole") or "")
        actions = self.ax.get_actions(element)
        name = self.ax.title(element) or str(self.ax.copy_attribute(element, "AXDescription") or "")

        patterns = set()
        if "AXPress" in actions:
            patterns.add(Pattern.INVOKE)
            if role in TOGGLE_ROLES:
                patterns.add(Pattern.TOGGLE)
        if role == "AXDisclosureTriangle" or self.ax.copy_attribute(element, "AXExpanded") is not None:
            patterns.add(Pattern.EXPAND_COLLAPSE)
        if self.ax.is_settable(element, "AXValue"):
            patterns.add(Pattern.VALUE)
        if "AXIncrement" in actions:
            patterns.add(Pattern.RANGE_VALUE)
        if "AXScrollToVisible" in actions:
            patterns.add(Pattern.SCROLL_ITEM)
        if role == "AXWindow":
            patterns.add(Pattern.WINDOW)
            if self.ax.is_settable(element, "AXPosition") and self.ax.is_settable(element, "AXSize"):
                patterns.add(Pattern.TRANSFORM)

        properties = {Property.CONTROL}
        if self.ax.copy_attribute(element, "AXEnabled"):
            properties.add(Property.ENABLED)
        if name or self.ax.copy_attribute(element, "AXValue") is not None:
            properties.add(Property.CONTENT)
        if subrole in DIALOG_SUBROLES:
            properties.add(Property.DIALOG)

        return ElementInfo(
            control_type=role[2:] if role.startswith("AX") else role,
            name=name,
            automation_id=str(self.ax.copy_attribute(element, "AXIdentifier") or ""),
            class_name=subrole,
            help_text=str(self.ax.copy_attribute(element, "AXHelp") or ""),
            patterns=frozenset(patterns),
            properties=frozenset(properties),
        )

    def _press(self, element: Any, what: str) -> None:
        if not self.ax.perform_action(element, "AXPress"):
            raise ActionError(f"Could not {what} element")

    def expand_or_collapse(self, element: Any, state: ExpandCollapseState) -> None:
        want = state is ExpandCollapseState.EXPANDED
        current = self.ax.copy_attribute(element, "AXExpanded")
        if current is not None and bool(current) == want:
            return
        if self.ax.is_settable(element, "AXExpanded"):
            if not self.ax.set_attribute(element, "AXExpanded", want):
                raise ActionError("Could not change expanded state")
            return
        self._press(element, "expand or collapse")

    def invoke(self, element: Any) -> None:
        self._press(element, "invoke")

    def toggle(self, element: Any) -> None:
        self._press(element, "toggle")

    def arrange(self, element: Any, position: ArrangePosition) -> None:
        if not (self.ax.is_settable(element, "AXPosition") and self.ax.is_settable(element, "AXSize")):
            raise ActionError("Cannot move or resize window")
        x, y, w, h = arrange_geometry(position, *self.ax.screen_size())
        if not self.ax.set_frame(element, x, y, w, h):
            raise ActionError(f"Could not arrange window to {position.value}")

    def set_value(self, element: Any, value: str) -> None:
        if not self.ax.set_attribute(element, "AXValue", value):
            raise ActionError("Could not set value")

    def _ready_window(self, element: Any) -> None:
        if not self.ax.wait_until_responsive(element, WINDOW_IDLE_TIMEOUT_MS / 1000.0):
            raise ActionError("Window is not responding in a timely manner")

    def set_window_visual_state(self, element: Any, state: WindowVisualState) -> None:
        self._ready_window(element)
        modal = bool(self.ax.copy_attribute(element, "AXModal"))
        if state is WindowVisualState.MINIMIZED:
            if not modal and not self.ax.set_attribute(element, "AXMinimized", True):
                raise ActionError("Could not minimize window")
        elif state is WindowVisualState.MAXIMIZED:
            zoom = self.ax.copy_attribute(element, "AXZoomButton")
            if not modal and zoom is not None:
                self._press(zoom, "maximize")
        else:
            if not self.ax.set_attribute(element, "AXMinimized", False):
                raise ActionError("Could not restore window")

    def close_window(self, element: Any) -> None:
        self._ready_window(element)
        button = self.ax.copy_attribute(element, "AXCloseButton")
        if button is None:
            raise ActionError("Window has no close button")
        self._press(button, "close")
