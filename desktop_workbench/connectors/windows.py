from __future__ import annotations

import logging
from typing import Any, Optional

from ..actions import ArrangePosition, ExpandCollapseState, WindowVisualState
from ..errors import ActionError
from ..items import ElementInfo, Pattern, Property
from .base import WINDOW_IDLE_TIMEOUT_MS, DesktopConnector, arrange_geometry

logger = logging.getLogger(__name__)

# UI Automation "Is<X>PatternAvailable" property names, by capability tag.
PATTERN_PROPERTIES = {
    Pattern.DOCK: "IsDockPatternAvailableProperty",
    Pattern.EXPAND_COLLAPSE: "IsExpandCollapsePatternAvailableProperty",
    Pattern.GRID: "IsGridPatternAvailableProperty",
    Pattern.GRID_ITEM: "IsGridItemPatternAvailableProperty",
    Pattern.INVOKE: "IsInvokePatternAvailableProperty",
    Pattern.ITEM_CONTAINER: "IsItemContainerPatternAvailableProperty",
    Pattern.MULTIPLE_VIEW: "IsMultipleViewPatternAvailableProperty",
    Pattern.RANGE_VALUE: "IsRangeValuePatternAvailableProperty",
    Pattern.SCROLL_ITEM: "IsScrollItemPatternAvailableProperty",
    Pattern.SCROLL: "IsScrollPatternAvailableProperty",
    Pattern.SELECTION_ITEM: "IsSelectionItemPatternAvailableProperty",
    Pattern.SELECTION: "IsSelectionPatternAvailableProperty",
    Pattern.SYNC_INPUT: "IsSynchronizedInputPatternAvailableProperty",
    Pattern.TABLE_ITEM: "IsTableItemPatternAvailableProperty",
    Pattern.TABLE: "IsTablePatternAvailableProperty",
    Pattern.TEXT: "IsTextPatternAvailableProperty",
    Pattern.TOGGLE: "IsTogglePatternAvailableProperty",
    Pattern.TRANSFORM: "IsTransformPatternAvailableProperty",
    Pattern.VALUE: "IsValuePatternAvailableProperty",
    Pattern.VIRT_ITEM: "IsVirtualizedItemPatternAvailableProperty",
    Pattern.WINDOW: "IsWindowPatternAvailableProperty",
}

FACET_PROPERTIES = {
    Property.CONTENT: "IsContentElementProperty",
    Property.CONTROL: "IsControlElementProperty",
    Property.DIALOG: "IsDialogProperty",
    Property.ENABLED: "IsEnabledProperty",
    Property.OFFSCREEN: "IsOffscreenProperty",
}


class WindowsConnector(DesktopConnector):
    name = "windows"

    def __init__(self) -> None:
        try:
            import uiautomation as uia  # type: ignore
        except Exception as e:  # noqa: BLE001
            raise RuntimeError("uiautomation package required on Windows. Install with `pip install uiautomation`.") from e
        self.uia = uia

    def root_element(self) -> Any:
        return self.uia.GetRootControl()

    def first_child(self, element: Any) -> Optional[Any]:
        return element.GetFirstChildControl()

    def next_sibling(self, element: Any) -> Optional[Any]:
        return element.GetNextSiblingControl()

    def _flag(self, element: Any, property_name: str) -> bool:
        property_id = getattr(self.uia.PropertyId, property_name, None)
        if property_id is None:
            return False
        try:
            return bool(element.GetPropertyValue(property_id))
        except Exception:  # noqa: BLE001
            # Older UIA versions do not know every property (IsDialog).
            return False

    def describe(self, element: Any) -> ElementInfo:
        control_type = element.ControlTypeName or ""
        if control_type.endswith("Control"):
            control_type = control_type[: -len("Control")]
        help_text = element.GetPropertyValue(self.uia.PropertyId.HelpTextProperty)
        return ElementInfo(
            control_type=control_type,
            name=element.Name or "",
            automation_id=element.AutomationId or "",
            class_name=element.ClassName or "",
            help_text=help_text if isinstance(help_text, str) else "",
            patterns=frozenset(p for p, prop in PATTERN_PROPERTIES.items() if self._flag(element, prop)),
            properties=frozenset(p for p, prop in FACET_PROPERTIES.items() if self._flag(element, prop)),
        )

    def _label(self, element: Any) -> str:
        try:
            return f"{element.ControlTypeName} '{element.Name}'"
        except Exception:  # noqa: BLE001
            return "element"

    def _pattern(self, element: Any, pattern_name: str, tag: Pattern) -> Any:
        # GetPattern exists on every Control class; the typed Get<X>Pattern getters do not.
        pattern = element.GetPattern(getattr(self.uia.PatternId, pattern_name))
        if pattern is None:
            raise ActionError(f"{tag.value} pattern is not available on {self._label(element)}")
        return pattern

    def expand_or_collapse(self, element: Any, state: ExpandCollapseState) -> None:
        pattern = self._pattern(element, "ExpandCollapsePattern", Pattern.EXPAND_COLLAPSE)
        current = pattern.ExpandCollapseState
        if current == self.uia.ExpandCollapseState.LeafNode:
            logger.info("Not changing %s: it is a leaf node", self._label(element))
            return
        if state is ExpandCollapseState.EXPANDED and current != self.uia.ExpandCollapseState.Expanded:
            pattern.Expand()
        elif state is ExpandCollapseState.COLLAPSED and current != self.uia.ExpandCollapseState.Collapsed:
            pattern.Collapse()

    def invoke(self, element: Any) -> None:
        self._pattern(element, "InvokePattern", Pattern.INVOKE).Invoke()

    def toggle(self, element: Any) -> None:
        self._pattern(element, "TogglePattern", Pattern.TOGGLE).Toggle()

    def arrange(self, element: Any, position: ArrangePosition) -> None:
        pattern = self._pattern(element, "TransformPattern", Pattern.TRANSFORM)
        if not pattern.CanMove or not pattern.CanResize:
            raise ActionError(f"Cannot move or resize {self._label(element)}")
        screen_w, screen_h = self.uia.GetScreenSize()
        x, y, w, h = arrange_geometry(position, screen_w, screen_h)
        pattern.Move(int(x), int(y))
        if w is not None:
            pattern.Resize(int(w), int(h))

    def set_value(self, element: Any, value: str) -> None:
        # Fails for disabled or read-only controls; the dispatcher reports it.
        self._pattern(element, "ValuePattern", Pattern.VALUE).SetValue(value)

    def _ready_window(self, element: Any) -> Any:
        pattern = self._pattern(element, "WindowPattern", Pattern.WINDOW)
        if not pattern.WaitForInputIdle(WINDOW_IDLE_TIMEOUT_MS):
            raise ActionError(f"{self._label(element)} is not responding in a timely manner")
        return pattern

    def set_window_visual_state(self, element: Any, state: WindowVisualState) -> None:
        pattern = self._ready_window(element)
        if pattern.WindowInteractionState != self.uia.WindowInteractionState.ReadyForUserInteraction:
            raise ActionError(f"{self._label(element)} is not ready for user interaction")
        if state is WindowVisualState.MAXIMIZED:
            if pattern.CanMaximize and not pattern.IsModal:
                pattern.SetWindowVisualState(self.uia.WindowVisualState.Maximized)
        elif state is WindowVisualState.MINIMIZED:
            if pattern.CanMinimize and not pattern.IsModal:
                pattern.SetWindowVisualState(self.uia.WindowVisualState.Minimized)
        else:
            pattern.SetWindowVisualState(self.uia.WindowVisualState.Normal)

    def close_window(self, element: Any) -> None:
        self._ready_window(element).Close()
