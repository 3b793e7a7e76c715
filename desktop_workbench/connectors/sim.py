from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..actions import ArrangePosition, ExpandCollapseState, WindowVisualState
from ..errors import ActionError
from ..items import ElementInfo, Pattern, Property
from .base import DesktopConnector, arrange_geometry


class SimElementError(RuntimeError):
    """Raised by the simulated provider where a real one would fail."""


@dataclass(eq=False)
class SimElement:
    """An element of the in-memory desktop.

    The ``fail_*`` flags make the provider raise where a live tree would:
    reading this element, walking into its children, or stepping past it to
    the next sibling.
    """

    control_type: str = "Pane"
    name: str = ""
    automation_id: str = ""
    class_name: str = ""
    help_text: str = ""
    patterns: Tuple[Pattern, ...] = ()
    properties: Tuple[Property, ...] = (Property.CONTROL, Property.CONTENT, Property.ENABLED)
    children: List["SimElement"] = field(default_factory=list)
    state: Dict[str, Any] = field(default_factory=dict)
    fail_describe: bool = False
    fail_children: bool = False
    fail_sibling: bool = False
    parent: Optional["SimElement"] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        for child in self.children:
            child.parent = self

    def add(self, child: "SimElement") -> "SimElement":
        child.parent = self
        self.children.append(child)
        return child

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimElement":
        return cls(
            control_type=data.get("controlType", "Pane"),
            name=data.get("name", ""),
            automation_id=data.get("automationId", ""),
            class_name=data.get("className", ""),
            help_text=data.get("helpText", ""),
            patterns=tuple(Pattern(p) for p in data.get("patterns", [])),
            properties=tuple(Property(p) for p in data.get("properties", ["Control", "Content", "Enabled"])),
            children=[cls.from_dict(c) for c in data.get("children", [])],
            state=dict(data.get("state", {})),
            fail_describe=bool(data.get("failDescribe", False)),
            fail_children=bool(data.get("failChildren", False)),
            fail_sibling=bool(data.get("failSibling", False)),
        )


def demo_desktop() -> SimElement:
    """A small desktop: one editor window with a menu, a text area and a few controls."""
    window_state = {"visual_state": "normal", "responsive": True, "can_move": True, "can_resize": True,
                    "can_maximize": True, "can_minimize": True, "modal": False}
    return SimElement(
        control_type="Pane",
        name="Desktop 1",
        class_name="#32769",
        children=[
            SimElement(
                control_type="Window",
                name="Untitled - Notepad",
                class_name="Notepad",
                patterns=(Pattern.TRANSFORM, Pattern.WINDOW),
                state=window_state,
                children=[
                    SimElement(
                        control_type="Pane",
                        children=[
                            SimElement(
                                control_type="MenuBar",
                                automation_id="MenuBar",
                                children=[
                                    SimElement(control_type="MenuItem", name="File",
                                               patterns=(Pattern.EXPAND_COLLAPSE,),
                                               state={"expand": "collapsed"}),
                                    SimElement(control_type="MenuItem", name="Edit",
                                               patterns=(Pattern.EXPAND_COLLAPSE,),
                                               state={"expand": "collapsed"}),
                                ],
                            ),
                        ],
                    ),
                    SimElement(control_type="Document", automation_id="15", class_name="Edit",
                               patterns=(Pattern.VALUE, Pattern.TEXT), state={"value": ""}),
                    SimElement(control_type="CheckBox", name="Word wrap",
                               patterns=(Pattern.TOGGLE,), state={"toggle": "off"}),
                    SimElement(control_type="Group", children=[SimElement(control_type="Separator")]),
                    SimElement(control_type="Button", name="Close", patterns=(Pattern.INVOKE,),
                               state={"invocations": 0}),
                ],
            ),
            SimElement(control_type="Pane", class_name="Shell_TrayWnd", properties=(Property.OFFSCREEN,)),
        ],
    )


class SimConnector(DesktopConnector):
    name = "sim"

    def __init__(self, root: Optional[SimElement] = None, screen_size: Tuple[int, int] = (1920, 1080),
                 fail_root: bool = False) -> None:
        self.root = root if root is not None else demo_desktop()
        self.screen_size = screen_size
        self.fail_root = fail_root
        self.calls: List[Tuple[str, str]] = []

    def root_element(self) -> SimElement:
        if self.fail_root:
            raise SimElementError("desktop root is not available")
        return self.root

    def first_child(self, element: SimElement) -> Optional[SimElement]:
        if element.fail_children:
            raise SimElementError(f"cannot read children of {element.control_type}")
        return element.children[0] if element.children else None

    def next_sibling(self, element: SimElement) -> Optional[SimElement]:
        if element.fail_sibling:
            raise SimElementError(f"cannot read sibling of {element.control_type}")
        parent = element.parent
        if parent is None:
            return None
        siblings = parent.children
        idx = next(i for i, s in enumerate(siblings) if s is element)
        return siblings[idx + 1] if idx + 1 < len(siblings) else None

    def describe(self, element: SimElement) -> ElementInfo:
        if element.fail_describe:
            raise SimElementError(f"element {element.control_type} is not responding")
        return ElementInfo(
            control_type=element.control_type,
            name=element.name,
            automation_id=element.automation_id,
            class_name=element.class_name,
            help_text=element.help_text,
            patterns=frozenset(element.patterns),
            properties=frozenset(element.properties),
        )

    def _require(self, element: SimElement, pattern: Pattern) -> None:
        if pattern not in element.patterns:
            raise ActionError(f"{pattern.value} pattern is not available on {element.control_type}")

    def _record(self, element: SimElement, call: str) -> None:
        self.calls.append((call, element.name or element.control_type))

    def _wait_for_input_idle(self, element: SimElement) -> None:
        if not element.state.get("responsive", True):
            raise ActionError(f"{element.name or element.control_type} is not responding")

    def expand_or_collapse(self, element: SimElement, state: ExpandCollapseState) -> None:
        self._require(element, Pattern.EXPAND_COLLAPSE)
        current = element.state.get("expand", "collapsed")
        if current == "leaf" or current == state.value:
            return
        element.state["expand"] = state.value
        self._record(element, f"expand_or_collapse:{state.value}")

    def invoke(self, element: SimElement) -> None:
        self._require(element, Pattern.INVOKE)
        element.state["invocations"] = element.state.get("invocations", 0) + 1
        self._record(element, "invoke")

    def toggle(self, element: SimElement) -> None:
        self._require(element, Pattern.TOGGLE)
        element.state["toggle"] = "off" if element.state.get("toggle") == "on" else "on"
        self._record(element, "toggle")

    def arrange(self, element: SimElement, position: ArrangePosition) -> None:
        self._require(element, Pattern.TRANSFORM)
        if not element.state.get("can_move", True) or not element.state.get("can_resize", True):
            raise ActionError(f"cannot move or resize {element.name or element.control_type}")
        x, y, w, h = arrange_geometry(position, *self.screen_size)
        element.state["position"] = (x, y)
        if w is not None:
            element.state["size"] = (w, h)
        self._record(element, f"arrange:{position.value}")

    def set_value(self, element: SimElement, value: str) -> None:
        self._require(element, Pattern.VALUE)
        if element.state.get("read_only"):
            raise ActionError(f"{element.name or element.control_type} is read-only")
        element.state["value"] = value
        self._record(element, "set_value")

    def set_window_visual_state(self, element: SimElement, state: WindowVisualState) -> None:
        self._require(element, Pattern.WINDOW)
        self._wait_for_input_idle(element)
        modal = element.state.get("modal", False)
        if state is WindowVisualState.MAXIMIZED and (modal or not element.state.get("can_maximize", True)):
            return
        if state is WindowVisualState.MINIMIZED and (modal or not element.state.get("can_minimize", True)):
            return
        element.state["visual_state"] = state.value
        self._record(element, f"set_window_visual_state:{state.value}")

    def close_window(self, element: SimElement) -> None:
        self._require(element, Pattern.WINDOW)
        self._wait_for_input_idle(element)
        element.state["closed"] = True
        self._record(element, "close_window")
