from __future__ import annotations

import enum
import itertools
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, FrozenSet, Iterator, List, Optional


class Pattern(str, enum.Enum):
    """Capability patterns an element may expose. Declaration order is the serialization order."""

    DOCK = "Dock"
    EXPAND_COLLAPSE = "ExpandCollapse"
    GRID = "Grid"
    GRID_ITEM = "GridItem"
    INVOKE = "Invoke"
    ITEM_CONTAINER = "ItemContainer"
    MULTIPLE_VIEW = "MultipleView"
    RANGE_VALUE = "RangeValue"
    SCROLL_ITEM = "ScrollItem"
    SCROLL = "Scroll"
    SELECTION_ITEM = "SelectionItem"
    SELECTION = "Selection"
    SYNC_INPUT = "SyncInput"
    TABLE_ITEM = "TableItem"
    TABLE = "Table"
    TEXT = "Text"
    TOGGLE = "Toggle"
    TRANSFORM = "Transform"
    VALUE = "Value"
    VIRT_ITEM = "VirtItem"
    WINDOW = "Window"

    def __str__(self) -> str:
        return self.value


class Property(str, enum.Enum):
    CONTENT = "Content"
    CONTROL = "Control"
    DIALOG = "Dialog"
    ENABLED = "Enabled"
    OFFSCREEN = "Offscreen"

    def __str__(self) -> str:
        return self.value


class LevelOfInformation(enum.IntEnum):
    """How much a node is worth showing to a model. Lower is more informative."""

    UNKNOWN = 0
    FULL = 1
    CONNECTOR = 2
    NONE = 3


def new_item_id() -> str:
    return uuid.uuid4().hex[:12]


def sequential_ids(prefix: str = "n") -> Callable[[], str]:
    """Id factory yielding n1, n2, ... so repeated scans of the same tree agree."""
    counter = itertools.count(1)
    return lambda: f"{prefix}{next(counter)}"


def ordered_tags(tags) -> List[str]:
    """Tag names in enum declaration order, independent of set iteration order."""
    if not tags:
        return []
    order = {t: i for i, t in enumerate(type(next(iter(tags))))}
    return [str(t) for t in sorted(tags, key=order.__getitem__)]


@dataclass
class ElementInfo:
    """Static attributes read once from a live element."""

    control_type: str = ""
    name: str = ""
    automation_id: str = ""
    class_name: str = ""
    help_text: str = ""
    patterns: FrozenSet[Pattern] = frozenset()
    properties: FrozenSet[Property] = frozenset()


@dataclass(eq=False)
class Item:
    """A node of an accessibility snapshot."""

    id: str = field(default_factory=new_item_id)
    control_type: str = ""
    name: str = ""
    automation_id: str = ""
    class_name: str = ""
    help_text: str = ""
    available_patterns: FrozenSet[Pattern] = frozenset()
    properties: FrozenSet[Property] = frozenset()
    classification: LevelOfInformation = LevelOfInformation.UNKNOWN
    children: List["Item"] = field(default_factory=list)
    # Borrowed handle to the live element; never owned, never disposed here.
    element: Any = field(default=None, repr=False)
    is_error: bool = False

    @classmethod
    def from_info(cls, info: ElementInfo, element: Any, item_id: Optional[str] = None) -> "Item":
        return cls(
            id=item_id or new_item_id(),
            control_type=info.control_type or "",
            name=info.name or "",
            automation_id=info.automation_id or "",
            class_name=info.class_name or "",
            help_text=info.help_text or "",
            available_patterns=frozenset(info.patterns),
            properties=frozenset(info.properties),
            element=element,
        )

    @classmethod
    def from_error(cls, message: str) -> "Item":
        return cls(control_type="Error", name=message, is_error=True)

    def copy(self) -> "Item":
        """Metadata copy with the same id, no children and no element handle."""
        return Item(
            id=self.id,
            control_type=self.control_type,
            name=self.name,
            automation_id=self.automation_id,
            class_name=self.class_name,
            help_text=self.help_text,
            available_patterns=self.available_patterns,
            properties=self.properties,
            classification=self.classification,
            is_error=self.is_error,
        )

    def has_pattern(self, pattern: Pattern) -> bool:
        return pattern in self.available_patterns

    def iter_items(self) -> Iterator["Item"]:
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def size(self) -> int:
        return sum(1 for _ in self.iter_items())

    @property
    def display_text(self) -> str:
        details = []
        if self.name:
            details.append(f"name: {self.name}")
        if self.automation_id:
            details.append(f"automation id: {self.automation_id}")
        if self.class_name:
            details.append(f"class name: {self.class_name}")
        patterns = ", ".join(ordered_tags(self.available_patterns)) or "-"
        return (
            f"{self.control_type} | details: {', '.join(details) or '-'}"
            f" | properties: {', '.join(ordered_tags(self.properties))}"
            f" | patterns: {patterns} | id: {self.id}"
        )
