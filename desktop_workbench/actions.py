"""Action protocol: the capability table, typed action variants and the reply parser.

The model's reply is untrusted text. ``extract_actions`` turns it into
deferred ``Command`` objects that are validated against the resolved item's
available patterns, together with a list of human-readable errors. Nothing
is executed here; see ``dispatch.execute_commands``.
"""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Dict, List, Mapping, Optional, Sequence, Tuple, Type

from .items import Item, Pattern

if TYPE_CHECKING:
    from .connectors.base import DesktopConnector

logger = logging.getLogger(__name__)


class ExpandCollapseState(str, enum.Enum):
    EXPANDED = "expanded"
    COLLAPSED = "collapsed"


class ArrangePosition(str, enum.Enum):
    LEFT = "left"
    RIGHT = "right"
    TOP = "top"
    BOTTOM = "bottom"
    CENTER = "center"


class WindowVisualState(str, enum.Enum):
    MAXIMIZED = "maximized"
    MINIMIZED = "minimized"
    NORMAL = "normal"


class ParameterError(ValueError):
    pass


def _lookup(vocabulary: Type[enum.Enum], action: str, raw: str) -> Any:
    for member in vocabulary:
        if member.value == raw.lower():
            return member
    raise ParameterError(f"invalid parameter for {action}: {raw}")


class Action:
    """Base of the closed set of actions a model may request.

    Each subclass is one row of the capability table: the action name, the
    pattern the target must expose, the exact parameter count and, when the
    parameter is enumerated, its vocabulary.
    """

    name: ClassVar[str]
    pattern: ClassVar[Pattern]
    arity: ClassVar[int] = 0
    vocabulary: ClassVar[Optional[Type[enum.Enum]]] = None

    @classmethod
    def from_params(cls, params: Sequence[str]) -> "Action":
        return cls()

    def apply(self, connector: "DesktopConnector", element: Any) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @property
    def params(self) -> List[str]:
        return []

    def __str__(self) -> str:
        if not self.params:
            return self.name
        return f"{self.name}({', '.join(self.params)})"


@dataclass(frozen=True)
class ExpandOrCollapse(Action):
    state: ExpandCollapseState

    name: ClassVar[str] = "ExpandOrCollapse"
    pattern: ClassVar[Pattern] = Pattern.EXPAND_COLLAPSE
    arity: ClassVar[int] = 1
    vocabulary: ClassVar[Optional[Type[enum.Enum]]] = ExpandCollapseState

    @classmethod
    def from_params(cls, params: Sequence[str]) -> "ExpandOrCollapse":
        return cls(_lookup(ExpandCollapseState, cls.name, params[0]))

    def apply(self, connector: "DesktopConnector", element: Any) -> None:
        connector.expand_or_collapse(element, self.state)

    @property
    def params(self) -> List[str]:
        return [self.state.value]


@dataclass(frozen=True)
class Invoke(Action):
    name: ClassVar[str] = "Invoke"
    pattern: ClassVar[Pattern] = Pattern.INVOKE

    def apply(self, connector: "DesktopConnector", element: Any) -> None:
        connector.invoke(element)


@dataclass(frozen=True)
class Toggle(Action):
    name: ClassVar[str] = "Toggle"
    pattern: ClassVar[Pattern] = Pattern.TOGGLE

    def apply(self, connector: "DesktopConnector", element: Any) -> None:
        connector.toggle(element)


@dataclass(frozen=True)
class Arrange(Action):
    position: ArrangePosition

    name: ClassVar[str] = "Arrange"
    pattern: ClassVar[Pattern] = Pattern.TRANSFORM
    arity: ClassVar[int] = 1
    vocabulary: ClassVar[Optional[Type[enum.Enum]]] = ArrangePosition

    @classmethod
    def from_params(cls, params: Sequence[str]) -> "Arrange":
        return cls(_lookup(ArrangePosition, cls.name, params[0]))

    def apply(self, connector: "DesktopConnector", element: Any) -> None:
        connector.arrange(element, self.position)

    @property
    def params(self) -> List[str]:
        return [self.position.value]


@dataclass(frozen=True)
class SetValue(Action):
    value: str

    name: ClassVar[str] = "SetValue"
    pattern: ClassVar[Pattern] = Pattern.VALUE
    arity: ClassVar[int] = 1

    @classmethod
    def from_params(cls, params: Sequence[str]) -> "SetValue":
        # Free text: no vocabulary check.
        return cls(params[0])

    def apply(self, connector: "DesktopConnector", element: Any) -> None:
        connector.set_value(element, self.value)

    @property
    def params(self) -> List[str]:
        return [self.value]


@dataclass(frozen=True)
class SetWindowVisualState(Action):
    state: WindowVisualState

    name: ClassVar[str] = "SetWindowVisualState"
    pattern: ClassVar[Pattern] = Pattern.WINDOW
    arity: ClassVar[int] = 1
    vocabulary: ClassVar[Optional[Type[enum.Enum]]] = WindowVisualState

    @classmethod
    def from_params(cls, params: Sequence[str]) -> "SetWindowVisualState":
        return cls(_lookup(WindowVisualState, cls.name, params[0]))

    def apply(self, connector: "DesktopConnector", element: Any) -> None:
        connector.set_window_visual_state(element, self.state)

    @property
    def params(self) -> List[str]:
        return [self.state.value]


@dataclass(frozen=True)
class CloseWindow(Action):
    name: ClassVar[str] = "CloseWindow"
    pattern: ClassVar[Pattern] = Pattern.WINDOW

    def apply(self, connector: "DesktopConnector", element: Any) -> None:
        connector.close_window(element)


ACTION_TYPES: Tuple[Type[Action], ...] = (
    ExpandOrCollapse,
    Invoke,
    Toggle,
    Arrange,
    SetValue,
    SetWindowVisualState,
    CloseWindow,
)

_ACTIONS_BY_NAME: Dict[str, Type[Action]] = {a.name.lower(): a for a in ACTION_TYPES}


def capability_table() -> List[Dict[str, Any]]:
    """Rows of the capability table, in declaration order."""
    rows = []
    for action_type in ACTION_TYPES:
        if action_type.vocabulary is not None:
            vocabulary = [m.value for m in action_type.vocabulary]
        elif action_type.arity:
            vocabulary = ["(free text)"]
        else:
            vocabulary = []
        rows.append({
            "pattern": action_type.pattern.value,
            "action": action_type.name,
            "params": action_type.arity,
            "vocabulary": vocabulary,
        })
    return rows


@dataclass(frozen=True)
class Command:
    """A validated action bound to a snapshot item, not yet executed."""

    item: Item
    action: Action
    generation: int = 0

    @property
    def item_id(self) -> str:
        return self.item.id

    def describe(self) -> str:
        return f"{self.action} -> {self.item.display_text}"

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.item.id, "action": self.action.name, "params": self.action.params}


def build_command(item: Item, action_name: str, params: Sequence[str], generation: int = 0) -> Command:
    """Validate one request against the capability table. Raises ``ParameterError``."""
    action_type = _ACTIONS_BY_NAME.get(action_name.lower())
    if action_type is None:
        raise ParameterError(f"unknown action {action_name}")
    if not item.has_pattern(action_type.pattern):
        raise ParameterError(f"{action_type.pattern.value} is not available for item {item.id}")
    if len(params) != action_type.arity:
        raise ParameterError(
            f"{action_type.name} requires {action_type.arity} parameter(s), but {len(params)} were provided"
        )
    return Command(item=item, action=action_type.from_params(params), generation=generation)


def _non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def extract_actions(
    reply: Optional[str], index: Mapping[str, Item], generation: int = 0
) -> Tuple[List[Command], List[str]]:
    """Parse a model reply into deferred commands plus non-fatal errors.

    A malformed entry in ``actions`` is reported and skipped; the other
    entries are still processed.
    """
    commands: List[Command] = []
    errors: List[str] = []

    if reply is None or not reply.strip():
        errors.append("response is empty")
        return commands, errors

    try:
        doc = json.loads(reply)
    except (json.JSONDecodeError, RecursionError) as e:
        errors.append(f"response is not valid JSON: {e}")
        return commands, errors

    if not isinstance(doc, dict):
        errors.append("response is not a JSON object")
        return commands, errors
    if "actions" not in doc:
        errors.append("response has no actions field")
        return commands, errors
    entries = doc["actions"]
    if not isinstance(entries, list):
        errors.append("actions is not an array")
        return commands, errors

    for index_no, entry in enumerate(entries):
        prefix = f"action #{index_no}: "
        if not isinstance(entry, dict):
            errors.append(prefix + "is not an object")
            continue
        item_id = entry.get("id")
        if not _non_empty_string(item_id):
            errors.append(prefix + "id is missing or not a non-empty string")
            continue
        action_name = entry.get("action")
        if not _non_empty_string(action_name):
            errors.append(prefix + "action is missing or not a non-empty string")
            continue
        params = entry.get("params", [])
        if params is None:
            params = []
        if not isinstance(params, list) or not all(isinstance(p, str) for p in params):
            errors.append(prefix + "params is not an array of strings")
            continue

        item = index.get(item_id.strip())
        if item is None:
            errors.append(prefix + f"unknown id {item_id}")
            continue
        try:
            command = build_command(item, action_name.strip(), params, generation=generation)
        except ParameterError as e:
            errors.append(prefix + str(e))
            continue
        commands.append(command)

    logger.debug("Extracted %d command(s), %d error(s)", len(commands), len(errors))
    return commands, errors
