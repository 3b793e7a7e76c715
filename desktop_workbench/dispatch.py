from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .actions import Command
from .connectors.base import DesktopConnector
from .items import Item

logger = logging.getLogger(__name__)


@dataclass
class CommandOutcome:
    command: Command
    ok: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out = self.command.to_dict()
        out.update({"ok": self.ok, "error": self.error})
        return out


def execute_commands(
    commands: Sequence[Command],
    connector: DesktopConnector,
    index: Mapping[str, Item],
    generation: int = 0,
) -> List[CommandOutcome]:
    """Run deferred commands in order; a failing command does not stop the rest.

    The live element is looked up through ``index`` rather than taken from the
    command, so only commands issued against ``generation`` are run.
    """
    results: List[CommandOutcome] = []
    for command in commands:
        if command.generation != generation:
            stale = f"stale command from snapshot {command.generation}"
            logger.warning("Refusing %s: %s", command.describe(), stale)
            results.append(CommandOutcome(command, ok=False, error=stale))
            continue
        error: Optional[str] = None
        try:
            item = index.get(command.item_id)
            if item is None or item.element is None:
                raise LookupError(f"no live element for item {command.item_id}")
            logger.info("Executing %s", command.describe())
            command.action.apply(connector, item.element)
        except Exception as e:  # noqa: BLE001
            error = str(e) or e.__class__.__name__
            logger.warning("Error executing %s: %s", command.describe(), error)
        results.append(CommandOutcome(command, ok=error is None, error=error))
    return results
