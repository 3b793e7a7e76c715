from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from .connectors.base import DesktopConnector
from .items import Item, new_item_id

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 5


@dataclass
class ScanResult:
    root: Item
    index: Dict[str, Item] = field(default_factory=dict)
    retrieval_ms: float = 0.0
    total_nodes: int = 0


class Scanner:
    """Depth-first walk of the provider's tree into ``Item`` nodes.

    Errors inside a branch end that branch; only a failure at the desktop
    root yields the error placeholder. ``scan`` never raises.
    """

    def __init__(self, connector: DesktopConnector, max_depth: int = DEFAULT_MAX_DEPTH,
                 id_factory: Optional[Callable[[], str]] = None) -> None:
        self.connector = connector
        self.max_depth = max(0, int(max_depth))
        self.id_factory = id_factory or new_item_id

    def scan(self) -> ScanResult:
        start = time.perf_counter()
        index: Dict[str, Item] = {}
        try:
            root_el = self.connector.root_element()
            root = self._collect(root_el, index, 0)
        except Exception as e:  # noqa: BLE001
            logger.error("Error scanning accessibility tree: %s", e)
            root = Item.from_error(str(e) or e.__class__.__name__)
            index = {}
        elapsed = (time.perf_counter() - start) * 1000.0
        total = len(index) if index else 1
        logger.info("Scanned %d element(s) in %.0f ms", total, elapsed)
        return ScanResult(root=root, index=index, retrieval_ms=elapsed, total_nodes=total)

    def _collect(self, element: Any, index: Dict[str, Item], depth: int) -> Item:
        item = Item.from_info(self.connector.describe(element), element, item_id=self.id_factory())
        index[item.id] = item
        if depth >= self.max_depth:
            return item

        try:
            child = self.connector.first_child(element)
        except Exception as e:  # noqa: BLE001
            logger.debug("Cannot walk children of %s: %s", item.control_type, e)
            return item

        while child is not None:
            try:
                item.children.append(self._collect(child, index, depth + 1))
            except Exception as e:  # noqa: BLE001
                logger.debug("Skipping child of %s: %s", item.control_type, e)
            try:
                child = self.connector.next_sibling(child)
            except Exception as e:  # noqa: BLE001
                logger.debug("Sibling walk under %s ended: %s", item.control_type, e)
                break
        return item


def scan(connector: DesktopConnector, max_depth: int = DEFAULT_MAX_DEPTH,
         id_factory: Optional[Callable[[], str]] = None) -> ScanResult:
    return Scanner(connector, max_depth=max_depth, id_factory=id_factory).scan()
