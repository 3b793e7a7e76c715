from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, List, Mapping, Optional, Tuple

from .actions import Command, extract_actions
from .classifier import classify
from .compactor import compact
from .connectors.base import DesktopConnector
from .dispatch import CommandOutcome, execute_commands
from .errors import WorkbenchError
from .items import Item
from .scanner import DEFAULT_MAX_DEPTH, Scanner
from .serializers import serialize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    root: Item
    compact_root: Item
    index: Mapping[str, Item]
    generation: int
    retrieval_ms: float = 0.0
    total_nodes: int = 0


class WorkbenchSession:
    """Owns the current snapshot of the desktop.

    A scan builds the whole tree, index and compact tree first and then
    publishes them with a single reference assignment, so readers holding
    the previous snapshot never see a half-built one.
    """

    def __init__(self, connector: DesktopConnector, max_depth: int = DEFAULT_MAX_DEPTH,
                 fmt: str = "yaml-compact", id_factory: Optional[Callable[[], str]] = None) -> None:
        self.connector = connector
        self.max_depth = max_depth
        self.fmt = fmt
        self.id_factory = id_factory
        self._snapshot: Optional[Snapshot] = None
        self._scan_lock = threading.Lock()
        self._executor_lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None

    @property
    def snapshot(self) -> Optional[Snapshot]:
        return self._snapshot

    def scan(self) -> Snapshot:
        with self._scan_lock:
            result = Scanner(self.connector, max_depth=self.max_depth, id_factory=self.id_factory).scan()
            classify(result.root)
            generation = self._snapshot.generation + 1 if self._snapshot else 1
            snap = Snapshot(
                root=result.root,
                compact_root=compact(result.root),
                index=MappingProxyType(dict(result.index)),
                generation=generation,
                retrieval_ms=result.retrieval_ms,
                total_nodes=result.total_nodes,
            )
            self._snapshot = snap
        logger.info("Published snapshot %d (%d nodes, %d compact)", snap.generation, snap.total_nodes,
                    snap.compact_root.size())
        return snap

    def scan_in_background(self) -> "Future[Snapshot]":
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="workbench-scan")
            return self._executor.submit(self.scan)

    def close(self) -> None:
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)

    def _require_snapshot(self) -> Snapshot:
        snap = self._snapshot
        if snap is None:
            raise WorkbenchError("No snapshot yet; run a scan first")
        return snap

    def context(self, scope_id: Optional[str] = None, compact_tree: bool = True, fmt: Optional[str] = None) -> str:
        snap = self._require_snapshot()
        if scope_id:
            scoped = snap.index.get(scope_id)
            if scoped is None:
                raise KeyError(f"No item found with ID: {scope_id}")
            tree = compact(scoped) if compact_tree else scoped
        else:
            tree = snap.compact_root if compact_tree else snap.root
        return serialize(tree, fmt or self.fmt)

    def extract_actions(self, reply: Optional[str]) -> Tuple[List[Command], List[str]]:
        snap = self._snapshot
        if snap is None:
            return [], ["no snapshot to resolve ids against"]
        return extract_actions(reply, snap.index, generation=snap.generation)

    def execute(self, commands: List[Command]) -> List[CommandOutcome]:
        snap = self._require_snapshot()
        return execute_commands(commands, self.connector, snap.index, generation=snap.generation)
