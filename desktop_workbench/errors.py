from __future__ import annotations


class WorkbenchError(RuntimeError):
    """Base class for errors raised by the workbench."""


class ActionError(WorkbenchError):
    """A capability call on a live element failed."""


class ProviderError(WorkbenchError):
    """The language-model client could not produce a reply."""
