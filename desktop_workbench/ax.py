from __future__ import annotations

import time
from typing import Any, List, Optional

from AppKit import NSScreen, NSWorkspace
from ApplicationServices import (
    AXIsProcessTrusted,
    AXUIElementCopyActionNames,
    AXUIElementCopyAttributeValue,
    AXUIElementCreateApplication,
    AXUIElementIsAttributeSettable,
    AXUIElementPerformAction,
    AXUIElementSetAttributeValue,
    AXValueCreate,
    kAXChildrenAttribute,
    kAXParentAttribute,
    kAXRoleAttribute,
    kAXTitleAttribute,
    kAXValueCGPointType,
    kAXValueCGSizeType,
)
from CoreFoundation import CFEqual
from Quartz import CGPointMake, CGSizeMake

AXElement = Any


class AXFinder:
    """Thin wrapper over the macOS Accessibility C API.

    Reads return ``None`` (or empty lists) when the element refuses the
    request; writes return ``False``.
    """

    def is_accessibility_enabled(self) -> bool:
        return bool(AXIsProcessTrusted())

    def get_frontmost_app_bundle_id(self) -> Optional[str]:
        app = NSWorkspace.sharedWorkspace().frontmostApplication()
        if app is None:
            return None
        return app.bundleIdentifier()

    def frontmost_app(self) -> AXElement:
        app = NSWorkspace.sharedWorkspace().frontmostApplication()
        if app is None:
            raise RuntimeError("No frontmost application")
        return AXUIElementCreateApplication(app.processIdentifier())

    def copy_attribute(self, element: AXElement, attribute: str) -> Any:
        try:
            err, value = AXUIElementCopyAttributeValue(element, attribute, None)
            if err:
                return None
            return value
        except Exception:  # noqa: BLE001
            return None

    def set_attribute(self, element: AXElement, attribute: str, value: Any) -> bool:
        try:
            err = AXUIElementSetAttributeValue(element, attribute, value)
            return not bool(err)
        except Exception:  # noqa: BLE001
            return False

    def is_settable(self, element: AXElement, attribute: str) -> bool:
        try:
            err, settable = AXUIElementIsAttributeSettable(element, attribute, None)
            return not err and bool(settable)
        except Exception:  # noqa: BLE001
            return False

    def get_actions(self, element: AXElement) -> List[str]:
        try:
            err, actions = AXUIElementCopyActionNames(element, None)
            if err or actions is None:
                return []
            return list(actions)
        except Exception:  # noqa: BLE001
            return []

    def perform_action(self, element: AXElement, action: str) -> bool:
        try:
            err = AXUIElementPerformAction(element, action)
            return not bool(err)
        except Exception:  # noqa: BLE001
            return False

    def children(self, element: AXElement) -> List[AXElement]:
        err, value = AXUIElementCopyAttributeValue(element, kAXChildrenAttribute, None)
        if err:
            raise RuntimeError(f"AX error {err} reading children")
        return list(value or [])

    def parent(self, element: AXElement) -> Optional[AXElement]:
        return self.copy_attribute(element, kAXParentAttribute)

    def index_in(self, siblings: List[AXElement], element: AXElement) -> int:
        for i, s in enumerate(siblings):
            if CFEqual(s, element):
                return i
        raise RuntimeError("Element is no longer among its parent's children")

    def role(self, element: AXElement) -> str:
        err, role = AXUIElementCopyAttributeValue(element, kAXRoleAttribute, None)
        if err:
            raise RuntimeError(f"AX error {err} reading role")
        return str(role) if role else ""

    def title(self, element: AXElement) -> str:
        title = self.copy_attribute(element, kAXTitleAttribute)
        return str(title) if title else ""

    def wait_until_responsive(self, element: AXElement, timeout_seconds: float) -> bool:
        end = time.time() + timeout_seconds
        while True:
            try:
                self.role(element)
                return True
            except Exception:  # noqa: BLE001
                if time.time() >= end:
                    return False
            time.sleep(0.1)

    def set_frame(self, element: AXElement, x: float, y: float, w: Optional[float], h: Optional[float]) -> bool:
        ok = self.set_attribute(element, "AXPosition", AXValueCreate(kAXValueCGPointType, CGPointMake(x, y)))
        if w is not None and h is not None:
            ok = self.set_attribute(element, "AXSize", AXValueCreate(kAXValueCGSizeType, CGSizeMake(w, h))) and ok
        return ok

    def screen_size(self) -> tuple:
        frame = NSScreen.mainScreen().frame()
        return (float(frame.size.width), float(frame.size.height))
