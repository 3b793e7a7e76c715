from __future__ import annotations

from typing import List

from .items import Item, LevelOfInformation


def _flatten(item: Item) -> List[Item]:
    if item.classification is LevelOfInformation.NONE:
        return []
    kept: List[Item] = []
    for child in item.children:
        kept.extend(_flatten(child))
    if item.classification is not LevelOfInformation.FULL:
        # Connector: splice the informative descendants into the parent.
        return kept
    copy = item.copy()
    copy.children = kept
    return [copy]


def compact(root: Item) -> Item:
    """Copy of ``root`` without NONE subtrees and with CONNECTOR nodes spliced out.

    The root itself is always kept so the result has exactly one root.
    Expects ``classify`` to have run on ``root``.
    """
    anchor = root.copy()
    for child in root.children:
        anchor.children.extend(_flatten(child))
    return anchor
