from __future__ import annotations

from .items import Item, LevelOfInformation


def classify(item: Item) -> LevelOfInformation:
    """Assign a level of information to every node, children before parents.

    A node with a name or any available pattern is FULL. Otherwise it takes
    the most informative level among its children, except that a node above
    a FULL child becomes a CONNECTOR. A node without children aggregates to
    NONE.
    """
    aggregate = LevelOfInformation.NONE
    for child in item.children:
        aggregate = min(aggregate, classify(child))

    if item.name or item.available_patterns:
        item.classification = LevelOfInformation.FULL
    elif aggregate is LevelOfInformation.FULL:
        item.classification = LevelOfInformation.CONNECTOR
    else:
        item.classification = aggregate
    return item.classification
