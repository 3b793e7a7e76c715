"""Tests for level-of-information classification."""

from __future__ import annotations

import random

from conftest import make_item

from desktop_workbench.classifier import classify
from desktop_workbench.items import LevelOfInformation, Pattern

FULL = LevelOfInformation.FULL
CONNECTOR = LevelOfInformation.CONNECTOR
NONE = LevelOfInformation.NONE


def random_tree(rng: random.Random, depth: int = 0):
    name = rng.choice(["", "", "Label"])
    patterns = rng.choice([(), (), (Pattern.INVOKE,), (Pattern.VALUE, Pattern.TEXT)])
    children = [] if depth >= 4 else [random_tree(rng, depth + 1) for _ in range(rng.randint(0, 3))]
    return make_item(f"{depth}-{rng.random()}", name=name, patterns=patterns, children=children)


class TestClassify:
    def test_named_leaf_is_full(self):
        assert classify(make_item("a", name="OK")) is FULL

    def test_leaf_with_pattern_is_full(self):
        assert classify(make_item("a", patterns=[Pattern.INVOKE])) is FULL

    def test_empty_leaf_is_none(self):
        assert classify(make_item("a")) is NONE

    def test_parent_of_full_child_is_connector(self):
        root = make_item("p", children=[make_item("c", name="OK")])
        assert classify(root) is CONNECTOR

    def test_parent_of_connector_is_connector(self):
        root = make_item("g", children=[make_item("p", children=[make_item("c", name="OK")])])
        assert classify(root) is CONNECTOR
        assert root.children[0].classification is CONNECTOR

    def test_parent_of_only_none_children_is_none(self):
        root = make_item("p", children=[make_item("a"), make_item("b")])
        assert classify(root) is NONE

    def test_most_informative_child_wins(self):
        root = make_item("p", children=[make_item("a"), make_item("b", children=[make_item("c", name="x")])])
        assert classify(root) is CONNECTOR

    def test_own_information_beats_children(self):
        root = make_item("p", name="Panel", children=[make_item("a")])
        assert classify(root) is FULL
        assert root.children[0].classification is NONE

    def test_levels_are_ordered(self):
        assert FULL < CONNECTOR < NONE

    def test_every_node_classified_and_full_iff_informative(self):
        rng = random.Random(7)
        for _ in range(50):
            tree = random_tree(rng)
            classify(tree)
            for node in tree.iter_items():
                assert node.classification is not LevelOfInformation.UNKNOWN
                informative = bool(node.name) or bool(node.available_patterns)
                assert (node.classification is FULL) == informative

    def test_demo_desktop(self, session):
        snap = session.scan()
        levels = {item.id: item.classification for item in snap.index.values()}
        assert levels["n1"] is FULL  # desktop, named
        assert levels["n3"] is CONNECTOR  # unnamed pane above the menu bar
        assert levels["n4"] is CONNECTOR  # menu bar
        assert levels["n9"] is NONE  # group holding a separator
        assert levels["n12"] is NONE  # tray
