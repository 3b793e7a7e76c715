"""Tests for the action protocol: capability table, reply parsing and validation."""

from __future__ import annotations

import json

import pytest
from conftest import make_item

from desktop_workbench.actions import (
    ACTION_TYPES,
    Arrange,
    ArrangePosition,
    CloseWindow,
    ExpandCollapseState,
    ExpandOrCollapse,
    Invoke,
    ParameterError,
    SetValue,
    SetWindowVisualState,
    WindowVisualState,
    build_command,
    capability_table,
    extract_actions,
)
from desktop_workbench.items import Pattern


def _reply(*actions) -> str:
    return json.dumps({"actions": list(actions)})


def _index(*items):
    return {item.id: item for item in items}


# ---------------------------------------------------------------------------
# Capability table
# ---------------------------------------------------------------------------


class TestCapabilityTable:
    def test_rows(self):
        rows = {(r["action"], r["pattern"], r["params"]) for r in capability_table()}
        assert rows == {
            ("ExpandOrCollapse", "ExpandCollapse", 1),
            ("Invoke", "Invoke", 0),
            ("Toggle", "Toggle", 0),
            ("Arrange", "Transform", 1),
            ("SetValue", "Value", 1),
            ("SetWindowVisualState", "Window", 1),
            ("CloseWindow", "Window", 0),
        }

    def test_vocabularies(self):
        vocab = {r["action"]: r["vocabulary"] for r in capability_table()}
        assert vocab["ExpandOrCollapse"] == ["expanded", "collapsed"]
        assert vocab["Arrange"] == ["left", "right", "top", "bottom", "center"]
        assert vocab["SetWindowVisualState"] == ["maximized", "minimized", "normal"]
        assert vocab["Invoke"] == []

    def test_one_variant_per_row(self):
        assert len(ACTION_TYPES) == len(capability_table()) == 7


# ---------------------------------------------------------------------------
# Reply-level errors
# ---------------------------------------------------------------------------


class TestReplyErrors:
    @pytest.mark.parametrize("reply", ["", "   ", None])
    def test_empty(self, reply):
        assert extract_actions(reply, {}) == ([], ["response is empty"])

    def test_no_actions_field(self):
        assert extract_actions("{}", {}) == ([], ["response has no actions field"])

    def test_not_json(self):
        commands, errors = extract_actions("click the button", {})
        assert commands == []
        assert len(errors) == 1
        assert errors[0].startswith("response is not valid JSON")

    def test_deeply_nested_reply(self):
        reply = '{"actions": [' + "[" * 100000 + "]" * 100000 + "]}"
        commands, errors = extract_actions(reply, {})
        assert commands == []
        assert len(errors) == 1
        assert errors[0].startswith("response is not valid JSON")

    def test_not_an_object(self):
        assert extract_actions("[]", {}) == ([], ["response is not a JSON object"])

    def test_actions_not_array(self):
        assert extract_actions('{"actions": {}}', {}) == ([], ["actions is not an array"])

    def test_empty_actions(self):
        assert extract_actions('{"actions": []}', {}) == ([], [])


# ---------------------------------------------------------------------------
# Entry-level validation
# ---------------------------------------------------------------------------


class TestEntries:
    def test_missing_capability(self, invoke_only):
        commands, errors = extract_actions(_reply({"id": "X", "action": "Toggle"}), _index(invoke_only))
        assert commands == []
        assert errors == ["action #0: Toggle is not available for item X"]

    def test_partial_success(self, invoke_only):
        reply = _reply({"id": "X", "action": "Invoke"}, {"id": "bad", "action": "Invoke"})
        commands, errors = extract_actions(reply, _index(invoke_only))
        assert [c.item_id for c in commands] == ["X"]
        assert errors == ["action #1: unknown id bad"]

    def test_arity_mismatch(self, window_item):
        reply = _reply({"id": "W", "action": "Arrange", "params": ["left", "extra"]})
        commands, errors = extract_actions(reply, _index(window_item))
        assert commands == []
        assert errors == ["action #0: Arrange requires 1 parameter(s), but 2 were provided"]

    def test_invalid_parameter(self, window_item):
        reply = _reply({"id": "W", "action": "Arrange", "params": ["diagonal"]})
        _, errors = extract_actions(reply, _index(window_item))
        assert errors == ["action #0: invalid parameter for Arrange: diagonal"]

    def test_unknown_action(self, invoke_only):
        _, errors = extract_actions(_reply({"id": "X", "action": "DoubleClick"}), _index(invoke_only))
        assert errors == ["action #0: unknown action DoubleClick"]

    def test_entry_not_object(self):
        _, errors = extract_actions('{"actions": [1]}', {})
        assert errors == ["action #0: is not an object"]

    @pytest.mark.parametrize("entry", [{"action": "Invoke"}, {"id": "", "action": "Invoke"}, {"id": 3, "action": "Invoke"}])
    def test_bad_id(self, entry, invoke_only):
        _, errors = extract_actions(_reply(entry), _index(invoke_only))
        assert errors == ["action #0: id is missing or not a non-empty string"]

    def test_bad_action(self, invoke_only):
        _, errors = extract_actions(_reply({"id": "X", "action": ""}), _index(invoke_only))
        assert errors == ["action #0: action is missing or not a non-empty string"]

    @pytest.mark.parametrize("params", ["left", [1], {"a": "b"}])
    def test_bad_params(self, params, window_item):
        _, errors = extract_actions(_reply({"id": "W", "action": "Arrange", "params": params}), _index(window_item))
        assert errors == ["action #0: params is not an array of strings"]

    @pytest.mark.parametrize("entry", [{"id": "X", "action": "Invoke"}, {"id": "X", "action": "Invoke", "params": None}])
    def test_params_optional(self, entry, invoke_only):
        commands, errors = extract_actions(_reply(entry), _index(invoke_only))
        assert len(commands) == 1 and errors == []

    def test_id_checked_before_action(self):
        _, errors = extract_actions(_reply({"id": "ghost", "action": "Teleport"}), {})
        assert errors == ["action #0: unknown id ghost"]

    def test_bad_entry_does_not_stop_later_ones(self, invoke_only):
        reply = _reply("junk", {"id": "X", "action": "Toggle"}, {"id": "X", "action": "Invoke"})
        commands, errors = extract_actions(reply, _index(invoke_only))
        assert len(commands) == 1
        assert [e.split(":")[0] for e in errors] == ["action #0", "action #1"]


# ---------------------------------------------------------------------------
# Typed parameters
# ---------------------------------------------------------------------------


class TestParameters:
    def test_vocabulary_case_insensitive(self, window_item):
        reply = _reply({"id": "W", "action": "SetWindowVisualState", "params": ["MAXIMIZED"]})
        commands, _ = extract_actions(reply, _index(window_item))
        assert commands[0].action == SetWindowVisualState(WindowVisualState.MAXIMIZED)

    def test_action_name_case_insensitive(self, invoke_only):
        commands, _ = extract_actions(_reply({"id": "X", "action": "invoke"}), _index(invoke_only))
        assert commands[0].action == Invoke()

    def test_set_value_accepts_any_text(self):
        doc = make_item("D", "Document", patterns=[Pattern.VALUE])
        for text in ["", "Hello, world", "  spaced  "]:
            commands, errors = extract_actions(_reply({"id": "D", "action": "SetValue", "params": [text]}), _index(doc))
            assert errors == []
            assert commands[0].action == SetValue(text)

    def test_expand_or_collapse(self):
        menu = make_item("M", "MenuItem", "File", patterns=[Pattern.EXPAND_COLLAPSE])
        commands, _ = extract_actions(_reply({"id": "M", "action": "ExpandOrCollapse", "params": ["collapsed"]}), _index(menu))
        assert commands[0].action.state is ExpandCollapseState.COLLAPSED

    def test_build_command_raises(self, invoke_only):
        with pytest.raises(ParameterError):
            build_command(invoke_only, "CloseWindow", [])


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class TestCommand:
    def test_carries_generation(self, window_item):
        commands, _ = extract_actions(_reply({"id": "W", "action": "CloseWindow"}), _index(window_item), generation=4)
        assert commands[0].generation == 4
        assert commands[0].action == CloseWindow()

    def test_to_dict(self, window_item):
        command = build_command(window_item, "Arrange", ["Left"])
        assert command.action == Arrange(ArrangePosition.LEFT)
        assert command.to_dict() == {"id": "W", "action": "Arrange", "params": ["left"]}

    def test_describe(self, window_item):
        command = build_command(window_item, "Arrange", ["right"])
        assert command.describe().startswith("Arrange(right) -> ")
        assert "Editor" in command.describe()

    def test_is_immutable(self, invoke_only):
        command = build_command(invoke_only, "Invoke", [])
        with pytest.raises(AttributeError):
            command.generation = 9

    def test_str_of_parameterless_action(self):
        assert str(ExpandOrCollapse(ExpandCollapseState.EXPANDED)) == "ExpandOrCollapse(expanded)"
        assert str(Invoke()) == "Invoke"
