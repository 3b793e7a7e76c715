"""Render an item tree as text for a model prompt.

Empty fields are left out and tag lists are written inline to keep the
context small. Field order is fixed so the same tree always yields the
same text.
"""

from __future__ import annotations

import json
from typing import Any, Dict

import yaml

from .items import Item, ordered_tags

VERBOSE_KEYS = ("id", "controlType", "name", "automationId", "className", "availablePatterns", "properties", "children")
COMPACT_KEYS = ("i", "ct", "n", "ai", "cn", "ap", "p", "c")

LEGEND = (
    "# Legend: i=Id, ct=ControlType, n=Name, ai=AutomationId, cn=ClassName, "
    "ap=AvailablePatterns, p=Properties, c=Children\n"
)

FORMATS = ("yaml", "yaml-compact", "json")


class _FlowList(list):
    pass


class _ContextDumper(yaml.SafeDumper):
    pass


def _represent_flow_list(dumper: yaml.SafeDumper, data: _FlowList) -> yaml.Node:
    return dumper.represent_sequence("tag:yaml.org,2002:seq", data, flow_style=True)


_ContextDumper.add_representer(_FlowList, _represent_flow_list)


def to_dict(item: Item, keys=VERBOSE_KEYS) -> Dict[str, Any]:
    values = (
        item.id,
        item.control_type,
        item.name,
        item.automation_id,
        item.class_name,
        _FlowList(ordered_tags(item.available_patterns)),
        _FlowList(ordered_tags(item.properties)),
        [to_dict(child, keys) for child in item.children],
    )
    out: Dict[str, Any] = {}
    for key, value in zip(keys, values):
        if value or key == keys[0]:
            out[key] = value
    return out


def _dump_yaml(data: Dict[str, Any]) -> str:
    return yaml.dump(
        data,
        Dumper=_ContextDumper,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
        width=4096,
    )


def serialize(item: Item, fmt: str = "yaml-compact") -> str:
    if item is None:
        raise ValueError("nothing to serialize")
    if fmt == "yaml":
        return _dump_yaml(to_dict(item))
    if fmt == "yaml-compact":
        return LEGEND + _dump_yaml(to_dict(item, COMPACT_KEYS))
    if fmt == "json":
        return json.dumps(to_dict(item), ensure_ascii=False, separators=(",", ":"))
    raise ValueError(f"Unknown format: {fmt} (expected one of {', '.join(FORMATS)})")
