from __future__ import annotations

from .actions import capability_table


def _capability_lines() -> str:
    lines = []
    for row in capability_table():
        if row["params"] == 0:
            params = "no params"
        else:
            params = f'{row["params"]} param: ' + " | ".join(row["vocabulary"])
        lines.append(f'- {row["action"]} (requires pattern {row["pattern"]}; {params})')
    return "\n".join(lines)


OPERATING_PRINCIPLES = f"""
You operate desktop applications through the operating system's accessibility tree only.
You receive a snapshot of the tree and an instruction. Reply with the actions that fulfil it.

Rules:
- Only target elements by the id shown in the snapshot.
- Only request an action when the element lists the pattern it requires.
- Give exactly the number of params the action takes, using the listed values.
- Order actions the way a person would perform them (e.g. expand a menu before invoking an entry).
- If nothing in the snapshot fits the instruction, reply with an empty actions array.

Available actions:
{_capability_lines()}

Output strictly as JSON matching the schema:
{{
  "actions": [
    {{ "id": "<item id>", "action": "<action name>", "params": ["..."] }}
  ]
}}
"""

SYSTEM_PROMPT = (
    "You are an expert desktop accessibility operator. Follow OPERATING_PRINCIPLES. "
    "Output strict JSON only. No commentary."
)


def build_user_message(context: str, instruction: str, fmt: str) -> str:
    return f"UI snapshot ({fmt}):\n{context}\n\nInstruction: {instruction}"
