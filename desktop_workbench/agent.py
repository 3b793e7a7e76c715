from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .actions import Command
from .dispatch import CommandOutcome
from .llm import LLMProvider, estimate_cost
from .prompts import OPERATING_PRINCIPLES, SYSTEM_PROMPT, build_user_message
from .session import WorkbenchSession

logger = logging.getLogger(__name__)


@dataclass
class LlmResult:
    prompt: str = ""
    response: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
    input_cost_usd: float = 0.0
    output_cost_usd: float = 0.0
    elapsed_ms: float = 0.0
    commands: List[Command] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prompt": self.prompt,
            "response": self.response,
            "inputTokens": self.input_tokens,
            "outputTokens": self.output_tokens,
            "estimatedInputPriceUSD": round(self.input_cost_usd, 6),
            "estimatedOutputPriceUSD": round(self.output_cost_usd, 6),
            "elapsedMs": round(self.elapsed_ms),
            "actions": [c.to_dict() for c in self.commands],
            "errors": list(self.errors),
        }


class Agent:
    """Sends the serialized snapshot plus an instruction to a model and turns the reply into commands."""

    def __init__(self, session: WorkbenchSession, provider: LLMProvider, model: Optional[str] = None) -> None:
        self.session = session
        self.provider = provider
        self.model = model or provider.model

    def ask(self, instruction: str, scope_id: Optional[str] = None) -> LlmResult:
        if self.session.snapshot is None:
            self.session.scan()
        context = self.session.context(scope_id=scope_id)
        prompt = build_user_message(context, instruction, self.session.fmt)
        messages = [
            {"role": "user", "content": OPERATING_PRINCIPLES},
            {"role": "user", "content": prompt},
        ]
        start = time.perf_counter()
        completion = self.provider.generate(system=SYSTEM_PROMPT, messages=messages)
        elapsed = (time.perf_counter() - start) * 1000.0
        commands, errors = self.session.extract_actions(completion.text)
        in_cost, out_cost = estimate_cost(self.model, completion.input_tokens, completion.output_tokens)
        logger.info("Model replied in %.0f ms: %d action(s), %d error(s)", elapsed, len(commands), len(errors))
        return LlmResult(
            prompt=prompt,
            response=completion.text,
            input_tokens=completion.input_tokens,
            output_tokens=completion.output_tokens,
            input_cost_usd=in_cost,
            output_cost_usd=out_cost,
            elapsed_ms=elapsed,
            commands=commands,
            errors=errors,
        )

    def execute(self, result: LlmResult) -> List[CommandOutcome]:
        return self.session.execute(result.commands)

    def run(self, instruction: str, auto_execute: bool = True, scope_id: Optional[str] = None) -> Dict[str, Any]:
        result = self.ask(instruction, scope_id=scope_id)
        out: Dict[str, Any] = {"result": result.to_dict(), "executed": False, "outcomes": []}
        # Errors do not block the commands that did validate.
        if auto_execute and result.commands:
            outcomes = self.execute(result)
            out["executed"] = True
            out["outcomes"] = [o.to_dict() for o in outcomes]
        return out
