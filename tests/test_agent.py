"""Tests for the model round trip, with a canned provider in place of a real API."""

from __future__ import annotations

import json

import pytest

from desktop_workbench.agent import Agent, LlmResult
from desktop_workbench.errors import ProviderError
from desktop_workbench.llm import AVAILABLE_MODELS, Completion, LLMProvider, build_provider, estimate_cost, find_model
from desktop_workbench.prompts import OPERATING_PRINCIPLES, SYSTEM_PROMPT, build_user_message


class CannedProvider(LLMProvider):
    def __init__(self, reply: str, model: str = "gpt-4o-mini", input_tokens: int = 1000, output_tokens: int = 100):
        self.model = model
        self.reply = reply
        self.input_tokens = input_tokens
        self.output_tokens = output_tokens
        self.calls = []

    def generate(self, system, messages):
        self.calls.append((system, messages))
        return Completion(self.reply, self.input_tokens, self.output_tokens)


class FailingProvider(LLMProvider):
    model = "gpt-4o-mini"

    def generate(self, system, messages):
        raise ProviderError("connection refused")


def _reply(*actions) -> str:
    return json.dumps({"actions": list(actions)})


# ---------------------------------------------------------------------------
# Agent
# ---------------------------------------------------------------------------


class TestAsk:
    def test_scans_when_needed(self, session):
        agent = Agent(session, CannedProvider(_reply()))
        agent.ask("do nothing")
        assert session.snapshot is not None

    def test_messages(self, session):
        provider = CannedProvider(_reply())
        Agent(session, provider).ask("open the file menu")
        system, messages = provider.calls[0]
        assert system == SYSTEM_PROMPT
        assert [m["role"] for m in messages] == ["user", "user"]
        assert messages[0]["content"] == OPERATING_PRINCIPLES
        assert "Instruction: open the file menu" in messages[1]["content"]
        assert "n: File" in messages[1]["content"]

    def test_result(self, session):
        session.scan()
        provider = CannedProvider(_reply({"id": "n5", "action": "ExpandOrCollapse", "params": ["expanded"]}, {"id": "n5", "action": "Invoke"}))
        result = Agent(session, provider).ask("open the file menu")
        assert [c.item_id for c in result.commands] == ["n5"]
        assert result.errors == ["action #1: Invoke is not available for item n5"]
        assert result.input_tokens == 1000
        assert result.input_cost_usd == pytest.approx(0.00015)
        assert result.output_cost_usd == pytest.approx(0.00006)
        assert result.elapsed_ms >= 0

    def test_scope(self, session):
        session.scan()
        provider = CannedProvider(_reply())
        Agent(session, provider).ask("anything", scope_id="n4")
        prompt = provider.calls[0][1][1]["content"]
        assert "i: n4" in prompt
        assert "Word wrap" not in prompt

    def test_provider_errors_propagate(self, session):
        with pytest.raises(ProviderError):
            Agent(session, FailingProvider()).ask("anything")


class TestRun:
    def test_executes_valid_commands(self, session):
        session.scan()
        provider = CannedProvider(_reply({"id": "n11", "action": "Invoke"}, {"id": "ghost", "action": "Invoke"}))
        out = Agent(session, provider).run("press close")
        assert out["executed"] is True
        assert out["outcomes"] == [{"id": "n11", "action": "Invoke", "params": [], "ok": True, "error": None}]
        assert out["result"]["errors"] == ["action #1: unknown id ghost"]
        assert session.snapshot.index["n11"].element.state["invocations"] == 1

    def test_nothing_to_execute(self, session):
        out = Agent(session, CannedProvider("not json")).run("press close")
        assert out["executed"] is False
        assert out["outcomes"] == []
        assert out["result"]["errors"][0].startswith("response is not valid JSON")

    def test_no_auto_execute(self, session):
        session.scan()
        out = Agent(session, CannedProvider(_reply({"id": "n11", "action": "Invoke"}))).run("press close", auto_execute=False)
        assert out["executed"] is False
        assert session.snapshot.index["n11"].element.state["invocations"] == 0


class TestLlmResult:
    def test_to_dict(self):
        out = LlmResult(prompt="p", response="r", input_tokens=3, output_tokens=4, elapsed_ms=12.4).to_dict()
        assert out == {
            "prompt": "p",
            "response": "r",
            "inputTokens": 3,
            "outputTokens": 4,
            "estimatedInputPriceUSD": 0.0,
            "estimatedOutputPriceUSD": 0.0,
            "elapsedMs": 12,
            "actions": [],
            "errors": [],
        }


# ---------------------------------------------------------------------------
# Prompts and pricing
# ---------------------------------------------------------------------------


class TestPrompts:
    def test_principles_list_every_action(self):
        for name in ["ExpandOrCollapse", "Invoke", "Toggle", "Arrange", "SetValue", "SetWindowVisualState", "CloseWindow"]:
            assert name in OPERATING_PRINCIPLES
        assert "left | right | top | bottom | center" in OPERATING_PRINCIPLES
        assert '"actions"' in OPERATING_PRINCIPLES

    def test_user_message(self):
        text = build_user_message("i: n1", "close it", "yaml-compact")
        assert text.startswith("UI snapshot (yaml-compact):\ni: n1")
        assert text.endswith("Instruction: close it")


class TestPricing:
    def test_known_model(self):
        assert find_model("gpt-5-nano") in AVAILABLE_MODELS
        assert estimate_cost("gpt-4.1-mini", 1_000_000, 1_000_000) == pytest.approx((0.40, 1.60))

    def test_unknown_model_is_free(self):
        assert estimate_cost("llama3", 5000, 5000) == (0.0, 0.0)

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown provider"):
            build_provider("carrier-pigeon", "gpt-4o-mini")
