"""Tests for the OpenAI extraction oracle with a stubbed client."""

import asyncio
import json
from types import SimpleNamespace

import pytest

from core.config import Settings
from core.errors import InputValidationError, UpstreamTimeoutError
from extraction import OpenAIExtractionOracle, build_log_activity_tool
from models.activity import Animal


def tool_call(arguments, name="log_activity"):
    return SimpleNamespace(function=SimpleNamespace(name=name, arguments=arguments))


class StubCompletions:
    def __init__(self, tool_calls=None, delay=0.0):
        self.tool_calls = tool_calls or []
        self.delay = delay
        self.requests = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        if self.delay:
            await asyncio.sleep(self.delay)
        message = SimpleNamespace(tool_calls=self.tool_calls)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def make_oracle(completions, timeout=5.0):
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return OpenAIExtractionOracle(Settings(llm_timeout_seconds=timeout), client=client)


class TestToolSchema:

    def test_enumerates_kinds_and_units(self):
        params = build_log_activity_tool(False)["function"]["parameters"]
        assert "feeding" in params["properties"]["activity_type"]["enum"]
        assert params["properties"]["unit"]["enum"] == ["bales", "bags", "barrels", "kg", "liters"]
        assert params["required"] == ["activity_type"]

    def test_selected_animal_changes_identifier_hint(self):
        hint = build_log_activity_tool(True)["function"]["parameters"]["properties"]["animal_identifier"]
        assert "DIFFERENT" in hint["description"]


class TestExtract:

    def test_each_tool_call_is_a_candidate(self):
        completions = StubCompletions([
            tool_call(json.dumps({"activity_type": "milking", "quantity": 8})),
            tool_call(json.dumps({"activity_type": "cleaning"})),
            tool_call("{}", name="something_else"),
        ])
        candidates = asyncio.run(make_oracle(completions).extract("nagpagatas ng 8 litro at naglinis"))

        assert candidates == [{"activity_type": "milking", "quantity": 8}, {"activity_type": "cleaning"}]
        request = completions.requests[0]
        assert request["tool_choice"] == "required"
        assert request["temperature"] == 0
        assert "nagpagatas ng 8 litro" in request["messages"][1]["content"]

    def test_selected_animal_goes_into_prompt(self):
        completions = StubCompletions()
        animal = Animal(id="cow-daisy", farm_id="farm-1", name="Daisy", ear_tag="A002")
        asyncio.run(make_oracle(completions).extract("8 liters", animal))
        assert "Daisy (A002)" in completions.requests[0]["messages"][0]["content"]

    def test_no_tool_calls(self):
        assert asyncio.run(make_oracle(StubCompletions()).extract("hello")) == []

    def test_malformed_arguments(self):
        oracle = make_oracle(StubCompletions([tool_call("{not json")]))
        with pytest.raises(InputValidationError) as exc_info:
            asyncio.run(oracle.extract("fed the cows"))
        assert exc_info.value.code == "EXTRACTION_PARSE_ERROR"

    def test_slow_model_is_upstream_timeout(self):
        oracle = make_oracle(StubCompletions(delay=0.5), timeout=0.05)
        with pytest.raises(UpstreamTimeoutError) as exc_info:
            asyncio.run(oracle.extract("fed the cows"))
        assert exc_info.value.retryable
