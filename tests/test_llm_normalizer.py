from __future__ import annotations

import json
from decimal import Decimal
from typing import Any

import httpx
import pytest
from anthropic import APIConnectionError

import spending_analysis.normalizers as normalizers_mod
from spending_analysis.normalizers import (
    CompletionParseError,
    CompletionServiceError,
    EmptyCompletionError,
    LlmStatementNormalizer,
    collect_text,
    parse_completion,
)
from spending_analysis.prompting import strip_code_fence
from tests.helpers.anthropic_stub import AnthropicStub, extract_csv, text_events

CSV = "Data,Descrição,Valor\n05/01/2024,Mercado,\"R$ 50,00\"\n"

ROWS = [
    {
        "date": "2024-01-05",
        "description": "Mercado",
        "category": "Groceries",
        "type": "expense",
        "value": 50,
    },
    {
        "date": "2024-01-06",
        "description": "Salary",
        "category": "Income",
        "type": "income",
        "value": "1200.50",
    },
]


def _normalizer(chunks: list[str], calls: list[dict[str, Any]] | None = None):
    stub = AnthropicStub(chunks, calls_out=calls)
    return LlmStatementNormalizer(api_key="test-key", model="m-test", max_tokens=321, client=stub)


def test_streamed_fragments_are_concatenated_before_parsing():
    payload = json.dumps(ROWS)
    chunks = [payload[i : i + 7] for i in range(0, len(payload), 7)]
    calls: list[dict[str, Any]] = []

    out = _normalizer(chunks, calls).normalize(CSV)

    assert [t.description for t in out] == ["Mercado", "Salary"]
    assert out[0].value == Decimal("50")
    assert out[1].value == Decimal("1200.50")
    assert out[1].type == "income"

    (call,) = calls
    assert call["model"] == "m-test"
    assert call["max_tokens"] == 321
    assert call["stream"] is True
    (message,) = call["messages"]
    assert message["role"] == "user"
    assert extract_csv(message["content"]) == CSV


def test_non_text_events_are_ignored():
    events = text_events(["[", "]"])
    events.insert(3, type("Ev", (), {"type": "content_block_delta", "delta": None})())

    assert collect_text(events) == "[]"


def test_empty_stream_is_an_error():
    with pytest.raises(EmptyCompletionError):
        _normalizer([]).normalize(CSV)


def test_whitespace_only_completion_is_an_error():
    with pytest.raises(EmptyCompletionError):
        _normalizer(["  ", "\n"]).normalize(CSV)


def test_invalid_json_is_a_parse_error():
    with pytest.raises(CompletionParseError) as ei:
        _normalizer(['[{"date": "2024-01-05",']).normalize(CSV)
    assert "not valid JSON" in str(ei.value)


def test_top_level_object_is_rejected():
    with pytest.raises(CompletionParseError):
        parse_completion(json.dumps({"transactions": ROWS}))


def test_code_fenced_reply_is_accepted():
    text = "```json\n" + json.dumps(ROWS[:1]) + "\n```"

    (tx,) = parse_completion(text)

    assert tx.category == "Groceries"
    assert strip_code_fence("```\n[]\n```") == "[]"


@pytest.mark.parametrize(
    "broken",
    [
        {k: v for k, v in ROWS[0].items() if k != "value"},
        {k: v for k, v in ROWS[0].items() if k != "category"},
        {**ROWS[0], "value": None},
        {**ROWS[0], "value": -5},
        {**ROWS[0], "value": "NaN"},
        {**ROWS[0], "value": "fifty"},
    ],
)
def test_invalid_elements_fail_instead_of_degrading(broken: dict[str, Any]):
    with pytest.raises(CompletionParseError) as ei:
        parse_completion(json.dumps([ROWS[0], broken]))
    assert "element 1" in str(ei.value)


def test_non_object_element_is_rejected():
    with pytest.raises(CompletionParseError):
        parse_completion(json.dumps([ROWS[0], "oops"]))


def test_numeric_text_fields_are_coerced_and_extra_keys_ignored():
    row = {**ROWS[0], "description": 123, "confidence": 0.9}

    (tx,) = parse_completion(json.dumps([row]))

    assert tx.description == "123"


def test_service_errors_are_wrapped():
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    stub = AnthropicStub(error=APIConnectionError(request=request))
    normalizer = LlmStatementNormalizer(api_key="k", client=stub)

    with pytest.raises(CompletionServiceError):
        normalizer.normalize(CSV)


def test_missing_api_key_is_reported_before_any_call():
    with pytest.raises(RuntimeError, match="ANTHROPIC_API_KEY"):
        LlmStatementNormalizer(api_key=None).normalize(CSV)


def test_client_is_built_lazily_from_api_key(monkeypatch: pytest.MonkeyPatch):
    seen: dict[str, Any] = {}

    def _factory(**kwargs: Any) -> AnthropicStub:
        seen.update(kwargs)
        return AnthropicStub(["[]"])

    monkeypatch.setattr(normalizers_mod, "Anthropic", _factory)
    normalizer = LlmStatementNormalizer(api_key="sk-test")

    assert seen == {}
    assert normalizer.normalize(CSV) == []
    assert seen == {"api_key": "sk-test"}
