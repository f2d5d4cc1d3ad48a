"""
Unit tests for the extraction client and schema validation of its payload.
"""
import json
from datetime import date
from decimal import Decimal

import pytest
import requests

from core.config import reset_settings
from core.exceptions import (
    ConfigurationError,
    ExtractionContractViolation,
    ExtractionServiceError,
)
from core.schema import SanitizedCsv
from llm.client import ExtractionClient
from llm.extract import extract_transactions
from llm.prompts import TOOL_NAME, create_tool_schema

CSV = SanitizedCsv(lines=("date,description,amount", "2024-01-02,Rent,'-1200"))


class _FakeResp:
    def __init__(self, status_code: int, payload=None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text or json.dumps(payload)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON")
        return self._payload


def tool_response(arguments, name=TOOL_NAME):
    if not isinstance(arguments, str):
        arguments = json.dumps(arguments)
    return {
        "choices": [
            {
                "message": {
                    "role": "assistant",
                    "tool_calls": [
                        {"type": "function", "function": {"name": name, "arguments": arguments}}
                    ],
                }
            }
        ],
        "usage": {"prompt_tokens": 10, "completion_tokens": 5},
    }


@pytest.fixture
def post(monkeypatch):
    """Replace requests.post and record every call."""
    calls = []
    state = {"response": _FakeResp(200, tool_response({"transactions": []}))}

    def fake_post(url, headers=None, data=None, verify=None, timeout=None):
        calls.append({"url": url, "headers": headers, "body": json.loads(data), "verify": verify})
        if isinstance(state["response"], Exception):
            raise state["response"]
        return state["response"]

    monkeypatch.setattr("requests.post", fake_post)

    def respond(response):
        state["response"] = response

    fake_post.calls = calls
    fake_post.respond = respond
    return fake_post


def test_missing_api_key_is_configuration_error(monkeypatch):
    monkeypatch.delenv("EXTRACTION_API_KEY")
    reset_settings()
    with pytest.raises(ConfigurationError):
        ExtractionClient()


def test_request_forces_function_call(post):
    extract_transactions(CSV)

    (call,) = post.calls
    body = call["body"]
    assert call["headers"]["Authorization"] == "Bearer test-key"
    assert call["verify"] is True
    assert body["model"] == "google/gemini-2.5-flash"
    assert body["tool_choice"] == {"type": "function", "function": {"name": TOOL_NAME}}
    assert body["tools"] == [create_tool_schema()]
    assert body["messages"][0]["role"] == "system"
    assert "2024-01-02,Rent,'-1200" in body["messages"][1]["content"]


def test_valid_payload_is_parsed(post):
    post.respond(
        _FakeResp(
            200,
            tool_response(
                {
                    "transactions": [
                        {"date": "2024-01-02", "description": "Rent", "amount": -1200.5},
                        {
                            "date": "2024-01-03",
                            "description": "Deposit",
                            "amount": 300,
                            "vendor": "Square",
                            "category": "",
                        },
                    ]
                }
            ),
        )
    )

    result = extract_transactions(CSV)

    first, second = result.transactions
    assert first.date == date(2024, 1, 2)
    assert first.amount == Decimal("-1200.5")
    assert first.vendor is None
    assert second.vendor == "Square"
    assert second.category is None


def test_non_2xx_is_service_error_with_status(post):
    post.respond(_FakeResp(500, {"error": "boom"}))
    with pytest.raises(ExtractionServiceError) as exc_info:
        extract_transactions(CSV)
    assert exc_info.value.status_code == 500
    assert len(post.calls) == 1


def test_client_does_not_retry(post):
    post.respond(_FakeResp(503, {"error": "unavailable"}))
    with pytest.raises(ExtractionServiceError):
        extract_transactions(CSV)
    assert len(post.calls) == 1


def test_network_failure_is_service_error(post):
    post.respond(requests.exceptions.ConnectionError("refused"))
    with pytest.raises(ExtractionServiceError) as exc_info:
        extract_transactions(CSV)
    assert exc_info.value.status_code is None


def test_timeout_is_service_error(post):
    post.respond(requests.exceptions.Timeout("slow"))
    with pytest.raises(ExtractionServiceError):
        extract_transactions(CSV)


@pytest.mark.parametrize(
    "payload",
    [
        None,
        {"choices": []},
        {"choices": [{"message": {"content": "here are your transactions"}}]},
        {"choices": [{"message": {"tool_calls": []}}]},
        tool_response("{not json"),
        tool_response("[1, 2]"),
        tool_response({"rows": []}),
        tool_response({"transactions": [{"description": "No date", "amount": 1}]}),
        tool_response({"transactions": [{"date": "02/01/2024", "description": "x", "amount": 1}]}),
        tool_response({"transactions": [{"date": "2024-01-02", "amount": 1}]}),
        tool_response({"transactions": [{"date": "2024-01-02", "description": "x", "amount": "abc"}]}),
        tool_response({"transactions": [{"date": "2024-01-02", "description": "   ", "amount": 1}]}),
        tool_response({"transactions": []}, name="other_function"),
    ],
)
def test_malformed_payload_is_contract_violation(post, payload):
    post.respond(_FakeResp(200, payload, text="not json" if payload is None else ""))
    with pytest.raises(ExtractionContractViolation):
        extract_transactions(CSV)


def test_verify_ssl_can_be_disabled(monkeypatch, post):
    monkeypatch.setenv("EXTRACTION_VERIFY_SSL", "false")
    reset_settings()
    extract_transactions(CSV, client=ExtractionClient())
    assert post.calls[0]["verify"] is False
