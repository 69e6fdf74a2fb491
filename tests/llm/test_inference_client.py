from __future__ import annotations

import asyncio

import pytest
from google.genai import errors as genai_errors

from resumeanalyzer.errors import MalformedResponseError, RetriesExhaustedError
from resumeanalyzer.llm import (
    ContentPart,
    InferenceClient,
    InferenceRequest,
    RetryPolicy,
    is_rate_limit_error,
    is_rate_limit_failure,
    parse_structured_text,
)

REQUEST = InferenceRequest(parts=(ContentPart.from_text("hello"),), response_schema={"type": "OBJECT"})


def rate_limited() -> RuntimeError:
    return RuntimeError("429 RESOURCE_EXHAUSTED. Quota exceeded")


def make_client(backend, sleeper, **policy) -> InferenceClient:
    policy.setdefault("max_jitter", 0.0)
    return InferenceClient(backend, policy=RetryPolicy(**policy), sleep=sleeper.sleep)


def test_success_returns_raw_text_without_sleeping(stub_backend, sleeper):
    backend = stub_backend(['{"ok": true}'])
    client = make_client(backend, sleeper)

    assert asyncio.run(client.generate(REQUEST)) == '{"ok": true}'
    assert sleeper.delays == []
    assert len(backend.requests) == 1


def test_backoff_doubles_from_initial_delay(stub_backend, sleeper):
    backend = stub_backend([rate_limited(), rate_limited(), rate_limited(), '{"ok": 1}'])
    client = make_client(backend, sleeper, attempts=4, initial_delay=2.0)

    result = asyncio.run(client.generate_json(REQUEST))

    assert result == {"ok": 1}
    assert sleeper.delays == [2.0, 4.0, 8.0]


def test_jitter_stays_within_bound(stub_backend, sleeper):
    backend = stub_backend([rate_limited(), rate_limited(), "{}"])
    client = make_client(backend, sleeper, initial_delay=2.0, max_jitter=1.0)

    asyncio.run(client.generate(REQUEST))

    first, second = sleeper.delays
    assert 2.0 <= first <= 3.0
    assert 4.0 <= second <= 5.0


def test_exhausted_budget_raises_distinct_error_without_extra_attempt(stub_backend, sleeper):
    backend = stub_backend([rate_limited() for _ in range(5)])
    client = make_client(backend, sleeper, attempts=4)

    with pytest.raises(RetriesExhaustedError) as exc:
        asyncio.run(client.generate(REQUEST))

    assert len(backend.requests) == 4
    assert len(sleeper.delays) == 3
    assert exc.value.attempts == 4
    assert isinstance(exc.value.__cause__, RuntimeError)


def test_terminal_error_is_reraised_immediately(stub_backend, sleeper):
    backend = stub_backend([ValueError("invalid argument"), "{}"])
    client = make_client(backend, sleeper)

    with pytest.raises(ValueError, match="invalid argument"):
        asyncio.run(client.generate(REQUEST))

    assert len(backend.requests) == 1
    assert sleeper.delays == []


def test_backoff_state_is_not_shared_between_calls(stub_backend, sleeper):
    backend = stub_backend([rate_limited(), "{}", rate_limited(), "{}"])
    client = make_client(backend, sleeper, initial_delay=2.0)

    asyncio.run(client.generate(REQUEST))
    asyncio.run(client.generate(REQUEST))

    assert sleeper.delays == [2.0, 2.0]


def test_rate_limit_classification():
    api_error = genai_errors.ClientError(429, {"error": {"message": "quota", "status": "RESOURCE_EXHAUSTED"}})

    assert is_rate_limit_error(api_error)
    assert is_rate_limit_error(RuntimeError("Resource_Exhausted: try later"))
    assert not is_rate_limit_error(RuntimeError("500 internal"))
    assert not is_rate_limit_error(genai_errors.ClientError(400, {"error": {"message": "bad", "status": "INVALID_ARGUMENT"}}))


def test_parse_structured_text_handles_code_fence():
    assert parse_structured_text('```json\n{"matchScore": 70}\n```') == {"matchScore": 70}

    with pytest.raises(MalformedResponseError):
        parse_structured_text("not json")
    with pytest.raises(MalformedResponseError):
        parse_structured_text("[1, 2]")


def test_rate_limit_failure_ignores_local_errors():
    assert is_rate_limit_failure(RetriesExhaustedError(4))
    assert is_rate_limit_failure(RuntimeError("429 Too Many Requests"))
    assert not is_rate_limit_failure(MalformedResponseError("matchScore 429 is not valid"))
