"""Tests for error classification."""

import asyncio

import httpx
import pytest
import redis

from fafsa_assistant.entities import ErrorContext, ErrorKind, ErrorSeverity
from fafsa_assistant.exceptions import BackendError, ChatServiceError
from fafsa_assistant.services import ErrorClassifier

CONTEXT = ErrorContext(action="send_chat_message", user_id="user-1")


@pytest.fixture
def classifier() -> ErrorClassifier:
    return ErrorClassifier()


@pytest.mark.parametrize(
    ("status", "kind", "retryable"),
    [
        (503, ErrorKind.SERVICE_UNAVAILABLE, True),
        (500, ErrorKind.SERVICE_UNAVAILABLE, True),
        (401, ErrorKind.AUTHENTICATION, False),
        (403, ErrorKind.AUTHENTICATION, False),
        (429, ErrorKind.RATE_LIMIT, True),
        (404, ErrorKind.VALIDATION, False),
    ],
)
def test_status_codes(classifier, status, kind, retryable):
    error = classifier.classify(status, CONTEXT)

    assert error.kind == kind
    assert error.retryable is retryable
    assert error.context is CONTEXT


def test_service_unavailable_is_high_severity(classifier):
    error = classifier.classify(BackendError(503), CONTEXT)

    assert error.kind == ErrorKind.SERVICE_UNAVAILABLE
    assert error.severity == ErrorSeverity.HIGH
    assert error.user_message == "The AI service is temporarily unavailable. Please try again in a moment."


def test_httpx_response_and_status_error(classifier):
    request = httpx.Request("POST", "http://localhost:11434/api/chat")
    response = httpx.Response(502, request=request)

    assert classifier.classify(response, CONTEXT).kind == ErrorKind.SERVICE_UNAVAILABLE
    exc = httpx.HTTPStatusError("bad gateway", request=request, response=response)
    assert classifier.classify(exc, CONTEXT).kind == ErrorKind.SERVICE_UNAVAILABLE


@pytest.mark.parametrize(
    "exc",
    [
        TimeoutError(),
        asyncio.TimeoutError(),
        httpx.ReadTimeout("read timed out"),
        redis.TimeoutError("Timeout reading from socket"),
    ],
)
def test_timeouts(classifier, exc):
    error = classifier.classify(exc, CONTEXT)

    assert error.kind == ErrorKind.TIMEOUT
    assert error.retryable


def test_transport_failures_are_network_errors(classifier):
    assert classifier.classify(httpx.ConnectError("refused"), CONTEXT).kind == ErrorKind.NETWORK
    assert classifier.classify(ConnectionResetError(), CONTEXT).kind == ErrorKind.NETWORK
    assert classifier.classify(redis.ConnectionError("refused"), CONTEXT).kind == ErrorKind.NETWORK


def test_anything_else_is_unknown(classifier):
    error = classifier.classify(ValueError("boom"), CONTEXT)

    assert error.kind == ErrorKind.UNKNOWN
    assert error.technical_message == "boom"


def test_already_classified_errors_pass_through(classifier):
    original = classifier.classify(429, CONTEXT)

    assert classifier.classify(original, CONTEXT) is original
    assert classifier.classify(ChatServiceError(original), CONTEXT) is original


def test_validation_and_authentication_never_retryable(classifier):
    validation = classifier.validation_error(CONTEXT, "Please enter a question.")
    auth = classifier.classify(401, CONTEXT)

    assert not classifier.is_retryable(validation)
    assert not classifier.is_retryable(auth)
    assert validation.user_message == "Please enter a question."


def test_log_dict_is_structured(classifier):
    payload = classifier.classify(503, CONTEXT).to_log_dict()

    assert payload["kind"] == "ServiceUnavailable"
    assert payload["context"]["action"] == "send_chat_message"
    assert payload["context"]["user_id"] == "user-1"
