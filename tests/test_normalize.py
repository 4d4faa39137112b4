"""Tests for response normalisation and embedded-token extraction."""
import json

import pytest

from debt_tracker.api.normalize import (
    MalformedBody,
    ResponseNormalizer,
    classify,
    extract_tokens,
    field_errors_from,
    parse_body,
)
from debt_tracker.models import DEFAULT_MESSAGES, ErrorKind, Failure, Success
from debt_tracker.models.credentials import TokenPair


def normalize(status_code, body, on_tokens=None):
    content = body if isinstance(body, (bytes, str)) else json.dumps(body)
    return ResponseNormalizer(on_tokens=on_tokens).normalize(status_code, content)


# =========================================================================
# parse_body
# =========================================================================


class TestParseBody:
    def test_object(self):
        assert parse_body(b'{"a": 1}') == {"a": 1}

    def test_empty_body_is_none(self):
        assert parse_body(b"") is None
        assert parse_body("  \n") is None

    @pytest.mark.parametrize("raw", [b"<html>oops</html>", b"{", b"\xff\xfe"])
    def test_malformed(self, raw):
        with pytest.raises(MalformedBody):
            parse_body(raw)


# =========================================================================
# Success codes
# =========================================================================


class TestSuccess:
    @pytest.mark.parametrize("status", [200, 201, 204])
    def test_status_echoed(self, status):
        outcome = normalize(status, {"id": 7})
        assert isinstance(outcome, Success)
        assert outcome.status_code == status
        assert outcome.payload == {"id": 7}

    def test_data_field_unwrapped(self):
        outcome = normalize(200, {"message": "ok", "data": {"id": 1}})
        assert outcome.payload == {"id": 1}

    def test_empty_204(self):
        outcome = normalize(204, b"")
        assert outcome == Success(payload=None, status_code=204)

    def test_bare_array(self):
        outcome = normalize(200, [{"id": 1}, {"id": 2}])
        assert isinstance(outcome, Success)
        assert outcome.payload == [{"id": 1}, {"id": 2}]

    def test_bare_array_other_2xx(self):
        assert isinstance(normalize(202, []), Success)

    def test_scalar_body(self):
        assert normalize(200, json.dumps("pong")) == Success(payload="pong", status_code=200)

    def test_numeric_scalar_body(self):
        assert normalize(201, b"42") == Success(payload=42, status_code=201)


# =========================================================================
# Failure codes
# =========================================================================


class TestFailure:
    @pytest.mark.parametrize(
        "status, kind",
        [
            (400, ErrorKind.BAD_REQUEST),
            (401, ErrorKind.UNAUTHORIZED),
            (403, ErrorKind.FORBIDDEN),
            (404, ErrorKind.NOT_FOUND),
            (422, ErrorKind.VALIDATION),
            (500, ErrorKind.SERVER_ERROR),
            (503, ErrorKind.SERVER_ERROR),
            (302, ErrorKind.UNKNOWN),
            (409, ErrorKind.UNKNOWN),
        ],
    )
    def test_status_mapping(self, status, kind):
        outcome = normalize(status, {})
        assert isinstance(outcome, Failure)
        assert outcome.kind is kind
        assert outcome.status_code == status
        assert outcome.message == DEFAULT_MESSAGES[kind]

    def test_message_from_body(self):
        assert normalize(404, {"message": "Contact not found"}).message == "Contact not found"

    def test_message_from_detail(self):
        outcome = normalize(401, {"detail": "Given token not valid"})
        assert outcome.message == "Given token not valid"

    def test_validation_field_errors(self):
        outcome = normalize(
            422, {"message": "Invalid", "errors": {"email": ["taken"], "name": "required"}}
        )
        assert outcome.kind is ErrorKind.VALIDATION
        assert outcome.message == "Invalid"
        assert outcome.field_errors == {"email": ["taken"], "name": ["required"]}

    def test_bad_request_error_mapping(self):
        outcome = normalize(400, {"error": {"amount": ["must be positive"]}})
        assert outcome.field_errors == {"amount": ["must be positive"]}
        assert outcome.message == DEFAULT_MESSAGES[ErrorKind.BAD_REQUEST]

    def test_bad_request_error_string(self):
        outcome = normalize(400, {"error": "Amount missing"})
        assert outcome.message == "Amount missing"
        assert outcome.field_errors is None

    def test_field_errors_only_for_client_errors(self):
        assert normalize(500, {"errors": {"x": ["y"]}}).field_errors is None

    @pytest.mark.parametrize(
        "status, kind",
        [(500, ErrorKind.SERVER_ERROR), (404, ErrorKind.NOT_FOUND), (418, ErrorKind.UNKNOWN)],
    )
    def test_scalar_error_body_uses_status_mapping(self, status, kind):
        outcome = normalize(status, json.dumps("boom"))
        assert outcome.kind is kind
        assert outcome.status_code == status
        assert outcome.message == DEFAULT_MESSAGES[kind]
        assert outcome.field_errors is None

    def test_bare_array_error_is_unknown(self):
        outcome = normalize(404, [1, 2])
        assert outcome.kind is ErrorKind.UNKNOWN
        assert outcome.status_code == 404

    @pytest.mark.parametrize("status", [200, 401, 500])
    def test_malformed_regardless_of_status(self, status):
        outcome = normalize(status, b"<html>Bad Gateway</html>")
        assert outcome.kind is ErrorKind.MALFORMED_RESPONSE
        assert outcome.status_code == status

    @pytest.mark.parametrize("body", [b"", b"<html>slow down</html>", b'{"message": "custom"}'])
    def test_rate_limited_fixed_message(self, body):
        outcome = normalize(429, body)
        assert outcome.kind is ErrorKind.RATE_LIMITED
        assert outcome.message == "Too many requests. Please try again later."
        assert outcome.status_code == 429


class TestFieldErrorsFrom:
    def test_list_of_errors(self):
        assert field_errors_from({"errors": ["a", "b"]}) == {"non_field_errors": ["a", "b"]}

    def test_absent(self):
        assert field_errors_from({"message": "x"}) is None
        assert field_errors_from([1]) is None


def test_classify_is_pure():
    body = {"data": {"id": 1}}
    classify(200, body)
    assert body == {"data": {"id": 1}}


# =========================================================================
# Token extraction
# =========================================================================


class TestExtractTokens:
    def test_top_level_pair(self):
        assert extract_tokens({"access": "A", "refresh": "R"}) == TokenPair(access="A", refresh="R")

    def test_top_level_access_only(self):
        assert extract_tokens({"access": "A"}) == TokenPair(access="A")

    def test_data_pair(self):
        body = {"data": {"access": "A", "refresh": "R"}}
        assert extract_tokens(body) == TokenPair(access="A", refresh="R")

    def test_data_tokens_pair(self):
        body = {"data": {"tokens": {"access": "A1", "refresh": "R1"}}}
        assert extract_tokens(body) == TokenPair(access="A1", refresh="R1")

    @pytest.mark.parametrize("key", ["token", "access_token"])
    def test_single_token_top_level(self, key):
        assert extract_tokens({key: "T"}) == TokenPair(access="T")

    @pytest.mark.parametrize("key", ["token", "access_token"])
    def test_single_token_under_data(self, key):
        body = {"data": {key: "T", "refresh_token": "R", "user": {"id": 1}}}
        assert extract_tokens(body) == TokenPair(access="T", refresh="R")

    def test_first_rule_wins(self):
        body = {
            "access": "TOP",
            "data": {"tokens": {"access": "NESTED", "refresh": "NR"}, "token": "SINGLE"},
        }
        assert extract_tokens(body).access == "TOP"

    def test_data_beats_data_tokens(self):
        body = {"data": {"access": "D", "tokens": {"access": "DT"}}}
        assert extract_tokens(body).access == "D"

    def test_empty_or_non_string_ignored(self):
        assert extract_tokens({"access": "", "token": 123}) is None
        assert extract_tokens({"access": "", "data": {"access": "D"}}).access == "D"

    @pytest.mark.parametrize("body", [None, [], "token", {"data": [1]}, {"message": "hi"}])
    def test_no_tokens(self, body):
        assert extract_tokens(body) is None


class TestTokenHook:
    def test_hook_receives_tokens(self):
        found = []
        body = {"data": {"tokens": {"access": "A1", "refresh": "R1"}}}
        outcome = normalize(200, body, on_tokens=found.append)

        assert found == [TokenPair(access="A1", refresh="R1")]
        assert outcome.payload == {"tokens": {"access": "A1", "refresh": "R1"}}

    def test_hook_fires_on_failure_response(self):
        found = []
        outcome = normalize(400, {"token": "T", "message": "partial"}, on_tokens=found.append)
        assert isinstance(outcome, Failure)
        assert found == [TokenPair(access="T")]

    def test_hook_not_called_without_tokens(self):
        found = []
        normalize(200, {"data": {"id": 1}}, on_tokens=found.append)
        assert found == []

    def test_rate_limited_body_not_scanned(self):
        found = []
        normalize(429, {"access": "A"}, on_tokens=found.append)
        assert found == []
