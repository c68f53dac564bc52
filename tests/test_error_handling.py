from __future__ import annotations

import json

from fastapi import HTTPException

from media_assistant.services.error_handling import (
    MalformedTurnError,
    UpstreamError,
    build_error_response,
    map_exception_to_error_code,
)
from media_assistant.services.search_client import SearchClientError


def test_malformed_turn_maps_to_400():
    exc = MalformedTurnError("no session", reason="missing_session_context")

    assert map_exception_to_error_code(exc) == ("MALFORMED_TURN", "missing_session_context", 400)


def test_upstream_errors_map_to_502():
    assert map_exception_to_error_code(SearchClientError("down", reason="search_unavailable")) == (
        "UPSTREAM_UNAVAILABLE",
        "search_unavailable",
        502,
    )
    assert map_exception_to_error_code(UpstreamError("down")) == ("UPSTREAM_UNAVAILABLE", "upstream_error", 502)


def test_http_exceptions_keep_status():
    assert map_exception_to_error_code(HTTPException(status_code=404, detail="not found")) == (
        "BAD_REQUEST",
        "not found",
        404,
    )
    assert map_exception_to_error_code(HTTPException(status_code=503, detail={"reason": "busy"})) == (
        "UPSTREAM_UNAVAILABLE",
        "busy",
        503,
    )


def test_unknown_exception_is_internal():
    assert map_exception_to_error_code(RuntimeError("boom")) == ("INTERNAL_ERROR", "RuntimeError", 500)


def test_error_body_is_platform_shaped():
    response = build_error_response(
        error_code="MALFORMED_TURN",
        reason="missing_session_context",
        status_code=400,
        debug_payload={"trace_id": "abc"},
    )
    body = json.loads(response.body)

    assert response.status_code == 400
    assert body["fulfillmentText"]
    assert body["payload"]["google"]["richResponse"]["items"][0]["simpleResponse"]["textToSpeech"]
    assert body["meta"] == {
        "error": {"code": "MALFORMED_TURN", "reason": "missing_session_context"},
        "debug": {"trace_id": "abc"},
    }
