"""Tests for log masking and request context."""

from src.core.context import RequestContext, clear_context, get_context
from src.core.logging import add_context_processor, filter_sensitive_data, mask_email


def test_mask_email():
    assert mask_email("joana@example.com") == "jo***@example.com"
    assert mask_email("not-an-email") == "***"


def test_filter_sensitive_data_masks_emails_and_secrets():
    event = filter_sensitive_data(
        None,
        "info",
        {
            "event": "comment_created",
            "email": "ana@example.com",
            "password": "supersecret",
            "comment_id": 1,
        },
    )

    assert event["email"] == "an***@example.com"
    assert event["password"] == "su*******et"
    assert event["comment_id"] == 1
    assert event["event"] == "comment_created"


def test_filter_sensitive_data_masks_nested_values():
    event = filter_sensitive_data(None, "info", {"data": {"author_email": "bob@site.org"}})

    assert event["data"]["author_email"] == "bo***@site.org"


def test_request_context_is_added_and_reset():
    clear_context()

    with RequestContext(request_id="req-1", correlation_id="corr-1"):
        event = add_context_processor(None, "info", {"event": "x"})
        assert event["request_id"] == "req-1"
        assert event["correlation_id"] == "corr-1"
        assert "trace_id" not in event

    assert get_context() == {}
