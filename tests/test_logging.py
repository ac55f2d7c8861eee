from yggauth.logging import (
    _add_request_id,
    _mask_credentials,
    get_request_id,
    request_id_var,
    set_request_id,
)


class TestCredentialMasking:
    def test_masks_tokens_and_passwords(self):
        event = _mask_credentials(
            None,
            "info",
            {
                "event": "session_created",
                "client_token": "0123456789abcdef",
                "password": "hunter2",
                "user_id": "faa5dca3c3d4354bae1bdde9e5a14b3b",
            },
        )
        assert event["client_token"] == "01***ef"
        assert event["password"] == "hu***r2"
        assert event["user_id"] == "faa5dca3c3d4354bae1bdde9e5a14b3b"

    def test_short_values_fully_masked(self):
        event = _mask_credentials(None, "info", {"accessToken": "abc"})
        assert event["accessToken"] == "***"

    def test_non_string_values_untouched(self):
        event = _mask_credentials(None, "info", {"retired_token_count": 3})
        assert event["retired_token_count"] == 3


class TestRequestId:
    def test_generated_when_missing(self):
        token = request_id_var.set(None)
        try:
            value = set_request_id()
            assert value
            assert get_request_id() == value
        finally:
            request_id_var.reset(token)

    def test_added_to_events(self):
        token = request_id_var.set("req-42")
        try:
            assert _add_request_id(None, "info", {"event": "x"})["request_id"] == "req-42"
        finally:
            request_id_var.reset(token)

    def test_absent_outside_request(self):
        token = request_id_var.set(None)
        try:
            assert "request_id" not in _add_request_id(None, "info", {"event": "x"})
        finally:
            request_id_var.reset(token)
