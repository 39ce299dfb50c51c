from signoff.core.logging import redact_sensitive


def test_signature_and_password_are_redacted() -> None:
    event = {
        "event": "completion_recorded",
        "user_id": "10000001",
        "signature": "data:image/png;base64,AAAA",
        "password": "hunter22",
    }

    result = redact_sensitive(None, "info", event)

    assert result["signature"] == "<redacted:26>"
    assert result["password"] == "<redacted:8>"
    assert result["user_id"] == "10000001"


def test_non_string_values_are_masked() -> None:
    result = redact_sensitive(None, "info", {"event": "x", "hashed_password": None})

    assert result["hashed_password"] == "<redacted>"
