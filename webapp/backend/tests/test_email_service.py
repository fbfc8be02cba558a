"""
Tests for the Resend verification email.
"""
import logging

import pytest

from services.email_service import (
    EmailSendError,
    build_verification_url,
    dispatch_verification_email,
    send_verification_email,
)


class TestSendVerificationEmail:

    def test_builds_link_from_frontend_url(self, settings):
        assert (
            build_verification_url(settings, "abc-123")
            == "http://localhost:3000/verify-email?verificationID=abc-123"
        )

    def test_payload(self, settings, mock_resend_send):
        send_verification_email(settings, to_email="a@x.com", name="Ana", verification_id="abc-123")

        payload = mock_resend_send.call_args[0][0]
        assert payload["to"] == ["a@x.com"]
        assert payload["from"] == "Tutoring Team <noreply@example.com>"
        assert payload["subject"] == "Verify your email address - Tutoring Platform"
        assert "Hello Ana!" in payload["text"]
        assert "1 hour" in payload["text"]
        assert "verificationID=abc-123" in payload["html"]

    def test_name_is_escaped_in_html(self, settings, mock_resend_send):
        send_verification_email(settings, to_email="a@x.com", name="<b>Ana</b>", verification_id="abc")

        payload = mock_resend_send.call_args[0][0]
        assert "<b>Ana</b>" not in payload["html"]
        assert "&lt;b&gt;Ana&lt;/b&gt;" in payload["html"]

    def test_resend_failure_raises(self, settings, mock_resend_send):
        mock_resend_send.side_effect = Exception("401 invalid api key")

        with pytest.raises(EmailSendError):
            send_verification_email(settings, to_email="a@x.com", name="Ana", verification_id="abc")


class TestDispatchVerificationEmail:

    def test_failure_is_logged_not_raised(self, settings, mock_resend_send, caplog):
        mock_resend_send.side_effect = Exception("Resend is down")

        with caplog.at_level(logging.ERROR, logger="services.email_service"):
            dispatch_verification_email(settings, to_email="a@x.com", name="Ana", verification_id="abc")

        assert "could not be sent" in caplog.text

    def test_success_sends_once(self, settings, mock_resend_send):
        dispatch_verification_email(settings, to_email="a@x.com", name="Ana", verification_id="abc")
        mock_resend_send.assert_called_once()
