"""Test SMTP settings and delivery with smtplib mocked out."""

import smtplib
from unittest.mock import patch

import pytest

from web.config import get_smtp_settings
from web.mailer import MailError, build_message, send_mail


@pytest.fixture
def settings():
    return {
        "host": "smtp.example.com",
        "port": 587,
        "secure": False,
        "user": "robot@example.com",
        "password": "hunter2",
        "sender": "robot@example.com",
        "recipient": "sales@example.com",
    }


class TestSettings:
    """Environment-driven SMTP settings."""

    def test_defaults_and_sender_fallback(self, monkeypatch):
        monkeypatch.delenv("SMTP_PORT")
        settings = get_smtp_settings()
        assert settings["port"] == 587
        assert settings["secure"] is False
        assert settings["sender"] == "robot@example.com"
        assert settings["recipient"] == "sales@example.com"

    def test_explicit_from_and_secure(self, monkeypatch):
        monkeypatch.setenv("SMTP_FROM", "Сладости <noreply@example.com>")
        monkeypatch.setenv("SMTP_SECURE", "TRUE")
        monkeypatch.setenv("SMTP_PORT", "465")
        settings = get_smtp_settings()
        assert settings["sender"] == "Сладости <noreply@example.com>"
        assert settings["secure"] is True
        assert settings["port"] == 465


class TestBuildMessage:

    def test_alternative_parts(self):
        message = build_message("Тема", "<p>Привет</p>", "Привет", "a@example.com", "b@example.com")
        assert message.get_content_type() == "multipart/alternative"
        assert message["Subject"] == "Тема"
        assert message.get_body(preferencelist=("plain",)).get_content().strip() == "Привет"
        assert "<p>Привет</p>" in message.get_body(preferencelist=("html",)).get_content()


class TestSendMail:
    """Transport selection and error mapping."""

    def test_starttls_and_login(self, settings):
        with patch("web.mailer.smtplib.SMTP") as smtp_cls:
            server = smtp_cls.return_value
            server.has_extn.return_value = True
            send_mail("Тема", "<p>x</p>", "x", settings)

        smtp_cls.assert_called_once_with("smtp.example.com", 587, timeout=30)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("robot@example.com", "hunter2")
        message = server.send_message.call_args.args[0]
        assert message["To"] == "sales@example.com"

    def test_no_starttls_offered(self, settings):
        with patch("web.mailer.smtplib.SMTP") as smtp_cls:
            server = smtp_cls.return_value
            server.has_extn.return_value = False
            send_mail("Тема", "<p>x</p>", "x", settings)
        server.starttls.assert_not_called()
        server.send_message.assert_called_once()

    def test_implicit_tls(self, settings):
        settings.update(secure=True, port=465)
        with patch("web.mailer.smtplib.SMTP_SSL") as ssl_cls, patch("web.mailer.smtplib.SMTP") as smtp_cls:
            send_mail("Тема", "<p>x</p>", "x", settings)

        smtp_cls.assert_not_called()
        assert ssl_cls.call_args.args == ("smtp.example.com", 465)
        ssl_cls.return_value.starttls.assert_not_called()
        ssl_cls.return_value.send_message.assert_called_once()

    def test_no_login_without_credentials(self, settings):
        settings.update(user=None, password=None)
        with patch("web.mailer.smtplib.SMTP") as smtp_cls:
            send_mail("Тема", "<p>x</p>", "x", settings)
        smtp_cls.return_value.login.assert_not_called()

    def test_reads_environment_by_default(self):
        with patch("web.mailer.smtplib.SMTP") as smtp_cls:
            send_mail("Тема", "<p>x</p>", "x")
        assert smtp_cls.call_args.args == ("smtp.example.com", 587)

    @pytest.mark.parametrize("missing", ["host", "recipient", "sender"])
    def test_incomplete_settings(self, settings, missing):
        settings[missing] = None
        with pytest.raises(MailError):
            send_mail("Тема", "<p>x</p>", "x", settings)

    @pytest.mark.parametrize(
        "error",
        [smtplib.SMTPAuthenticationError(535, b"bad credentials"), ConnectionRefusedError("refused")],
    )
    def test_transport_errors(self, settings, error):
        with patch("web.mailer.smtplib.SMTP") as smtp_cls:
            smtp_cls.return_value.send_message.side_effect = error
            with pytest.raises(MailError):
                send_mail("Тема", "<p>x</p>", "x", settings)

    def test_connection_error(self, settings):
        with patch("web.mailer.smtplib.SMTP", side_effect=OSError("no route")):
            with pytest.raises(MailError, match="no route"):
                send_mail("Тема", "<p>x</p>", "x", settings)


class TestMalformedSettings:
    """Configuration problems surface as MailError, never as raw exceptions."""

    def test_non_numeric_port(self, monkeypatch):
        monkeypatch.setenv("SMTP_PORT", "abc")
        with patch("web.mailer.smtplib.SMTP") as smtp_cls:
            with pytest.raises(MailError):
                send_mail("Тема", "<p>x</p>", "x")
        smtp_cls.assert_not_called()

    def test_header_injection_in_recipient(self, settings):
        settings["recipient"] = "sales@example.com\r\nBcc: x@example.com"
        with patch("web.mailer.smtplib.SMTP") as smtp_cls:
            with pytest.raises(MailError):
                send_mail("Тема", "<p>x</p>", "x", settings)
        smtp_cls.assert_not_called()

    def test_non_ascii_password(self, settings):
        settings["password"] = "пароль"
        with patch("web.mailer.smtplib.SMTP") as smtp_cls:
            smtp_cls.return_value.login.side_effect = UnicodeEncodeError("ascii", "пароль", 0, 1, "ordinal not in range")
            with pytest.raises(MailError):
                send_mail("Тема", "<p>x</p>", "x", settings)
