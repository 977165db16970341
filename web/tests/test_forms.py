"""Test the contact-form relay endpoints."""

import json
from unittest.mock import patch

import pytest

from web.app import create_app
from web.extensions import limiter
from web.forms import CONTACT_FORMS, consent_given, render_email
from web.mailer import MailError

PARTNER = {
    "partner_fullname": "Иван Петров",
    "partner_phone": "+7 900 000-00-00",
    "partner_email": "ivan@example.com",
}

MANUFACTURER = {
    "manufacturer_company": "ООО Сладости",
    "manufacturer_contact": "Мария",
    "manufacturer_phone": "+7 900 111-11-11",
    "manufacturer_email": "maria@example.com",
    "manufacturer_message": "Поставки мармелада",
}

PRICE_LIST = {"name": "Олег", "email": "oleg@example.com", "phone": "+7 900 222-22-22"}


def read_log(log_dir):
    lines = []
    for path in sorted(log_dir.glob("form_submissions_*.jsonl")):
        lines.extend(json.loads(line) for line in path.read_text(encoding="utf-8").splitlines())
    return lines


class TestConsent:
    """Consent field semantics."""

    @pytest.mark.parametrize("value", ["on", True, "true", "TRUE", "True"])
    def test_accepted(self, value):
        assert consent_given({"consent": value})

    @pytest.mark.parametrize("value", ["off", False, "yes", "", None, 1])
    def test_rejected(self, value):
        assert not consent_given({"consent": value})

    def test_absent_passes(self):
        assert consent_given({})


class TestEmailRendering:
    """HTML and plain-text bodies."""

    def test_missing_values_and_escaping(self, app):
        payload = dict(PARTNER, partner_fullname="<b>Иван</b>")
        with app.app_context():
            html, text = render_email(CONTACT_FORMS["partner"], payload)

        assert "<h2>Новая заявка: Стать партнёром</h2>" in html
        assert "&lt;b&gt;Иван&lt;/b&gt;" in html
        assert "<b>Иван</b>" not in html
        assert "Не указано" in html

        lines = text.splitlines()
        assert lines[0] == "Новая заявка: Стать партнёром"
        assert "ФИО: <b>Иван</b>" in lines
        assert "Сообщение: Не указано" in lines


class TestPartnerEndpoint:
    """Test POST /partner."""

    def test_success(self, client, log_dir):
        with patch("web.forms.send_mail") as send_mail:
            response = client.post("/partner", json=dict(PARTNER, consent="on"))

        assert response.status_code == 200
        assert response.json == {"success": True}
        subject, html, text = send_mail.call_args.args
        assert subject == "Новая заявка: Стать партнёром"
        assert "Иван Петров" in html
        assert "Email: ivan@example.com" in text

        entries = read_log(log_dir)
        assert entries[-1]["event_type"] == "form_submission"
        assert entries[-1]["form"] == "partner"
        assert entries[-1]["status"] == "sent"

    def test_form_encoded_body(self, client):
        with patch("web.forms.send_mail"):
            response = client.post("/partner", data=PARTNER)
        assert response.status_code == 200

    @pytest.mark.parametrize("field", ["partner_fullname", "partner_phone", "partner_email"])
    def test_missing_required_field(self, client, field):
        payload = dict(PARTNER)
        payload[field] = ""
        with patch("web.forms.send_mail") as send_mail:
            response = client.post("/partner", json=payload)

        assert response.status_code == 400
        assert response.json == {"success": False, "error": "Обязательные поля не заполнены"}
        send_mail.assert_not_called()

    def test_consent_refused(self, client):
        with patch("web.forms.send_mail") as send_mail:
            response = client.post("/partner", json=dict(PARTNER, consent=False))

        assert response.status_code == 400
        assert response.json["error"] == "Необходимо согласие на обработку персональных данных"
        send_mail.assert_not_called()

    def test_mail_failure(self, client, log_dir):
        with patch("web.forms.send_mail", side_effect=MailError("connection refused")):
            response = client.post("/partner", json=PARTNER)

        assert response.status_code == 500
        assert response.json == {"success": False, "error": "Ошибка отправки заявки"}
        assert read_log(log_dir)[-1]["status"] == "mail_error"


class TestManufacturerEndpoint:
    """Test POST /manufacturer."""

    def test_success(self, client):
        with patch("web.forms.send_mail") as send_mail:
            response = client.post("/manufacturer", json=dict(MANUFACTURER, consent="true"))

        assert response.status_code == 200
        subject, html, text = send_mail.call_args.args
        assert subject == "Новая заявка: Для производителя"
        assert "Описание предложения: Поставки мармелада" in text
        assert "ООО Сладости" in html

    def test_missing_company(self, client):
        payload = {k: v for k, v in MANUFACTURER.items() if k != "manufacturer_company"}
        response = client.post("/manufacturer", json=payload)
        assert response.status_code == 400

    def test_consent_refused(self, client):
        response = client.post("/manufacturer", json=dict(MANUFACTURER, consent="no"))
        assert response.status_code == 400
        assert response.json["success"] is False

    def test_mail_failure(self, client):
        with patch("web.forms.send_mail", side_effect=MailError("timeout")):
            response = client.post("/manufacturer", json=MANUFACTURER)
        assert response.status_code == 500
        assert response.json["error"] == "Ошибка отправки заявки"


class TestPriceListEndpoint:
    """Test POST /price-list."""

    def test_success(self, client):
        with patch("web.forms.send_mail") as send_mail:
            response = client.post("/price-list", json=PRICE_LIST)

        assert response.status_code == 200
        assert response.json == {"success": True}
        assert send_mail.call_args.args[0] == "Новая заявка: Заявка на прайс-лист"

    def test_missing_phone(self, client):
        response = client.post("/price-list", json={"name": "Олег", "email": "oleg@example.com"})
        assert response.status_code == 400
        assert response.json["error"] == "Обязательные поля не заполнены"

    def test_consent_not_checked(self, client):
        with patch("web.forms.send_mail"):
            response = client.post("/price-list", json=dict(PRICE_LIST, consent="off"))
        assert response.status_code == 200

    def test_email_not_configured(self, client, monkeypatch):
        monkeypatch.delenv("EMAIL_TO")
        with patch("web.forms.send_mail") as send_mail:
            response = client.post("/price-list", json=PRICE_LIST)

        assert response.status_code == 200
        assert response.json == {"success": True, "message": "Заявка получена (email не настроен)"}
        send_mail.assert_not_called()

    def test_mail_failure_still_succeeds(self, client):
        with patch("web.forms.send_mail", side_effect=MailError("auth failed")):
            response = client.post("/price-list", json=PRICE_LIST)

        assert response.status_code == 200
        assert response.json == {
            "success": True,
            "message": "Заявка получена, но email не отправлен",
            "warning": "auth failed",
        }

    def test_unexpected_error(self, client):
        with patch("web.forms.render_email", side_effect=RuntimeError("boom")):
            response = client.post("/price-list", json=PRICE_LIST)

        assert response.status_code == 500
        assert response.json == {"success": False, "error": "Ошибка отправки заявки: boom"}


class TestMailConfigurationErrors:
    """Broken SMTP configuration still yields the JSON error policy."""

    def test_partner_bad_port(self, client, monkeypatch):
        monkeypatch.setenv("SMTP_PORT", "abc")
        response = client.post("/partner", json=PARTNER)

        assert response.status_code == 500
        assert response.json == {"success": False, "error": "Ошибка отправки заявки"}

    def test_partner_unexpected_error(self, client):
        with patch("web.forms.render_email", side_effect=RuntimeError("boom")):
            response = client.post("/partner", json=PARTNER)

        assert response.status_code == 500
        assert response.json == {"success": False, "error": "Ошибка отправки заявки"}

    def test_price_list_injected_recipient_downgrades(self, client, monkeypatch):
        monkeypatch.setenv("EMAIL_TO", "sales@example.com\r\nBcc: x@example.com")
        with patch("web.mailer.smtplib.SMTP") as smtp_cls:
            response = client.post("/price-list", json=PRICE_LIST)

        assert response.status_code == 200
        assert response.json["success"] is True
        assert response.json["message"] == "Заявка получена, но email не отправлен"
        assert response.json["warning"]
        smtp_cls.assert_not_called()

    def test_price_list_bad_port_downgrades(self, client, monkeypatch):
        monkeypatch.setenv("SMTP_PORT", "abc")
        response = client.post("/price-list", json=PRICE_LIST)

        assert response.status_code == 200
        assert response.json["message"] == "Заявка получена, но email не отправлен"


class TestRateLimit:
    """Shared per-IP limit on the form routes."""

    @pytest.fixture
    def limited_client(self, app_config):
        limited = create_app(dict(app_config, FORM_RATE_LIMIT="2 per minute"))
        with limited.app_context():
            limiter.reset()
        with limited.test_client() as test_client:
            yield test_client

    def test_limit_exceeded(self, limited_client):
        with patch("web.forms.send_mail"):
            assert limited_client.post("/partner", json=PARTNER).status_code == 200
            assert limited_client.post("/partner", json=PARTNER).status_code == 200
            response = limited_client.post("/partner", json=PARTNER)

        assert response.status_code == 429
        assert response.json == {"success": False, "error": "Слишком много запросов. Попробуйте позже."}

    def test_limit_shared_across_forms(self, limited_client):
        with patch("web.forms.send_mail"):
            limited_client.post("/partner", json=PARTNER)
            limited_client.post("/manufacturer", json=MANUFACTURER)
            response = limited_client.post("/price-list", json=PRICE_LIST)

        assert response.status_code == 429

    def test_other_routes_not_limited(self, limited_client):
        for _ in range(5):
            assert limited_client.get("/health").status_code == 200
