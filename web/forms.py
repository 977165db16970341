"""Contact-form relay: /partner, /manufacturer and /price-list.

Each form is validated, rendered into an HTML + plain-text email and handed
to the SMTP mailer. All three routes share one per-IP rate limit.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from flask import Blueprint, Response, current_app, jsonify, render_template, request

from .config import get_email_recipient
from .extensions import limiter
from .logging_utils import log_interaction
from .mailer import MailError, send_mail

__all__ = ["forms", "ContactForm", "CONTACT_FORMS", "consent_given", "render_email"]

logger = logging.getLogger(__name__)

forms = Blueprint("forms", __name__)

MISSING_VALUE = "Не указано"
ERROR_REQUIRED = "Обязательные поля не заполнены"
ERROR_CONSENT = "Необходимо согласие на обработку персональных данных"
ERROR_SEND = "Ошибка отправки заявки"


@dataclass(frozen=True)
class ContactForm:
    """One contact form: its title, labelled fields and required keys."""

    title: str
    fields: Tuple[Tuple[str, str], ...]
    required: Tuple[str, ...]
    consent: bool = True

    @property
    def subject(self) -> str:
        return f"Новая заявка: {self.title}"


CONTACT_FORMS: Dict[str, ContactForm] = {
    "partner": ContactForm(
        title="Стать партнёром",
        fields=(
            ("ФИО", "partner_fullname"),
            ("Телефон", "partner_phone"),
            ("Email", "partner_email"),
            ("Сообщение", "partner_message"),
        ),
        required=("partner_fullname", "partner_phone", "partner_email"),
    ),
    "manufacturer": ContactForm(
        title="Для производителя",
        fields=(
            ("Название компании", "manufacturer_company"),
            ("Контактное лицо", "manufacturer_contact"),
            ("Телефон", "manufacturer_phone"),
            ("Email", "manufacturer_email"),
            ("Описание предложения", "manufacturer_message"),
        ),
        required=("manufacturer_company", "manufacturer_contact", "manufacturer_phone", "manufacturer_email"),
    ),
    "price-list": ContactForm(
        title="Заявка на прайс-лист",
        fields=(("Имя", "name"), ("Email", "email"), ("Телефон", "phone")),
        required=("name", "email", "phone"),
        consent=False,
    ),
}


def _form_rate_limit() -> str:
    return current_app.config["FORM_RATE_LIMIT"]


form_limit = limiter.shared_limit(_form_rate_limit, scope="contact-forms")


def _payload() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def _error(message: str, status: int) -> Tuple[Response, int]:
    return jsonify({"success": False, "error": message}), status


def consent_given(payload: Dict[str, Any]) -> bool:
    """An absent consent field passes; a present one must be on/true."""
    if "consent" not in payload:
        return True
    consent = payload["consent"]
    if consent is True or consent == "on":
        return True
    return str(consent).lower() == "true"


def missing_fields(contact: ContactForm, payload: Dict[str, Any]) -> List[str]:
    return [key for key in contact.required if not payload.get(key)]


def render_email(contact: ContactForm, payload: Dict[str, Any]) -> Tuple[str, str]:
    """Render the HTML and plain-text bodies for a submission.

    Returns:
        (html, text)
    """
    fields = [(label, payload.get(key)) for label, key in contact.fields]
    context = {"subject": contact.subject, "fields": fields, "missing": MISSING_VALUE}
    html = render_template("email/submission.html", **context)
    text = render_template("email/submission.txt", **context)
    return html, text


def _validate(contact: ContactForm, payload: Dict[str, Any]):
    missing = missing_fields(contact, payload)
    if missing:
        logger.info(f"Rejected {contact.title!r} submission, missing: {', '.join(missing)}")
        return _error(ERROR_REQUIRED, 400)
    if contact.consent and not consent_given(payload):
        return _error(ERROR_CONSENT, 400)
    return None


def _log_submission(form: str, status: str, **extra: Any) -> None:
    log_interaction("form_submission", {"form": form, "status": status, "remote_addr": request.remote_addr, **extra})


def _relay(form: str) -> Tuple[Response, int]:
    """Shared handler for /partner and /manufacturer."""
    contact = CONTACT_FORMS[form]
    payload = _payload()

    rejected = _validate(contact, payload)
    if rejected:
        _log_submission(form, "rejected")
        return rejected

    try:
        html, text = render_email(contact, payload)
        send_mail(contact.subject, html, text)
    except MailError as e:
        logger.exception(f"Failed to send {form} submission")
        _log_submission(form, "mail_error", error=str(e))
        return _error(ERROR_SEND, 500)
    except Exception as e:
        logger.exception(f"Unexpected error handling {form} submission")
        _log_submission(form, "error", error=str(e))
        return _error(ERROR_SEND, 500)

    _log_submission(form, "sent")
    return jsonify({"success": True}), 200


@forms.route("/partner", methods=["POST"])
@form_limit
def partner() -> Tuple[Response, int]:
    return _relay("partner")


@forms.route("/manufacturer", methods=["POST"])
@form_limit
def manufacturer() -> Tuple[Response, int]:
    return _relay("manufacturer")


@forms.route("/price-list", methods=["POST"])
@form_limit
def price_list() -> Tuple[Response, int]:
    """Price-list requests succeed even when mail is not configured or fails."""
    contact = CONTACT_FORMS["price-list"]
    payload = _payload()

    rejected = _validate(contact, payload)
    if rejected:
        _log_submission("price-list", "rejected")
        return rejected

    try:
        if not get_email_recipient():
            logger.warning("EMAIL_TO is not set; price-list request accepted without mail")
            _log_submission("price-list", "not_configured")
            return jsonify({"success": True, "message": "Заявка получена (email не настроен)"}), 200

        html, text = render_email(contact, payload)
        try:
            send_mail(contact.subject, html, text)
        except MailError as e:
            logger.error(f"Price-list mail failed: {e}")
            _log_submission("price-list", "mail_error", error=str(e))
            return jsonify({
                "success": True,
                "message": "Заявка получена, но email не отправлен",
                "warning": str(e),
            }), 200
    except Exception as e:
        logger.exception("Unexpected error handling price-list request")
        _log_submission("price-list", "error", error=str(e))
        return _error(f"{ERROR_SEND}: {e}", 500)

    _log_submission("price-list", "sent")
    return jsonify({"success": True}), 200
