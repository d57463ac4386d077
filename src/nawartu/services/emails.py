"""
Emails - Bilingual transactional e-mails.

Renders HTML bodies for booking confirmations, listing confirmations and
auth messages (signup, password recovery, magic link) in Arabic or English,
and sends them through the e-mail API. Arabic bodies are marked
``dir="rtl"``. Every interpolated value is HTML-escaped.
"""

import html
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional, Union
from urllib.parse import urlencode

import requests
from requests.exceptions import RequestException

from nawartu.models import parse_date
from nawartu.utils import config
from nawartu.utils.errors import NawartuError
from nawartu.utils.i18n import normalize_language

logger = logging.getLogger('Nawartu')


class EmailError(NawartuError):
    """The e-mail API rejected or did not receive a message."""


@dataclass
class EmailMessage:
    to: list[str]
    subject: str
    html: str
    sender: str = field(default_factory=lambda: config.email_sender)


COPY: dict[str, dict[str, str]] = {
    "brand": {"en": "Nawartu", "ar": "نوارتو"},
    "tagline": {"en": "Syrian Hospitality Platform", "ar": "منصة الضيافة السورية"},
    "greeting": {"en": "Hello {name}!", "ar": "مرحباً {name}!"},
    "regards": {"en": "Best regards,", "ar": "مع أطيب التحيات،"},
    "team": {"en": "The Nawartu Team", "ar": "فريق نوارتو"},
    "footer": {"en": "Nawartu - Syrian Hospitality Platform", "ar": "نوارتو - منصة الضيافة السورية"},

    # Booking confirmation
    "booking.subject": {
        "en": "Booking request received - Nawartu",
        "ar": "تأكيد استلام طلب الحجز - نوارتو",
    },
    "booking.intro": {
        "en": "Thank you for booking your stay with Nawartu. We have received your "
              "booking request and are processing it now.",
        "ar": "شكراً لك على اختيارك منصة نوارتو لحجز إقامتك. لقد تم استلام طلب حجزك "
              "بنجاح ونحن نقوم بمعالجته حالياً.",
    },
    "booking.details": {"en": "Booking details:", "ar": "تفاصيل الحجز:"},
    "booking.listing": {"en": "Property", "ar": "العقار"},
    "booking.location": {"en": "Location", "ar": "الموقع"},
    "booking.check_in": {"en": "Check-in", "ar": "تاريخ الوصول"},
    "booking.check_out": {"en": "Check-out", "ar": "تاريخ المغادرة"},
    "booking.nights": {"en": "Nights", "ar": "عدد الليالي"},
    "booking.total": {"en": "Total amount", "ar": "المبلغ الإجمالي"},
    "booking.payment": {"en": "Payment method", "ar": "طريقة الدفع"},
    "booking.reference": {"en": "Booking number", "ar": "رقم الحجز"},
    "booking.cash": {"en": "Cash", "ar": "نقداً"},
    "booking.card": {"en": "Credit card", "ar": "بطاقة ائتمان"},
    "booking.cash_notes": {
        "en": "Only the first three days are held|Our team will contact you within "
              "24 hours to confirm|Payment is due in cash on arrival",
        "ar": "سيتم حجز الأيام الثلاثة الأولى فقط|سيتواصل معك فريقنا خلال 24 ساعة "
              "لتأكيد الحجز|يجب دفع المبلغ نقداً عند الوصول",
    },
    "booking.card_notes": {
        "en": "All selected days are held|Payment will be confirmed within minutes|"
              "Our team will contact you to confirm the final details",
        "ar": "تم حجز جميع الأيام المحددة|سيتم تأكيد الدفع خلال دقائق|"
              "سيتواصل معك فريقنا لتأكيد التفاصيل النهائية",
    },
    "booking.button": {"en": "Review my bookings", "ar": "مراجعة حجوزاتي"},

    # Listing confirmation
    "listing.subject": {
        "en": "Listing request received - Nawartu",
        "ar": "تأكيد استلام طلب إضافة العقار - نوارتو",
    },
    "listing.intro": {
        "en": "Thank you for adding your property to Nawartu. We have received your "
              "request and are reviewing it now.",
        "ar": "شكراً لك على إضافة عقارك إلى منصة نوارتو. لقد تم استلام طلبك بنجاح ونحن نراجعه حالياً.",
    },
    "listing.details": {"en": "Submitted property:", "ar": "تفاصيل العقار المُرسل:"},
    "listing.reference": {"en": "Reference number", "ar": "رقم المرجع"},
    "listing.notes": {
        "en": "Our team reviews your property within 24-48 hours|We check the quality "
              "of the photos and details|Once approved, your property appears on the platform",
        "ar": "سيتم مراجعة عقارك من قبل فريقنا خلال 24-48 ساعة|سنتحقق من جودة الصور "
              "والمعلومات المقدمة|بعد الموافقة، سيظهر عقارك على المنصة مباشرة",
    },
    "listing.button": {"en": "Go to host dashboard", "ar": "انتقل إلى لوحة المضيف"},

    # Auth
    "signup.subject": {
        "en": "Welcome to Nawartu - Confirm Your Account",
        "ar": "مرحباً بك في نوارتو - تأكيد الحساب",
    },
    "signup.intro": {
        "en": "Thank you for joining Nawartu. To complete your registration, please "
              "confirm your email address.",
        "ar": "شكراً لك على انضمامك إلى نوارتو. لإكمال عملية التسجيل، يرجى تأكيد عنوان بريدك الإلكتروني.",
    },
    "signup.button": {"en": "Confirm Email Address", "ar": "تأكيد البريد الإلكتروني"},
    "signup.ignore": {
        "en": "If you didn't create this account, you can safely ignore this email.",
        "ar": "إذا لم تقم بإنشاء هذا الحساب، يمكنك تجاهل هذا البريد الإلكتروني بأمان.",
    },
    "recovery.subject": {
        "en": "Reset Your Password - Nawartu",
        "ar": "إعادة تعيين كلمة المرور - نوارتو",
    },
    "recovery.intro": {
        "en": "We received a request to reset the password for your Nawartu account. "
              "Click the button below to create a new password.",
        "ar": "تلقينا طلباً لإعادة تعيين كلمة المرور لحسابك في نوارتو. انقر على الزر أدناه "
              "لإنشاء كلمة مرور جديدة.",
    },
    "recovery.button": {"en": "Reset Password", "ar": "إعادة تعيين كلمة المرور"},
    "recovery.ignore": {
        "en": "If you didn't request a password reset, you can safely ignore this email.",
        "ar": "إذا لم تطلب إعادة تعيين كلمة المرور، يمكنك تجاهل هذا البريد الإلكتروني بأمان.",
    },
    "magiclink.subject": {"en": "Your Nawartu sign-in link", "ar": "رابط تسجيل الدخول إلى نوارتو"},
    "magiclink.intro": {
        "en": "Click the button below to sign in to your Nawartu account.",
        "ar": "انقر على الزر أدناه لتسجيل الدخول إلى حسابك في نوارتو.",
    },
    "magiclink.button": {"en": "Sign In", "ar": "تسجيل الدخول"},
    "magiclink.ignore": {
        "en": "If you didn't request this link, you can safely ignore this email.",
        "ar": "إذا لم تطلب هذا الرابط، يمكنك تجاهل هذا البريد الإلكتروني بأمان.",
    },
    "link.copy": {
        "en": "Or copy and paste this link into your browser:",
        "ar": "أو يمكنك نسخ الرابط التالي ولصقه في المتصفح:",
    },
    "generic.subject": {"en": "Message from Nawartu", "ar": "رسالة من نوارتو"},
    "generic.intro": {"en": "This email was sent from Nawartu.", "ar": "تم إرسال هذا البريد الإلكتروني من نوارتو."},
}

AUTH_ACTIONS = ("signup", "recovery", "magiclink")


def _c(key: str, lang: str, **params: Any) -> str:
    """Localized copy with every parameter HTML-escaped."""
    text = COPY[key][lang]
    if params:
        text = text.format(**{k: html.escape(str(v)) for k, v in params.items()})
    return text


def direction(lang: str) -> str:
    return "rtl" if lang == "ar" else "ltr"


def format_date(value: Union[date, str], lang: str) -> str:
    d = parse_date(value)
    if d is None:
        return ""
    if lang == "ar":
        return f"{d.day}/{d.month}/{d.year}"
    return d.strftime("%b %d, %Y")


def _layout(lang: str, title: str, body: str) -> str:
    return (
        f'<!DOCTYPE html>\n<html dir="{direction(lang)}" lang="{lang}">\n'
        f'<head><meta charset="utf-8"><title>{html.escape(title)}</title></head>\n'
        f'<body style="font-family: Tahoma, Arial, sans-serif; max-width: 600px; margin: 0 auto;">\n'
        f'<div style="text-align: center; padding: 30px 20px;">'
        f'<h1 style="margin: 0;">{_c("brand", lang)}</h1>'
        f'<p style="color: #666;">{_c("tagline", lang)}</p></div>\n'
        f'<div style="padding: 20px;">{body}</div>\n'
        f'<div style="padding: 20px; text-align: center; color: #666; font-size: 14px;">'
        f'&copy; {date.today().year} {_c("footer", lang)}</div>\n'
        f'</body>\n</html>\n'
    )


def _rows(lang: str, rows: list[tuple[str, Any]]) -> str:
    return "".join(
        f'<p style="margin: 5px 0;"><strong>{_c(label, lang)}:</strong> {html.escape(str(value))}</p>'
        for label, value in rows
    )


def _list(lang: str, key: str) -> str:
    items = "".join(f"<li>{html.escape(item)}</li>" for item in COPY[key][lang].split("|"))
    return f"<ul>{items}</ul>"


def _button(url: str, label: str) -> str:
    return (
        f'<div style="text-align: center; margin: 30px 0;">'
        f'<a href="{html.escape(url, quote=True)}" style="padding: 12px 30px; '
        f'text-decoration: none; display: inline-block;">{label}</a></div>'
    )


def _signature(lang: str) -> str:
    return f'<p>{_c("regards", lang)}<br><strong>{_c("team", lang)}</strong></p>'


def booking_confirmation_email(
    guest_email: str,
    guest_name: str,
    listing_name: str,
    listing_location: str,
    check_in: Union[date, str],
    check_out: Union[date, str],
    total_nights: int,
    total_amount: float,
    payment_method: str,
    booking_id: str,
    lang: str = "ar",
    site_url: Optional[str] = None
) -> EmailMessage:
    """Confirmation that a booking request was received."""
    lang = normalize_language(lang, "ar")
    site = (site_url or config.site_url).rstrip("/")
    is_cash = payment_method == "cash"

    body = (
        f'<h2>{_c("greeting", lang, name=guest_name)}</h2>'
        f'<p>{_c("booking.intro", lang)}</p>'
        f'<h3>{_c("booking.details", lang)}</h3>'
        + _rows(lang, [
            ("booking.listing", listing_name),
            ("booking.location", listing_location),
            ("booking.check_in", format_date(check_in, lang)),
            ("booking.check_out", format_date(check_out, lang)),
            ("booking.nights", total_nights),
            ("booking.total", f"${total_amount}"),
            ("booking.payment", _c("booking.cash" if is_cash else "booking.card", lang)),
            ("booking.reference", booking_id),
        ])
        + _list(lang, "booking.cash_notes" if is_cash else "booking.card_notes")
        + _button(f"{site}/guest-dashboard", _c("booking.button", lang))
        + _signature(lang)
    )
    subject = _c("booking.subject", lang)
    return EmailMessage(to=[guest_email], subject=subject, html=_layout(lang, subject, body))


def listing_confirmation_email(
    host_email: str,
    host_name: str,
    listing_name: str,
    listing_location: str,
    listing_id: str,
    lang: str = "ar",
    site_url: Optional[str] = None
) -> EmailMessage:
    """Confirmation that a new listing was submitted for review."""
    lang = normalize_language(lang, "ar")
    site = (site_url or config.site_url).rstrip("/")

    body = (
        f'<h2>{_c("greeting", lang, name=host_name)}</h2>'
        f'<p>{_c("listing.intro", lang)}</p>'
        f'<h3>{_c("listing.details", lang)}</h3>'
        + _rows(lang, [
            ("booking.listing", listing_name),
            ("booking.location", listing_location),
            ("listing.reference", listing_id),
        ])
        + _list(lang, "listing.notes")
        + _button(f"{site}/host-dashboard", _c("listing.button", lang))
        + _signature(lang)
    )
    subject = _c("listing.subject", lang)
    return EmailMessage(to=[host_email], subject=subject, html=_layout(lang, subject, body))


def auth_email(
    email: str,
    action: str,
    token_hash: str,
    redirect_to: str,
    site_url: str,
    full_name: Optional[str] = None,
    lang: Optional[str] = None
) -> EmailMessage:
    """
    Auth e-mail for a signup confirmation, password recovery or magic link.

    Unknown actions get a short generic message. The user's name defaults to
    the local part of their address.
    """
    lang = normalize_language(lang)
    name = full_name or email.split("@")[0]

    if action not in AUTH_ACTIONS:
        subject = _c("generic.subject", lang)
        body = f'<h2>{_c("greeting", lang, name=name)}</h2><p>{_c("generic.intro", lang)}</p>'
        return EmailMessage(to=[email], subject=subject, html=_layout(lang, subject, body))

    query = urlencode({"token": token_hash, "type": action, "redirect_to": redirect_to})
    verify_url = f"{site_url.rstrip('/')}/auth/v1/verify?{query}"

    body = (
        f'<h2>{_c("greeting", lang, name=name)}</h2>'
        f'<p>{_c(f"{action}.intro", lang)}</p>'
        + _button(verify_url, _c(f"{action}.button", lang))
        + f'<p>{_c("link.copy", lang)}</p>'
        f'<p style="word-break: break-all;">{html.escape(verify_url)}</p>'
        f'<p>{_c(f"{action}.ignore", lang)}</p>'
        + _signature(lang)
    )
    subject = _c(f"{action}.subject", lang)
    return EmailMessage(to=[email], subject=subject, html=_layout(lang, subject, body))


class EmailService:
    """Sends rendered messages through the e-mail HTTP API."""

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None
    ):
        self.api_url = api_url or config.email_api_url
        self.api_key = api_key if api_key is not None else config.email_api_key
        self.session = session or requests.Session()

    def send(self, message: EmailMessage) -> dict[str, Any]:
        """
        Send one message.

        Returns:
            The API's JSON response

        Raises:
            EmailError: Missing API key, network failure or an error response
        """
        if not self.api_key:
            raise EmailError("E-mail API key is not configured")

        logger.info(f"Sending '{message.subject}' to {', '.join(message.to)}")
        try:
            response = self.session.post(
                self.api_url,
                json={
                    "from": message.sender,
                    "to": message.to,
                    "subject": message.subject,
                    "html": message.html,
                },
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=config.http_timeout,
            )
            response.raise_for_status()
        except RequestException as e:
            logger.error(f"Failed to send e-mail to {', '.join(message.to)}: {e}")
            raise EmailError(str(e)) from e

        try:
            return response.json()
        except ValueError:
            return {}
