"""ZeptoMail implementation of NotificationDispatcher.

- async httpx via HttpClient
- injected EmailSettings + app_url
- Jinja2 templates for the HTML bodies, plain-text fallbacks inline
"""

import os
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from config import EmailSettings
from infrastructure.email.protocol import RentReminder
from infrastructure.http_client import HttpClient
from schemas.models.otp import OtpPurpose
from schemas.models.reservation import ReservationDoc
from schemas.models.tenancy import TenancyDoc
from shared.logging import get_logger

log = get_logger(__name__)

_ZEPTO_API_URL = "https://api.zeptomail.in/v1.1/email"
_DEFAULT_TEMPLATE_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
    "templates",
    "emails",
)

_OTP_TEMPLATES = {
    OtpPurpose.LOGIN: ("Your Hubode login code", "otp_login.html"),
    OtpPurpose.EMAIL_CHANGE: ("Verify your new email - Hubode", "otp_email_change.html"),
}

_RENT_REMINDER_SUBJECTS = {
    "first": "Friendly Reminder: Your Rent for {month} is Due Soon!",
    "second": "Important: Your Rent for {month} is Now Due",
}


def format_amount(amount: float, currency: str) -> str:
    """Whole-unit amount with thousands separators, e.g. ``INR 15,000``."""
    return f"{currency.upper()} {amount:,.0f}"


class ZeptoMailDispatcher:
    def __init__(
        self,
        settings: EmailSettings,
        http_client: HttpClient,
        app_url: str = "https://hubode.com",
        template_dir: str = _DEFAULT_TEMPLATE_DIR,
    ) -> None:
        self._settings = settings
        self._http = http_client
        self._app_url = app_url
        self._jinja = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html", "xml"]),
        )

    async def _send(
        self,
        to_email: str,
        to_name: Optional[str],
        subject: str,
        html_body: str,
        text_body: Optional[str] = None,
    ) -> bool:
        if not self._settings.zepto_api_token:
            log.error("zepto_mail_send_failed", reason="token_not_configured")
            return False

        payload: dict = {
            "from": {
                "address": self._settings.zepto_from_email,
                "name": self._settings.zepto_from_name,
            },
            "to": [
                {
                    "email_address": {
                        "address": to_email,
                        "name": to_name or to_email,
                    }
                }
            ],
            "subject": subject,
            "htmlbody": html_body,
        }
        if text_body:
            payload["textbody"] = text_body

        token = self._settings.zepto_api_token
        if not token.startswith("Zoho-enczapikey "):
            token = f"Zoho-enczapikey {token}"

        headers = {"Authorization": token, "Content-Type": "application/json"}

        try:
            response = await self._http.post(
                _ZEPTO_API_URL, json=payload, headers=headers
            )
            if response.status_code in (200, 201, 202):
                log.info("email_sent_success", to_email=to_email, subject=subject)
                return True
            log.error(
                "email_sent_failed",
                to_email=to_email,
                subject=subject,
                status_code=response.status_code,
                response=response.text[:200],
            )
            return False
        except Exception as e:
            log.error(
                "email_send_error",
                to_email=to_email,
                subject=subject,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

    async def send_otp_email(
        self,
        email: str,
        user_name: Optional[str],
        otp_code: str,
        purpose: OtpPurpose,
        ttl_minutes: int,
    ) -> bool:
        subject, template_name = _OTP_TEMPLATES[purpose]
        html_body = self._jinja.get_template(template_name).render(
            otp_code=otp_code,
            user_name=user_name,
            new_email=email,
            ttl_minutes=ttl_minutes,
            app_url=self._app_url,
        )
        action = "confirm your email change" if purpose is OtpPurpose.EMAIL_CHANGE else "log in"
        text_body = (
            f"Hello{f' {user_name}' if user_name else ''},\n\n"
            f"Use this code to {action}: {otp_code}\n\n"
            f"This code expires in {ttl_minutes} minutes."
        )
        return await self._send(email, user_name, subject, html_body, text_body)

    async def send_receipt_email(
        self, email: str, user_name: Optional[str], reservation: ReservationDoc
    ) -> bool:
        property_name = reservation.property_name or "Your Property"
        subject = f"Receipt: Booking Confirmed - {property_name}"
        amount = format_amount(reservation.amount_paid, reservation.currency)
        room_type = (
            f"{reservation.occupancy_name or 'Room'} - {reservation.tier_name or 'Tier'}"
        )
        html_body = self._jinja.get_template("receipt.html").render(
            user_name=user_name or "Customer",
            property_name=property_name,
            room_type=room_type,
            amount=amount,
            paid_at=reservation.created_at.strftime("%d %b %Y, %H:%M UTC"),
            payment_id=reservation.payment_id,
            order_id=reservation.order_id,
            app_url=self._app_url,
        )
        text_body = (
            f"Booking confirmed: {property_name}\n"
            f"Room: {room_type}\n"
            f"Amount paid: {amount}\n"
            f"Payment ID: {reservation.payment_id}\n"
            f"Order ID: {reservation.order_id}"
        )
        return await self._send(email, user_name, subject, html_body, text_body)

    async def send_rent_reminder(
        self,
        email: str,
        user_name: Optional[str],
        tenancy: TenancyDoc,
        reminder: RentReminder,
    ) -> bool:
        subject = _RENT_REMINDER_SUBJECTS[reminder.stage].format(month=reminder.month)
        amount = f"{reminder.currency_symbol}{tenancy.rent_amount:,}"
        room_type = f"{tenancy.occupancy_name or 'your room'} - {tenancy.tier_name}"
        property_name = tenancy.property_name or "your property"
        due_date = reminder.due_date.strftime("%d %B %Y").lstrip("0")
        contact = " / ".join(
            c for c in (reminder.contact_email, reminder.contact_phone) if c
        )
        html_body = self._jinja.get_template("rent_reminder.html").render(
            stage=reminder.stage,
            user_name=user_name or "Tenant",
            amount=amount,
            room_type=room_type,
            property_name=property_name,
            month=reminder.month,
            year=reminder.year,
            due_date=due_date,
            payment_instructions=reminder.payment_instructions,
            contact=contact,
            app_url=self._app_url,
        )
        text_body = (
            f"Hi {user_name or 'Tenant'},\n\n"
            f"Your rent of {amount} for {room_type} at {property_name} "
            f"for {reminder.month}, {reminder.year} is due by {due_date}."
        )
        return await self._send(email, user_name, subject, html_body, text_body)
