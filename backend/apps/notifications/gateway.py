"""Customer notification gateway backed by a WhatsApp HTTP bridge."""
import logging
import re
from dataclasses import dataclass
from typing import Protocol

import httpx
from django.conf import settings
from django.utils.module_loading import import_string

from apps.customers.models import Customer
from apps.notifications.models import NotificationLog

logger = logging.getLogger(__name__)


class NotificationError(Exception):
    """Raised when a notification could not be delivered."""
    pass


@dataclass
class DeliveryResult:
    """A delivered message."""

    phone: str
    log_id: int | None = None


class NotificationGateway(Protocol):
    """Delivers a text (and optionally a stored document) to a customer."""

    def send(
        self,
        customer_id: int,
        text: str,
        attachment: str | None = None,
        message_type: str = "",
    ) -> DeliveryResult:
        ...


def normalize_phone(raw: str, country_code: str | None = None) -> str:
    """
    Normalize a local or international mobile number to digits with country code.

    Nine-digit local numbers get the country code prefixed; numbers that
    already carry it are kept. Anything else is rejected.
    """
    country_code = country_code or settings.WHATSAPP_COUNTRY_CODE
    digits = re.sub(r"\D", "", raw or "")
    if len(digits) == 9:
        return f"{country_code}{digits}"
    if len(digits) == 9 + len(country_code) and digits.startswith(country_code):
        return digits
    raise NotificationError(f"Invalid phone number: {raw!r}")


class WhatsAppGateway:
    """Sends messages through the WhatsApp bridge and records every attempt."""

    TIMEOUT = 30  # seconds

    def __init__(self, base_url: str | None = None):
        self.base_url = (base_url or settings.WHATSAPP_API_URL).rstrip("/")

    def send(
        self,
        customer_id: int,
        text: str,
        attachment: str | None = None,
        message_type: str = "",
    ) -> DeliveryResult:
        customer = Customer.objects.filter(id=customer_id).first()
        if customer is None:
            raise NotificationError(f"Customer {customer_id} not found")

        try:
            phone = normalize_phone(customer.phone)
        except NotificationError as e:
            self._log(customer, message_type, customer.phone, text, attachment, error=str(e))
            raise

        if attachment:
            endpoint = "/api/send-pdf"
            payload = {"to": phone, "path": attachment, "message": text}
        else:
            endpoint = "/api/send"
            payload = {"to": phone, "message": text}

        try:
            response = httpx.post(
                f"{self.base_url}{endpoint}",
                json=payload,
                timeout=self.TIMEOUT,
            )
        except httpx.RequestError as e:
            logger.error("WhatsApp request failed for customer %s: %s", customer_id, e)
            self._log(customer, message_type, phone, text, attachment, error=str(e))
            raise NotificationError(f"Failed to connect to WhatsApp gateway: {e}")

        if not response.is_success:
            error = f"WhatsApp gateway error {response.status_code}: {response.text}"
            logger.error("%s (customer %s)", error, customer_id)
            self._log(customer, message_type, phone, text, attachment, error=error)
            raise NotificationError(error)

        log = self._log(customer, message_type, phone, text, attachment)
        logger.info("WhatsApp %s sent to customer %s", message_type or "message", customer_id)
        return DeliveryResult(phone=phone, log_id=log.id)

    @staticmethod
    def _log(customer, message_type, phone, text, attachment, error: str = "") -> NotificationLog:
        return NotificationLog.objects.create(
            customer=customer,
            channel=NotificationLog.Channel.WHATSAPP,
            message_type=message_type,
            phone=phone or "",
            content=text,
            attachment=attachment or "",
            status=NotificationLog.Status.FAILED if error else NotificationLog.Status.SENT,
            error=error,
        )


class ConsoleGateway:
    """Logs messages instead of sending them (development and tests)."""

    def send(
        self,
        customer_id: int,
        text: str,
        attachment: str | None = None,
        message_type: str = "",
    ) -> DeliveryResult:
        customer = Customer.objects.filter(id=customer_id).first()
        if customer is None:
            raise NotificationError(f"Customer {customer_id} not found")
        logger.info("[console] %s to customer %s: %s", message_type or "message", customer_id, text)
        log = NotificationLog.objects.create(
            customer=customer,
            message_type=message_type,
            phone=customer.phone,
            content=text,
            attachment=attachment or "",
            status=NotificationLog.Status.SENT,
        )
        return DeliveryResult(phone=customer.phone, log_id=log.id)


def get_notification_gateway() -> NotificationGateway:
    """Instantiate the gateway configured in NOTIFICATION_GATEWAY."""
    return import_string(settings.NOTIFICATION_GATEWAY)()
