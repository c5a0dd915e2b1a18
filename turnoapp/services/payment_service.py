"""Deposit hand-off to the payment collaborator.

Nothing about a pending deposit booking is stored server-side. The booking facts
travel in a signed, expiring checkout token that comes back with the payment
callback; the slot is not held while the client pays.
"""
import logging
from dataclasses import dataclass
from datetime import date, time
from typing import Protocol
from urllib.parse import urlencode
from uuid import uuid4

from turnoapp.core.config import settings
from turnoapp.core.security import create_signed_token, decode_signed_token

logger = logging.getLogger(__name__)

CHECKOUT_TOKEN_TYPE = "deposit"


@dataclass(frozen=True)
class PendingBooking:
    client_id: int
    professional_id: int
    service_id: int
    date: date
    start_time: time
    deposit_amount: float
    notes: str | None = None


@dataclass(frozen=True)
class Checkout:
    checkout_id: str
    checkout_url: str


class PaymentGateway(Protocol):
    async def create_checkout(self, pending: PendingBooking) -> Checkout: ...


class SimulatedPaymentGateway:
    """Stand-in processor: hands out a checkout id and a URL to the simulated pay page."""

    def __init__(self, base_url: str | None = None) -> None:
        self.base_url = base_url or settings.payment_checkout_base_url

    async def create_checkout(self, pending: PendingBooking) -> Checkout:
        checkout_id = f"chk_{uuid4().hex}"
        query = urlencode({"checkout_id": checkout_id, "amount": f"{pending.deposit_amount:.2f}"})
        logger.info(
            "Simulated checkout %s for service=%s amount=%.2f",
            checkout_id, pending.service_id, pending.deposit_amount,
        )
        return Checkout(checkout_id=checkout_id, checkout_url=f"{self.base_url}?{query}")


def get_payment_gateway() -> PaymentGateway:
    return SimulatedPaymentGateway()


def encode_checkout_token(pending: PendingBooking, checkout_id: str) -> str:
    claims = {
        "sub": str(pending.client_id),
        "cid": checkout_id,
        "pro": pending.professional_id,
        "svc": pending.service_id,
        "date": pending.date.isoformat(),
        "start": pending.start_time.strftime("%H:%M"),
        "amount": pending.deposit_amount,
        "notes": pending.notes,
    }
    return create_signed_token(claims, CHECKOUT_TOKEN_TYPE, settings.deposit_checkout_ttl_minutes)


def decode_checkout_token(token: str) -> tuple[PendingBooking, str] | None:
    """Returns (pending booking, checkout id), or None for a bad or expired token."""
    payload = decode_signed_token(token, CHECKOUT_TOKEN_TYPE)
    if not payload:
        return None
    try:
        pending = PendingBooking(
            client_id=int(payload["sub"]),
            professional_id=int(payload["pro"]),
            service_id=int(payload["svc"]),
            date=date.fromisoformat(payload["date"]),
            start_time=time.fromisoformat(payload["start"]),
            deposit_amount=float(payload["amount"]),
            notes=payload.get("notes"),
        )
        checkout_id = str(payload["cid"])
    except (KeyError, TypeError, ValueError):
        logger.warning("Checkout token has malformed claims")
        return None
    return pending, checkout_id
