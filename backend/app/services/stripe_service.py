"""Payment gateway client.

Reconciliation only needs one gateway operation: open a hosted payment for a renewal invoice.
``PaymentGateway`` is that seam; ``StripeService`` implements it with Stripe Checkout.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Protocol

import stripe

from app.schemas.billing import GatewayCustomer, GatewayLineItem, GatewayTransaction
from common.core.app_error import AppException, Errors
from common.core.config_service import PaymentGatewaySection
from common.utils.utils import get_logger, get_now

logger = get_logger()

# Stripe rejects expires_at outside of [30 minutes, 24 hours] from creation
MIN_EXPIRY_MINUTES = 30
MAX_EXPIRY_MINUTES = 24 * 60

ZERO_DECIMAL_CURRENCIES = frozenset(
    {"bif", "clp", "djf", "gnf", "jpy", "kmf", "krw", "mga", "pyg", "rwf", "ugx", "vnd", "vuv", "xaf", "xof", "xpf"}
)


class PaymentGateway(Protocol):
    method_name: str

    async def create_transaction(
        self,
        *,
        order_id: str,
        gross_amount: Decimal,
        customer: GatewayCustomer,
        line_items: list[GatewayLineItem],
        expiry_minutes: int,
    ) -> GatewayTransaction: ...


def to_minor_units(amount: Decimal, currency: str) -> int:
    """Convert a major-unit amount into the integer Stripe expects."""
    if currency.lower() in ZERO_DECIMAL_CURRENCIES:
        return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class StripeService:
    method_name = "stripe"

    def __init__(self, config: PaymentGatewaySection) -> None:
        self.config = config
        if config.api_key:
            stripe.api_key = config.api_key
        else:
            logger.warning("Stripe API key is missing; renewal invoices cannot be issued")

    async def create_transaction(
        self,
        *,
        order_id: str,
        gross_amount: Decimal,
        customer: GatewayCustomer,
        line_items: list[GatewayLineItem],
        expiry_minutes: int,
    ) -> GatewayTransaction:
        if not self.config.is_configured:
            raise Errors.Gateway.NOT_CONFIGURED.create(details={"order_id": order_id})
        if not self.config.success_url or not self.config.cancel_url:
            raise Errors.Gateway.NOT_CONFIGURED.create(message="Stripe success_url/cancel_url are not configured")

        items_total = sum((item.price * item.quantity for item in line_items), Decimal("0"))
        if items_total != gross_amount:
            raise Errors.Generic.INVALID_INPUT.create(
                message="Line items do not add up to the gross amount",
                details={"order_id": order_id, "gross_amount": str(gross_amount), "items_total": str(items_total)},
            )

        expires_at = self._expires_at(expiry_minutes)
        params = self._checkout_params(order_id=order_id, customer=customer, line_items=line_items, expires_at=expires_at)
        logger.info("Creating Stripe Checkout Session", order_id=order_id, gross_amount=gross_amount, currency=self.config.currency)

        try:
            session = await asyncio.wait_for(
                asyncio.to_thread(stripe.checkout.Session.create, **params),
                timeout=self.config.timeout_seconds,
            )
        except TimeoutError as e:
            logger.exception("Stripe request timed out", order_id=order_id, timeout_seconds=self.config.timeout_seconds)
            raise self._failed(order_id, "Stripe request timed out", e) from e
        except stripe.AuthenticationError as e:
            logger.exception("Stripe authentication error", order_id=order_id)
            raise self._failed(order_id, "Stripe authentication failed", e, retryable=False) from e
        except stripe.InvalidRequestError as e:
            logger.exception("Stripe invalid request", order_id=order_id)
            raise self._failed(order_id, "Invalid Stripe request", e, retryable=False) from e
        except stripe.RateLimitError as e:
            logger.exception("Stripe rate limit exceeded", order_id=order_id)
            raise self._failed(order_id, "Stripe rate limit exceeded", e) from e
        except stripe.APIConnectionError as e:
            logger.exception("Stripe API connection error", order_id=order_id)
            raise self._failed(order_id, "Stripe API connection error", e) from e
        except stripe.StripeError as e:
            logger.exception("Stripe API error", order_id=order_id)
            raise self._failed(order_id, "Stripe API error", e) from e

        redirect_url = getattr(session, "url", None)
        session_id = getattr(session, "id", None)
        if not redirect_url or not session_id:
            raise self._failed(order_id, "Stripe returned a session without id or url", None)

        logger.info("Stripe Checkout Session created", order_id=order_id, session_id=session_id)
        return GatewayTransaction(token=str(session_id), redirect_url=str(redirect_url), expires_at=expires_at)

    def _checkout_params(
        self,
        *,
        order_id: str,
        customer: GatewayCustomer,
        line_items: list[GatewayLineItem],
        expires_at: datetime,
    ) -> dict[str, Any]:
        currency = self.config.currency.lower()
        metadata = {"order_id": order_id, "customer_name": customer.name}
        if customer.phone:
            metadata["customer_phone"] = customer.phone
        return {
            "mode": "payment",
            "success_url": self.config.success_url,
            "cancel_url": self.config.cancel_url,
            "client_reference_id": order_id,
            "customer_email": customer.email,
            "expires_at": int(expires_at.timestamp()),
            "metadata": metadata,
            "payment_intent_data": {"metadata": {"order_id": order_id}},
            "line_items": [
                {
                    "quantity": item.quantity,
                    "price_data": {
                        "currency": currency,
                        "unit_amount": to_minor_units(item.price, currency),
                        "product_data": {"name": item.name, "metadata": {"item_id": item.id}},
                    },
                }
                for item in line_items
            ],
        }

    @staticmethod
    def _expires_at(expiry_minutes: int) -> datetime:
        """Session deadline clamped to what Stripe accepts, truncated to the whole second Stripe stores."""
        expiry = min(max(expiry_minutes, MIN_EXPIRY_MINUTES), MAX_EXPIRY_MINUTES)
        return datetime.fromtimestamp(int((get_now() + timedelta(minutes=expiry)).timestamp()), UTC)

    @staticmethod
    def _failed(order_id: str, message: str, cause: BaseException | None, retryable: bool = True) -> AppException:
        return Errors.Gateway.TRANSACTION_FAILED.create(
            message=message,
            details={"order_id": order_id},
            cause=cause,
            retryable=retryable,
        )
