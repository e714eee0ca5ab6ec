"""Subscription payments via Razorpay.

Order creation calls the Razorpay Orders API when credentials are
configured and falls back to a locally generated order id otherwise.
Verification checks ``HMAC-SHA256(secret, "<order_id>|<payment_id>")``.
"""

import hashlib
import hmac
import logging
import secrets
import time
from datetime import datetime, timedelta, timezone

import httpx
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from solvestay.app.config import Settings, get_settings
from solvestay.app.errors import ApiError
from solvestay.domain.enums import TransactionStatus
from solvestay.domain.models import Profile, Subscription, Transaction
from solvestay.domain.plans import SubscriptionPlan, get_plan

logger = logging.getLogger(__name__)

TEST_SIGNATURE = "test_signature"


class PaymentGatewayError(Exception):
    """Raised when the Razorpay API rejects or fails an order request."""


class RazorpayClient:
    """Minimal Razorpay Orders API client."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.base_url = "https://api.razorpay.com/v1"

    @property
    def _configured(self) -> bool:
        return bool(self.settings.razorpay_key_id and self.settings.razorpay_key_secret)

    async def create_order(self, amount_paise: int, currency: str, receipt: str, notes: dict) -> dict:
        """Create an order and return at least ``{"id", "amount", "currency"}``."""
        if not self._configured:
            order_id = f"order_{int(time.time() * 1000)}_{secrets.token_hex(4)}"
            logger.warning("Razorpay not configured, using local order id %s", order_id)
            return {"id": order_id, "amount": amount_paise, "currency": currency, "receipt": receipt}

        payload = {"amount": amount_paise, "currency": currency, "receipt": receipt, "notes": notes}
        try:
            async with httpx.AsyncClient(timeout=15.0) as client:
                resp = await client.post(
                    f"{self.base_url}/orders",
                    json=payload,
                    auth=(self.settings.razorpay_key_id, self.settings.razorpay_key_secret),
                )
        except httpx.HTTPError as e:
            logger.error("Razorpay order request failed: %s", e)
            raise PaymentGatewayError(str(e)) from e

        if not 200 <= resp.status_code < 300:
            logger.error("Razorpay order failed (%d): %s", resp.status_code, resp.text[:300])
            raise PaymentGatewayError(f"http_{resp.status_code}")

        data = resp.json()
        logger.info("Razorpay order %s created (%d paise)", data.get("id"), amount_paise)
        return data


def sign_payment(order_id: str, payment_id: str, secret: str) -> str:
    return hmac.new(
        secret.encode(),
        f"{order_id}|{payment_id}".encode(),
        hashlib.sha256,
    ).hexdigest()


def verify_payment_signature(order_id: str, payment_id: str, signature: str, secret: str) -> bool:
    expected = sign_payment(order_id, payment_id, secret)
    return hmac.compare_digest(expected, signature or "")


def is_signature_accepted(
    order_id: str, payment_id: str, signature: str, settings: Settings
) -> bool:
    """HMAC check plus the opt-in bypasses for local and sandbox testing."""
    if settings.payment_signature_bypass:
        if settings.is_development:
            logger.warning("Payment signature bypass (development) for order %s", order_id)
            return True
        if signature == TEST_SIGNATURE:
            logger.warning("Payment signature bypass (test_signature) for order %s", order_id)
            return True
    return verify_payment_signature(order_id, payment_id, signature, settings.razorpay_key_secret)


async def create_order(
    db: AsyncSession, user: Profile, plan: SubscriptionPlan, client: RazorpayClient
) -> dict:
    settings = client.settings
    amount_paise = plan.price * 100
    receipt = f"rcpt_{int(time.time() * 1000)}"
    notes = {"plan_type": plan.id, "user_id": user.id}

    order = await client.create_order(amount_paise, settings.payment_currency, receipt, notes)

    transaction = Transaction(
        user_id=user.id,
        razorpay_order_id=order["id"],
        amount=plan.price,
        currency=settings.payment_currency,
        status=TransactionStatus.PENDING.value,
        description=f"{plan.name} Subscription",
        metadata_={
            "plan_type": plan.id,
            "plan_name": plan.name,
            "contacts": plan.contacts,
            "duration": plan.duration_days,
        },
    )
    db.add(transaction)
    await db.commit()

    return {
        "success": True,
        "order_id": order["id"],
        "amount": amount_paise,
        "currency": settings.payment_currency,
        "key_id": settings.razorpay_key_id,
        "plan": plan.as_dict(),
        "prefill": {
            "name": user.full_name or "",
            "email": user.email,
            "contact": user.phone or "",
        },
        "notes": {**notes, "transaction_id": transaction.id},
        "transaction_id": transaction.id,
    }


async def _get_transaction(db: AsyncSession, order_id: str, user_id: str) -> Transaction | None:
    result = await db.execute(
        select(Transaction).where(
            Transaction.razorpay_order_id == order_id,
            Transaction.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def verify_payment(
    db: AsyncSession,
    user_id: str,
    order_id: str,
    payment_id: str,
    signature: str,
    settings: Settings,
) -> tuple[Subscription, bool]:
    """Verify a checkout and activate the plan.

    Returns ``(subscription, created)``; ``created`` is False when the order
    had already been verified. The transaction row is claimed with a
    conditional UPDATE, so concurrent verifies of one order create a
    single subscription.
    """
    transaction = await _get_transaction(db, order_id, user_id)
    if not transaction:
        raise ApiError(404, "Transaction not found")

    if transaction.status == TransactionStatus.SUCCESS.value and transaction.subscription_id:
        subscription = await db.get(Subscription, transaction.subscription_id)
        if subscription:
            return subscription, False

    not_yet_paid = (
        Transaction.id == transaction.id,
        Transaction.status != TransactionStatus.SUCCESS.value,
    )

    if not is_signature_accepted(order_id, payment_id, signature, settings):
        await db.execute(
            update(Transaction)
            .where(*not_yet_paid)
            .values(
                status=TransactionStatus.FAILED.value,
                razorpay_payment_id=payment_id,
                razorpay_signature=signature,
            )
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        logger.warning("Invalid payment signature for order %s", order_id)
        raise ApiError(400, "Invalid payment signature")

    plan = get_plan((transaction.metadata_ or {}).get("plan_type"))
    if not plan:
        raise ApiError(400, "Invalid plan")

    claim = await db.execute(
        update(Transaction)
        .where(*not_yet_paid)
        .values(
            status=TransactionStatus.SUCCESS.value,
            razorpay_payment_id=payment_id,
            razorpay_signature=signature,
            payment_method="razorpay",
        )
        .execution_options(synchronize_session=False)
    )
    if claim.rowcount != 1:
        # Another request verified this order first
        await db.rollback()
        await db.refresh(transaction)
        subscription = (
            await db.get(Subscription, transaction.subscription_id)
            if transaction.subscription_id
            else None
        )
        if not subscription:
            raise ApiError(409, "Payment verification already in progress")
        logger.info("Order %s already verified by a concurrent request", order_id)
        return subscription, False

    now = datetime.now(timezone.utc)
    subscription = Subscription(
        user_id=user_id,
        plan_type=plan.id,
        plan_name=plan.name,
        price=plan.price,
        contacts_limit=plan.contacts,
        contacts_used=0,
        starts_at=now,
        expires_at=now + timedelta(days=plan.duration_days),
        is_active=True,
    )
    db.add(subscription)
    await db.flush()

    await db.execute(
        update(Transaction)
        .where(Transaction.id == transaction.id)
        .values(subscription_id=subscription.id)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    await db.refresh(transaction)

    logger.info("Order %s verified, subscription %s (%s) active", order_id, subscription.id, plan.id)
    return subscription, True
