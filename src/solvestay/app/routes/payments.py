"""Payment routes: plan catalogue, order creation, checkout verification."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from solvestay.app.config import get_settings
from solvestay.app.errors import ApiError
from solvestay.app.routes.auth import get_current_user_dep
from solvestay.domain.enums import NotificationType
from solvestay.domain.models import Profile
from solvestay.domain.plans import SUBSCRIPTION_PLANS, UNLIMITED_CONTACTS, get_plan
from solvestay.domain.schemas import (
    CreateOrderRequest,
    SubscriptionResponse,
    VerifyPaymentRequest,
)
from solvestay.infra.database import get_db
from solvestay.services.notifications import NotificationService
from solvestay.services.payments import (
    PaymentGatewayError,
    RazorpayClient,
    create_order,
    verify_payment,
)
from solvestay.services.quota import contacts_remaining, get_active_subscription, has_quota

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payments", tags=["payments"])
subscriptions_router = APIRouter(prefix="/api/subscriptions", tags=["payments"])


@router.get("/plans")
async def list_plans():
    return {"plans": [plan.as_dict() for plan in SUBSCRIPTION_PLANS.values()]}


@router.post("/create-order")
async def create_payment_order(
    data: CreateOrderRequest,
    user: Profile = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    plan = get_plan(data.plan_type)
    if not plan:
        raise ApiError(400, "Invalid plan type")

    try:
        return await create_order(db, user, plan, RazorpayClient(get_settings()))
    except PaymentGatewayError as e:
        raise ApiError(500, "Failed to create order") from e


@router.post("/verify")
async def verify_checkout(
    data: VerifyPaymentRequest,
    user: Profile = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    subscription, created = await verify_payment(
        db,
        user.id,
        data.razorpay_order_id,
        data.razorpay_payment_id,
        data.razorpay_signature,
        get_settings(),
    )
    response = {
        "success": True,
        "subscription": SubscriptionResponse.model_validate(subscription).model_dump(mode="json"),
        "message": "Payment verified successfully",
    }
    if not created:
        response["already_verified"] = True
        return response

    contacts = "unlimited" if subscription.contacts_limit == UNLIMITED_CONTACTS else subscription.contacts_limit
    await NotificationService(db).notify(
        user.id,
        NotificationType.PAYMENT_SUCCESS.value,
        "Payment Successful!",
        f"Your {subscription.plan_name} subscription is now active. "
        f"You have {contacts} property contacts.",
        link="/dashboard",
        metadata={"subscription_id": subscription.id, "plan_type": subscription.plan_type},
    )
    return response


@subscriptions_router.get("/current")
async def current_subscription(
    user: Profile = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    subscription = await get_active_subscription(db, user.id)
    if not subscription:
        return {"subscription": None, "contacts_remaining": 0, "can_reveal": False}
    return {
        "subscription": SubscriptionResponse.model_validate(subscription),
        "contacts_remaining": contacts_remaining(subscription),
        "can_reveal": has_quota(subscription),
    }
