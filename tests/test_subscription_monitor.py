"""Tests for subscription expiry warnings and auto-deactivation."""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, patch

from sqlalchemy import select

from solvestay.domain.models import Notification
from solvestay.services.subscription_monitor import (
    deactivate_expired_subscriptions,
    warn_expiring_subscriptions,
)


class TestExpiryWarnings:
    async def test_warns_once_inside_window(self, db_session, make_profile, make_subscription):
        customer = await make_profile()
        soon = await make_subscription(customer, expires_in=timedelta(hours=6))
        await make_subscription(customer, plan_type="weekly", expires_in=timedelta(days=5))

        assert await warn_expiring_subscriptions(db_session) == 1
        assert await warn_expiring_subscriptions(db_session) == 0

        notes = (
            await db_session.execute(select(Notification).where(Notification.user_id == customer.id))
        ).scalars().all()
        assert len(notes) == 1
        assert notes[0].type == "subscription_expiring"
        assert notes[0].metadata_["subscription_id"] == soon.id

        await db_session.refresh(soon)
        assert soon.expiry_warning_sent_at is not None


class TestDeactivation:
    async def test_only_expired_are_deactivated(self, db_session, make_profile, make_subscription):
        customer = await make_profile()
        expired = await make_subscription(customer, expires_in=timedelta(minutes=-1))
        live = await make_subscription(customer, expires_in=timedelta(days=1))

        assert await deactivate_expired_subscriptions(db_session) == 1

        await db_session.refresh(expired)
        await db_session.refresh(live)
        assert expired.is_active is False
        assert live.is_active is True


class TestMonitorLifecycle:
    async def test_shutdown_waits_for_monitor_task(self):
        from solvestay.app.main import app, lifespan

        started = asyncio.Event()
        cleaned_up = asyncio.Event()

        async def _fake_loop():
            started.set()
            try:
                await asyncio.sleep(3600)
            finally:
                cleaned_up.set()

        with patch("solvestay.app.main.init_db", new=AsyncMock()), patch(
            "solvestay.app.main.subscription_monitor_loop", new=_fake_loop
        ):
            async with lifespan(app):
                await started.wait()
            # the task has fully unwound by the time the lifespan exits
            assert cleaned_up.is_set()
