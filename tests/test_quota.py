"""Tests for subscription lookup, atomic quota consumption and counters."""

from datetime import timedelta

from solvestay.domain.models import Property
from solvestay.services.quota import (
    consume_contact_quota,
    contacts_remaining,
    get_active_subscription,
    increment_counter,
)


class TestActiveSubscription:
    async def test_expired_subscription_is_ignored(self, db_session, make_profile, make_subscription):
        customer = await make_profile()
        await make_subscription(customer, expires_in=timedelta(hours=-1))

        assert await get_active_subscription(db_session, customer.id) is None

    async def test_inactive_subscription_is_ignored(self, db_session, make_profile, make_subscription):
        customer = await make_profile()
        await make_subscription(customer, is_active=False)

        assert await get_active_subscription(db_session, customer.id) is None

    async def test_newest_active_subscription_wins(self, db_session, make_profile, make_subscription):
        customer = await make_profile()
        await make_subscription(customer, plan_type="day")
        newer = await make_subscription(customer, plan_type="weekly", expires_in=timedelta(days=7))

        found = await get_active_subscription(db_session, customer.id)

        assert found.id == newer.id


class TestConsumeContactQuota:
    async def test_never_exceeds_limit(self, db_session, make_profile, make_subscription):
        customer = await make_profile()
        sub = await make_subscription(customer, plan_type="day", contacts_used=3)

        results = [await consume_contact_quota(db_session, sub.id) for _ in range(4)]
        await db_session.commit()
        await db_session.refresh(sub)

        assert results == [True, True, False, False]
        assert sub.contacts_used == sub.contacts_limit == 5
        assert contacts_remaining(sub) == 0

    async def test_unlimited_plan_is_uncapped(self, db_session, make_profile, make_subscription):
        customer = await make_profile()
        sub = await make_subscription(customer, plan_type="monthly", contacts_used=500)

        assert await consume_contact_quota(db_session, sub.id) is True
        await db_session.commit()
        await db_session.refresh(sub)

        assert sub.contacts_used == 501
        assert contacts_remaining(sub) == -1


class TestIncrementCounter:
    async def test_counter_never_goes_negative(self, db_session, make_profile, make_property):
        owner = await make_profile(role="owner")
        prop = await make_property(owner, favorites_count=1)

        assert await increment_counter(db_session, Property.favorites_count, prop.id, -1) is True
        assert await increment_counter(db_session, Property.favorites_count, prop.id, -1) is False
        await db_session.commit()
        await db_session.refresh(prop)

        assert prop.favorites_count == 0

    async def test_views_increment(self, db_session, make_profile, make_property):
        owner = await make_profile(role="owner")
        prop = await make_property(owner)

        await increment_counter(db_session, Property.views_count, prop.id)
        await increment_counter(db_session, Property.views_count, prop.id)
        await db_session.commit()
        await db_session.refresh(prop)

        assert prop.views_count == 2
