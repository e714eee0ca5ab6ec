"""Subscription plan catalogue.

A plan grants ``contacts`` contact reveals for ``duration_days`` days.
``contacts == -1`` means unlimited.
"""

from dataclasses import dataclass, field

from solvestay.domain.enums import SubscriptionPlanType

UNLIMITED_CONTACTS = -1


@dataclass(frozen=True)
class SubscriptionPlan:
    id: str
    name: str
    price: int
    contacts: int
    duration_days: int
    description: str
    features: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_unlimited(self) -> bool:
        return self.contacts == UNLIMITED_CONTACTS

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "contacts": self.contacts,
            "duration": self.duration_days,
            "description": self.description,
            "features": list(self.features),
        }


SUBSCRIPTION_PLANS: dict[str, SubscriptionPlan] = {
    SubscriptionPlanType.DAY.value: SubscriptionPlan(
        id="day",
        name="Two Day Pass",
        price=49,
        contacts=5,
        duration_days=2,
        description="48 hours access",
        features=("5 property contacts", "Basic search filters", "Chat with owners", "48 hours access"),
    ),
    SubscriptionPlanType.WEEKLY.value: SubscriptionPlan(
        id="weekly",
        name="Weekly Pass",
        price=150,
        contacts=20,
        duration_days=7,
        description="7 days access",
        features=(
            "20 property contacts",
            "Advanced filters",
            "Chat with owners",
            "Save favorites",
            "7 days access",
            "Priority support",
        ),
    ),
    SubscriptionPlanType.MONTHLY.value: SubscriptionPlan(
        id="monthly",
        name="Monthly Pass",
        price=299,
        contacts=UNLIMITED_CONTACTS,
        duration_days=30,
        description="30 days unlimited",
        features=(
            "Unlimited contacts",
            "All premium filters",
            "Chat with owners",
            "Save favorites",
            "30 days access",
            "Priority support",
            "Download PDFs",
            "Price insights",
        ),
    ),
}


def get_plan(plan_type: str | None) -> SubscriptionPlan | None:
    if not plan_type:
        return None
    return SUBSCRIPTION_PLANS.get(plan_type)
