"""
Subscription Models

A subscription row belongs to exactly one user. It is written by the
billing integration and read-only everywhere else in this package.

DESIGN DECISION: Plan and status are kept as plain strings on the row
model. Unknown values coming from the backend must not break parsing;
the entitlement rules decide how to treat them (always fail closed).
"""

from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SubscriptionPlan(str, Enum):
    """Plan tiers, in ascending order of capability."""
    FREE = "free"
    PREMIUM = "premium"
    FAMILY = "family"


class SubscriptionStatus(str, Enum):
    """Known subscription statuses."""
    TRIAL = "trial"
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELED = "canceled"


# Fixed total order over plan tiers. Anything not listed here is level 0.
PLAN_LEVELS: dict[str, int] = {
    SubscriptionPlan.FREE.value: 0,
    SubscriptionPlan.PREMIUM.value: 1,
    SubscriptionPlan.FAMILY.value: 2,
}


class Subscription(BaseModel):
    """
    Snapshot of a user's subscription row.

    `plan` and `status` accept any string so a row with a value we do not
    know about still loads.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    user_id: str = Field(..., min_length=1)
    plan: str = Field(default=SubscriptionPlan.FREE.value)
    status: str = Field(default=SubscriptionStatus.TRIAL.value)
    trial_end: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    stripe_customer_id: Optional[str] = None

    @field_validator("plan", "status", mode="before")
    @classmethod
    def normalize_label(cls, v):
        if isinstance(v, Enum):
            v = v.value
        if v is None:
            return ""
        return str(v).strip().lower()

    @field_validator("trial_end", "current_period_end", mode="before")
    @classmethod
    def parse_timestamp(cls, v):
        """Accept date-only values (midnight) and blank cells."""
        if v is None or v == "":
            return None
        if isinstance(v, date) and not isinstance(v, datetime):
            return datetime.combine(v, time.min)
        if isinstance(v, str) and len(v.strip()) == 10:
            return datetime.combine(date.fromisoformat(v.strip()), time.min)
        return v

    @field_validator("trial_end", "current_period_end", mode="after")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Naive timestamps from the backend are UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v
