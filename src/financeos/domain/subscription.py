"""Subscription tier limits."""

from dataclasses import dataclass

from financeos.domain.entities import SubscriptionTier

UNLIMITED = -1


@dataclass(frozen=True)
class TierLimits:
    """Quotas attached to a subscription tier (-1 means unlimited).

    Only the transaction quota is enforced, when a transaction is posted.
    """

    transactions_limit: int


TIER_LIMITS: dict[SubscriptionTier, TierLimits] = {
    SubscriptionTier.FREE: TierLimits(transactions_limit=50),
    SubscriptionTier.PRO: TierLimits(transactions_limit=UNLIMITED),
    SubscriptionTier.BUSINESS: TierLimits(transactions_limit=UNLIMITED),
}


def get_tier_limits(tier: SubscriptionTier) -> TierLimits:
    """Return the limits for a tier."""
    return TIER_LIMITS[tier]


def is_limit_reached(used: int, limit: int) -> bool:
    """Return True when `used` has reached a quota."""
    if limit == UNLIMITED:
        return False
    return used >= limit


def format_usage(used: int, limit: int) -> str:
    if limit == UNLIMITED:
        return "Unlimited"
    return f"{used} / {limit}"
