"""Business domain service."""

import structlog

from financeos.database.base import Database
from financeos.domain.entities import Business, SubscriptionTier
from financeos.domain.errors import NotFoundError, ValidationError, business_not_found

logger = structlog.get_logger(__name__)


class BusinessService:
    """Service for managing businesses (tenants)."""

    def __init__(self, db: Database):
        """Initialize business service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_business(self, name: str, subscription_tier: SubscriptionTier = SubscriptionTier.FREE) -> Business:
        """Create a new business.

        Args:
            name: Business name
            subscription_tier: Plan the business is on

        Returns:
            Created business

        Raises:
            ValidationError: If name is empty
        """
        name = name.strip()
        if not name:
            raise ValidationError("Business name must not be empty")

        business_id = self.db.create_business(name=name, subscription_tier=subscription_tier)
        logger.info("business_created", business_id=business_id, tier=subscription_tier.value)
        return self.get_business(business_id)

    def get_business(self, business_id: int) -> Business:
        """Get business by ID.

        Raises:
            NotFoundError: If business doesn't exist
        """
        business = self.db.get_business(business_id)
        if business is None:
            raise NotFoundError(business_not_found(business_id))
        return business

    def list_businesses(self) -> list[Business]:
        return self.db.list_businesses()

    def change_tier(self, business_id: int, subscription_tier: SubscriptionTier) -> Business:
        """Move a business to another subscription tier."""
        self.get_business(business_id)
        self.db.update_business_tier(business_id, subscription_tier)
        logger.info("business_tier_changed", business_id=business_id, tier=subscription_tier.value)
        return self.get_business(business_id)
