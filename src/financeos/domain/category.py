"""Category domain service."""

from typing import Any, Optional

import structlog

from financeos.database.base import Database
from financeos.domain.entities import Category, CategoryType
from financeos.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    business_not_found,
    category_delete_blocked,
    category_not_found,
    duplicate_category_name,
)

logger = structlog.get_logger(__name__)

DEFAULT_CATEGORIES: tuple[tuple[str, CategoryType], ...] = (
    # Income
    ("Product Sales", CategoryType.INCOME),
    ("Service Revenue", CategoryType.INCOME),
    ("Consulting", CategoryType.INCOME),
    # Expenses
    ("Rent & Lease", CategoryType.EXPENSE),
    ("Salaries & Wages", CategoryType.EXPENSE),
    ("Marketing", CategoryType.EXPENSE),
    ("Office Supplies", CategoryType.EXPENSE),
    ("Utilities", CategoryType.EXPENSE),
    ("Travel", CategoryType.EXPENSE),
    ("Software & Subscriptions", CategoryType.EXPENSE),
    ("Professional Services", CategoryType.EXPENSE),
    # Transfers
    ("Owner Investment", CategoryType.TRANSFER),
    ("Owner Withdrawal", CategoryType.TRANSFER),
    ("Loan Payment", CategoryType.TRANSFER),
)


class CategoryService:
    """Service for managing categories."""

    def __init__(self, db: Database):
        """Initialize category service.

        Args:
            db: Database instance
        """
        self.db = db

    def _require_business(self, business_id: int) -> None:
        if self.db.get_business(business_id) is None:
            raise NotFoundError(business_not_found(business_id))

    def _validate_parent(self, business_id: int, parent_id: int) -> None:
        parent = self.db.get_category(parent_id)
        if parent is None or parent.business_id != business_id:
            raise ValidationError(f"Parent category {parent_id} not found in business {business_id}")

    def _check_not_descendant(self, category_id: int, parent_id: int) -> None:
        """Reject a parent that sits below the category in the hierarchy."""
        current = self.db.get_category(parent_id)
        while current is not None and current.parent_id is not None:
            if current.parent_id == category_id:
                raise ValidationError(
                    f"Category {parent_id} is a subcategory of {category_id} and cannot be its parent"
                )
            current = self.db.get_category(current.parent_id)

    def create_category(
        self,
        business_id: int,
        name: str,
        category_type: CategoryType,
        parent_id: Optional[int] = None,
        description: Optional[str] = None,
    ) -> Category:
        """Create a category.

        Args:
            business_id: Owning business
            name: Category name, unique within the business
            category_type: INCOME, EXPENSE or TRANSFER
            parent_id: Optional parent category ID
            description: Optional description

        Returns:
            Created category

        Raises:
            NotFoundError: If the business doesn't exist
            ConflictError: If the name is already used in this business
            ValidationError: If the name is empty or the parent is invalid
        """
        self._require_business(business_id)

        name = name.strip()
        if not name:
            raise ValidationError("Category name must not be empty")
        if self.db.get_category_by_name(business_id, name) is not None:
            raise ConflictError(duplicate_category_name(name, business_id))
        if parent_id is not None:
            self._validate_parent(business_id, parent_id)

        category_id = self.db.create_category(
            business_id=business_id,
            name=name,
            category_type=category_type,
            parent_id=parent_id,
            description=description,
        )
        logger.info("category_created", business_id=business_id, category_id=category_id)
        return self.db.get_category(category_id)

    def get_category(self, business_id: int, category_id: int) -> Category:
        """Get a category belonging to a business.

        Raises:
            NotFoundError: If the category doesn't exist or belongs to another business
        """
        category = self.db.get_category(category_id)
        if category is None or category.business_id != business_id:
            raise NotFoundError(category_not_found(category_id))
        return category

    def list_categories(
        self,
        business_id: int,
        category_type: Optional[CategoryType] = None,
        active: Optional[bool] = None,
    ) -> list[Category]:
        return self.db.list_categories(business_id, category_type=category_type, is_active=active)

    def get_category_tree(self, business_id: int) -> list[dict[str, Any]]:
        """Get full category tree.

        Returns:
            List of root categories with nested children
        """
        return self.db.get_category_tree(business_id)

    def update_category(
        self,
        business_id: int,
        category_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
        category_type: Optional[CategoryType] = None,
        is_active: Optional[bool] = None,
        parent_id: Optional[int] = None,
        clear_parent: bool = False,
    ) -> Category:
        """Update category fields.

        Raises:
            NotFoundError: If the category doesn't exist in the business
            ConflictError: If the new name is already used
            ValidationError: If the new parent is invalid
        """
        self.get_category(business_id, category_id)

        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationError("Category name must not be empty")
            existing = self.db.get_category_by_name(business_id, name)
            if existing is not None and existing.id != category_id:
                raise ConflictError(duplicate_category_name(name, business_id))

        if parent_id is not None:
            if parent_id == category_id:
                raise ValidationError("A category cannot be its own parent")
            self._validate_parent(business_id, parent_id)
            self._check_not_descendant(category_id, parent_id)

        self.db.update_category(
            category_id,
            name=name,
            description=description,
            category_type=category_type,
            is_active=is_active,
            parent_id=parent_id,
            update_parent=clear_parent,
        )
        return self.db.get_category(category_id)

    def deactivate_category(self, business_id: int, category_id: int) -> Category:
        return self.update_category(business_id, category_id, is_active=False)

    def delete_category(self, business_id: int, category_id: int) -> None:
        """Delete an unused category.

        Raises:
            NotFoundError: If the category doesn't exist in the business
            ValidationError: If transactions or subcategories reference it
        """
        self.get_category(business_id, category_id)

        transaction_count = self.db.get_category_transaction_count(category_id)
        child_count = self.db.get_category_child_count(category_id)
        if transaction_count > 0 or child_count > 0:
            raise ValidationError(category_delete_blocked(category_id, transaction_count, child_count))

        self.db.delete_category(category_id)
        logger.info("category_deleted", business_id=business_id, category_id=category_id)

    def seed_default_categories(self, business_id: int) -> int:
        """Create the default categories, skipping names already present.

        Returns:
            Number of categories created
        """
        self._require_business(business_id)

        created = 0
        for name, category_type in DEFAULT_CATEGORIES:
            if self.db.get_category_by_name(business_id, name) is not None:
                continue
            self.db.create_category(business_id=business_id, name=name, category_type=category_type)
            created += 1

        logger.info("default_categories_seeded", business_id=business_id, created=created)
        return created
