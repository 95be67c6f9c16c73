"""Utility for resolving category references to IDs."""

from financeos.domain.category import CategoryService
from financeos.domain.errors import NotFoundError


def resolve_category(category_service: CategoryService, business_id: int, category: str | int) -> int:
    """Resolve a category name or ID to a category ID.

    Names are matched case-insensitively first, so a category literally named
    "2024" is found by name before "2024" is tried as an ID.

    Raises:
        NotFoundError: If no category in the business matches
    """
    ref = str(category).strip()

    for cat in category_service.list_categories(business_id):
        if cat.name.lower() == ref.lower():
            return cat.id

    try:
        category_id = int(ref)
    except ValueError:
        raise NotFoundError(f"Category '{ref}' not found")
    return category_service.get_category(business_id, category_id).id
