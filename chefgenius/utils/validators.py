"""Input validation utilities."""

from typing import List, Optional
from urllib.parse import urlparse

from chefgenius.utils.exceptions import ValidationError

MAX_INGREDIENTS = 50
MAX_INGREDIENT_LENGTH = 200


def validate_source_url(url: Optional[str]) -> Optional[str]:
    """
    Validate a user-supplied recipe source URL.

    Args:
        url: URL to validate; blank values mean "no override"

    Returns:
        The stripped URL, or None when blank

    Raises:
        ValidationError: If URL is not an http(s) URL with a hostname
    """
    if url is None or not url.strip():
        return None

    url = url.strip()

    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise ValidationError(f"Invalid URL format: {str(e)}") from e

    if parsed.scheme not in ("http", "https"):
        raise ValidationError("URL must use http or https protocol")

    if not parsed.hostname:
        raise ValidationError("URL must have a valid hostname")

    return url


def validate_ingredients_list(ingredients: list) -> List[str]:
    """
    Validate ingredients list.

    Args:
        ingredients: List of ingredient strings

    Returns:
        Validated list of stripped, non-blank ingredients

    Raises:
        ValidationError: If ingredients list is invalid or ends up empty
    """
    if not isinstance(ingredients, list):
        raise ValidationError("Ingredients must be a list")

    if len(ingredients) > MAX_INGREDIENTS:
        raise ValidationError(f"Ingredients list cannot exceed {MAX_INGREDIENTS} items")

    validated = []
    for ingredient in ingredients:
        if not isinstance(ingredient, str):
            raise ValidationError("All ingredients must be strings")
        ingredient = ingredient.strip()
        if not ingredient:
            continue
        if len(ingredient) > MAX_INGREDIENT_LENGTH:
            raise ValidationError(f"Ingredient text cannot exceed {MAX_INGREDIENT_LENGTH} characters")
        validated.append(ingredient)

    if not validated:
        raise ValidationError("At least one ingredient is required")

    return validated


def validate_rating(rating: int) -> int:
    """Ratings are whole stars from 0 to 5."""
    if isinstance(rating, bool) or not isinstance(rating, int) or not 0 <= rating <= 5:
        raise ValidationError("Rating must be an integer between 0 and 5")
    return rating
