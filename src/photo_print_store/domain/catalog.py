"""Domain models for catalog pricing."""

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class PhotoPricing:
    """Per-photo size to price map with presentation fields."""

    photo_id: str
    prices: dict[str, Decimal]
    image_locator: str
    title: str = ""
    description: str = ""

    def price_for(self, size_tier: str) -> Decimal | None:
        """Return the price of a size tier, if offered."""
        return self.prices.get(size_tier.strip().lower())
