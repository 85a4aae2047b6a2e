"""Domain models for the shopping cart."""

from collections.abc import Mapping
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation

SIZE_TIERS = ("small", "medium", "large")


def normalize_id(value: str | int) -> str:
    """Return the string form used for every cart id comparison."""
    return str(value).strip()


def composite_id(photo_id: str | int, size_tier: str) -> str:
    """Build the `{photoId}-{sizeTier}` key of one purchasable unit."""
    return f"{normalize_id(photo_id)}-{size_tier.strip().lower()}"


def split_composite_id(entry_id: str | int) -> tuple[str, str]:
    """Split a composite id into photo id and size tier."""
    photo_id, _, size_tier = normalize_id(entry_id).rpartition("-")
    if not photo_id or not size_tier:
        raise ValueError(f"Not a composite cart id: {entry_id!r}")
    return photo_id, size_tier


def to_decimal(value: object) -> Decimal:
    """Parse a price from JSON-ish input, rejecting negatives and NaN."""
    if isinstance(value, bool):
        raise ValueError(f"Not a price: {value!r}")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Not a price: {value!r}") from exc
    if not amount.is_finite() or amount < 0:
        raise ValueError(f"Not a price: {value!r}")
    return amount


@dataclass(frozen=True)
class CartEntry:
    """One photo at one size tier, held in the cart."""

    id: str
    photo_id: str
    size_tier: str
    unit_price: Decimal
    image_locator: str = ""
    display_label: str = ""
    description: str = ""
    purchased: bool = False

    @classmethod
    def create(  # noqa: PLR0913
        cls,
        photo_id: str | int,
        size_tier: str,
        unit_price: object,
        image_locator: str = "",
        display_label: str = "",
        description: str = "",
    ) -> "CartEntry":
        """Create an unpurchased entry keyed by its composite id."""
        tier = size_tier.strip().lower()
        return cls(
            id=composite_id(photo_id, tier),
            photo_id=normalize_id(photo_id),
            size_tier=tier,
            unit_price=to_decimal(unit_price),
            image_locator=image_locator,
            display_label=display_label,
            description=description,
        )

    def as_purchased(self) -> "CartEntry":
        """Return a copy flagged as purchased."""
        return replace(self, purchased=True)

    def to_dict(self) -> dict[str, object]:
        """Serialize to the persisted snapshot shape."""
        return {
            "id": self.id,
            "photo_id": self.photo_id,
            "size_tier": self.size_tier,
            "unit_price": str(self.unit_price),
            "image_locator": self.image_locator,
            "display_label": self.display_label,
            "description": self.description,
            "purchased": self.purchased,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> "CartEntry":
        """Deserialize a snapshot item.

        Snapshots written by the older storefront used `price`, `src` and `alt`
        and carried photo id and size only inside the composite id; both shapes
        are accepted.
        """
        entry_id = normalize_id(payload["id"])
        photo_id = payload.get("photo_id")
        size_tier = payload.get("size_tier")
        if photo_id is None or size_tier is None:
            photo_id, size_tier = split_composite_id(entry_id)
        price = payload.get("unit_price", payload.get("price"))
        return cls(
            id=entry_id,
            photo_id=normalize_id(photo_id),
            size_tier=str(size_tier),
            unit_price=to_decimal(price),
            image_locator=str(payload.get("image_locator", payload.get("src", ""))),
            display_label=str(payload.get("display_label", payload.get("alt", ""))),
            description=str(payload.get("description", "")),
            purchased=payload.get("purchased") is True,
        )
