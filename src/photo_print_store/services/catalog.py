"""Catalog price resolver with caching."""

import logging
from dataclasses import dataclass
from decimal import Decimal

from photo_print_store.adapters.catalog_client import CatalogClient
from photo_print_store.domain.cart import CartEntry, normalize_id, to_decimal
from photo_print_store.domain.catalog import PhotoPricing
from photo_print_store.domain.errors import CatalogUnavailable, UnknownSizeTier
from photo_print_store.services.cache import Cache

_logger = logging.getLogger(__name__)

_SIZE_LABELS = {
    "small": "Small print",
    "medium": "Medium print",
    "large": "Large print",
}


@dataclass
class CatalogService:
    """Resolves per-photo prices; the pricing authority at checkout time."""

    client: CatalogClient
    cache: Cache
    ttl_seconds: float = 300

    async def get_pricing(self, photo_id: str | int) -> PhotoPricing:
        """Return pricing for a photo, fetching it when not cached."""
        normalized = normalize_id(photo_id)
        cache_key = f"catalog:photo:{normalized}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, PhotoPricing):
            return cached
        try:
            payload = await self.client.get_photo_info(normalized)
        except Exception as exc:
            _logger.exception("Catalog lookup failed", extra={"photo_id": normalized})
            raise CatalogUnavailable(
                "Photo information is unavailable", details={"photo_id": normalized}
            ) from exc
        pricing = parse_photo_pricing(normalized, payload)
        self.cache.set(cache_key, pricing, ttl_seconds=self.ttl_seconds)
        return pricing

    async def build_entry(self, photo_id: str | int, size_tier: str) -> CartEntry:
        """Create a cart entry for one photo at one size tier."""
        pricing = await self.get_pricing(photo_id)
        tier = size_tier.strip().lower()
        price = pricing.price_for(tier)
        if price is None:
            raise UnknownSizeTier(pricing.photo_id, tier)
        title = pricing.title or pricing.photo_id
        return CartEntry.create(
            photo_id=pricing.photo_id,
            size_tier=tier,
            unit_price=price,
            image_locator=pricing.image_locator,
            display_label=f"{title} ({_SIZE_LABELS.get(tier, tier)})",
            description=pricing.description,
        )

    async def price_for(self, entry: CartEntry) -> Decimal:
        """Return the current catalog price of a cart entry."""
        pricing = await self.get_pricing(entry.photo_id)
        price = pricing.price_for(entry.size_tier)
        if price is None:
            raise UnknownSizeTier(entry.photo_id, entry.size_tier)
        return price


def parse_photo_pricing(photo_id: str, payload: dict[str, object]) -> PhotoPricing:
    """Parse a photo record.

    Prices arrive either as plain numbers/strings or wrapped in attribute-type
    maps such as `{"small": {"S": "0.31"}}`. Unparseable tiers are skipped.
    """
    raw_prices = payload.get("prices")
    prices: dict[str, Decimal] = {}
    if isinstance(raw_prices, dict):
        for tier, raw in raw_prices.items():
            value = _unwrap_attribute(raw)
            try:
                prices[str(tier).strip().lower()] = to_decimal(value)
            except ValueError:
                _logger.warning(
                    "Skipping unparseable price",
                    extra={"photo_id": photo_id, "tier": tier},
                )
    locator = (
        payload.get("s3_newsize_path")
        or payload.get("image_url")
        or payload.get("s3_path")
        or ""
    )
    title = payload.get("title") or payload.get("filename") or payload.get("fileName")
    return PhotoPricing(
        photo_id=normalize_id(payload.get("id") or photo_id),
        prices=prices,
        image_locator=str(locator),
        title=str(title or ""),
        description=str(payload.get("description") or ""),
    )


def _unwrap_attribute(raw: object) -> object:
    if isinstance(raw, dict) and len(raw) == 1:
        type_tag, value = next(iter(raw.items()))
        if type_tag in {"S", "N"}:
            return value
    return raw
