"""Domain models for checkout and payment sessions."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

PAID_STATUSES = frozenset({"paid", "complete"})

ZERO_DECIMAL_CURRENCIES = frozenset(
    {
        "bif",
        "clp",
        "djf",
        "gnf",
        "jpy",
        "kmf",
        "krw",
        "mga",
        "pyg",
        "rwf",
        "ugx",
        "vnd",
        "vuv",
        "xaf",
        "xof",
        "xpf",
    }
)

# Smallest chargeable amount per currency, in major units.
_MINIMUM_CHARGE = {
    "aud": Decimal("0.50"),
    "cad": Decimal("0.50"),
    "chf": Decimal("0.50"),
    "dkk": Decimal("2.50"),
    "eur": Decimal("0.50"),
    "gbp": Decimal("0.30"),
    "hkd": Decimal("4.00"),
    "jpy": Decimal("50"),
    "mxn": Decimal("10"),
    "nok": Decimal("3.00"),
    "nzd": Decimal("0.50"),
    "sek": Decimal("3.00"),
    "sgd": Decimal("0.50"),
    "usd": Decimal("0.50"),
}
DEFAULT_MINIMUM_CHARGE = Decimal("0.50")


class CheckoutState(Enum):
    """Lifecycle of one checkout attempt."""

    IDLE = "idle"
    SESSION_REQUESTED = "session_requested"
    REDIRECTED = "redirected"
    RECONCILING = "reconciling"
    CONFIRMED = "confirmed"
    ABANDONED = "abandoned"
    FAILED = "failed"


def minimum_charge(currency: str) -> Decimal:
    """Return the provider minimum for a currency in major units."""
    return _MINIMUM_CHARGE.get(currency.lower(), DEFAULT_MINIMUM_CHARGE)


def to_minor_units(amount: Decimal, currency: str) -> int:
    """Convert a major-unit amount to the provider's integer minor units."""
    if currency.lower() in ZERO_DECIMAL_CURRENCIES:
        return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(amount: int, currency: str) -> Decimal:
    """Convert integer minor units back to a major-unit amount."""
    if currency.lower() in ZERO_DECIMAL_CURRENCIES:
        return Decimal(amount)
    return Decimal(amount) / 100


@dataclass(frozen=True)
class Selection:
    """Entries the user intends to pay for in the current checkout attempt."""

    ids: tuple[str, ...] = ()
    total: Decimal = Decimal("0")

    @property
    def is_empty(self) -> bool:
        return not self.ids


@dataclass(frozen=True)
class PaymentSession:
    """Provider-owned checkout session as seen by the storefront."""

    id: str
    status: str
    checkout_status: str | None = None
    amount_total: int | None = None
    currency: str | None = None
    created_at: datetime | None = None
    customer_email: str | None = None
    customer_name: str | None = None
    url: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def is_paid(self) -> bool:
        return self.status in PAID_STATUSES

    @classmethod
    def from_provider(cls, payload: Mapping[str, object]) -> "PaymentSession":
        """Build from a provider session payload."""
        customer = payload.get("customer_details") or {}
        created = payload.get("created")
        metadata = payload.get("metadata") or {}
        return cls(
            id=str(payload["id"]),
            status=str(payload.get("payment_status") or payload.get("status") or ""),
            checkout_status=_optional_str(payload.get("status")),
            amount_total=_optional_int(payload.get("amount_total")),
            currency=_optional_str(payload.get("currency")),
            created_at=(
                datetime.fromtimestamp(int(created), tz=UTC)
                if isinstance(created, int | float)
                else None
            ),
            customer_email=_optional_str(customer.get("email")),
            customer_name=_optional_str(customer.get("name")),
            url=_optional_str(payload.get("url")),
            metadata={str(key): str(value) for key, value in metadata.items()},
        )

    def to_dict(self) -> dict[str, object]:
        """Serialize in the provider's field names for API consumers."""
        customer: dict[str, str] = {}
        if self.customer_email:
            customer["email"] = self.customer_email
        if self.customer_name:
            customer["name"] = self.customer_name
        return {
            "id": self.id,
            "payment_status": self.status,
            "status": self.checkout_status,
            "amount_total": self.amount_total,
            "currency": self.currency,
            "created": int(self.created_at.timestamp()) if self.created_at else None,
            "customer_details": customer or None,
            "url": self.url,
        }


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of reconciling a session after the provider redirect."""

    session_id: str
    status: str
    confirmed: bool
    already_confirmed: bool = False
    purchased_ids: tuple[str, ...] = ()
    session: PaymentSession | None = None


@dataclass(frozen=True)
class PaymentHistoryPage:
    """One page of past checkout sessions."""

    sessions: list[PaymentSession]
    has_more: bool


def _optional_str(value: object) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _optional_int(value: object) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return int(value)
