# storefront/services/product_fields.py
from __future__ import annotations

import json
from dataclasses import dataclass, field, fields as dc_fields
from decimal import Decimal, InvalidOperation

from storefront.errors import ValidationError


def to_bool(val, default: bool = False) -> bool:
    """Form checkboxes arrive as "true"/"on"/"1"; blank keeps the default."""
    if isinstance(val, bool):
        return val
    s = _opt_str(val)
    if s is None:
        return default
    return s.lower() in ("1", "true", "t", "yes", "y", "on")


def _opt_str(val) -> str | None:
    s = str(val).strip() if val is not None else ""
    return s or None


def _to_price(val) -> Decimal | None:
    s = _opt_str(val)
    if s is None:
        return None
    try:
        price = Decimal(s)
    except InvalidOperation:
        raise ValidationError("Invalid price", f"price={val!r}")
    if not price.is_finite() or price < 0:
        raise ValidationError("Invalid price", f"price={val!r}")
    return price.quantize(Decimal("0.01"))


def _to_int(val, name: str, default: int = 0) -> int:
    s = _opt_str(val)
    if s is None:
        return default
    try:
        n = int(s)
    except ValueError:
        raise ValidationError(f"Invalid {name}", f"{name}={val!r}")
    if n < 0:
        raise ValidationError(f"Invalid {name}", f"{name}={val!r}")
    return n


def _to_rating(val) -> float:
    s = _opt_str(val)
    if s is None:
        return 0.0
    try:
        r = float(s)
    except ValueError:
        raise ValidationError("Invalid rating", f"rating={val!r}")
    if not 0 <= r <= 5:
        raise ValidationError("Invalid rating", "rating must be between 0 and 5")
    return r


def parse_string_list(raw, name: str) -> list[str]:
    """
    Accept a JSON-encoded array of strings (the admin form posts them that
    way) or an already-decoded list; empty/absent means no entries.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        if not raw.strip():
            return []
        try:
            raw = json.loads(raw)
        except ValueError:
            raise ValidationError(f"Invalid {name}", f"{name} must be a JSON array")
    if not isinstance(raw, list):
        raise ValidationError(f"Invalid {name}", f"{name} must be a JSON array")
    out = []
    for item in raw:
        if isinstance(item, (dict, list)):
            raise ValidationError(f"Invalid {name}", f"{name} must contain strings")
        if item is None:
            continue
        out.append(str(item))
    return out


@dataclass
class ProductFields:
    """Validated column values for a product write."""

    name: str
    sku: str | None = None
    brand: str | None = None
    category: str | None = None
    description: str | None = None
    long_description: str | None = None
    specifications: list[str] = field(default_factory=list)
    features: list[str] = field(default_factory=list)
    price: Decimal | None = None
    stock_count: int = 0
    in_stock: bool = True
    rating: float = 0.0
    featured: bool = False

    @classmethod
    def from_form(cls, data) -> "ProductFields":
        name = _opt_str(data.get("name"))
        if not name:
            raise ValidationError("Product name is required")

        return cls(
            name=name,
            sku=_opt_str(data.get("sku")),
            brand=_opt_str(data.get("brand")),
            category=_opt_str(data.get("category")),
            description=_opt_str(data.get("description")),
            long_description=_opt_str(data.get("long_description")),
            specifications=parse_string_list(data.get("specifications"), "specifications"),
            features=parse_string_list(data.get("features"), "features"),
            price=_to_price(data.get("price")),
            stock_count=_to_int(data.get("stock_count"), "stock_count"),
            in_stock=to_bool(data.get("in_stock"), True),
            rating=_to_rating(data.get("rating")),
            featured=to_bool(data.get("featured"), False),
        )

    def as_columns(self) -> dict:
        return {f.name: getattr(self, f.name) for f in dc_fields(self)}

    def apply(self, product) -> None:
        for key, value in self.as_columns().items():
            setattr(product, key, value)
