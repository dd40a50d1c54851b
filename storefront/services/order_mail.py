# storefront/services/order_mail.py
"""Order notification e-mails (orders are mailed, never stored)."""
from __future__ import annotations

from decimal import Decimal, InvalidOperation

from markupsafe import escape

from storefront.errors import ValidationError

# fields the checkout form always fills in
REQUIRED_CUSTOMER_FIELDS = ("firstName", "lastName", "email", "phone", "address", "city", "state", "pincode")


def _amount(val, label: str) -> Decimal:
    try:
        amount = Decimal(str(val))
    except InvalidOperation:
        raise ValidationError(f"Invalid {label}", f"{label}={val!r}")
    if not amount.is_finite() or amount < 0:
        raise ValidationError(f"Invalid {label}", f"{label}={val!r}")
    return amount


def _fmt(amount: Decimal) -> str:
    return f"{amount:,.2f}"


def validate_order(data: dict) -> tuple[dict, list[dict], Decimal]:
    customer = data.get("customerInfo")
    items = data.get("items")
    total = data.get("total")

    if not customer or not items or total in (None, "", 0):
        raise ValidationError("Missing required fields")
    if not isinstance(customer, dict) or not isinstance(items, list):
        raise ValidationError("Missing required fields")

    missing = [f for f in REQUIRED_CUSTOMER_FIELDS if not str(customer.get(f) or "").strip()]
    if missing:
        raise ValidationError("Missing required fields", "customerInfo: " + ", ".join(missing))

    lines = []
    for it in items:
        if not isinstance(it, dict) or not str(it.get("name") or "").strip():
            raise ValidationError("Invalid order item")
        try:
            qty = int(it.get("quantity", 1))
        except (TypeError, ValueError):
            raise ValidationError("Invalid order item", f"quantity={it.get('quantity')!r}")
        if qty <= 0:
            raise ValidationError("Invalid order item", "quantity must be > 0")
        lines.append({
            "name": str(it["name"]).strip(),
            "quantity": qty,
            "price": _amount(it.get("price", 0), "price"),
        })

    return customer, lines, _amount(total, "total")


def owner_notification(customer: dict, items: list[dict], total: Decimal, currency: str) -> tuple[str, str]:
    """Subject and HTML body of the mail the store owner receives."""
    c = {k: escape(str(v or "")).strip() for k, v in customer.items()}
    full_name = f"{c.get('firstName', '')} {c.get('lastName', '')}".strip()

    items_html = "".join(
        f"<li>{escape(it['name'])} ({it['quantity']} x {currency}{_fmt(it['price'])})</li>"
        for it in items
    )
    html = (
        "<h2>New Order</h2>"
        f"<p><b>Name:</b> {full_name}</p>"
        f"<p><b>Email:</b> {c.get('email', '')}</p>"
        f"<p><b>Phone:</b> {c.get('phone', '')}</p>"
        f"<p><b>Company:</b> {c.get('company') or 'N/A'}</p>"
        f"<p><b>Address:</b> {c.get('address', '')}, {c.get('city', '')}, "
        f"{c.get('state', '')} - {c.get('pincode', '')}</p>"
        f"<p><b>GST:</b> {c.get('gst') or 'N/A'}</p>"
        "<h3>Items:</h3>"
        f"<ul>{items_html}</ul>"
        f"<p><b>Total:</b> {currency}{_fmt(total)}</p>"
    )
    subject = f"New Order from {customer.get('firstName', '')} {customer.get('lastName', '')}".strip()
    return subject, html


def customer_confirmation(customer: dict, items: list[dict], total: Decimal, currency: str, store_name: str) -> tuple[str, str]:
    name = " ".join(p for p in (customer.get("firstName"), customer.get("lastName")) if p)
    lines = [
        f"Dear {name},",
        "",
        "thank you for your order. Summary:",
        "",
    ]
    for it in items:
        lines.append(f"- {it['name']} x {it['quantity']} @ {currency}{_fmt(it['price'])}")
    lines += [
        "",
        f"Total: {currency}{_fmt(total)}",
        "",
        "Our team will contact you shortly to confirm delivery and payment.",
        "",
        store_name,
    ]
    return f"Order confirmation - {store_name}", "\n".join(lines)
