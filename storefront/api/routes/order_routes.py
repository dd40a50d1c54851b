from flask import Blueprint, jsonify, current_app

from storefront.api.utils.email import send_email
from storefront.api.utils.payload import json_payload
from storefront.services.order_mail import (
    customer_confirmation,
    owner_notification,
    validate_order,
)

order_bp = Blueprint("order_bp", __name__, url_prefix="/api/order")


@order_bp.post("")
def place_order():
    data = json_payload()
    customer, items, total = validate_order(data)

    cfg = current_app.config
    currency = cfg.get("ORDER_CURRENCY_SYMBOL", "")
    owner = cfg.get("ORDER_NOTIFY_EMAIL") or cfg.get("MAIL_DEFAULT_SENDER")

    try:
        subject, html = owner_notification(customer, items, total, currency)
        send_email(subject=subject, recipients=[owner], html=html, reply_to=customer.get("email"))
    except Exception:
        current_app.logger.exception("Email send error")
        return jsonify({"error": "Failed to place order"}), 500

    # the order is placed once the owner has it; a copy for the customer is a courtesy
    try:
        subject, body = customer_confirmation(customer, items, total, currency, cfg.get("STORE_NAME", ""))
        send_email(subject=subject, recipients=[customer["email"]], body=body)
    except Exception:
        current_app.logger.exception("Customer confirmation e-mail failed")

    return jsonify({"success": True, "message": "Order placed and email sent!"}), 200
