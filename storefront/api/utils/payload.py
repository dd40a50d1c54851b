from flask import request

from storefront.errors import ValidationError


def json_payload(allow_form: bool = False) -> dict:
    """JSON object body of the request (or its form fields); anything else is a 400."""
    if allow_form and request.form:
        return request.form
    data = request.get_json(silent=True)
    if data is None:
        return request.form if allow_form else {}
    if not isinstance(data, dict):
        raise ValidationError("Invalid request body", "expected a JSON object")
    return data
