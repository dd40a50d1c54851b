import json
from decimal import Decimal

import pytest

from storefront.errors import ValidationError
from storefront.services.product_fields import ProductFields, parse_string_list, to_bool


def test_defaults_for_a_minimal_form():
    f = ProductFields.from_form({"name": "  Hand Pump "})

    assert f.name == "Hand Pump"
    assert f.price is None
    assert f.stock_count == 0
    assert f.in_stock is True
    assert f.featured is False
    assert f.rating == 0.0
    assert f.specifications == []
    assert f.sku is None


def test_full_form_is_converted():
    f = ProductFields.from_form({
        "name": "Sprayer X",
        "sku": "SPX-16",
        "price": "1299.5",
        "stock_count": "7",
        "in_stock": "false",
        "featured": "on",
        "rating": "4.5",
        "features": json.dumps(["Brass nozzle", "16 L tank"]),
    })

    assert f.price == Decimal("1299.50")
    assert f.stock_count == 7
    assert f.in_stock is False
    assert f.featured is True
    assert f.rating == 4.5
    assert f.features == ["Brass nozzle", "16 L tank"]


@pytest.mark.parametrize("form", [
    {"name": ""},
    {"name": "   "},
    {},
])
def test_name_is_required(form):
    with pytest.raises(ValidationError) as exc:
        ProductFields.from_form(form)
    assert exc.value.message == "Product name is required"


@pytest.mark.parametrize("key,value", [
    ("price", "abc"),
    ("price", "-1"),
    ("price", "NaN"),
    ("stock_count", "2.5"),
    ("stock_count", "-3"),
    ("rating", "6"),
    ("specifications", '{"a": 1}'),
    ("features", "[[1]]"),
])
def test_invalid_values_are_rejected(key, value):
    with pytest.raises(ValidationError):
        ProductFields.from_form({"name": "Pump", key: value})


def test_parse_string_list_accepts_decoded_lists():
    assert parse_string_list(["a", 2, None], "x") == ["a", "2"]
    assert parse_string_list("", "x") == []
    assert parse_string_list(None, "x") == []


@pytest.mark.parametrize("raw,expected", [
    ("1", True), ("TRUE", True), ("yes", True), ("on", True), ("0", False), ("off", False),
])
def test_to_bool(raw, expected):
    assert to_bool(raw) is expected


def test_blank_bool_keeps_default():
    assert to_bool("", True) is True
    assert to_bool(None, True) is True
    assert to_bool("  ") is False


def test_apply_sets_columns():
    class Row:
        pass

    row = Row()
    ProductFields(name="Hose", category="Spares").apply(row)

    assert row.name == "Hose"
    assert row.category == "Spares"
    assert row.features == []
