from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from services.normalize import (
    normalize_cart, normalize_quantity, normalize_price, normalize_cart_item,
    normalize_shipping_info, missing_shipping_fields, resolve_display_image,
)


@pytest.mark.parametrize("item, expected", [
    ({"quantity": 2}, 2),
    ({"qty": 3}, 3),
    ({"count": 0}, 1),
    ({}, 1),
    ({"quantity": "4"}, 4),
    ({"quantity": 2.7}, 2),
    ({"quantity": -5}, 1),
    ({"quantity": "lots"}, 1),
    ({"quantity": None, "qty": 6}, 6),
])
def test_quantity_falls_back_and_floors_at_one(item, expected):
    assert normalize_quantity(item) == expected


def test_cart_accepts_list_or_keyed_map():
    as_map = {"a": {"productId": 1}, "b": {"productId": 2}, "junk": "x"}
    assert normalize_cart(as_map) == [{"productId": 1}, {"productId": 2}]
    assert normalize_cart([{"productId": 1}, None, 3]) == [{"productId": 1}]
    assert normalize_cart(None) == []
    assert normalize_cart("not a cart") == []


def test_price_is_decimal_and_never_negative():
    assert normalize_price("19.999") == Decimal("20.00")
    assert normalize_price(100) == Decimal("100.00")
    assert normalize_price(-3) == Decimal("0")
    assert normalize_price("abc") == Decimal("0")
    assert normalize_price(None) == Decimal("0")


def test_cart_item_key_variants():
    item = normalize_cart_item({"product_id": "7", "vendorId": 3, "title": "Shawl", "price": "10.5", "qty": 2})
    assert item["product_id"] == 7
    assert item["seller_id"] == 3
    assert item["name"] == "Shawl"
    assert item["price"] == Decimal("10.50")
    assert item["quantity"] == 2


def test_shipping_from_container_with_alternate_keys():
    body = {"checkoutInfo": {
        "fullName": " Ali ", "mobile": "0321", "line1": "House 4", "town": "Karachi",
        "zip": "75500", "country": "Pakistan",
    }}
    info = normalize_shipping_info(body)
    assert info["name"] == "Ali"
    assert info["phone"] == "0321"
    assert info["address"] == "House 4"
    assert info["city"] == "Karachi"
    assert info["postal_code"] == "75500"
    assert info["full_address"] == "House 4, Karachi, 75500, Pakistan"
    assert missing_shipping_fields(info) == []


def test_shipping_from_flat_order_fields():
    info = normalize_shipping_info({"shippingName": "Zara", "customerPhone": "0333", "city": "Multan"})
    assert info["name"] == "Zara"
    assert info["phone"] == "0333"
    assert missing_shipping_fields(info) == ["address", "postal_code", "country"]


def test_display_image_prefers_item_urls(app):
    item = {"display_image": None, "image_url": "https://cdn.example.com/a.jpg", "image": "data:image/png;base64,xx"}
    assert resolve_display_image(item) == "https://cdn.example.com/a.jpg"


def test_display_image_ignores_unsafe_urls(app):
    item = {"image_url": "javascript:alert(1)", "product_id": None}
    assert resolve_display_image(item) == app.config["PLACEHOLDER_IMAGE"]


def test_display_image_uses_local_blob_then_product(app):
    assert resolve_display_image({"local_image_id": 5}, image_exists=lambda i: True) == "/images/5"

    lookup = {9: {"image_url": None, "image_data": "data:image/png;base64,AAA", "local_image_id": None}}.get
    assert resolve_display_image(
        {"product_id": 9, "local_image_id": 5}, product_lookup=lookup, image_exists=lambda i: False
    ) == "data:image/png;base64,AAA"


def test_display_image_survives_lookup_failure(app):
    def broken_lookup(product_id):
        raise OperationalError("SELECT", {}, Exception("db down"))

    assert resolve_display_image({"product_id": 1}, product_lookup=broken_lookup) == app.config["PLACEHOLDER_IMAGE"]
