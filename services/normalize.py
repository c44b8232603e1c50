"""
Shape normalization for cart items, order items and shipping info.

Cart items reach the server from several producers (product page "buy now",
wishlist add, the stored cart, checkout forms) and none of them agree on key
names. Everything that reads a cart or renders an order item goes through the
helpers here so the fallback order is defined once.
"""
from core.imports import current_app, Decimal, InvalidOperation, re, SQLAlchemyError

QUANTITY_KEYS = ("quantity", "qty", "count")
PRODUCT_ID_KEYS = ("productId", "product_id", "id")
SELLER_ID_KEYS = ("sellerId", "seller_id", "vendorId")

SHIPPING_CONTAINER_KEYS = (
    "shippingInfo", "shipping_info", "shipping", "checkoutInfo",
    "orderShipping", "deliveryInfo", "checkout",
)
SHIPPING_FIELD_KEYS = {
    "name": ("name", "fullName", "full_name", "recipient", "contactName"),
    "phone": ("phone", "contactPhone", "mobile", "telephone"),
    "address": ("address", "line1", "street", "streetAddress", "addressLine"),
    "city": ("city", "town", "locality"),
    "postal_code": ("postalCode", "postal_code", "zip", "zipcode"),
    "country": ("country", "countryCode", "country_name"),
}
# flat order-level fallbacks used by older order documents
SHIPPING_FLAT_KEYS = {
    "name": ("shippingName", "checkoutName", "customerName"),
    "phone": ("shippingPhone", "checkoutPhone", "customerPhone"),
    "address": ("shippingAddress",),
    "city": ("shippingCity",),
    "postal_code": ("shippingPostalCode",),
    "country": ("shippingCountry",),
}
REQUIRED_SHIPPING_FIELDS = ("name", "phone", "address", "city", "postal_code", "country")

_SAFE_URL = re.compile(r"^data:|^https?://", re.IGNORECASE)
_DATA_IMAGE = re.compile(r"^data:image/", re.IGNORECASE)


def first_present(data, keys, default=None):
    for key in keys:
        value = data.get(key)
        if value is not None and value != "":
            return value
    return default


def normalize_cart(raw_cart):
    """Flatten a cart given as a list or a keyed map into a list of dicts."""
    if not raw_cart:
        return []
    if isinstance(raw_cart, dict):
        items = list(raw_cart.values())
    elif isinstance(raw_cart, (list, tuple)):
        items = list(raw_cart)
    else:
        return []
    return [item for item in items if isinstance(item, dict)]


def normalize_quantity(item):
    raw = first_present(item, QUANTITY_KEYS, default=1)
    if isinstance(raw, bool):
        return 1
    try:
        quantity = int(float(raw))
    except (TypeError, ValueError, OverflowError):
        return 1
    return max(quantity, 1)


def normalize_price(value):
    if value is None or isinstance(value, bool):
        return Decimal("0")
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")
    if not price.is_finite() or price < 0:
        return Decimal("0")
    return price.quantize(Decimal("0.01"))


def _as_int(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def normalize_cart_item(item):
    return {
        "product_id": _as_int(first_present(item, PRODUCT_ID_KEYS)),
        "seller_id": _as_int(first_present(item, SELLER_ID_KEYS)),
        "name": first_present(item, ("name", "title", "productName")),
        "price": normalize_price(item.get("price")),
        "quantity": normalize_quantity(item),
        "display_image": first_present(item, ("displayImage", "display_image")),
        "image_url": first_present(item, ("imageUrl", "image_url")),
        "image": first_present(item, ("image", "imageData", "image_data")),
        "local_image_id": _as_int(first_present(item, ("localImageId", "local_image_id"))),
    }


def normalize_shipping_info(raw):
    """
    Pull a shipping block out of whatever shape it arrives in.

    `raw` may be the shipping dict itself or a whole order/request body that
    carries it under one of the container keys (or as flat order-level fields).
    """
    raw = raw if isinstance(raw, dict) else {}
    container = next(
        (raw[key] for key in SHIPPING_CONTAINER_KEYS if isinstance(raw.get(key), dict)),
        None,
    )

    info = {}
    for field, keys in SHIPPING_FIELD_KEYS.items():
        if container is not None:
            value = first_present(container, keys, default="")
        else:
            value = first_present(raw, SHIPPING_FLAT_KEYS[field] + keys, default="")
        info[field] = value.strip() if isinstance(value, str) else str(value)

    info["full_address"] = ", ".join(
        part for part in (info["address"], info["city"], info["postal_code"], info["country"]) if part
    )
    return info


def missing_shipping_fields(info):
    return [field for field in REQUIRED_SHIPPING_FIELDS if not info.get(field)]


def is_safe_image_url(url):
    return isinstance(url, str) and bool(_SAFE_URL.match(url))


def is_inline_image(data):
    return isinstance(data, str) and bool(_DATA_IMAGE.match(data))


def local_image_url(image_id):
    return f"/images/{image_id}"


def resolve_display_image(item, product_lookup=None, image_exists=None):
    """
    Resolve the image shown for a cart/order item.

    Order: explicit display image, the item's own image URL, a locally stored
    blob by id, the product's image (through `product_lookup`), placeholder.
    `product_lookup(product_id)` returns a product dict or None;
    `image_exists(image_id)` tells whether a local blob is still stored.
    """
    placeholder = current_app.config["PLACEHOLDER_IMAGE"]

    for candidate in (item.get("display_image"), item.get("image_url"), item.get("image")):
        if is_safe_image_url(candidate):
            return candidate

    local_id = item.get("local_image_id")
    if local_id and image_exists is not None and image_exists(local_id):
        return local_image_url(local_id)

    product_id = item.get("product_id")
    if product_id and product_lookup is not None:
        try:
            product = product_lookup(product_id)
        except SQLAlchemyError as e:
            current_app.logger.warning("Image lookup failed for product %s: %s", product_id, e)
            product = None
        if product:
            for candidate in (product.get("image_url"), product.get("image_data")):
                if is_safe_image_url(candidate):
                    return candidate
            product_local_id = product.get("local_image_id")
            if product_local_id and image_exists is not None and image_exists(product_local_id):
                return local_image_url(product_local_id)

    return placeholder
