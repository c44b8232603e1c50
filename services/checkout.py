"""
Checkout assembler: cart snapshot + shipping form + transfer reference -> one order.

All validation and seller resolution happen before anything is added to the
session, so a failure leaves no partial order and the cart untouched.
"""
from core.imports import current_app, datetime, Decimal, SQLAlchemyError
from core.extensions import db
from core.errors import ValidationError, MissingSeller
from models.orderModels import Order, OrderItem, OrderSeller
from models.productModels import Products
from models.cartModels import Cart, CartItem
from services.normalize import (
    normalize_cart, normalize_cart_item, normalize_shipping_info, missing_shipping_fields,
)
from services.statusEngine import append_history, SYSTEM_ACTOR
from services.serializers import serialize_order
from services.orderFeed import order_feed


def stored_cart_items(buyer_id):
    cart = Cart.query.filter_by(buyer_id=buyer_id).first()
    if not cart:
        return []
    return [item.to_cart_item() for item in cart.cart_items]


def clear_stored_cart(buyer_id):
    cart = Cart.query.filter_by(buyer_id=buyer_id).first()
    if cart:
        CartItem.query.filter_by(cart_id=cart.id).delete()


def validate_transaction_id(transaction_id):
    min_length = current_app.config["MIN_TRANSACTION_ID_LENGTH"]
    transaction_id = (transaction_id or "").strip() if isinstance(transaction_id, str) else ""
    if len(transaction_id) < min_length:
        raise ValidationError("Please enter a valid transaction ID")
    return transaction_id


def resolve_seller(item):
    if item["seller_id"]:
        return item["seller_id"]
    if item["product_id"]:
        product = db.session.get(Products, item["product_id"])
        if product and product.seller_id:
            return product.seller_id
    return None


def assemble_items(cart_items):
    items = []
    for raw in normalize_cart(cart_items):
        item = normalize_cart_item(raw)
        seller_id = resolve_seller(item)
        label = item["name"] or item["product_id"] or "unknown"
        if not seller_id:
            current_app.logger.warning("Checkout refused: no seller for item %s", label)
            raise MissingSeller(label)
        items.append({
            "product_id": item["product_id"],
            "seller_id": seller_id,
            "name": item["name"] or "Product",
            "price": item["price"],
            "quantity": item["quantity"],
        })
    return items


def calculate_total(items):
    return sum((item["price"] * item["quantity"] for item in items), Decimal("0.00"))


def place_order(session, cart_items, shipping_info, payment_info=None):
    """
    Create a pending order for the signed-in buyer.

    `cart_items` may be None to use the buyer's stored cart. `payment_info`
    carries the manual transfer reference as `transactionId`/`transaction_id`.
    """
    session.require_role("buyer")
    payment_info = payment_info or {}

    if not cart_items:
        cart_items = stored_cart_items(session.user_id)
    if not normalize_cart(cart_items):
        raise ValidationError("Your cart is empty!")

    shipping = normalize_shipping_info(shipping_info)
    if missing_shipping_fields(shipping):
        raise ValidationError("Please fill in all shipping details including your name and phone number.")

    transaction_id = validate_transaction_id(
        payment_info.get("transactionId") or payment_info.get("transaction_id")
    )

    items = assemble_items(cart_items)
    total = calculate_total(items)
    now = datetime.utcnow()

    order = Order(
        user_id=session.user_id,
        total=total,
        customer_email=session.email,
        shipping_info={key: shipping[key] for key in ("name", "phone", "address", "city", "postal_code", "country")},
        payment_method=payment_info.get("paymentMethod") or current_app.config["PAYMENT_METHOD"],
        payment_status="pending",
        transaction_id=transaction_id,
        status="pending",
        created_at=now,
        updated_at=now,
    )
    for position, item in enumerate(items):
        order.order_items.append(OrderItem(position=position, **item))
    for seller_id in sorted({item["seller_id"] for item in items}):
        order.sellers.append(OrderSeller(seller_id=seller_id))
    append_history(order, "pending", SYSTEM_ACTOR, timestamp=now)

    try:
        db.session.add(order)
        clear_stored_cart(session.user_id)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Error creating order for buyer %s", session.user_id)
        raise

    current_app.logger.info(
        "Order %s placed by buyer %s: %d items, total %s", order.id, session.user_id, len(items), total
    )
    order_feed.publish(serialize_order(order))
    return order
