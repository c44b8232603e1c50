import csv
import io

from core.imports import current_app
from services.normalize import normalize_shipping_info
from services.orderViews import admin_filtered_orders, seller_names, with_item_images, status_label
from services.serializers import serialize_order
from services.statusEngine import get_order
from services.lookups import ProfileCache

CSV_COLUMNS = (
    "id", "status", "payment_status", "transaction_id", "account_name", "order_name",
    "email_on_order", "phone_on_order", "shipping_address", "sellers", "total",
    "created_at", "items",
)


def csv_row(order, profiles):
    shipping = normalize_shipping_info(order)
    account = profiles.get(order.get("user_id")) or {}
    payment = order.get("payment") or {}
    items = "; ".join(f"{item.get('name') or ''} x{item.get('quantity')}" for item in order.get("items", []))
    return [
        order.get("id"),
        order.get("status") or "pending",
        payment.get("payment_status") or "pending",
        payment.get("transaction_id") or "",
        account.get("name", ""),
        shipping["name"],
        order.get("customer_email") or account.get("email", ""),
        shipping["phone"] or account.get("phone", ""),
        shipping["full_address"],
        " | ".join(seller_names(order, profiles)),
        f"{order.get('total') or 0:.2f}",
        order.get("created_at") or "",
        items,
    ]


def orders_csv(session, filters):
    """CSV text of every order matching `filters` (pagination ignored)."""
    orders, profiles, _ = admin_filtered_orders(session, filters)
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for order in orders:
        writer.writerow(csv_row(order, profiles))
    current_app.logger.info("Exported %d orders to CSV for admin %s", len(orders), session.user_id)
    return buffer.getvalue()


def invoice_context(order, profiles):
    """Template variables for the printable invoice of one serialized order."""
    with_item_images(order)
    shipping = normalize_shipping_info(order)
    account = profiles.get(order.get("user_id")) or {}
    lines = [
        {
            "name": item.get("name") or "Product",
            "quantity": item.get("quantity") or 1,
            "price": item.get("price") or 0,
            "line_total": round((item.get("price") or 0) * (item.get("quantity") or 1), 2),
            "seller": profiles.display_name(item.get("seller_id")),
        }
        for item in order.get("items", [])
    ]
    return {
        "order": order,
        "shipping": shipping,
        "customer_name": shipping["name"] or account.get("name", ""),
        "customer_email": order.get("customer_email") or account.get("email", ""),
        "lines": lines,
        "sellers": seller_names(order, profiles),
        "status_label": status_label(order.get("status")),
        "payment": order.get("payment") or {},
        "currency": current_app.config["CURRENCY_SYMBOL"],
    }


def order_invoice(session, order_id):
    session.require_role("admin")
    order = serialize_order(get_order(order_id))
    profiles = ProfileCache().prefetch([order["user_id"], *order["seller_ids"]])
    return invoice_context(order, profiles)
