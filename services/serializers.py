def money(value):
    return round(float(value or 0), 2)


def iso(value):
    return value.isoformat() if value else None


def serialize_item(item):
    return {
        "product_id": item.product_id,
        "seller_id": item.seller_id,
        "name": item.name,
        "price": money(item.price),
        "quantity": item.quantity,
    }


def serialize_history(entry):
    return {
        "status": entry.status,
        "timestamp": iso(entry.timestamp),
        "updated_by": entry.updated_by,
    }


def serialize_order(order):
    return {
        "id": order.id,
        "user_id": order.user_id,
        "customer_email": order.customer_email or "",
        "items": [serialize_item(item) for item in order.order_items],
        "total": money(order.total),
        "seller_ids": order.seller_ids,
        "shipping_info": dict(order.shipping_info or {}),
        "payment": {
            "payment_method": order.payment_method,
            "payment_status": order.payment_status or "pending",
            "transaction_id": order.transaction_id or "",
        },
        "status": order.status or "pending",
        "status_history": [serialize_history(entry) for entry in order.status_history],
        "deleted": bool(order.deleted),
        "created_at": iso(order.created_at),
        "updated_at": iso(order.updated_at),
    }
