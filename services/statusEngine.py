"""
Order status transitions and payment verification.

Any status in ORDER_STATUSES may follow any other; rejected/cancelled are
terminal only in what the views show. Every transition appends exactly one
history row and is committed on its own.
"""
from core.imports import current_app, datetime, SQLAlchemyError
from core.extensions import db
from core.errors import InvalidStatus, NotFoundError, Unauthorized, AuthorizationError
from models.orderModels import Order, OrderStatusHistory, ORDER_STATUSES
from services.serializers import serialize_order
from services.orderFeed import order_feed

SYSTEM_ACTOR = "system"


def get_order(order_id):
    order = db.session.get(Order, order_id)
    if not order:
        raise NotFoundError("Order not found")
    return order


def append_history(order, status, updated_by, timestamp=None):
    entry = OrderStatusHistory(
        position=len(order.status_history),
        status=status,
        timestamp=timestamp or datetime.utcnow(),
        updated_by=updated_by,
    )
    order.status_history.append(entry)
    return entry


def set_status(order_id, new_status, session=None):
    """
    Move an order to `new_status` on behalf of `session` (a seller or admin).

    Sellers may only touch orders that list them as a seller. A missing
    session records the change as made by "system".
    """
    if new_status not in ORDER_STATUSES:
        raise InvalidStatus(new_status, ORDER_STATUSES)

    if session is not None and not (session.is_seller or session.is_admin):
        raise AuthorizationError("Only sellers and admins can change order status")

    order = get_order(order_id)
    if order.deleted and (session is None or not session.is_admin):
        raise NotFoundError("Order not found")
    if session is not None and session.is_seller and session.user_id not in order.seller_ids:
        raise Unauthorized()

    now = datetime.utcnow()
    actor = session.actor_id if session is not None else SYSTEM_ACTOR
    previous = order.status

    order.status = new_status
    order.updated_at = now
    if session is not None and session.is_seller:
        order.last_updated_by = actor
    append_history(order, new_status, actor, timestamp=now)

    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise

    current_app.logger.info("Order %s status %s -> %s by %s", order.id, previous, new_status, actor)
    order_feed.publish(serialize_order(order))
    return order


def mark_paid(order_id, session):
    """Admin-only verification of the buyer's transfer reference. There is no way back to pending."""
    session.require_role("admin")
    order = get_order(order_id)
    if order.payment_status == "paid":
        return order

    order.payment_status = "paid"
    order.updated_at = datetime.utcnow()
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise

    current_app.logger.info("Order %s marked as paid by admin %s", order.id, session.user_id)
    order_feed.publish(serialize_order(order))
    return order


def delete_order(order_id, session, hard=True):
    session.require_role("admin")
    order = get_order(order_id)
    payload = {"id": order.id, "user_id": order.user_id, "deleted": True}

    if hard:
        db.session.delete(order)
    else:
        order.deleted = True
        order.updated_at = datetime.utcnow()
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise

    current_app.logger.info("Order %s %s by admin %s", payload["id"], "deleted" if hard else "soft-deleted", session.user_id)
    order_feed.publish(payload if hard else serialize_order(order))
    return payload
