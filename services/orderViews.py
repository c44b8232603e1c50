"""
Read side of orders for the three audiences.

Buyers see their own orders with a progress step derived from the status,
sellers see orders that include them with items joined against their own
catalog, admins see everything with search, filters and pagination.
"""
import math

from core.imports import current_app, datetime, timedelta, timezone
from core.extensions import db
from core.errors import AuthorizationError, NotFoundError, ValidationError
from models.orderModels import Order, OrderSeller, TERMINAL_STATUSES, ORDER_STATUSES
from services.normalize import resolve_display_image, normalize_shipping_info
from services.serializers import serialize_order, money
from services.lookups import product_lookup, image_exists, seller_catalog, ProfileCache

TRACKING_STEPS = (
    ("pending", "Order Placed"),
    ("accepted", "Accepted"),
    ("processing", "Processing"),
    ("shipped", "Shipped"),
    ("out_for_delivery", "Out for Delivery"),
    ("delivered", "Delivered"),
)
STEP_BY_STATUS = {key: index + 1 for index, (key, _) in enumerate(TRACKING_STEPS)}
STATUS_LABELS = dict(TRACKING_STEPS, rejected="Rejected", cancelled="Cancelled")


def current_step(status):
    return STEP_BY_STATUS.get(status, 0)


def status_label(status):
    return STATUS_LABELS.get(status, "Unknown")


def _comparable(value):
    return str(value or "").replace("_", " ").strip().lower()


def find_history_entry(history, key, label):
    """First history entry matching a milestone by key or label, ignoring case and underscores."""
    wanted = {_comparable(key), _comparable(label)}
    for entry in history or []:
        if entry.get("status") == key or _comparable(entry.get("status")) in wanted:
            return entry
    return None


def milestones(order):
    step = current_step(order.get("status"))
    history = order.get("status_history") or []
    result = []
    for index, (key, label) in enumerate(TRACKING_STEPS, start=1):
        entry = find_history_entry(history, key, label)
        result.append({
            "key": key,
            "label": label,
            "completed": index <= step,
            "active": index == step,
            "timestamp": entry.get("timestamp") if entry else None,
        })
    return result


def with_tracking(order):
    status = order.get("status")
    order["current_step"] = current_step(status)
    order["status_label"] = status_label(status)
    order["is_terminal"] = status in TERMINAL_STATUSES
    order["milestones"] = milestones(order)
    return order


def with_item_images(order, lookup=product_lookup):
    for item in order.get("items", []):
        item["display_image"] = resolve_display_image(item, product_lookup=lookup, image_exists=image_exists)
    items = order.get("items") or []
    order["preview_image"] = items[0]["display_image"] if items else current_app.config["PLACEHOLDER_IMAGE"]
    return order


def _newest_first(query):
    return query.order_by(Order.created_at.desc(), Order.id.desc())


# ---------- Buyer ----------

def buyer_orders(session, status=None):
    session.require_role("buyer")
    query = Order.query.filter(Order.user_id == session.user_id, Order.deleted.is_(False))
    orders = [serialize_order(o) for o in _newest_first(query).all()]
    if status:
        orders = [o for o in orders if o["status"].lower() == str(status).lower()]
    return [buyer_view(o) for o in orders]


def buyer_view(order):
    """Decorate a serialized order for the buyer's history/tracking screens."""
    return with_tracking(with_item_images(order))


def buyer_order(session, order_id):
    order = db.session.get(Order, order_id)
    if not order or (order.deleted and not session.is_admin):
        raise NotFoundError("Order not found")
    if order.user_id != session.user_id and not session.is_admin:
        raise AuthorizationError("You can only track your own orders")
    return buyer_view(serialize_order(order))


# ---------- Seller ----------

def customer_contact(order, profiles):
    shipping = order.get("shipping_info") or {}
    profile = profiles.get(order.get("user_id")) or {}
    return {
        "customer_name": shipping.get("name") or profile.get("name") or order.get("customer_email") or "",
        "customer_email": order.get("customer_email") or profile.get("email") or "",
        "customer_phone": shipping.get("phone") or profile.get("phone") or "",
    }


def seller_view(order, catalog, profiles):
    """
    Enrich an order for one seller. Only products in that seller's own catalog
    are joined; other sellers' items keep their denormalized fields.
    """
    for item in order.get("items", []):
        product = catalog.get(item.get("product_id"))
        item["product_name"] = (product or {}).get("name") or item.get("name") or "Product"
        item["category_name"] = (product or {}).get("category_name") or "—"
        item["display_image"] = resolve_display_image(
            item, product_lookup=catalog.get, image_exists=image_exists
        )
    order.update(customer_contact(order, profiles))
    order["status_label"] = status_label(order.get("status"))
    return order


def _seller_query(seller_id):
    return Order.query.join(OrderSeller, OrderSeller.order_id == Order.id).filter(
        OrderSeller.seller_id == seller_id, Order.deleted.is_(False)
    )


def seller_orders(session):
    session.require_approved_seller()
    orders = [serialize_order(o) for o in _newest_first(_seller_query(session.user_id)).all()]
    catalog = seller_catalog(session.user_id)
    profiles = ProfileCache().prefetch(o["user_id"] for o in orders)
    return [seller_view(o, catalog, profiles) for o in orders]


def seller_order(session, order_id):
    session.require_approved_seller()
    order = _seller_query(session.user_id).filter(Order.id == order_id).first()
    if not order:
        raise NotFoundError("Order not found or no products for this seller")
    profiles = ProfileCache().prefetch([order.user_id])
    return seller_view(serialize_order(order), seller_catalog(session.user_id), profiles)


def seller_stats(session):
    """
    Dashboard figures for one seller: sales summed over the totals of every
    order that includes them, the order count, and their best seller by
    quantity. Ties go to the product that sold first.
    """
    session.require_approved_seller()
    orders = _newest_first(_seller_query(session.user_id)).all()
    catalog = seller_catalog(session.user_id)

    sold = {}
    for order in reversed(orders):
        for item in order.order_items:
            if item.product_id in catalog:
                sold[item.product_id] = sold.get(item.product_id, 0) + (item.quantity or 0)

    top_product = None
    if sold:
        top_id = max(sold, key=sold.get)
        top_product = dict(catalog[top_id], quantity_sold=sold[top_id])

    return {
        "total_sales": money(sum(o.total or 0 for o in orders)),
        "total_orders": len(orders),
        "top_product": top_product,
    }


# ---------- Admin ----------

def parse_date(value, end_of_day=False):
    if not value:
        return None
    try:
        parsed = datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            raise ValidationError(f"Invalid date: {value}")
        if parsed.tzinfo is not None:
            # created_at is stored as naive UTC
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        return parsed
    if end_of_day:
        parsed = parsed + timedelta(hours=23, minutes=59, seconds=59)
    return parsed


class AdminOrderFilters:
    """Search/filter/paging options of the admin console, parsed from query args."""

    def __init__(self, search="", status="all", seller="all", date_from=None, date_to=None,
                 page=1, page_size=None, include_deleted=False):
        self.search = (search or "").strip().lower()
        self.status = status or "all"
        self.seller = seller or "all"
        self.date_from = parse_date(date_from)
        self.date_to = parse_date(date_to, end_of_day=True)
        self.page = max(int(page or 1), 1)
        default_size = current_app.config["ORDERS_PAGE_SIZE"]
        self.page_size = min(max(int(page_size or default_size), 1), current_app.config["MAX_PAGE_SIZE"])
        self.include_deleted = include_deleted

    @classmethod
    def from_args(cls, args):
        try:
            return cls(
                search=args.get("search", ""),
                status=args.get("status", "all"),
                seller=args.get("seller", "all"),
                date_from=args.get("date_from"),
                date_to=args.get("date_to"),
                page=args.get("page", 1),
                page_size=args.get("page_size"),
                include_deleted=args.get("include_deleted", "false").lower() in ("1", "true", "yes"),
            )
        except (TypeError, ValueError):
            raise ValidationError("Invalid page or page_size")


def seller_names(order, profiles):
    return [profiles.display_name(sid) for sid in order.get("seller_ids", [])]


def _created(order):
    value = order.get("created_at")
    return datetime.fromisoformat(value) if value else None


def matches_search(order, query, profiles):
    if not query:
        return True
    profile = profiles.get(order.get("user_id")) or {}
    shipping = order.get("shipping_info") or {}
    haystacks = [
        str(order.get("id", "")),
        shipping.get("name", ""),
        profile.get("name", ""),
        order.get("customer_email") or profile.get("email", ""),
    ]
    haystacks.extend(item.get("name") or "" for item in order.get("items", []))
    return any(query in str(h).lower() for h in haystacks)


def matches_filters(order, filters, profiles):
    if filters.status != "all" and (order.get("status") or "pending") != filters.status:
        return False
    if filters.seller != "all" and filters.seller not in seller_names(order, profiles):
        return False
    created = _created(order)
    if filters.date_from and (not created or created < filters.date_from):
        return False
    if filters.date_to and (not created or created > filters.date_to):
        return False
    return matches_search(order, filters.search, profiles)


def admin_filtered_orders(session, filters):
    """All orders matching `filters`, newest first, plus the profile cache used to match them."""
    session.require_role("admin")
    query = Order.query
    if not filters.include_deleted:
        query = query.filter(Order.deleted.is_(False))
    orders = [serialize_order(o) for o in _newest_first(query).all()]

    profiles = ProfileCache()
    profiles.prefetch(o["user_id"] for o in orders)
    profiles.prefetch(sid for o in orders for sid in o["seller_ids"])
    return [o for o in orders if matches_filters(o, filters, profiles)], profiles, orders


def summarize(orders):
    by_status = {status: 0 for status in ORDER_STATUSES}
    for order in orders:
        status = order.get("status") or "pending"
        by_status[status] = by_status.get(status, 0) + 1
    return {
        "total_orders": len(orders),
        "total_revenue": round(sum(o.get("total") or 0 for o in orders), 2),
        "by_status": by_status,
    }


def admin_view(order, profiles):
    with_item_images(order)
    buyer = profiles.get(order.get("user_id")) or {}
    order["buyer"] = {
        "id": order.get("user_id"),
        "name": buyer.get("name", ""),
        "email": buyer.get("email", ""),
        "phone": buyer.get("phone", ""),
    }
    order["checkout"] = normalize_shipping_info(order)
    order["sellers"] = [
        {
            "id": sid,
            "name": profiles.display_name(sid),
            "shop_name": (profiles.get(sid) or {}).get("shop_name", ""),
            "email": (profiles.get(sid) or {}).get("email", ""),
            "phone": (profiles.get(sid) or {}).get("phone", ""),
        }
        for sid in order.get("seller_ids", [])
    ]
    order["status_label"] = status_label(order.get("status"))
    return order


def admin_orders(session, filters):
    filtered, profiles, everything = admin_filtered_orders(session, filters)
    total_pages = max(1, math.ceil(len(filtered) / filters.page_size))
    start = (filters.page - 1) * filters.page_size
    page = filtered[start:start + filters.page_size]

    available_sellers = sorted({name for o in everything for name in seller_names(o, profiles)})
    return {
        "orders": [admin_view(o, profiles) for o in page],
        "page": filters.page,
        "page_size": filters.page_size,
        "total_pages": total_pages,
        "summary": summarize(filtered),
        "sellers": ["all"] + available_sellers,
    }
