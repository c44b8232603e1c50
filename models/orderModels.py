from core.extensions import db
from core.imports import datetime

ORDER_STATUSES = (
    "pending",
    "accepted",
    "processing",
    "shipped",
    "out_for_delivery",
    "delivered",
    "rejected",
    "cancelled",
)
TERMINAL_STATUSES = ("rejected", "cancelled")
PAYMENT_STATUSES = ("pending", "paid")


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    total = db.Column(db.Numeric(12, 2), nullable=False)
    customer_email = db.Column(db.String(100), nullable=True)
    shipping_info = db.Column(db.JSON, nullable=False)

    payment_method = db.Column(db.String(50), nullable=True)
    payment_status = db.Column(db.String(20), default="pending")  # pending, paid
    transaction_id = db.Column(db.String(100), nullable=True)

    status = db.Column(db.String(50), default="pending", nullable=False)
    last_updated_by = db.Column(db.String(50), nullable=True)
    deleted = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)

    order_items = db.relationship(
        "OrderItem", backref="order", cascade="all, delete-orphan", order_by="OrderItem.position"
    )
    sellers = db.relationship("OrderSeller", backref="order", cascade="all, delete-orphan")
    status_history = db.relationship(
        "OrderStatusHistory", backref="order", cascade="all, delete-orphan",
        order_by="OrderStatusHistory.position"
    )
    buyer = db.relationship("Users", backref="orders")

    @property
    def seller_ids(self):
        return sorted(s.seller_id for s in self.sellers)


class OrderItem(db.Model):
    __tablename__ = "order_item"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)
    product_id = db.Column(db.Integer, nullable=True)  # snapshot, product may be gone later
    seller_id = db.Column(db.Integer, nullable=False)
    name = db.Column(db.String(200), nullable=False)
    price = db.Column(db.Numeric(12, 2), nullable=False)  # price per unit
    quantity = db.Column(db.Integer, nullable=False)


class OrderSeller(db.Model):
    __tablename__ = "order_seller"

    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), primary_key=True)
    seller_id = db.Column(db.Integer, primary_key=True, index=True)


class OrderStatusHistory(db.Model):
    __tablename__ = "order_status_history"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(50), nullable=False)
    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_by = db.Column(db.String(50), nullable=False, default="system")
