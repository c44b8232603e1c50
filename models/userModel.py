from core.extensions import db
from core.imports import datetime

ROLES = ("buyer", "seller", "admin")


class Users(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(100), unique=True, nullable=False, index=True)
    phone = db.Column(db.String(20), nullable=True)
    address = db.Column(db.String(500), nullable=True)
    password = db.Column(db.String(200), nullable=False)
    role = db.Column(db.String(20), nullable=False, default="buyer")  # buyer, seller, admin
    shop_name = db.Column(db.String(150), nullable=True)
    approved = db.Column(db.Boolean, default=False)  # gates the seller dashboard
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone or "",
            "address": self.address or "",
            "role": self.role,
            "shop_name": self.shop_name or "",
            "approved": bool(self.approved),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @property
    def display_name(self):
        if self.role == "seller" and self.shop_name:
            return self.shop_name
        return self.name


class Address(db.Model):
    __tablename__ = "addresses"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    label = db.Column(db.String(100), nullable=True)
    name = db.Column(db.String(100), nullable=False)
    phone = db.Column(db.String(20), nullable=False)
    address = db.Column(db.String(500), nullable=False)
    city = db.Column(db.String(100), nullable=False)
    postal_code = db.Column(db.String(20), nullable=False)
    country = db.Column(db.String(100), nullable=False)

    user = db.relationship("Users", backref=db.backref("addresses", cascade="all, delete-orphan"))

    def to_dict(self):
        return {
            "id": self.id,
            "label": self.label or "",
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "postal_code": self.postal_code,
            "country": self.country,
        }
