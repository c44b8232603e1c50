from core.extensions import db
from core.imports import datetime


class Category(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)

    def to_dict(self):
        return {"id": self.id, "name": self.name}


class Products(db.Model):
    __tablename__ = "products"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    price = db.Column(db.Numeric(12, 2), nullable=False)
    stock = db.Column(db.Integer, default=0)
    description = db.Column(db.Text, nullable=False, default="")

    # inline data: URL, a remote URL, or a blob stored in local_images
    image_data = db.Column(db.Text, nullable=True)
    image_url = db.Column(db.String(500), nullable=True)
    local_image_id = db.Column(db.Integer, db.ForeignKey("local_images.id"), nullable=True)

    category_id = db.Column(db.Integer, db.ForeignKey("category.id"), nullable=False)
    category = db.relationship("Category", backref="products")

    seller_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    seller = db.relationship("Users", backref="products")

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "price": round(float(self.price or 0), 2),
            "stock": self.stock or 0,
            "description": self.description or "",
            "category": self.category_id,
            "category_name": self.category.name if self.category else None,
            "seller_id": self.seller_id,
            "image_data": self.image_data,
            "image_url": self.image_url,
            "local_image_id": self.local_image_id,
        }


class LocalImage(db.Model):
    __tablename__ = "local_images"

    id = db.Column(db.Integer, primary_key=True)
    data = db.Column(db.LargeBinary, nullable=False)
    mimetype = db.Column(db.String(100), nullable=True)
    name = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)


class Discount(db.Model):
    __tablename__ = "discounts"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(50), unique=True, nullable=False)
    percent = db.Column(db.Float, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {"id": self.id, "code": self.code, "percent": self.percent}
