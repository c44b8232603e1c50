from core.extensions import db

class Cart(db.Model):
    __tablename__ = "cart"
    
    id = db.Column(db.Integer, primary_key=True)
    buyer_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, unique=True)
    buyer = db.relationship("Users", backref=db.backref("cart", uselist=False, cascade="all, delete-orphan"))
    
    cart_items = db.relationship("CartItem", backref="cart", cascade="all, delete-orphan")


class CartItem(db.Model):
    __tablename__ = "cart_item"

    id = db.Column(db.Integer, primary_key=True)
    cart_id = db.Column(db.Integer, db.ForeignKey('cart.id'), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id'), nullable=False)
    product = db.relationship("Products")

    quantity = db.Column(db.Integer, default=1, nullable=False)

    def to_cart_item(self):
        """Cart-snapshot shape of this row, as a client would send it."""
        product = self.product
        return {
            "id": self.id,
            "productId": self.product_id,
            "sellerId": product.seller_id if product else None,
            "name": product.name if product else None,
            "price": float(product.price) if product else 0,
            "quantity": self.quantity,
            "imageUrl": product.image_url if product else None,
            "localImageId": product.local_image_id if product else None,
        }
