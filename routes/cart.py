from core.imports import Blueprint, jsonify, jwt_required, request
from core.extensions import db
from core.errors import NotFoundError, ValidationError
from core.auth import current_session
from models.productModels import Products
from models.cartModels import Cart, CartItem
from services.normalize import normalize_cart_item, resolve_display_image
from services.lookups import product_lookup, image_exists

cart_bp = Blueprint("cart", __name__)


def buyer_cart(session, create=False):
    cart = Cart.query.filter_by(buyer_id=session.user_id).first()
    if not cart and create:
        cart = Cart(buyer_id=session.user_id)
        db.session.add(cart)
        db.session.flush()
    return cart


def owned_cart_item(session, item_id):
    cart_item = CartItem.query.join(Cart).filter(
        CartItem.id == item_id,
        Cart.buyer_id == session.user_id
    ).first()
    if not cart_item:
        raise NotFoundError("Cart item not found")
    return cart_item


def parse_quantity(value):
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError("Invalid quantity")
    return value


@cart_bp.route('/api/cart', methods=['GET'])
@jwt_required()
def get_cart():
    """
    Get the current buyer's shopping cart
    ---
    tags:
      - Cart
    security:
      - Bearer: []
    responses:
      200:
        description: Cart retrieved successfully
        schema:
          type: object
          properties:
            cart_items:
              type: array
              items:
                type: object
                properties:
                  id:
                    type: integer
                    example: 1
                  product_id:
                    type: integer
                    example: 4
                  name:
                    type: string
                    example: "Wireless Headphones"
                  price:
                    type: number
                    example: 7500
                  quantity:
                    type: integer
                    example: 2
                  display_image:
                    type: string
                    example: "/images/3"
            total:
              type: number
              example: 15000
      403:
        description: Only buyers have a cart
    """
    session = current_session().require_role("buyer")

    cart = buyer_cart(session)
    if not cart:
        return jsonify({"cart_items": [], "total": 0}), 200

    cart_items = []
    for row in cart.cart_items:
        item = normalize_cart_item(row.to_cart_item())
        cart_items.append({
            "id": row.id,
            "product_id": item["product_id"],
            "seller_id": item["seller_id"],
            "name": item["name"] or "Product",
            "price": float(item["price"]),
            "quantity": item["quantity"],
            "display_image": resolve_display_image(item, product_lookup=product_lookup, image_exists=image_exists),
        })

    total = round(sum(i["price"] * i["quantity"] for i in cart_items), 2)
    return jsonify({"cart_items": cart_items, "total": total}), 200


@cart_bp.route('/api/cart/add', methods=['POST'])
@jwt_required()
def add_to_cart():
    """
    Add a product to the buyer's cart
    ---
    tags:
      - Cart
    security:
      - Bearer: []
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          required:
            - product_id
          properties:
            product_id:
              type: integer
              example: 4
            quantity:
              type: integer
              example: 1
    responses:
      201:
        description: Product added to cart
      404:
        description: Product not found
    """
    session = current_session().require_role("buyer")
    data = request.get_json(silent=True) or {}
    quantity = parse_quantity(data.get("quantity", 1))

    product = db.session.get(Products, data.get("product_id"))
    if not product:
        raise NotFoundError("Product not found")

    cart = buyer_cart(session, create=True)
    cart_item = CartItem.query.filter_by(cart_id=cart.id, product_id=product.id).first()
    if cart_item:
        cart_item.quantity += quantity
    else:
        db.session.add(CartItem(cart_id=cart.id, product_id=product.id, quantity=quantity))

    db.session.commit()
    return jsonify({"message": "Product added to cart"}), 201


@cart_bp.route('/api/cart/update/<int:item_id>', methods=['PUT'])
@jwt_required()
def update_cart_item(item_id):
    session = current_session().require_role("buyer")
    cart_item = owned_cart_item(session, item_id)

    data = request.get_json(silent=True) or {}
    cart_item.quantity = parse_quantity(data.get("quantity"))
    db.session.commit()

    return jsonify({"message": "Cart item updated successfully"}), 200


@cart_bp.route('/api/cart/delete/<int:item_id>', methods=['DELETE'])
@jwt_required()
def delete_cart_item(item_id):
    session = current_session().require_role("buyer")
    cart_item = owned_cart_item(session, item_id)

    db.session.delete(cart_item)
    db.session.commit()

    return jsonify({"message": "Cart item deleted successfully"}), 200


@cart_bp.route('/api/cart/clear', methods=['DELETE'])
@jwt_required()
def clear_cart():
    session = current_session().require_role("buyer")

    cart = buyer_cart(session)
    if not cart:
        raise NotFoundError("Cart not found")

    CartItem.query.filter_by(cart_id=cart.id).delete()
    db.session.commit()

    return jsonify({"message": "Cart cleared successfully"}), 200
