from core.imports import Blueprint, jsonify, jwt_required, request
from core.extensions import db
from core.errors import NotFoundError, ValidationError
from core.auth import current_session
from models.userModel import Address
from services.normalize import normalize_shipping_info, missing_shipping_fields
from services.wishlist import wishlist_products, add_to_wishlist, remove_from_wishlist


buyers_bp = Blueprint("buyers", __name__)


@buyers_bp.route('/api/wishlist', methods=['GET'])
@jwt_required()
def get_wishlist():
    """
    Get all wishlisted products for the signed-in buyer
    ---
    tags:
      - Wishlist
    security:
      - Bearer: []
    responses:
      200:
        description: Wishlisted products in the order they were added
        schema:
          type: object
          properties:
            wishlist:
              type: array
              items:
                type: object
            count:
              type: integer
              example: 3
      403:
        description: Only buyers have a wishlist
    """
    session = current_session().require_role("buyer")
    products = wishlist_products(session.user_id)
    return jsonify({"wishlist": products, "count": len(products)}), 200


@buyers_bp.route('/api/wishlist/<int:product_id>', methods=['POST'])
@jwt_required()
def add_wishlist_item(product_id):
    """
    Add a product to the wishlist. Adding it twice keeps a single entry.
    ---
    tags:
      - Wishlist
    security:
      - Bearer: []
    parameters:
      - name: product_id
        in: path
        type: integer
        required: true
    responses:
      201:
        description: Product added
      200:
        description: Product was already in the wishlist
      404:
        description: Product not found
    """
    session = current_session().require_role("buyer")
    created = add_to_wishlist(session.user_id, product_id)
    return jsonify({
        "message": "Product added to wishlist" if created else "Product already in wishlist",
        "product_id": product_id,
    }), 201 if created else 200


@buyers_bp.route('/api/wishlist/<int:product_id>', methods=['DELETE'])
@jwt_required()
def remove_wishlist_item(product_id):
    session = current_session().require_role("buyer")
    remove_from_wishlist(session.user_id, product_id)
    return jsonify({"message": "Product removed from wishlist", "product_id": product_id}), 200


@buyers_bp.route('/api/addresses', methods=['GET'])
@jwt_required()
def get_addresses():
    session = current_session().require_role("buyer")
    addresses = Address.query.filter_by(user_id=session.user_id).order_by(Address.id).all()
    return jsonify({"addresses": [a.to_dict() for a in addresses]}), 200


@buyers_bp.route('/api/addresses', methods=['POST'])
@jwt_required()
def add_address():
    """Save a shipping address. Accepts the same field spellings as the checkout form."""
    session = current_session().require_role("buyer")
    data = request.get_json(silent=True) or {}

    info = normalize_shipping_info(data)
    missing = missing_shipping_fields(info)
    if missing:
        raise ValidationError(f"Missing address fields: {', '.join(missing)}")

    address = Address(
        user_id=session.user_id,
        label=(data.get("label") or "").strip() or None,
        name=info["name"],
        phone=info["phone"],
        address=info["address"],
        city=info["city"],
        postal_code=info["postal_code"],
        country=info["country"],
    )
    db.session.add(address)
    db.session.commit()
    return jsonify({"message": "Address saved", "address": address.to_dict()}), 201


@buyers_bp.route('/api/addresses/<int:address_id>', methods=['DELETE'])
@jwt_required()
def delete_address(address_id):
    session = current_session().require_role("buyer")
    address = Address.query.filter_by(id=address_id, user_id=session.user_id).first()
    if not address:
        raise NotFoundError("Address not found")

    db.session.delete(address)
    db.session.commit()
    return jsonify({"message": "Address deleted"}), 200
