from core.imports import Blueprint, jsonify, jwt_required, request, current_app, func, IntegrityError
from core.extensions import db
from core.errors import NotFoundError, ValidationError, ConflictError, AuthorizationError
from core.auth import current_session
from models.userModel import Users, ROLES
from models.productModels import Products, Category, Discount
from models.orderModels import Order, ORDER_STATUSES
from routes.seller import remove_product

admin_bp = Blueprint('admin', __name__)


def require_admin():
    return current_session().require_role("admin")


def get_user_or_404(user_id):
    user = db.session.get(Users, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def clean_name(value, what):
    name = (value or "").strip() if isinstance(value, str) else ""
    if not name:
        raise ValidationError(f"{what} is required")
    return name


# =========================
# /api/admin/stats (GET)
# =========================
@admin_bp.route('/api/admin/stats', methods=['GET'])
@jwt_required()
def get_admin_stats():
    """
    Admin: Get platform statistics
    ---
    tags:
      - Admin
    summary: Get platform statistics (Admin only)
    security:
      - Bearer: []
    responses:
      200:
        description: Platform stats
        schema:
          type: object
          properties:
            users:
              type: object
              properties:
                buyers: { type: integer, example: 120 }
                sellers: { type: integer, example: 45 }
                admins: { type: integer, example: 2 }
                pending_sellers: { type: integer, example: 3 }
            products: { type: integer, example: 500 }
            orders:
              type: object
              properties:
                total: { type: integer, example: 80 }
                revenue: { type: number, example: 245000 }
                by_status: { type: object }
      403:
        description: Forbidden
    """
    require_admin()

    by_role = dict(db.session.query(Users.role, func.count(Users.id)).group_by(Users.role).all())
    pending_sellers = Users.query.filter_by(role="seller", approved=False).count()

    live_orders = Order.query.filter(Order.deleted.is_(False))
    by_status = {status: 0 for status in ORDER_STATUSES}
    by_status.update(dict(
        db.session.query(Order.status, func.count(Order.id))
        .filter(Order.deleted.is_(False)).group_by(Order.status).all()
    ))
    revenue = db.session.query(func.coalesce(func.sum(Order.total), 0)).filter(Order.deleted.is_(False)).scalar()

    return jsonify({
        "users": {
            **{f"{role}s": by_role.get(role, 0) for role in ROLES},
            "pending_sellers": pending_sellers,
        },
        "products": Products.query.count(),
        "orders": {
            "total": live_orders.count(),
            "revenue": round(float(revenue or 0), 2),
            "by_status": by_status,
        },
    }), 200


# =========================
# /api/admin/users (GET)
# =========================
@admin_bp.route('/api/admin/users', methods=['GET'])
@jwt_required()
def get_users():
    """
    List all accounts, optionally filtered by role
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    parameters:
      - name: role
        in: query
        type: string
        enum: [buyer, seller, admin]
        required: false
    responses:
      200:
        description: Accounts ordered by id
      403:
        description: Forbidden
    """
    require_admin()

    query = Users.query
    role = request.args.get("role")
    if role:
        query = query.filter_by(role=role)
    users = [u.to_dict() for u in query.order_by(Users.id).all()]
    return jsonify({"count": len(users), "users": users}), 200


# =========================
# GET /api/admin/users/<user_id>
# =========================
@admin_bp.route('/api/admin/users/<int:user_id>', methods=['GET'])
@jwt_required()
def get_user_details(user_id):
    require_admin()
    user = get_user_or_404(user_id)

    data = user.to_dict()
    if user.role == "seller":
        data["products"] = [p.to_dict() for p in user.products]
        data["products_count"] = len(data["products"])
    elif user.role == "buyer":
        data["orders_count"] = Order.query.filter_by(user_id=user.id, deleted=False).count()
    return jsonify(data), 200


# =========================
# PATCH /api/admin/users/<user_id>
# =========================
@admin_bp.route('/api/admin/users/<int:user_id>', methods=['PATCH'])
@jwt_required()
def update_user(user_id):
    """
    Admin: Update an account's profile, role or approval
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    parameters:
      - name: user_id
        in: path
        type: integer
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            name: { type: string }
            phone: { type: string }
            address: { type: string }
            shop_name: { type: string }
            role: { type: string, enum: [buyer, seller] }
            approved: { type: boolean }
    responses:
      200:
        description: Account updated
      400:
        description: Invalid role
      403:
        description: Promotion to admin is not allowed
    """
    session = require_admin()
    user = get_user_or_404(user_id)
    data = request.get_json(silent=True) or {}

    for field in ('name', 'phone', 'address', 'shop_name'):
        if field in data and data[field] is not None:
            setattr(user, field, str(data[field]).strip())

    if 'role' in data and data['role'] != user.role:
        if data['role'] == "admin":
            raise AuthorizationError("Admin accounts cannot be created from the API")
        if user.role == "admin":
            raise AuthorizationError("Admin accounts cannot be demoted from the API")
        if data['role'] not in ROLES:
            raise ValidationError("Role must be buyer or seller")
        user.role = data['role']

    if 'approved' in data:
        user.approved = bool(data['approved'])

    db.session.commit()
    current_app.logger.info("Admin %s updated user %s", session.user_id, user.id)
    return jsonify({"message": f"User {user.id} updated successfully", "user": user.to_dict()}), 200


def set_approval(user_id, approved):
    session = require_admin()
    user = get_user_or_404(user_id)
    if user.role != "seller":
        raise ValidationError("Only seller accounts need approval")
    user.approved = approved
    db.session.commit()
    current_app.logger.info(
        "Admin %s %s seller %s", session.user_id, "approved" if approved else "unapproved", user.id
    )
    return jsonify({"message": f"Seller {user.id} {'approved' if approved else 'unapproved'}", "user": user.to_dict()}), 200


@admin_bp.route('/api/admin/users/<int:user_id>/approve', methods=['POST'])
@jwt_required()
def approve_seller(user_id):
    return set_approval(user_id, True)


@admin_bp.route('/api/admin/users/<int:user_id>/unapprove', methods=['POST'])
@jwt_required()
def unapprove_seller(user_id):
    return set_approval(user_id, False)


# =========================
# DELETE /api/admin/users/<user_id>
# =========================
@admin_bp.route('/api/admin/users/<int:user_id>', methods=['DELETE'])
@jwt_required()
def delete_user(user_id):
    session = require_admin()
    user = get_user_or_404(user_id)

    if user.role == "admin":
        raise AuthorizationError("Admin accounts cannot be deleted from the API")
    if Order.query.filter_by(user_id=user.id).first():
        raise ConflictError("This account has orders and cannot be deleted")

    for product in list(user.products):
        remove_product(product)
    db.session.delete(user)
    db.session.commit()
    current_app.logger.info("Admin %s deleted user %s", session.user_id, user_id)
    return jsonify({"message": f"User {user_id} deleted successfully"}), 200


# =========================
# Products
# =========================
@admin_bp.route('/api/admin/products', methods=['GET'])
@jwt_required()
def get_all_products():
    require_admin()
    products = Products.query.order_by(Products.id.desc()).all()
    return jsonify({"products": [p.to_dict() for p in products], "count": len(products)}), 200


@admin_bp.route('/api/admin/products/<int:product_id>', methods=['DELETE'])
@jwt_required()
def delete_any_product(product_id):
    session = require_admin()
    product = db.session.get(Products, product_id)
    if not product:
        raise NotFoundError("Product not found")

    remove_product(product)
    current_app.logger.info("Admin %s deleted product %s", session.user_id, product_id)
    return jsonify({"message": f"Product {product_id} deleted successfully"}), 200


# =========================
# Categories
# =========================
def save_category():
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("A category with this name already exists")


def ensure_unique_category(name, exclude_id=None):
    query = Category.query.filter(func.lower(Category.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    if query.first():
        raise ConflictError("A category with this name already exists")


@admin_bp.route('/api/admin/categories', methods=['POST'])
@jwt_required()
def create_category():
    require_admin()
    name = clean_name((request.get_json(silent=True) or {}).get("name"), "Category name")
    ensure_unique_category(name)

    category = Category(name=name)
    db.session.add(category)
    save_category()
    return jsonify({"message": "Category created", "category": category.to_dict()}), 201


@admin_bp.route('/api/admin/categories/<int:category_id>', methods=['PUT'])
@jwt_required()
def rename_category(category_id):
    require_admin()
    category = db.session.get(Category, category_id)
    if not category:
        raise NotFoundError("Category not found")

    name = clean_name((request.get_json(silent=True) or {}).get("name"), "Category name")
    ensure_unique_category(name, exclude_id=category.id)
    category.name = name
    save_category()
    return jsonify({"message": "Category renamed", "category": category.to_dict()}), 200


@admin_bp.route('/api/admin/categories/<int:category_id>', methods=['DELETE'])
@jwt_required()
def delete_category(category_id):
    """
    Admin: Delete a category that no product uses
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    parameters:
      - name: category_id
        in: path
        type: integer
        required: true
    responses:
      200:
        description: Category deleted
      404:
        description: Category not found
      409:
        description: Products still use this category
    """
    require_admin()
    category = db.session.get(Category, category_id)
    if not category:
        raise NotFoundError("Category not found")

    in_use = Products.query.filter_by(category_id=category.id).count()
    if in_use:
        raise ConflictError(f"Cannot delete category: {in_use} product(s) still use it")

    db.session.delete(category)
    db.session.commit()
    return jsonify({"message": f"Category {category_id} deleted successfully"}), 200


# =========================
# Discounts
# =========================
@admin_bp.route('/api/admin/discounts', methods=['GET'])
@jwt_required()
def get_discounts():
    require_admin()
    discounts = Discount.query.order_by(Discount.id).all()
    return jsonify({"discounts": [d.to_dict() for d in discounts]}), 200


@admin_bp.route('/api/admin/discounts', methods=['POST'])
@jwt_required()
def create_discount():
    require_admin()
    data = request.get_json(silent=True) or {}

    code = clean_name(data.get("code"), "Discount code").upper()
    try:
        percent = float(data.get("percent"))
    except (TypeError, ValueError):
        raise ValidationError("Percent must be a number")
    if not 0 < percent <= 100:
        raise ValidationError("Percent must be greater than 0 and at most 100")
    if Discount.query.filter_by(code=code).first():
        raise ConflictError("A discount with this code already exists")

    discount = Discount(code=code, percent=percent)
    db.session.add(discount)
    db.session.commit()
    return jsonify({"message": "Discount created", "discount": discount.to_dict()}), 201


@admin_bp.route('/api/admin/discounts/<int:discount_id>', methods=['DELETE'])
@jwt_required()
def delete_discount(discount_id):
    require_admin()
    discount = db.session.get(Discount, discount_id)
    if not discount:
        raise NotFoundError("Discount not found")
    db.session.delete(discount)
    db.session.commit()
    return jsonify({"message": f"Discount {discount_id} deleted successfully"}), 200
