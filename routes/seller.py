from core.imports import Blueprint, request, jsonify, jwt_required, current_app, func, re, base64, binascii
from core.extensions import db
from core.errors import NotFoundError, ValidationError, AuthorizationError
from core.auth import current_session
from models.productModels import Category, Products, LocalImage
from models.userModel import Users
from models.cartModels import CartItem
from models.wishlistModels import Wishlist
from services.normalize import normalize_price, is_safe_image_url


seller_bp = Blueprint('seller', __name__)

INLINE_IMAGE = re.compile(r"data:(image/[\w.+-]+);base64,(.*)", re.DOTALL)


def seed_categories():
    categories = ["Clothing", "Electronics", "Home", "Books"]
    created = []
    for name in categories:
        if not Category.query.filter_by(name=name).first():
            db.session.add(Category(name=name))
            created.append(name)
    db.session.commit()
    if created:
        print(f"✅ Categories created: {', '.join(created)}")
    else:
        print("ℹ️ Categories already exist.")


def seed_products():
    seller = Users.query.filter_by(email="seller@storefront.test").first()
    if not seller:
        print("❌ No demo seller found. Run seed_demo_accounts() first.")
        return

    sample_products = [
        {"name": "Cotton Kurta", "price": 2500, "stock": 20, "category": "Clothing",
         "description": "Hand-stitched cotton kurta."},
        {"name": "Wireless Earbuds", "price": 6500, "stock": 15, "category": "Electronics",
         "description": "Bluetooth earbuds with charging case."},
        {"name": "Clay Water Pot", "price": 1200, "stock": 8, "category": "Home",
         "description": "Traditional clay pot that keeps water cool."},
    ]

    for prod in sample_products:
        if Products.query.filter_by(name=prod["name"], seller_id=seller.id).first():
            print(f"ℹ️ Product already exists: {prod['name']}")
            continue
        category = Category.query.filter_by(name=prod.pop("category")).first()
        if not category:
            print("⚠️ Category not found. Run seed_categories() first.")
            continue
        db.session.add(Products(category_id=category.id, seller_id=seller.id, **prod))
        print(f"✅ Product added: {prod['name']}")
    db.session.commit()


def store_inline_image(data_url, seller_id):
    """Decode a data:image/...;base64 URL into a LocalImage row and return it."""
    match = INLINE_IMAGE.match(data_url)
    if not match:
        raise ValidationError("Images must be an http(s) URL or a base64 data:image URL")
    try:
        payload = base64.b64decode(match.group(2), validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Image data is not valid base64")

    image = LocalImage(data=payload, mimetype=match.group(1), name=f"product_{seller_id}")
    db.session.add(image)
    db.session.flush()
    return image


def resolve_category(value):
    if value in (None, ""):
        raise ValidationError("Category is required")
    if isinstance(value, int) or str(value).isdigit():
        category = db.session.get(Category, int(value))
    else:
        category = Category.query.filter(func.lower(Category.name) == str(value).strip().lower()).first()
    if not category:
        raise ValidationError("Category not found")
    return category


def apply_product_fields(product, data, seller_id):
    if 'name' in data:
        name = data.get('name')
        name = name.strip() if isinstance(name, str) else ''
        if not name:
            raise ValidationError("Product name is required")
        product.name = name
    if 'price' in data:
        if normalize_price(data['price']) <= 0:
            raise ValidationError("Price must be greater than zero")
        product.price = normalize_price(data['price'])
    if 'stock' in data:
        try:
            product.stock = max(int(data['stock']), 0)
        except (TypeError, ValueError):
            raise ValidationError("Stock must be a whole number")
    if 'description' in data:
        product.description = str(data.get('description') or '')
    if 'category' in data:
        product.category_id = resolve_category(data['category']).id

    image = data.get('image') or data.get('image_url')
    if image:
        if isinstance(image, str) and image.startswith("data:"):
            product.local_image_id = store_inline_image(image, seller_id).id
            product.image_url = None
        elif is_safe_image_url(image):
            product.image_url = image
        else:
            raise ValidationError("Images must be an http(s) URL or a base64 data:image URL")


def owned_product(session, product_id):
    product = db.session.get(Products, product_id)
    if not product:
        raise NotFoundError("Product not found")
    if product.seller_id != session.user_id:
        raise AuthorizationError("Unauthorized: You do not own this product.")
    return product


@seller_bp.route('/api/seller/products', methods=['GET'])
@jwt_required()
def get_my_products():
    session = current_session().require_approved_seller()
    products = Products.query.filter_by(seller_id=session.user_id).order_by(Products.id.desc()).all()
    return jsonify({"products": [p.to_dict() for p in products], "count": len(products)}), 200


@seller_bp.route('/api/seller/products', methods=['POST'])
@jwt_required()
def add_product():
    """
    Add a product to the signed-in seller's catalog
    ---
    tags:
      - Seller
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [name, price, category]
          properties:
            name:
              type: string
              example: "Cotton Kurta"
            price:
              type: number
              example: 2500
            stock:
              type: integer
              example: 10
            description:
              type: string
            category:
              type: string
              description: Category id or name
            image:
              type: string
              description: http(s) URL or base64 data:image URL
    responses:
      201:
        description: Product created
      400:
        description: Invalid product data
      403:
        description: Seller not approved
    """
    session = current_session().require_approved_seller()
    data = request.get_json(silent=True) or {}

    for field in ('name', 'price', 'category'):
        if field not in data:
            raise ValidationError("Missing required fields")

    product = Products(seller_id=session.user_id, stock=0, description="")
    apply_product_fields(product, data, session.user_id)
    db.session.add(product)
    db.session.commit()

    current_app.logger.info("Seller %s added product %s", session.user_id, product.id)
    return jsonify({"message": "Product added successfully", "product": product.to_dict()}), 201


@seller_bp.route('/api/seller/products/<int:product_id>', methods=['PUT'])
@jwt_required()
def edit_product(product_id):
    session = current_session().require_approved_seller()
    product = owned_product(session, product_id)

    data = request.get_json(silent=True) or {}
    apply_product_fields(product, data, session.user_id)
    db.session.commit()

    return jsonify({"message": "Product updated successfully", "product": product.to_dict()}), 200


def remove_product(product):
    """Delete a product with its cart and wishlist references. Order items keep their snapshot."""
    CartItem.query.filter_by(product_id=product.id).delete()
    Wishlist.query.filter_by(product_id=product.id).delete()
    db.session.delete(product)
    db.session.commit()


@seller_bp.route('/api/seller/products/<int:product_id>', methods=['DELETE'])
@jwt_required()
def delete_product(product_id):
    session = current_session().require_approved_seller()
    product = owned_product(session, product_id)
    name = product.name

    remove_product(product)
    current_app.logger.info("Seller %s deleted product %s", session.user_id, product_id)
    return jsonify({"message": f"Product '{name}' has been deleted."}), 200
