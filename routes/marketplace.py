from core.imports import Blueprint, jsonify, request, Response
from core.extensions import db
from core.errors import NotFoundError, ValidationError
from models.productModels import Products, Category, LocalImage
from services.normalize import resolve_display_image
from services.lookups import image_exists

marketplace_bp = Blueprint('marketplace', __name__)


def product_card(product):
    data = product.to_dict()
    data["display_image"] = resolve_display_image(
        {"product_id": product.id}, product_lookup=lambda _: data, image_exists=image_exists
    )
    return data


@marketplace_bp.route('/api/products', methods=['GET'])
def list_products():
    """
    List products, optionally filtered by category
    ---
    tags:
      - Marketplace
    parameters:
      - name: category
        in: query
        type: integer
        required: false
        description: Category id to filter on
    responses:
      200:
        description: List of products
        schema:
          type: object
          properties:
            products:
              type: array
              items:
                type: object
                properties:
                  id:
                    type: integer
                    example: 1
                  name:
                    type: string
                    example: "Cotton Kurta"
                  price:
                    type: number
                    example: 2500
                  category_name:
                    type: string
                    example: "Clothing"
                  display_image:
                    type: string
                    example: "/placeholder.jpg"
            count:
              type: integer
              example: 10
    """
    query = Products.query
    category = request.args.get('category')
    if category:
        try:
            query = query.filter(Products.category_id == int(category))
        except ValueError:
            raise ValidationError("Invalid category")

    product_list = [product_card(p) for p in query.order_by(Products.id.desc()).all()]
    return jsonify({"products": product_list, "count": len(product_list)}), 200


@marketplace_bp.route('/api/products/<int:product_id>', methods=['GET'])
def product_details(product_id):
    """
    Get details of a specific product by ID
    ---
    tags:
      - Marketplace
    parameters:
      - name: product_id
        in: path
        type: integer
        required: true
    responses:
      200:
        description: Product details
      404:
        description: Product not found
    """
    product = db.session.get(Products, product_id)
    if not product:
        raise NotFoundError("Product not found")

    data = product_card(product)
    data["seller"] = {
        "id": product.seller.id,
        "name": product.seller.display_name,
    } if product.seller else None
    return jsonify(data), 200


@marketplace_bp.route('/api/categories', methods=['GET'])
def list_categories():
    categories = Category.query.order_by(Category.name).all()
    return jsonify({"categories": [c.to_dict() for c in categories]}), 200


@marketplace_bp.route('/images/<int:image_id>', methods=['GET'])
def local_image(image_id):
    image = db.session.get(LocalImage, image_id)
    if not image:
        raise NotFoundError("Image not found")
    return Response(image.data, mimetype=image.mimetype or "application/octet-stream")
