from core.imports import Blueprint, jsonify, jwt_required, request
from core.auth import current_session
from services.orderViews import seller_orders, seller_order, seller_stats
from services.statusEngine import set_status

seller_orders_bp = Blueprint("seller_orders", __name__)


@seller_orders_bp.route('/api/seller/orders', methods=['GET'])
@jwt_required()
def get_seller_orders():
    """
    Orders that include at least one of the signed-in seller's products
    ---
    tags:
      - Seller Orders
    security:
      - Bearer: []
    responses:
      200:
        description: Orders, newest first, with items joined against the seller's catalog
      403:
        description: Not a seller, or seller awaiting approval
    """
    session = current_session()
    orders = seller_orders(session)
    return jsonify({"orders": orders, "count": len(orders)}), 200


@seller_orders_bp.route('/api/seller/orders/<int:order_id>', methods=['GET'])
@jwt_required()
def get_seller_order(order_id):
    session = current_session()
    return jsonify(seller_order(session, order_id)), 200


@seller_orders_bp.route('/api/seller/orders/<int:order_id>/status', methods=['PUT'])
@jwt_required()
def update_seller_order_status(order_id):
    """
    Move an order to a new status
    ---
    tags:
      - Seller Orders
    security:
      - Bearer: []
    parameters:
      - name: order_id
        in: path
        type: integer
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            status:
              type: string
              enum: [pending, accepted, processing, shipped, out_for_delivery, delivered, rejected, cancelled]
    responses:
      200:
        description: Status updated
      400:
        description: Invalid status
      403:
        description: Seller not associated with this order
      404:
        description: Order not found
    """
    session = current_session().require_approved_seller()
    data = request.get_json(silent=True) or {}

    order = set_status(order_id, data.get("status"), session)
    return jsonify({
        "message": f"Order status updated to {order.status}",
        "order": seller_order(session, order.id),
    }), 200


@seller_orders_bp.route('/api/seller/stats', methods=['GET'])
@jwt_required()
def get_seller_stats():
    """
    Sales figures for the signed-in seller's dashboard
    ---
    tags:
      - Seller Orders
    security:
      - Bearer: []
    responses:
      200:
        description: total_sales, total_orders and top_product (null before the first sale)
      403:
        description: Not a seller, or seller awaiting approval
    """
    return jsonify(seller_stats(current_session())), 200
