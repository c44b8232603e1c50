from core.imports import Blueprint, jsonify, jwt_required, request, render_template, Response
from core.auth import current_session
from core.errors import ValidationError
from services.orderViews import AdminOrderFilters, admin_orders
from services.exports import orders_csv, order_invoice
from services.statusEngine import set_status, mark_paid, delete_order
from services.serializers import serialize_order

admin_orders_bp = Blueprint("admin_orders", __name__)


def admin_session():
    return current_session().require_role("admin")


@admin_orders_bp.route('/api/admin/orders', methods=['GET'])
@jwt_required()
def list_orders():
    """
    Admin: Search, filter and page through all orders
    ---
    tags:
      - Admin Orders
    security:
      - Bearer: []
    parameters:
      - name: search
        in: query
        type: string
        description: Order id, customer name or email, or item name
      - name: status
        in: query
        type: string
        default: all
      - name: seller
        in: query
        type: string
        default: all
        description: Seller display name
      - name: date_from
        in: query
        type: string
        format: date
      - name: date_to
        in: query
        type: string
        format: date
        description: Inclusive through the end of that day
      - name: page
        in: query
        type: integer
        default: 1
      - name: page_size
        in: query
        type: integer
        default: 20
      - name: include_deleted
        in: query
        type: boolean
        default: false
    responses:
      200:
        description: One page of orders with summary and seller names
        schema:
          type: object
          properties:
            orders:
              type: array
              items:
                type: object
            page: { type: integer, example: 1 }
            page_size: { type: integer, example: 20 }
            total_pages: { type: integer, example: 3 }
            summary:
              type: object
              properties:
                total_orders: { type: integer, example: 45 }
                total_revenue: { type: number, example: 182500 }
                by_status: { type: object }
            sellers:
              type: array
              items:
                type: string
      403:
        description: Forbidden
    """
    session = admin_session()
    filters = AdminOrderFilters.from_args(request.args)
    return jsonify(admin_orders(session, filters)), 200


@admin_orders_bp.route('/api/admin/orders/export.csv', methods=['GET'])
@jwt_required()
def export_orders():
    session = admin_session()
    filters = AdminOrderFilters.from_args(request.args)
    return Response(
        orders_csv(session, filters),
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=orders.csv"},
    )


@admin_orders_bp.route('/api/admin/orders/<int:order_id>/invoice', methods=['GET'])
@jwt_required()
def invoice(order_id):
    session = admin_session()
    return render_template("invoice.html", **order_invoice(session, order_id))


@admin_orders_bp.route('/api/admin/orders/<int:order_id>/status', methods=['PUT'])
@jwt_required()
def update_order_status(order_id):
    session = admin_session()
    data = request.get_json(silent=True) or {}
    order = set_status(order_id, data.get("status"), session)
    return jsonify({
        "message": f"Order status updated to {order.status}",
        "order": serialize_order(order),
    }), 200


@admin_orders_bp.route('/api/admin/orders/<int:order_id>/mark-paid', methods=['POST'])
@jwt_required()
def verify_payment(order_id):
    """
    Admin: Mark the order's transfer as received
    ---
    tags:
      - Admin Orders
    security:
      - Bearer: []
    parameters:
      - name: order_id
        in: path
        type: integer
        required: true
    responses:
      200:
        description: Payment status is now paid
      404:
        description: Order not found
    """
    session = admin_session()
    order = mark_paid(order_id, session)
    return jsonify({"message": "Payment verified", "order": serialize_order(order)}), 200


@admin_orders_bp.route('/api/admin/orders/<int:order_id>', methods=['DELETE'])
@jwt_required()
def remove_order(order_id):
    session = admin_session()
    hard = request.args.get("hard", "true").lower()
    if hard not in ("true", "false", "1", "0"):
        raise ValidationError("hard must be true or false")

    delete_order(order_id, session, hard=hard in ("true", "1"))
    return jsonify({"message": f"Order {order_id} deleted successfully"}), 200
