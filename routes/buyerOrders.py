import copy

from core.imports import Blueprint, jwt_required, jsonify, request, Response, stream_with_context, current_app, json
from core.extensions import db
from core.auth import current_session
from services.checkout import place_order
from services.orderViews import buyer_orders as list_buyer_orders, buyer_order, buyer_view
from services.serializers import serialize_order
from services.orderFeed import order_feed

buyer_orders = Blueprint("buyer_orders", __name__)


def sse_event(event, data):
    return f"event: {event}\ndata: {json.dumps(data, default=str)}\n\n"


def event_stream(subscribe, snapshot, on_change):
    """
    Yield `snapshot()` once, then `on_change(order)` for every published
    change, with a comment line as heartbeat while idle. `subscribe()` runs
    on the first read, and the subscription is cancelled when the client
    goes away.
    """
    heartbeat = current_app.config["FEED_HEARTBEAT_SECONDS"]
    subscription = subscribe()
    try:
        yield snapshot()
        while True:
            order = subscription.get(timeout=heartbeat)
            if order is None:
                yield ": heartbeat\n\n"
                continue
            db.session.expire_all()
            yield on_change(copy.deepcopy(order))
    finally:
        subscription.cancel()


def sse_response(generator):
    return Response(
        stream_with_context(generator),
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@buyer_orders.route('/api/orders', methods=['POST'])
@jwt_required()
def create_order():
    """
    Place an order from the cart, shipping form and transfer reference
    ---
    tags:
      - Buyer Orders
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            cart:
              type: array
              description: Cart snapshot. The stored cart is used when omitted.
              items:
                type: object
                properties:
                  productId:
                    type: integer
                    example: 3
                  sellerId:
                    type: integer
                    example: 2
                  name:
                    type: string
                    example: "Cotton Kurta"
                  price:
                    type: number
                    example: 2500
                  quantity:
                    type: integer
                    example: 2
            shipping_info:
              type: object
              properties:
                name:
                  type: string
                phone:
                  type: string
                address:
                  type: string
                city:
                  type: string
                postal_code:
                  type: string
                country:
                  type: string
            payment:
              type: object
              properties:
                transactionId:
                  type: string
                  example: "TXN12345678"
    responses:
      201:
        description: Order created
      400:
        description: Empty cart, missing shipping details, bad transaction ID or missing seller
      403:
        description: Only buyers can place orders
    """
    session = current_session()
    data = request.get_json(silent=True) or {}

    payment_info = data.get("payment") if isinstance(data.get("payment"), dict) else data
    order = place_order(
        session,
        data.get("cart") or data.get("items"),
        data,
        payment_info=payment_info,
    )
    return jsonify({
        "message": "Order placed successfully",
        "order": serialize_order(order),
    }), 201


@buyer_orders.route('/api/orders', methods=['GET'])
@jwt_required()
def get_user_orders():
    """
    Get all orders of the signed-in buyer, newest first
    ---
    tags:
      - Buyer Orders
    security:
      - Bearer: []
    parameters:
      - name: status
        in: query
        type: string
        required: false
        description: Only orders in this status (case-insensitive)
    responses:
      200:
        description: Orders with progress step and preview image
    """
    session = current_session()
    orders = list_buyer_orders(session, status=request.args.get("status"))
    return jsonify({"orders": orders}), 200


@buyer_orders.route('/api/orders/<int:order_id>', methods=['GET'])
@jwt_required()
def track_order(order_id):
    session = current_session()
    return jsonify(buyer_order(session, order_id)), 200


@buyer_orders.route('/api/orders/stream', methods=['GET'])
@jwt_required()
def stream_user_orders():
    """Server-sent events: the buyer's order list, re-sent whenever one of their orders changes."""
    session = current_session().require_role("buyer")
    status = request.args.get("status")

    def snapshot():
        return sse_event("orders", list_buyer_orders(session, status=status))

    def on_change(order):
        return snapshot()

    return sse_response(event_stream(lambda: order_feed.subscribe_buyer(session.user_id), snapshot, on_change))


@buyer_orders.route('/api/orders/<int:order_id>/stream', methods=['GET'])
@jwt_required()
def stream_order(order_id):
    """Server-sent events: tracking data for one order, pushed on every change."""
    session = current_session()
    initial = buyer_order(session, order_id)

    def snapshot():
        return sse_event("order", initial)

    def on_change(order):
        if order.get("deleted"):
            return sse_event("deleted", {"id": order_id})
        return sse_event("order", buyer_view(order))

    return sse_response(event_stream(lambda: order_feed.subscribe_order(order_id), snapshot, on_change))
