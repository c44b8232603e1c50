import pytest

from core.errors import InvalidStatus, Unauthorized, AuthorizationError, NotFoundError
from core.extensions import db
from models.orderModels import Order, OrderItem, OrderStatusHistory, ORDER_STATUSES
from services.statusEngine import set_status, mark_paid, delete_order


@pytest.fixture
def order(buyer, seller, make_product, cart_line, place):
    return place(buyer, [cart_line(make_product(seller), quantity=2)])


@pytest.mark.parametrize("new_status", ORDER_STATUSES)
def test_valid_status_appends_one_history_entry(order, seller, session_for, new_status):
    before = len(order.status_history)

    updated = set_status(order.id, new_status, session_for(seller))

    assert updated.status == new_status
    assert len(updated.status_history) == before + 1
    assert updated.status_history[-1].status == new_status
    assert updated.status_history[-1].updated_by == str(seller.id)
    assert updated.last_updated_by == str(seller.id)


@pytest.mark.parametrize("bad_status", ["paid", "SHIPPED", "", None, "refunded"])
def test_invalid_status_leaves_order_unchanged(order, admin, session_for, bad_status):
    with pytest.raises(InvalidStatus):
        set_status(order.id, bad_status, session_for(admin))

    db.session.expire_all()
    reloaded = db.session.get(Order, order.id)
    assert reloaded.status == "pending"
    assert len(reloaded.status_history) == 1


def test_listed_seller_can_ship(order, seller, session_for):
    updated = set_status(order.id, "shipped", session_for(seller))
    assert updated.status == "shipped"
    assert len(updated.status_history) == 2


def test_unlisted_seller_is_refused(order, other_seller, session_for):
    with pytest.raises(Unauthorized) as excinfo:
        set_status(order.id, "shipped", session_for(other_seller))

    assert excinfo.value.message == "Unauthorized: Seller not associated with this order"
    db.session.expire_all()
    reloaded = db.session.get(Order, order.id)
    assert reloaded.status == "pending"
    assert len(reloaded.status_history) == 1


def test_buyer_cannot_change_status(order, buyer, session_for):
    with pytest.raises(AuthorizationError):
        set_status(order.id, "cancelled", session_for(buyer))


def test_admin_change_keeps_last_updated_by(order, admin, session_for):
    updated = set_status(order.id, "accepted", session_for(admin))
    assert updated.status_history[-1].updated_by == str(admin.id)
    assert updated.last_updated_by is None


def test_transitions_are_unconstrained(order, seller, session_for):
    set_status(order.id, "delivered", session_for(seller))
    updated = set_status(order.id, "pending", session_for(seller))
    assert [h.status for h in updated.status_history] == ["pending", "delivered", "pending"]


def test_missing_order(seller, session_for):
    with pytest.raises(NotFoundError):
        set_status(12345, "shipped", session_for(seller))


def test_soft_deleted_order_is_hidden_from_seller(order, seller, admin, session_for):
    delete_order(order.id, session_for(admin), hard=False)

    with pytest.raises(NotFoundError):
        set_status(order.id, "shipped", session_for(seller))

    db.session.expire_all()
    reloaded = db.session.get(Order, order.id)
    assert reloaded.status == "pending"
    assert len(reloaded.status_history) == 1

    updated = set_status(order.id, "cancelled", session_for(admin))
    assert updated.status == "cancelled"


def test_mark_paid_is_admin_only_and_idempotent(order, admin, seller, session_for):
    with pytest.raises(AuthorizationError):
        mark_paid(order.id, session_for(seller))

    paid = mark_paid(order.id, session_for(admin))
    assert paid.payment_status == "paid"
    stamp = paid.updated_at

    again = mark_paid(order.id, session_for(admin))
    assert again.payment_status == "paid"
    assert again.updated_at == stamp


def test_soft_delete_keeps_row(order, admin, session_for):
    payload = delete_order(order.id, session_for(admin), hard=False)

    assert payload == {"id": order.id, "user_id": order.user_id, "deleted": True}
    db.session.expire_all()
    assert db.session.get(Order, order.id).deleted is True


def test_hard_delete_removes_children(order, admin, session_for):
    order_id = order.id
    delete_order(order_id, session_for(admin), hard=True)

    assert db.session.get(Order, order_id) is None
    assert OrderItem.query.filter_by(order_id=order_id).count() == 0
    assert OrderStatusHistory.query.filter_by(order_id=order_id).count() == 0
