import pytest
from sqlalchemy import event

from core.errors import NotFoundError
from core.extensions import db
from models.wishlistModels import Wishlist
from services.wishlist import wishlist_products, add_to_wishlist, remove_from_wishlist, chunked


@pytest.fixture
def product_queries(app):
    """Parameter counts of every SELECT ... FROM products ... IN (...) issued during the test."""
    seen = []

    def capture(conn, cursor, statement, parameters, context, executemany):
        if "FROM products" in statement and " IN (" in statement:
            seen.append(len(parameters))

    event.listen(db.engine, "before_cursor_execute", capture)
    yield seen
    event.remove(db.engine, "before_cursor_execute", capture)


def test_chunked():
    assert list(chunked(list(range(23)), 10)) == [list(range(10)), list(range(10, 20)), [20, 21, 22]]
    assert list(chunked([], 10)) == []


def test_lookup_is_batched_and_keeps_wishlist_order(buyer, seller, make_product, product_queries):
    products = [make_product(seller, name=f"Item {i}") for i in range(23)]
    wanted = list(reversed(products))
    for product in wanted:
        add_to_wishlist(buyer.id, product.id)
    product_queries.clear()

    result = wishlist_products(buyer.id)

    assert [p["id"] for p in result] == [p.id for p in wanted]
    assert product_queries == [10, 10, 3]


def test_add_is_idempotent(buyer, seller, make_product):
    product = make_product(seller)

    assert add_to_wishlist(buyer.id, product.id) is True
    assert add_to_wishlist(buyer.id, product.id) is False
    assert Wishlist.query.filter_by(user_id=buyer.id).count() == 1


def test_add_unknown_product(buyer):
    with pytest.raises(NotFoundError):
        add_to_wishlist(buyer.id, 404)


def test_remove(buyer, seller, make_product):
    product = make_product(seller)
    add_to_wishlist(buyer.id, product.id)

    remove_from_wishlist(buyer.id, product.id)

    assert wishlist_products(buyer.id) == []
    with pytest.raises(NotFoundError):
        remove_from_wishlist(buyer.id, product.id)
