from core.imports import current_app, IntegrityError
from core.extensions import db
from core.errors import NotFoundError
from models.wishlistModels import Wishlist
from models.productModels import Products


def chunked(values, size):
    for start in range(0, len(values), size):
        yield values[start:start + size]


def wishlist_products(user_id):
    """
    The user's wishlisted products in the order they were added.

    Products are fetched in batches of WISHLIST_BATCH_SIZE ids per query;
    entries whose product no longer exists are skipped.
    """
    entries = Wishlist.query.filter_by(user_id=user_id).order_by(Wishlist.added_at, Wishlist.id).all()
    product_ids = [entry.product_id for entry in entries]

    found = {}
    for batch in chunked(product_ids, current_app.config["WISHLIST_BATCH_SIZE"]):
        for product in Products.query.filter(Products.id.in_(batch)).all():
            found[product.id] = product.to_dict()
    return [found[pid] for pid in product_ids if pid in found]


def add_to_wishlist(user_id, product_id):
    """Add a product; adding one that is already there is a no-op. Returns True when a row was created."""
    if not db.session.get(Products, product_id):
        raise NotFoundError("Product not found")
    if Wishlist.query.filter_by(user_id=user_id, product_id=product_id).first():
        return False

    db.session.add(Wishlist(user_id=user_id, product_id=product_id))
    try:
        db.session.commit()
    except IntegrityError:
        # a concurrent add won the unique constraint
        db.session.rollback()
        return False
    return True


def remove_from_wishlist(user_id, product_id):
    entry = Wishlist.query.filter_by(user_id=user_id, product_id=product_id).first()
    if not entry:
        raise NotFoundError("Product not in wishlist")
    db.session.delete(entry)
    db.session.commit()
