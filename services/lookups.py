from core.extensions import db
from models.productModels import Products, LocalImage, Category
from models.userModel import Users


def image_exists(image_id):
    return db.session.query(LocalImage.id).filter_by(id=image_id).first() is not None


def product_lookup(product_id):
    """Global catalog lookup by product id, as a plain dict."""
    product = db.session.get(Products, product_id)
    return product.to_dict() if product else None


def category_names():
    return {c.id: c.name for c in Category.query.all()}


def seller_catalog(seller_id):
    """The seller's own products keyed by id, with category names filled in."""
    names = category_names()
    catalog = {}
    for product in Products.query.filter_by(seller_id=seller_id).all():
        data = product.to_dict()
        data["category_name"] = names.get(product.category_id, "—")
        catalog[product.id] = data
    return catalog


class ProfileCache:
    """Memoizes user profile lookups for the length of one request."""

    def __init__(self):
        self._profiles = {}

    def get(self, user_id):
        if user_id is None:
            return None
        if user_id not in self._profiles:
            user = db.session.get(Users, user_id)
            self._profiles[user_id] = user.to_dict() if user else None
        return self._profiles[user_id]

    def prefetch(self, user_ids):
        missing = [uid for uid in set(user_ids) if uid is not None and uid not in self._profiles]
        if missing:
            for user in Users.query.filter(Users.id.in_(missing)).all():
                self._profiles[user.id] = user.to_dict()
            for uid in missing:
                self._profiles.setdefault(uid, None)
        return self

    def display_name(self, user_id):
        profile = self.get(user_id)
        if not profile or not profile["name"]:
            return str(user_id)
        return profile["name"]
