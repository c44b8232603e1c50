import pytest
from flask_jwt_extended import create_access_token

from main import create_app
from core.config import TestConfig
from core.extensions import db, bcrypt
from core.auth import Session
from models.userModel import Users
from models.productModels import Category, Products

SHIPPING = {
    "name": "Ayesha Khan",
    "phone": "03001234567",
    "address": "12 Mall Road",
    "city": "Lahore",
    "postal_code": "54000",
    "country": "Pakistan",
}


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make_user(role="buyer", approved=True, name=None, email=None, password="secret123", **extra):
        counter["n"] += 1
        user = Users(
            name=name or f"{role.title()} {counter['n']}",
            email=email or f"{role}{counter['n']}@example.com",
            phone="0300000000",
            address="1 Test Street",
            password=bcrypt.generate_password_hash(password).decode("utf-8"),
            role=role,
            approved=approved,
            **extra,
        )
        db.session.add(user)
        db.session.commit()
        return user

    return _make_user


@pytest.fixture
def buyer(make_user):
    return make_user("buyer", name="Ayesha Buyer")


@pytest.fixture
def seller(make_user):
    return make_user("seller", name="Bilal Seller", shop_name="Bilal Crafts")


@pytest.fixture
def other_seller(make_user):
    return make_user("seller", name="Sana Seller", shop_name="Sana Textiles")


@pytest.fixture
def admin(make_user):
    return make_user("admin", name="Site Admin")


@pytest.fixture
def session_for():
    return Session.from_user


@pytest.fixture
def auth_headers():
    def _headers(user):
        token = create_access_token(identity=str(user.id), additional_claims={"role": user.role})
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def category(app):
    category = Category(name="Clothing")
    db.session.add(category)
    db.session.commit()
    return category


@pytest.fixture
def make_product(category):
    def _make_product(seller, name="Cotton Kurta", price=100, **extra):
        product = Products(
            name=name,
            price=price,
            stock=10,
            description="",
            category_id=category.id,
            seller_id=seller.id,
            **extra,
        )
        db.session.add(product)
        db.session.commit()
        return product
    return _make_product


@pytest.fixture
def shipping():
    return dict(SHIPPING)


@pytest.fixture
def cart_line():
    def _line(product, quantity=1, price=None):
        return {
            "productId": product.id,
            "sellerId": product.seller_id,
            "name": product.name,
            "price": float(product.price) if price is None else price,
            "quantity": quantity,
        }
    return _line


@pytest.fixture
def place(session_for, shipping):
    """Place an order directly through the checkout service."""
    from services.checkout import place_order

    def _place(buyer, cart, transaction_id="TXN12345678", shipping_info=None):
        return place_order(
            session_for(buyer),
            cart,
            shipping_info or shipping,
            payment_info={"transactionId": transaction_id},
        )
    return _place
