from core.imports import Flask
from core.config import Config
from core.extensions import db, jwt, swagger, cors, bcrypt, migrate
from core.errors import register_error_handlers
from core.auth import init_auth
from routes.auth import auth_bp, seed_demo_accounts
from routes.admin import admin_bp
from routes.adminOrders import admin_orders_bp
from routes.seller import seed_categories, seed_products, seller_bp
from routes.sellerOrders import seller_orders_bp
from routes.marketplace import marketplace_bp
from routes.cart import cart_bp
from routes.buyerOrders import buyer_orders
from routes.buyers import buyers_bp


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    db.init_app(app)
    jwt.init_app(app)
    swagger.init_app(app)
    cors.init_app(app)
    bcrypt.init_app(app)
    migrate.init_app(app, db)
    init_auth(app)
    register_error_handlers(app)

    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(admin_orders_bp)
    app.register_blueprint(seller_bp)
    app.register_blueprint(seller_orders_bp)
    app.register_blueprint(marketplace_bp)
    app.register_blueprint(cart_bp)
    app.register_blueprint(buyer_orders)
    app.register_blueprint(buyers_bp)

    @app.route('/ping')
    def ping():
        return "Ping received", 200

    return app


if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        db.create_all()

        seed_demo_accounts()
        seed_categories()
        seed_products()

    app.run(debug=True, threaded=True)
