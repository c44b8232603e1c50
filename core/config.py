from datetime import timedelta
import os
from dotenv import load_dotenv

load_dotenv()
class Config:
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///storefront.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=24)

    # payment is a manual transfer the admin verifies later
    PAYMENT_METHOD = os.environ.get("PAYMENT_METHOD", "Easypaisa")
    PAYMENT_ACCOUNT = os.environ.get("PAYMENT_ACCOUNT", "")
    MIN_TRANSACTION_ID_LENGTH = 8
    CURRENCY_SYMBOL = os.environ.get("CURRENCY_SYMBOL", "Rs.")

    ORDERS_PAGE_SIZE = int(os.environ.get("ORDERS_PAGE_SIZE", 20))
    MAX_PAGE_SIZE = 100
    WISHLIST_BATCH_SIZE = 10
    PLACEHOLDER_IMAGE = "/placeholder.jpg"

    LOGIN_MAX_ATTEMPTS = 5
    LOGIN_LOCKOUT_MINUTES = 15

    FEED_HEARTBEAT_SECONDS = 15


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    JWT_SECRET_KEY = "test-secret-key-with-enough-length-for-hs256"
    FEED_HEARTBEAT_SECONDS = 0.05
    BCRYPT_LOG_ROUNDS = 4
