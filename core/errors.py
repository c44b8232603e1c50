from core.imports import jsonify, current_app, SQLAlchemyError
from core.extensions import db


class StorefrontError(Exception):
    """Base error. Every subclass maps to an HTTP status and a user-facing message."""
    status_code = 400

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__

    def to_dict(self):
        return {"message": self.message}


class ValidationError(StorefrontError):
    """Invalid request data"""
    status_code = 400


class InvalidStatus(ValidationError):
    """Invalid status"""

    def __init__(self, status, allowed=()):
        message = f"Invalid status: {status}."
        if allowed:
            message = f"{message} Must be one of {', '.join(allowed)}"
        super().__init__(message)
        self.status = status


class MissingSeller(ValidationError):
    """Missing seller for product"""

    def __init__(self, item_name):
        super().__init__(f"Missing sellerId for product: {item_name}")
        self.item_name = item_name


class ConflictError(StorefrontError):
    """Conflict with existing data"""
    status_code = 409


class AuthError(StorefrontError):
    """Authentication failed"""
    status_code = 401

    def __init__(self, message=None, code=None):
        super().__init__(message)
        self.code = code

    def to_dict(self):
        data = super().to_dict()
        if self.code:
            data["code"] = self.code
        return data


class AuthorizationError(StorefrontError):
    """Forbidden"""
    status_code = 403


class Unauthorized(AuthorizationError):
    """Unauthorized: Seller not associated with this order"""


class NotFoundError(StorefrontError):
    """Not found"""
    status_code = 404


def register_error_handlers(app):

    @app.errorhandler(StorefrontError)
    def handle_storefront_error(error):
        if isinstance(error, (AuthorizationError, AuthError)):
            current_app.logger.warning("Refused request: %s", error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(error):
        db.session.rollback()
        current_app.logger.exception("Database error: %s", error)
        return jsonify({"message": "An internal error occurred."}), 500
