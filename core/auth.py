from core.imports import get_jwt_identity, get_jwt, current_app, datetime, timedelta
from core.extensions import db
from core.errors import AuthError, AuthorizationError
from models.userModel import Users

AUTH_ERROR_MESSAGES = {
    "user-not-found": "No account found for this email.",
    "wrong-password": "Incorrect password.",
    "too-many-requests": "Too many failed attempts. Please try again later.",
    "invalid-token": "Your session is no longer valid. Please sign in again.",
}


def auth_error(code):
    return AuthError(AUTH_ERROR_MESSAGES.get(code, "Failed to sign in."), code=code)


class Session:
    """The signed-in account for one request, passed explicitly into services."""

    def __init__(self, user_id, role, approved=True, name="", email=""):
        self.user_id = user_id
        self.role = role
        self.approved = approved
        self.name = name
        self.email = email

    @classmethod
    def from_user(cls, user):
        return cls(
            user_id=user.id,
            role=user.role,
            approved=bool(user.approved),
            name=user.name,
            email=user.email,
        )

    @property
    def is_admin(self):
        return self.role == "admin"

    @property
    def is_seller(self):
        return self.role == "seller"

    @property
    def is_buyer(self):
        return self.role == "buyer"

    @property
    def actor_id(self):
        return str(self.user_id)

    def require_role(self, *roles):
        if self.role not in roles:
            raise AuthorizationError("Forbidden")
        return self

    def require_approved_seller(self):
        self.require_role("seller")
        if not self.approved:
            raise AuthorizationError("Your seller account is awaiting admin approval.")
        return self


def current_session():
    """Build the Session for the JWT on the current request. Call inside @jwt_required()."""
    identity = get_jwt_identity()
    try:
        user_id = int(identity)
    except (TypeError, ValueError):
        raise auth_error("invalid-token")

    user = db.session.get(Users, user_id)
    if not user:
        raise auth_error("invalid-token")

    claims = get_jwt()
    if claims.get("role") and claims.get("role") != user.role:
        # role changed since the token was minted
        current_app.logger.warning("Token role %s no longer matches user %s", claims.get("role"), user.id)
    return Session.from_user(user)


class LoginThrottle:
    """Counts failed sign-ins per email inside a sliding window."""

    def __init__(self):
        self._failures = {}

    def _window(self):
        return timedelta(minutes=current_app.config["LOGIN_LOCKOUT_MINUTES"])

    def _recent(self, email):
        cutoff = datetime.utcnow() - self._window()
        attempts = [t for t in self._failures.get(email, []) if t > cutoff]
        if attempts:
            self._failures[email] = attempts
        else:
            self._failures.pop(email, None)
        return attempts

    def sweep(self):
        """Forget every email whose failures have all left the window."""
        for email in list(self._failures):
            self._recent(email)

    def check(self, email):
        if len(self._recent(email)) >= current_app.config["LOGIN_MAX_ATTEMPTS"]:
            raise auth_error("too-many-requests")

    def record_failure(self, email):
        self.sweep()
        self._failures.setdefault(email, []).append(datetime.utcnow())

    def reset(self, email):
        self._failures.pop(email, None)

    def __len__(self):
        return len(self._failures)


def init_auth(app):
    app.extensions["login_throttle"] = LoginThrottle()


def get_login_throttle():
    return current_app.extensions["login_throttle"]
