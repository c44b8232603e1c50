from core.imports import Blueprint, jsonify, request, create_access_token, jwt_required, current_app, re, IntegrityError
from core.extensions import db, bcrypt
from core.errors import ValidationError, ConflictError
from core.auth import current_session, auth_error, get_login_throttle
from models.userModel import Users

auth_bp = Blueprint('auth', __name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 6
SIGNUP_ROLES = ("buyer", "seller")


def text_field(data, *keys):
    """First of `keys` holding a non-blank string, stripped. Other JSON types count as missing."""
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def password_field(data, key):
    value = data.get(key)
    return value if isinstance(value, str) else ""


def seed_demo_accounts():
    """Create one demo account per role. Safe to run more than once."""
    accounts = [
        {"name": "Site Admin", "email": "admin@storefront.test", "role": "admin", "approved": True},
        {"name": "Demo Seller", "email": "seller@storefront.test", "role": "seller", "approved": True,
         "shop_name": "Demo Shop"},
        {"name": "Demo Buyer", "email": "buyer@storefront.test", "role": "buyer", "approved": True},
    ]
    for data in accounts:
        if Users.query.filter_by(email=data["email"]).first():
            print(f"ℹ️ {data['email']} already exists.")
            continue
        user = Users(
            password=bcrypt.generate_password_hash("password123").decode('utf-8'),
            phone="03001234567",
            address="1 Demo Street",
            **data,
        )
        db.session.add(user)
        print(f"✅ Demo {data['role']} created (email={data['email']}, password=password123)")
    db.session.commit()


def validate_signup(data):
    """Return the cleaned signup fields or raise ValidationError with the first problem found."""
    role = data.get('role') or 'buyer'
    role = role.strip().lower() if isinstance(role, str) else ''
    if role not in SIGNUP_ROLES:
        raise ValidationError("Role must be buyer or seller")

    cleaned = {
        "name": text_field(data, 'name'),
        "email": text_field(data, 'email').lower(),
        "phone": text_field(data, 'phone'),
        "address": text_field(data, 'address'),
        "shop_name": text_field(data, 'shop_name', 'shopName'),
        "role": role,
    }
    password = password_field(data, 'password')

    if not cleaned["name"]:
        raise ValidationError("Name is required")
    if not EMAIL_PATTERN.match(cleaned["email"]):
        raise ValidationError("Please enter a valid email address")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if not cleaned["phone"]:
        raise ValidationError("Phone number is required")
    if not cleaned["address"]:
        raise ValidationError("Address is required")
    if role == "seller" and not cleaned["shop_name"]:
        raise ValidationError("Shop name is required for sellers")

    cleaned["password"] = password
    return cleaned


def issue_token(user):
    return create_access_token(identity=str(user.id), additional_claims={"role": user.role})


@auth_bp.route('/api/auth/signup', methods=['POST'])
def signup():
    """
    Register a buyer or seller account
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [name, email, password, phone, address]
          properties:
            name:
              type: string
            email:
              type: string
            password:
              type: string
              minLength: 6
            phone:
              type: string
            address:
              type: string
            role:
              type: string
              enum: [buyer, seller]
            shop_name:
              type: string
              description: Required for sellers
    responses:
      201:
        description: Account created, token returned
      400:
        description: Validation failed
      409:
        description: Email already registered
    """
    data = request.get_json(silent=True) or {}
    fields = validate_signup(data)

    if Users.query.filter_by(email=fields["email"]).first():
        raise ConflictError("Account with this email already exists")

    user = Users(
        name=fields["name"],
        email=fields["email"],
        phone=fields["phone"],
        address=fields["address"],
        password=bcrypt.generate_password_hash(fields["password"]).decode('utf-8'),
        role=fields["role"],
        shop_name=fields["shop_name"] or None,
        # sellers wait for an admin before they can manage orders
        approved=fields["role"] != "seller",
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Account with this email already exists")

    current_app.logger.info("New %s account %s", user.role, user.id)
    return jsonify({
        "message": "Account created successfully",
        "access_token": issue_token(user),
        "user": user.to_dict(),
    }), 201


@auth_bp.route('/api/auth/login', methods=['POST'])
def login():
    """
    Sign in with email and password
    ---
    tags:
      - Auth
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            email:
              type: string
            password:
              type: string
    responses:
      200:
        description: Signed in
      401:
        description: "Error with `code`: user-not-found, wrong-password or too-many-requests"
    """
    data = request.get_json(silent=True) or {}
    email = text_field(data, 'email').lower()
    password = password_field(data, 'password')

    if not email or not password:
        raise ValidationError("Email and password are required")

    throttle = get_login_throttle()
    throttle.check(email)

    user = Users.query.filter_by(email=email).first()
    if not user:
        throttle.record_failure(email)
        raise auth_error("user-not-found")
    if not bcrypt.check_password_hash(user.password, password):
        throttle.record_failure(email)
        raise auth_error("wrong-password")

    throttle.reset(email)
    return jsonify({
        "message": "Login successful",
        "access_token": issue_token(user),
        "user": user.to_dict(),
    }), 200


@auth_bp.route('/api/user/profile', methods=['GET'])
@jwt_required()
def profile():
    session = current_session()
    user = db.session.get(Users, session.user_id)
    return jsonify(user.to_dict()), 200


@auth_bp.route('/api/user/update-profile', methods=['PATCH'])
@jwt_required()
def update_profile_details():
    """
    Partially update the signed-in user's profile
    ---
    tags:
      - User
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            name:
              type: string
            email:
              type: string
            phone:
              type: string
            address:
              type: string
            shop_name:
              type: string
    responses:
      200:
        description: Profile updated
      400:
        description: No update data provided
      409:
        description: Email already in use
    """
    session = current_session()
    user = db.session.get(Users, session.user_id)

    data = request.get_json(silent=True)
    if not data:
        raise ValidationError("No data provided")

    updated = False
    for field in ('name', 'phone', 'address'):
        if data.get(field):
            setattr(user, field, str(data[field]).strip())
            updated = True

    if data.get('shop_name') and user.role == "seller":
        user.shop_name = str(data['shop_name']).strip()
        updated = True

    if data.get('email'):
        email = str(data['email']).strip().lower()
        if not EMAIL_PATTERN.match(email):
            raise ValidationError("Please enter a valid email address")
        if Users.query.filter(Users.email == email, Users.id != user.id).first():
            raise ConflictError("Email already in use")
        user.email = email
        updated = True

    if not updated:
        return jsonify({"message": "No fields were updated"}), 200

    db.session.commit()
    return jsonify({"message": "User details updated successfully", "user": user.to_dict()}), 200


@auth_bp.route('/api/user/change-password', methods=['POST'])
@jwt_required()
def change_password():
    session = current_session()
    user = db.session.get(Users, session.user_id)

    data = request.get_json(silent=True) or {}
    current_password = password_field(data, 'current_password')
    new_password = password_field(data, 'new_password')

    if not bcrypt.check_password_hash(user.password, current_password):
        raise auth_error("wrong-password")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    user.password = bcrypt.generate_password_hash(new_password).decode('utf-8')
    db.session.commit()
    current_app.logger.info("User %s changed their password", user.id)
    return jsonify({"message": "Password updated successfully"}), 200
