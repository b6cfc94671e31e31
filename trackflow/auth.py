import logging
from datetime import datetime, timedelta, timezone
from functools import wraps

import bcrypt
import jwt
from flask import request, jsonify
from sqlalchemy.exc import SQLAlchemyError

from . import app
from .mailer import send_welcome_email
from .models import db, User

logger = logging.getLogger(__name__)


def bearer_token():
    token = request.headers.get("Authorization", "")
    if token.startswith("Bearer "):
        token = token[7:]
    return token.strip() or None


def user_from_token(token):
    """Return the user a token belongs to, or None if the token is unusable."""
    try:
        payload = jwt.decode(token, app.config["JWT_SECRET_KEY"], algorithms=["HS256"])
    except jwt.ExpiredSignatureError:
        logger.error("Token expired")
        return None
    except jwt.InvalidTokenError:
        logger.error("Invalid token")
        return None
    user_id = payload.get("user_id")
    if user_id is None:
        return None
    return db.session.get(User, user_id)


# JWT middleware
def token_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        token = bearer_token()
        if not token:
            logger.error("Token missing in request")
            return jsonify({"message": "No token provided"}), 401
        user = user_from_token(token)
        if not user:
            logger.error("Token rejected")
            return jsonify({"message": "Invalid token"}), 401
        return f(user, *args, **kwargs)
    return decorated


def generate_token(user_id, email):
    now = datetime.now(timezone.utc)
    payload = {
        "user_id": user_id,
        "email": email,
        "exp": now + timedelta(hours=app.config["JWT_EXPIRATION_HOURS"]),
        "iat": now
    }
    return jwt.encode(payload, app.config["JWT_SECRET_KEY"], algorithm="HS256")


@app.route("/api/register", methods=["POST"])
def register():
    data = request.get_json(silent=True) or {}
    name = (data.get("name") or "").strip()
    email = (data.get("email") or "").strip().lower()
    password = data.get("password")
    if not name or not email or not password:
        return jsonify({"message": "Name, email, and password required"}), 400
    if User.query.filter_by(email=email).first():
        return jsonify({"message": "Email already exists"}), 400
    hashed_password = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
    try:
        new_user = User(name=name, email=email, password=hashed_password.decode("utf-8"))
        db.session.add(new_user)
        db.session.commit()
    except SQLAlchemyError as e:
        logger.error(f"Database error registering user: {str(e)}")
        db.session.rollback()
        return jsonify({"message": "Failed to register user"}), 500
    logger.info(f"User registered: {email}")
    send_welcome_email(new_user)

    token = generate_token(new_user.id, new_user.email)
    return jsonify({"message": "User registered", "token": token, "user": new_user.to_dict()}), 201


@app.route("/api/login", methods=["POST"])
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    user = User.query.filter_by(email=email).first()
    if not user or not bcrypt.checkpw(password.encode("utf-8"), user.password.encode("utf-8")):
        logger.error(f"Failed login for {email}")
        return jsonify({"message": "Invalid credentials"}), 401
    token = generate_token(user.id, user.email)
    return jsonify({"token": token, "user": user.to_dict()}), 200


@app.route("/api/user/profile", methods=["GET"])
@token_required
def profile(user):
    return jsonify(user.to_dict()), 200
