"""Auth blueprint — /auth/*

Session login for the dashboard API. Accepts JSON or form posts and
always answers JSON. State-changing requests from the dashboard must
send the token from GET /auth/csrf in the X-CSRFToken header.

Route Map:
  GET  /auth/csrf    — CSRF token for the current session
  POST /auth/login   — {email, password} -> session cookie
  POST /auth/logout  — End session
  GET  /auth/me      — Current principal
"""

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_user, logout_user
from flask_wtf.csrf import generate_csrf
from werkzeug.security import check_password_hash

from medlead.decorators import principal_required
from medlead.errors import AuthenticationError, ValidationError
from medlead.extensions import limiter
from medlead.models.user import User

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


@auth_bp.route("/csrf")
def csrf_token():
    return jsonify({"csrfToken": generate_csrf()})


@auth_bp.route("/login", methods=["POST"])
@limiter.limit("15 per minute")
def login():
    """Standard email + password login."""
    if request.is_json:
        data = request.get_json(silent=True) or {}
    else:
        data = request.form.to_dict()
    if not isinstance(data, dict):
        data = {}

    email = (data.get("email") or "").lower().strip()
    password = data.get("password") or ""
    remember = bool(data.get("remember"))

    if not email or not password:
        raise ValidationError("Email e senha são obrigatórios.")

    user = User.query.filter_by(email=email).first()

    if user is None or not check_password_hash(user.password_hash, password):
        raise AuthenticationError("Email ou senha inválidos.")

    if not user.is_active:
        raise AuthenticationError("Sua conta foi desativada.")

    login_user(user, remember=remember)
    return jsonify({"ok": True, "user": user.to_dict(), "csrfToken": generate_csrf()})


@auth_bp.route("/logout", methods=["POST"])
def logout():
    logout_user()
    return jsonify({"ok": True})


@auth_bp.route("/me")
@principal_required
def me(owner_id):
    return jsonify(current_user.to_dict())
