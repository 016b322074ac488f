"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/logout
- POST /auth/refresh-token
- POST /auth/change-password

The implementation:
- Uses argon2 for password hashing (via utils.security)
- Issues short-lived access tokens and long-lived refresh tokens (JWTs signed
  with distinct secrets) through the app's TokenManager
- Stores only the current refresh token on the user row, rotating it on every
  refresh and clearing it on logout
- Delivers both tokens as httpOnly cookies and in the JSON body
"""
from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify, g, abort, current_app
from marshmallow import ValidationError
from sqlalchemy import or_

from models import storage
from models.user import User
from models.schemas.user import (
    UserRegisterSchema,
    UserLoginSchema,
    UserOutSchema,
    RefreshTokenSchema,
    ChangePasswordSchema,
)
from utils.decorators import jwt_required, ACCESS_COOKIE
from utils.errors import ApiError, UnauthorizedError
from utils.media import get_media_storage
from utils.security import hash_password, verify_password
from utils.tokens import INVALID_REFRESH_TOKEN, TokenPair

REFRESH_COOKIE = "refreshToken"

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__)

user_register_schema = UserRegisterSchema()
user_login_schema = UserLoginSchema()
user_out_schema = UserOutSchema()
refresh_token_schema = RefreshTokenSchema()
change_password_schema = ChangePasswordSchema()


def _token_manager():
    return current_app.extensions["token_manager"]


def _cookie_options() -> dict:
    return {
        "httponly": True,
        "secure": current_app.config.get("COOKIE_SECURE", True),
        "samesite": current_app.config.get("COOKIE_SAMESITE", "Lax"),
        "path": "/",
    }


def set_auth_cookies(response, pair: TokenPair):
    opts = _cookie_options()
    cfg = current_app.config
    response.set_cookie(ACCESS_COOKIE, pair.access_token,
                        max_age=int(cfg["ACCESS_TOKEN_EXPIRES"].total_seconds()), **opts)
    response.set_cookie(REFRESH_COOKIE, pair.refresh_token,
                        max_age=int(cfg["REFRESH_TOKEN_EXPIRES"].total_seconds()), **opts)
    return response


def clear_auth_cookies(response):
    opts = _cookie_options()
    response.delete_cookie(ACCESS_COOKIE, **opts)
    response.delete_cookie(REFRESH_COOKIE, **opts)
    return response


@bp.post("/register")
def register():
    """
    Register a new user with an avatar and an optional cover image.
    ---
    tags:
      - Auth
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: username, type: string, required: true }
      - { in: formData, name: fullName, type: string, required: true }
      - { in: formData, name: email, type: string, required: true }
      - { in: formData, name: password, type: string, required: true }
      - { in: formData, name: avatar, type: file, required: true }
      - { in: formData, name: coverImage, type: file, required: false }
    responses:
      201:
        description: Created
      400:
        description: Avatar missing
      409:
        description: Username or email already taken
      422:
        description: Validation error
    """
    data = user_register_schema.load(request.form.to_dict())

    session = storage.get_session()
    existing = session.query(User).filter(
        or_(User.username == data["username"], User.email == data["email"])
    ).first()
    if existing:
        abort(409, description="User with username or email already exists")

    media = get_media_storage()
    avatar_url = media.save(request.files.get("avatar"))
    if not avatar_url:
        abort(400, description="Avatar is required")
    cover_image_url = None
    try:
        cover_image_url = media.save(request.files.get("coverImage"))
        user = User(
            username=data["username"],
            email=data["email"],
            full_name=data["full_name"],
            password_hash=hash_password(data["password"]),
            avatar=avatar_url,
            cover_image=cover_image_url or "",
        )
        storage.new(user)
        storage.save()
    except Exception:
        # no user row references the uploads
        media.discard(avatar_url)
        media.discard(cover_image_url)
        raise
    logger.info("Registered user %s", user.id)

    return jsonify(
        {
            "data": user_out_schema.dump(user),
            "message": "User registered successfully",
        }
    ), 201


@bp.post("/login")
def login():
    """
    Login with username or email; returns tokens and sets them as cookies.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             username: { type: string }
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      400:
        description: Username or email missing
      401:
        description: Invalid credentials
      404:
        description: Unknown user
    """
    payload = request.get_json(silent=True) or {}
    data = user_login_schema.load(payload)
    username = data.get("username")
    email = data.get("email")
    if not (username or email):
        abort(400, description="Username or email is required")

    conditions = []
    if username:
        conditions.append(User.username == username)
    if email:
        conditions.append(User.email == email)

    session = storage.get_session()
    user: User = session.query(User).filter(or_(*conditions)).first()
    if not user:
        abort(404, description="User does not exist")
    if not verify_password(data["password"], user.password_hash):
        abort(401, description="Invalid user credentials")

    pair = _token_manager().issue(user)

    response = jsonify(
        {
            "data": {
                "user": user_out_schema.dump(user),
                "accessToken": pair.access_token,
                "refreshToken": pair.refresh_token,
            },
            "message": "User logged in successfully",
        }
    )
    return set_auth_cookies(response, pair), 200


@bp.post("/logout")
@jwt_required()
def logout():
    """
    Logout: clears the refresh session and both cookies
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: Logged out
      401:
        description: Unauthorized
    """
    _token_manager().revoke(g.current_user)
    response = jsonify({"data": {}, "message": "User logged out successfully"})
    return clear_auth_cookies(response), 200


@bp.post("/refresh-token")
def refresh():
    """
    Exchange the refresh token (cookie or body) for a new pair (rotation).
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         required: false
         schema:
           type: object
           properties:
             refreshToken: { type: string }
    responses:
      200:
        description: New tokens issued
      401:
        description: Missing, invalid, expired or already used refresh token
    """
    token = request.cookies.get(REFRESH_COOKIE)
    if not token:
        payload = request.get_json(silent=True) or {}
        try:
            token = refresh_token_schema.load(payload).get("refresh_token")
        except ValidationError as exc:
            raise UnauthorizedError(INVALID_REFRESH_TOKEN) from exc
    if not token:
        raise UnauthorizedError("Unauthorized request")

    pair = _token_manager().validate_and_rotate(token)

    response = jsonify(
        {
            "data": {
                "accessToken": pair.access_token,
                "refreshToken": pair.refresh_token,
            },
            "message": "Access token refreshed",
        }
    )
    return set_auth_cookies(response, pair), 200


@bp.post("/change-password")
@jwt_required()
def change_password():
    """
    Change the current user's password; issues a fresh token pair.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             oldPassword: { type: string }
             newPassword: { type: string }
    responses:
      200:
        description: Password changed
      400:
        description: Invalid old password
      422:
        description: Validation error
    """
    payload = request.get_json(silent=True) or {}
    data = change_password_schema.load(payload)

    user: User = g.current_user
    if not verify_password(data["old_password"], user.password_hash):
        abort(400, description="Invalid old password")

    # the new hash stays pending and is committed together with the rotated
    # refresh token, which invalidates any token issued before the change
    user.password_hash = hash_password(data["new_password"])
    try:
        pair = _token_manager().issue(user)
    except ApiError:
        storage.rollback()
        raise

    response = jsonify(
        {
            "data": {
                "accessToken": pair.access_token,
                "refreshToken": pair.refresh_token,
            },
            "message": "Password changed successfully",
        }
    )
    return set_auth_cookies(response, pair), 200
