from __future__ import annotations

from flask import Blueprint, request, jsonify, g, abort

from models import storage
from models.user import User
from models.schemas.user import AccountUpdateSchema, UserOutSchema
from utils.decorators import jwt_required
from utils.media import get_media_storage

bp = Blueprint("users", __name__)

account_update_schema = AccountUpdateSchema()
user_out_schema = UserOutSchema()


@bp.get("/current-user")
@jwt_required()
def current_user():
    """
    Get current user info.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return jsonify(
        {
            "data": user_out_schema.dump(g.current_user),
            "message": "Current user fetched successfully",
        }
    ), 200


@bp.patch("/update-account")
@jwt_required()
def update_account():
    """
    Update full name and email.
    ---
    tags:
      - Users
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
             fullName: { type: string }
             email: { type: string }
    responses:
      200: { description: OK }
      401: { description: Unauthorized }
      409: { description: Email already taken }
      422: { description: Validation error }
    """
    payload = request.get_json(silent=True) or {}
    data = account_update_schema.load(payload)

    user: User = g.current_user
    session = storage.get_session()
    taken = session.query(User).filter(User.email == data["email"], User.id != user.id).first()
    if taken:
        abort(409, description="Email already registered")

    user.full_name = data["full_name"]
    user.email = data["email"]
    user.save()
    return jsonify(
        {
            "data": user_out_schema.dump(user),
            "message": "Account details updated successfully",
        }
    ), 200


def _replace_image(field: str, attr: str, label: str):
    file = request.files.get(field)
    if file is None or not file.filename:
        abort(400, description=f"{label} file is missing")
    url = get_media_storage().save(file)
    if not url:
        abort(400, description=f"{label} upload failed")

    user: User = g.current_user
    setattr(user, attr, url)
    user.save()
    return jsonify(
        {
            "data": user_out_schema.dump(user),
            "message": f"{label} updated successfully",
        }
    ), 200


@bp.patch("/avatar")
@jwt_required()
def update_avatar():
    """
    Replace the avatar image.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: avatar, type: file, required: true }
    responses:
      200: { description: OK }
      400: { description: File missing or upload failed }
      401: { description: Unauthorized }
    """
    return _replace_image("avatar", "avatar", "Avatar")


@bp.patch("/cover-image")
@jwt_required()
def update_cover_image():
    """
    Replace the cover image.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: coverImage, type: file, required: true }
    responses:
      200: { description: OK }
      400: { description: File missing or upload failed }
      401: { description: Unauthorized }
    """
    return _replace_image("coverImage", "cover_image", "Cover image")
