from flask import Blueprint, current_app, send_from_directory

bp = Blueprint("media", __name__)


@bp.get("/<path:filename>")
def serve(filename: str):
    """
    Serve a stored avatar or cover image.
    ---
    tags:
      - Media
    parameters:
      - { in: path, name: filename, type: string, required: true }
    responses:
      200: { description: The file }
      404: { description: Not found }
    """
    return send_from_directory(current_app.config["UPLOAD_FOLDER"], filename)
