"""
Media store for user images (avatar, cover image).

Files land in the configured upload folder under a collision-free name and
are served back by the `media` blueprint.
"""
from __future__ import annotations

import logging
import os
import uuid

from flask import current_app, url_for
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from utils.errors import BadRequestError

logger = logging.getLogger(__name__)


class MediaStorage:
    def __init__(self, upload_folder: str, allowed_extensions):
        self.upload_folder = upload_folder
        self.allowed_extensions = {ext.lower().lstrip(".") for ext in allowed_extensions}

    def _extension(self, filename: str) -> str:
        return filename.rsplit(".", 1)[1].lower() if "." in filename else ""

    def save(self, file: FileStorage | None) -> str | None:
        """
        Store an uploaded file and return its public URL.
        Returns None when nothing usable was uploaded.
        """
        if file is None or not file.filename:
            return None
        filename = secure_filename(file.filename)
        if not filename:
            return None
        if self._extension(filename) not in self.allowed_extensions:
            raise BadRequestError("Unsupported file type")

        stored_name = f"{uuid.uuid4().hex}_{filename}"
        os.makedirs(self.upload_folder, exist_ok=True)
        path = os.path.join(self.upload_folder, stored_name)
        try:
            file.save(path)
        except OSError:
            logger.exception("Could not store upload %s", filename)
            return None
        if os.path.getsize(path) == 0:
            os.remove(path)
            return None
        return url_for("media.serve", filename=stored_name, _external=True)

    def discard(self, url: str | None) -> None:
        """Remove a file previously returned by save(); unknown names are ignored."""
        if not url:
            return
        filename = secure_filename(url.rsplit("/", 1)[-1])
        path = os.path.join(self.upload_folder, filename)
        if filename and os.path.isfile(path):
            try:
                os.remove(path)
            except OSError:
                logger.exception("Could not remove upload %s", filename)


def get_media_storage() -> MediaStorage:
    return current_app.extensions["media_storage"]
