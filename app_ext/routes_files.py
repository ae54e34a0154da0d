# app_ext/routes_files.py

from flask import Blueprint, current_app, send_from_directory

bp = Blueprint("files", __name__)


@bp.get("/<path:filename>")
def published_file(filename: str):
    """
    Serve a published artifact (mp4, mp3, transcript/summary txt) verbatim.
    send_from_directory 404s on anything outside the published root.
    """
    settings = current_app.extensions["media_pipeline"].settings
    return send_from_directory(settings.public_dir, filename)
