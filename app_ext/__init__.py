# app_ext/__init__.py

import hmac
import logging
import time

from flask import jsonify, request

from config import Config
from media_core import Pipeline, PipelineSettings
from media_core.workspace import cleanup_stale_workspaces
from .routes_media import bp as media_bp
from .routes_files import bp as files_bp

logger = logging.getLogger(__name__)

OPEN_ENDPOINTS = {"media.health", "media.index"}


def init_app(app, pipeline: Pipeline | None = None):
    """Register blueprints, the shared pipeline and global hooks on the Flask app."""
    app.config.setdefault("SECRET_KEY", Config.SECRET_KEY)
    app.config.setdefault("MAX_CONTENT_LENGTH", Config.MAX_UPLOAD_MB * 1024 * 1024)

    if pipeline is None:
        pipeline = Pipeline(PipelineSettings.from_config(Config))
    settings = pipeline.settings
    settings.work_dir.mkdir(parents=True, exist_ok=True)
    settings.public_dir.mkdir(parents=True, exist_ok=True)
    app.extensions["media_pipeline"] = pipeline

    app.register_blueprint(media_bp)
    app.register_blueprint(files_bp, url_prefix=settings.public_url_prefix)

    logger.info(
        "[app] backend=%s lang=%s work=%s public=%s -> %s",
        settings.transcribe_backend, settings.language_code,
        settings.work_dir, settings.public_dir, settings.public_url_prefix,
    )

    state = {"last_clean": time.time()}

    @app.before_request
    def check_access_key():
        expected = app.config.get("ACCESS_KEY") or ""
        if not expected or request.endpoint in OPEN_ENDPOINTS:
            return None
        supplied = request.headers.get("x-access-key", "")
        if not hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8")):
            return jsonify({"ok": False, "error": "Invalid access key"}), 401
        return None

    @app.before_request
    def periodic_cleanup():
        now = time.time()
        interval = app.config.get("CLEANUP_INTERVAL_SEC", Config.CLEANUP_INTERVAL_SEC)
        if now - state["last_clean"] >= interval:
            ttl_min = app.config.get("WORK_TTL_MIN", Config.WORK_TTL_MIN)
            cleanup_stale_workspaces(settings.work_dir, ttl_min * 60, now)
            state["last_clean"] = now

    @app.errorhandler(413)
    def too_large(_e):
        return jsonify({"ok": False, "error": "Upload exceeds the maximum allowed size."}), 413
