# app_ext/routes_media.py

import logging
import tempfile
from pathlib import Path

from flask import Blueprint, current_app, jsonify, request
from werkzeug.utils import secure_filename

from media_core import (
    AcquisitionFailed,
    ArtifactTooLarge,
    InvalidInput,
    PipelineError,
    RemoteUrlSource,
    UploadSource,
    summarize_text,
)

logger = logging.getLogger(__name__)

bp = Blueprint("media", __name__)

FILE_FIELDS = ("video", "audio", "file")


def _status_for(exc: PipelineError) -> int:
    if isinstance(exc, InvalidInput):
        return 400
    if isinstance(exc, ArtifactTooLarge):
        return 413
    if isinstance(exc, AcquisitionFailed):
        return 502
    return 500


def _flag(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in {"1", "true", "on", "yes"}


def _upload_filename(raw: str) -> str:
    """Sanitise the stem only; secure_filename drops non-ASCII names entirely."""
    raw_path = Path(raw or "")
    suffix = raw_path.suffix.lower()
    if suffix and secure_filename(suffix) != suffix.lstrip("."):
        suffix = ""
    stem = secure_filename(raw_path.stem) or "upload"
    return f"{stem}{suffix}"


# -------------------------------------------------------------------
# Liveness
# -------------------------------------------------------------------
@bp.get("/")
def index():
    return "Transcription service is running.", 200, {"Content-Type": "text/plain; charset=utf-8"}


@bp.get("/health")
def health():
    settings = current_app.extensions["media_pipeline"].settings
    return jsonify({"ok": True, "service": "backend", "backend": settings.transcribe_backend})


# -------------------------------------------------------------------
# Transcription: upload (video / audio) or remote URL
# -------------------------------------------------------------------
@bp.post("/transcribir")
async def transcribir():
    pipeline = current_app.extensions["media_pipeline"]

    upload = next((request.files[k] for k in FILE_FIELDS if request.files.get(k)), None)
    url = (request.form.get("url") or "").strip()
    use_cookies = _flag(request.form.get("usarCookies"))
    if upload is None and not url and request.is_json:
        body = request.get_json(silent=True)
        body = body if isinstance(body, dict) else {}
        url = str(body.get("url") or "").strip()
        use_cookies = _flag(body.get("usarCookies"))

    if upload is not None and url:
        return jsonify({"ok": False, "error": "Send either a file or a URL, not both."}), 400
    if upload is None and not url:
        return jsonify({"ok": False, "error": "Select an MP4 file or provide a URL."}), 400

    try:
        if url:
            source = RemoteUrlSource(url=url, use_cookies=use_cookies)
            result = await pipeline.run(source)
        else:
            filename = _upload_filename(upload.filename)
            # ingestion storage; the pipeline copies out of it
            with tempfile.TemporaryDirectory(prefix="ingest_") as tmpdir:
                local_path = Path(tmpdir) / filename
                upload.save(local_path)
                source = UploadSource(
                    local_path=local_path,
                    media_type=upload.mimetype or "",
                    filename=filename,
                )
                result = await pipeline.run(source)
    except PipelineError as e:
        logger.warning("[transcribir] %s failed: %s", e.stage, e)
        return jsonify(e.to_dict()), _status_for(e)

    return jsonify(result.to_dict()), 200


# -------------------------------------------------------------------
# Summary of arbitrary text
# -------------------------------------------------------------------
@bp.post("/resumir")
def resumir():
    data = request.get_json(silent=True) or {}
    text = (data.get("texto") or "").strip()
    if not text:
        return jsonify({"ok": False, "error": "No text provided."}), 400

    settings = current_app.extensions["media_pipeline"].settings
    try:
        max_sentences = int(data.get("maxSentences") or settings.summary_max_sentences)
    except (TypeError, ValueError):
        return jsonify({"ok": False, "error": "maxSentences must be an integer."}), 400

    summary = summarize_text(
        text,
        max_sentences=max_sentences,
        min_sentence_chars=settings.summary_min_sentence_chars,
    )
    return jsonify({
        "ok": True,
        "resumen": summary.text if summary else "",
        "sentenceCount": summary.sentence_count if summary else 0,
    }), 200
