"""
API Blueprint - JSON endpoints used by the wizard and by browser clients

- /api/health        readiness of the model and OCR engine
- /api/summarize     transcript + instruction -> Markdown summary
- /api/upload        .txt/.pdf/.jpg/.jpeg -> plain text
- /api/send-email    summary -> branded email for up to 10 recipients
"""
from datetime import datetime, timezone

from flask import Blueprint, jsonify, request, current_app
from werkzeug.exceptions import RequestEntityTooLarge

from mango.errors import MangoError, UpstreamProviderFailed, ValidationFailed
from mango.services.email_service import send_summary_email
from mango.services.openai_service import summarize_transcript
from mango.services.pdf_service import extract_text_from_upload

api_bp = Blueprint('api', __name__, url_prefix='/api')


def services():
    return current_app.extensions["mango"]


def now_utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ============ Error Handling ============

@api_bp.errorhandler(MangoError)
def handle_mango_error(e: MangoError):
    if isinstance(e, UpstreamProviderFailed):
        current_app.logger.warning("%s: %s (%s)", type(e).__name__, e.message, e.details or "")
    return jsonify(e.to_dict()), e.status_code


@api_bp.errorhandler(RequestEntityTooLarge)
def handle_too_large(e):
    return jsonify({"error": "File too large"}), 400


# ============ API Routes ============

@api_bp.route("/health", methods=["GET"])
def health():
    ocr_ok, ocr_msg = services()["ocr"]
    return jsonify({
        "status": "ok",
        "version": current_app.config.get("APP_VERSION"),
        "time_utc": now_utc_iso(),
        "model": current_app.config.get("OPENAI_MODEL"),
        "ocr_ready": ocr_ok,
        "ocr_message": ocr_msg,
    }), 200


@api_bp.route("/version", methods=["GET"])
def version():
    return jsonify({
        "version": current_app.config.get("APP_VERSION"),
        "build_time": current_app.config.get("BUILD_TIME"),
        "git_commit": current_app.config.get("GIT_COMMIT"),
    }), 200


@api_bp.route("/summarize", methods=["POST"])
def summarize():
    payload = request.get_json(silent=True) or {}
    summary = summarize_transcript(
        services()["summarizer"],
        payload.get("transcript"),
        payload.get("instruction"),
    )
    return jsonify({"summary": summary}), 200


@api_bp.route("/upload", methods=["POST"])
def upload():
    file = request.files.get("file")
    if not file or not (file.filename or "").strip():
        raise ValidationFailed("No file uploaded")

    text, meta = extract_text_from_upload(
        file.stream,
        file.filename,
        current_app.config["UPLOAD_FOLDER"],
        max_bytes=current_app.config.get("UPLOAD_MAX_BYTES"),
        ocr_lang=current_app.config.get("OCR_LANG", "eng"),
    )
    return jsonify({"text": text, "method": meta["method"]}), 200


@api_bp.route("/send-email", methods=["POST"])
def send_email():
    payload = request.get_json(silent=True) or {}
    cfg = current_app.config
    result = send_summary_email(
        services()["mailer"],
        payload.get("recipients"),
        sender=services()["sender"],
        subject=payload.get("subject"),
        html=payload.get("html"),
        summary=payload.get("summary"),
        default_subject=cfg["MAIL_SUBJECT"],
        max_recipients=cfg["MAX_RECIPIENTS"],
    )
    return jsonify({"success": True, "result": result}), 200
