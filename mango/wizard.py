"""
Wizard routes: Upload -> Instruction -> Summary

Every page posts back to the same endpoint with an ``action`` and the full
wizard state in hidden fields, so the server keeps nothing between requests.
"""
from typing import Optional

from flask import Blueprint, render_template, request, flash, current_app
from werkzeug.exceptions import RequestEntityTooLarge

from mango.errors import MangoError, ValidationFailed
from mango.models import PRESET_INSTRUCTIONS, WizardState, WizardStep
from mango.services.email_service import markdown_to_html, send_summary_email
from mango.services.openai_service import summarize_transcript
from mango.services.pdf_service import ALLOWED_EXTENSIONS, extract_text_from_upload

wizard_bp = Blueprint('wizard', __name__)


@wizard_bp.before_request
def widen_body_limits():
    # File size is checked while spooling so an oversized upload is reported
    # inline with the rest of the form state intact.
    ceiling = current_app.config.get("WIZARD_MAX_CONTENT_LENGTH")
    request.max_content_length = ceiling
    request.max_form_memory_size = ceiling


def render_step(state: WizardState, upload_error: Optional[str] = None):
    preview_html = ""
    if state.step is WizardStep.SUMMARY and state.summary.strip():
        preview_html = markdown_to_html(state.summary)
    return render_template(
        f"wizard/{state.step.value}.html",
        state=state,
        step=state.step.value,
        presets=PRESET_INSTRUCTIONS,
        preview_html=preview_html,
        upload_error=upload_error,
        accept=",".join(ALLOWED_EXTENSIONS),
    )


def extract_into(state: WizardState) -> Optional[str]:
    """Replace the transcript with text from the posted file; return an inline error."""
    file = request.files.get("file")
    if not file or not (file.filename or "").strip():
        return "No file uploaded"
    try:
        text, _ = extract_text_from_upload(
            file.stream,
            file.filename,
            current_app.config["UPLOAD_FOLDER"],
            max_bytes=current_app.config.get("UPLOAD_MAX_BYTES"),
            ocr_lang=current_app.config.get("OCR_LANG", "eng"),
        )
    except MangoError as e:
        current_app.logger.info("Upload extraction failed: %s (%s)", e.message, e.details or "")
        return f"{e.message}: {e.details}" if e.details else e.message
    state.transcript = text
    return None


def generate_into(state: WizardState) -> None:
    state.advance()
    try:
        state.summary = summarize_transcript(
            current_app.extensions["mango"]["summarizer"],
            state.transcript,
            state.instruction,
        )
    except MangoError as e:
        current_app.logger.warning("Summary generation failed: %s (%s)", e.message, e.details or "")
        state.summary = f"Error: {e.message}"


def send_from(state: WizardState) -> None:
    if not len(state.recipients):
        flash("Please add at least one email address.", "error")
        return
    services = current_app.extensions["mango"]
    cfg = current_app.config
    try:
        send_summary_email(
            services["mailer"],
            state.recipients.to_list(),
            sender=services["sender"],
            summary=state.summary,
            default_subject=cfg["MAIL_SUBJECT"],
            max_recipients=cfg["MAX_RECIPIENTS"],
        )
    except MangoError as e:
        flash(f"Failed to send email: {e.message}", "error")
        return
    count = len(state.recipients)
    flash(f"Summary shared with {count} recipient{'s' if count > 1 else ''}.", "success")
    state.recipients.clear()


@wizard_bp.route("/", methods=["GET"])
def index():
    return render_step(WizardState())


@wizard_bp.route("/", methods=["POST"])
def step():
    state = WizardState.from_form(request.form)
    action, _, arg = (request.form.get("action") or "").partition(":")
    upload_error = None

    try:
        if action == "extract":
            upload_error = extract_into(state)
        elif action == "next":
            state.advance()
        elif action == "back":
            state.back()
        elif action == "preset":
            state.use_preset(arg)
        elif action == "generate":
            generate_into(state)
        elif action == "add_recipient":
            state.recipients.add_many(request.form.get("new_recipient") or "")
        elif action == "remove_recipient":
            state.recipients.remove(arg)
        elif action == "send":
            send_from(state)
        elif action != "preview":
            raise ValidationFailed("Unknown action")
    except MangoError as e:
        flash(e.message, "error")

    return render_step(state, upload_error=upload_error)


@wizard_bp.errorhandler(RequestEntityTooLarge)
def handle_too_large(e):
    return render_step(WizardState(), upload_error="File too large"), 400
