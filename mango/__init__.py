"""
Mango AI Application Factory
"""
import logging
import os

from flask import Flask
from flask_cors import CORS
from flask_wtf.csrf import CSRFProtect

from mango.utils.config import config, require_config

csrf = CSRFProtect()


def build_services(app, summarizer=None, mailer=None):
    """Construct provider handles once; injected fakes skip their credential check."""
    from mango.services.email_service import ResendMailer
    from mango.services.openai_service import OpenAISummarizer
    from mango.services.pdf_service import ocr_ready

    cfg = app.config
    required = ["MAIL_FROM"]
    if summarizer is None:
        required.append("OPENAI_API_KEY")
    if mailer is None:
        required.append("RESEND_API_KEY")
    require_config(cfg, required)

    if summarizer is None:
        summarizer = OpenAISummarizer(
            api_key=cfg["OPENAI_API_KEY"].strip(),
            model=cfg["OPENAI_MODEL"],
            timeout=cfg.get("OPENAI_TIMEOUT"),
        )
    if mailer is None:
        mailer = ResendMailer(
            api_key=cfg["RESEND_API_KEY"].strip(),
            api_url=cfg["RESEND_API_URL"],
            timeout=cfg.get("MAIL_TIMEOUT"),
        )

    sender = cfg["MAIL_FROM"].strip()
    if cfg.get("MAIL_FROM_NAME"):
        sender = f"{cfg['MAIL_FROM_NAME']} <{sender}>"
    # tesseract is checked once; /api/health reports the cached result
    return {"summarizer": summarizer, "mailer": mailer, "sender": sender, "ocr": ocr_ready()}


def create_app(config_name='default', summarizer=None, mailer=None):
    """Build the app. Raises ConfigurationMissing if a required credential is absent."""
    app = Flask(__name__)
    app.config.from_object(config.get(config_name, config['default'])())

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    app.extensions['mango'] = build_services(app, summarizer=summarizer, mailer=mailer)
    os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)

    # Initialize extensions
    csrf.init_app(app)
    CORS(app, resources={r"/api/*": {"origins": app.config['CORS_ORIGINS']}})

    # Register blueprints
    from mango.api import api_bp
    from mango.wizard import wizard_bp

    app.register_blueprint(api_bp)
    app.register_blueprint(wizard_bp)

    # Exempt API routes from CSRF (JS doesn't send tokens)
    csrf.exempt(api_bp)

    app.logger.info('Mango AI %s ready (model=%s)', app.config['APP_VERSION'], app.config['OPENAI_MODEL'])
    return app
