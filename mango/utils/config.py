"""
Configuration management with AWS Parameter Store integration
"""
import os
import tempfile
from functools import lru_cache
from typing import Any, List, Mapping, Optional

import boto3

from mango.errors import ConfigurationMissing


REQUIRED_KEYS = ("OPENAI_API_KEY", "RESEND_API_KEY", "MAIL_FROM")


def _optional_float(name: str) -> Optional[float]:
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return None
    return float(raw)


class Config:
    """Base configuration"""

    # Flask
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key-change-me')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Security
    WTF_CSRF_ENABLED = True
    WTF_CSRF_TIME_LIMIT = None
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')

    # File uploads
    UPLOAD_MAX_BYTES = 10 * 1024 * 1024  # 10MB per file
    MAX_CONTENT_LENGTH = UPLOAD_MAX_BYTES + 1024 * 1024  # multipart headroom
    # Wizard pages carry the transcript and summary alongside the file
    WIZARD_MAX_CONTENT_LENGTH = 64 * 1024 * 1024
    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER') or os.path.join(tempfile.gettempdir(), 'mango_uploads')
    OCR_LANG = os.environ.get('OCR_LANG', 'eng')

    # Server
    PORT = int(os.environ.get('PORT', '3001'))

    # Parameter Store path
    AWS_REGION = os.environ.get('AWS_REGION', 'us-west-2')
    PARAMETER_STORE_PATH = os.environ.get('PARAMETER_STORE_PATH', '/mango/prod/')

    # OpenAI
    OPENAI_API_KEY = os.environ.get('OPENAI_API_KEY')
    OPENAI_MODEL = os.environ.get('OPENAI_MODEL', 'gpt-4.1')
    OPENAI_TIMEOUT = _optional_float('OPENAI_TIMEOUT')

    # Email (Resend)
    RESEND_API_KEY = os.environ.get('RESEND_API_KEY')
    RESEND_API_URL = os.environ.get('RESEND_API_URL', 'https://api.resend.com/emails')
    MAIL_FROM = os.environ.get('MAIL_FROM')
    MAIL_FROM_NAME = os.environ.get('MAIL_FROM_NAME', 'Mango AI')
    MAIL_SUBJECT = os.environ.get('MAIL_SUBJECT', 'Your AI Meeting Summary')
    MAIL_TIMEOUT = _optional_float('MAIL_TIMEOUT')
    MAX_RECIPIENTS = 10

    # App Version
    APP_VERSION = os.environ.get('APP_VERSION', '2026.10')
    BUILD_TIME = os.environ.get('BUILD_TIME', '')
    GIT_COMMIT = os.environ.get('GIT_COMMIT', '')


class ParameterStoreConfig(Config):
    """Configuration that loads secrets from AWS Parameter Store"""

    def __init__(self):
        super().__init__()
        if os.environ.get('USE_PARAMETER_STORE'):
            self._load_from_parameter_store()

    @lru_cache(maxsize=128)
    def _get_ssm_client(self):
        """Get cached SSM client"""
        return boto3.client('ssm', region_name=self.AWS_REGION)

    def _load_from_parameter_store(self):
        """Load secrets from Parameter Store"""
        if not self.PARAMETER_STORE_PATH:
            return

        param_map = {
            'secret-key': 'SECRET_KEY',
            'openai-api-key': 'OPENAI_API_KEY',
            'resend-api-key': 'RESEND_API_KEY',
            'mail-from': 'MAIL_FROM',
        }

        ssm = self._get_ssm_client()
        paginator = ssm.get_paginator('get_parameters_by_path')
        pages = paginator.paginate(
            Path=self.PARAMETER_STORE_PATH,
            Recursive=True,
            WithDecryption=True
        )

        for page in pages:
            for param in page['Parameters']:
                name = param['Name'].replace(self.PARAMETER_STORE_PATH, '')
                if name in param_map:
                    setattr(self, param_map[name], param['Value'])


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False


class ProductionConfig(ParameterStoreConfig):
    """Production configuration with Parameter Store"""
    DEBUG = False
    TESTING = False


class TestingConfig(Config):
    """Testing configuration"""
    DEBUG = True
    TESTING = True
    WTF_CSRF_ENABLED = False
    SECRET_KEY = 'test-secret-key'
    OPENAI_API_KEY = 'test-openai-key'
    RESEND_API_KEY = 'test-resend-key'
    MAIL_FROM = 'summaries@example.com'


# Config dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config(env: Optional[str] = None) -> Config:
    """Get configuration for environment"""
    env = env or os.environ.get('FLASK_ENV', 'development')
    return config.get(env, config['default'])()


def validate_config(settings: Mapping[str, Any], required=REQUIRED_KEYS) -> List[str]:
    """Return the required keys that are missing or blank."""
    missing = []
    for key in required:
        value = settings.get(key)
        if value is None or not str(value).strip():
            missing.append(key)
    return missing


def require_config(settings: Mapping[str, Any], required=REQUIRED_KEYS) -> None:
    missing = validate_config(settings, required)
    if missing:
        raise ConfigurationMissing(missing)
