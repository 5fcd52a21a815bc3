"""
Test Configuration and Fixtures
"""
import pytest

from mango import create_app


class FakeSummarizer:
    """Records prompts and answers with a canned reply (or raises)."""

    def __init__(self, reply="## Key Decisions\n\n- **Ship** the beta on Friday", error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


class FakeMailer:
    """Captures messages instead of calling the email provider."""

    def __init__(self, result=None):
        self.result = {"id": "email_123"} if result is None else result
        self.messages = []

    def send(self, message):
        self.messages.append(message)
        return self.result


@pytest.fixture
def summarizer():
    return FakeSummarizer()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def app(summarizer, mailer, upload_dir):
    """Create application for testing"""
    app = create_app('testing', summarizer=summarizer, mailer=mailer)
    app.config['UPLOAD_FOLDER'] = str(upload_dir)
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    """Create test client"""
    return app.test_client()
