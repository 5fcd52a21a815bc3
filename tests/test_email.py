"""
Email Dispatch Tests
"""
from datetime import datetime, timezone

import pytest
import requests

from mango.errors import InvalidRecipient, NoRecipients, SendFailed, TooManyRecipients, ValidationFailed
from mango.services.email_service import (
    NO_SUMMARY_HTML,
    EmailMessage,
    ResendMailer,
    normalize_recipients,
    resolve_body,
    send_summary_email,
)


class FakeResponse:
    def __init__(self, status_code, data=None, text=''):
        self.status_code = status_code
        self._data = data
        self.text = text

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._data is None:
            raise ValueError('no json')
        return self._data


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


MESSAGE = EmailMessage(
    sender='Mango AI <summaries@example.com>',
    recipients=['a@example.com', 'b@example.com'],
    subject='Recap',
    html='<p>hi</p>',
)


class TestRecipients:

    def test_strips_and_drops_blanks(self):
        assert normalize_recipients([' a@example.com ', '', None]) == ['a@example.com']

    def test_empty(self):
        with pytest.raises(NoRecipients):
            normalize_recipients([])
        with pytest.raises(NoRecipients):
            normalize_recipients(None)

    def test_cap(self):
        ten = [f'p{i}@example.com' for i in range(10)]
        assert normalize_recipients(ten) == ten
        with pytest.raises(TooManyRecipients):
            normalize_recipients(ten + ['extra@example.com'])

    def test_not_a_list(self):
        with pytest.raises(ValidationFailed):
            normalize_recipients('a@example.com')

    def test_invalid_address(self):
        with pytest.raises(InvalidRecipient):
            normalize_recipients(['a@example.com', 'bob at example'])


class TestBody:

    def test_html_verbatim(self):
        assert resolve_body('<h1>Hi</h1>', '**x**') == '<h1>Hi</h1>'

    def test_markdown_fallback(self):
        assert '<strong>bold</strong>' in resolve_body(None, '**bold**')

    def test_markdown_lists(self):
        body = resolve_body('', '## Action Items\n\n- Alice: draft plan')
        assert '<h2>Action Items</h2>' in body
        assert '<li>Alice: draft plan</li>' in body

    def test_placeholder(self):
        assert resolve_body(None, '  ') == NO_SUMMARY_HTML


class TestResendMailer:

    def test_posts_single_message(self):
        session = FakeSession(FakeResponse(200, {'id': 'abc-123'}))
        mailer = ResendMailer('re_test', session=session)
        assert mailer.send(MESSAGE) == {'id': 'abc-123'}

        url, kwargs = session.calls[0]
        assert url == 'https://api.resend.com/emails'
        assert kwargs['headers']['Authorization'] == 'Bearer re_test'
        assert kwargs['json']['to'] == ['a@example.com', 'b@example.com']
        assert kwargs['json']['from'] == 'Mango AI <summaries@example.com>'
        assert kwargs['timeout'] is None

    def test_provider_error_message(self):
        session = FakeSession(FakeResponse(422, {'message': 'Invalid `from` field'}))
        with pytest.raises(SendFailed) as exc:
            ResendMailer('re_test', session=session).send(MESSAGE)
        assert exc.value.details == 'Invalid `from` field'

    def test_transport_error(self):
        session = FakeSession(error=requests.ConnectionError('dns failure'))
        with pytest.raises(SendFailed) as exc:
            ResendMailer('re_test', session=session).send(MESSAGE)
        assert 'dns failure' in exc.value.details


class TestSendSummaryEmail:

    def test_branded_template(self, app, mailer):
        now = datetime(2026, 3, 4, 15, 30, tzinfo=timezone.utc)
        result = send_summary_email(mailer, ['a@example.com'], sender='x@example.com',
                                    summary='**bold**', now=now)
        assert result == {'id': 'email_123'}

        html = mailer.messages[0].html
        assert 'Meeting Summary' in html
        assert 'Generated by Mango AI Meeting Summarizer' in html
        assert html.count('<hr') == 2
        assert '<strong>bold</strong>' in html
        assert 'March 04, 2026 at 03:30 PM UTC' in html

    def test_default_subject(self, app, mailer):
        send_summary_email(mailer, ['a@example.com'], sender='x@example.com', subject='  ',
                           summary='hi', default_subject='Team recap')
        assert mailer.messages[0].subject == 'Team recap'

    def test_mailer_exception_wrapped(self, app):
        class Broken:
            def send(self, message):
                raise TimeoutError('provider timed out')

        with pytest.raises(SendFailed) as exc:
            send_summary_email(Broken(), ['a@example.com'], sender='x@example.com', summary='hi')
        assert 'provider timed out' in exc.value.details

    def test_validation_before_send(self, app, mailer):
        with pytest.raises(NoRecipients):
            send_summary_email(mailer, [], sender='x@example.com', summary='hi')
        assert mailer.messages == []
