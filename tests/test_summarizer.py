"""
Summarizer Tests
"""
from types import SimpleNamespace

import pytest

from mango.errors import MissingInput, SummarizationFailed
from mango.services.openai_service import (
    FALLBACK_SUMMARY,
    OpenAISummarizer,
    build_prompt,
    summarize_transcript,
)


class FakeCompletions:
    def __init__(self, content):
        self.content = content
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def test_prompt_contains_framing_instruction_and_transcript():
    prompt = build_prompt('Alice: we ship Friday', 'Only action items')
    assert prompt.startswith('You are an expert meeting assistant.')
    assert 'Always format your output in Markdown.' in prompt
    assert 'Action Items (with owners and deadlines)' in prompt
    assert '**User Instructions:** Only action items' in prompt
    assert prompt.endswith('**Meeting Transcript:**\nAlice: we ship Friday')


def test_missing_input_never_calls_backend(summarizer):
    with pytest.raises(MissingInput):
        summarize_transcript(summarizer, '', 'Recap')
    with pytest.raises(MissingInput):
        summarize_transcript(summarizer, 'Alice: hi', None)
    assert summarizer.prompts == []


def test_backend_error_carries_details(summarizer):
    summarizer.error = ConnectionError('network unreachable')
    with pytest.raises(SummarizationFailed) as exc:
        summarize_transcript(summarizer, 'Alice: hi', 'Recap')
    assert exc.value.details == 'network unreachable'
    assert len(summarizer.prompts) == 1


def test_blank_output_uses_fallback(summarizer):
    summarizer.reply = '  \n'
    assert summarize_transcript(summarizer, 'Alice: hi', 'Recap') == FALLBACK_SUMMARY


def test_openai_summarizer_sends_single_user_message():
    backend = OpenAISummarizer(api_key='sk-test', model='gpt-4.1')
    completions = FakeCompletions('# Summary')
    backend.client = SimpleNamespace(chat=SimpleNamespace(completions=completions))

    assert backend.generate('PROMPT') == '# Summary'
    assert completions.calls == [{
        'model': 'gpt-4.1',
        'messages': [{'role': 'user', 'content': 'PROMPT'}],
    }]


def test_openai_summarizer_none_content():
    backend = OpenAISummarizer(api_key='sk-test')
    backend.client = SimpleNamespace(chat=SimpleNamespace(completions=FakeCompletions(None)))
    assert backend.generate('PROMPT') == ''
