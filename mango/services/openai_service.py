"""OpenAI wrapper.

Summaries come from a single completion call per request. Anything with a
``generate(prompt) -> str`` method can stand in for :class:`OpenAISummarizer`.
"""
from __future__ import annotations

import logging
from typing import Optional

from openai import OpenAI

from mango.errors import MissingInput, SummarizationFailed

logger = logging.getLogger(__name__)

FALLBACK_SUMMARY = "No summary generated."

SYSTEM_FRAMING = """You are an expert meeting assistant. Your task is to generate a clear, concise, and professional summary of the following meeting transcript.

**Instructions:**
- Always format your output in Markdown.
- Use appropriate Markdown headings, bullet points, and bold for names or key items.
- Clearly separate sections such as Key Decisions, Action Items (with owners and deadlines), Discussion Points, and Next Steps.
- If the transcript is incomplete or contains errors, politely mention it.
- Do not include any content outside the summary.
- Follow any additional user instructions below."""


def build_prompt(transcript: str, instruction: str) -> str:
    return (
        f"{SYSTEM_FRAMING}\n\n"
        f"**User Instructions:** {instruction}\n\n"
        f"**Meeting Transcript:**\n{transcript}"
    )


class OpenAISummarizer:
    def __init__(self, api_key: str, model: str = "gpt-4.1", timeout: Optional[float] = None):
        kwargs = {"api_key": api_key}
        if timeout is not None:
            kwargs["timeout"] = timeout
        self.client = OpenAI(**kwargs)
        self.model = model

    def generate(self, prompt: str) -> str:
        res = self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
        )
        if not res.choices:
            return ""
        return res.choices[0].message.content or ""


def summarize_transcript(backend, transcript: Optional[str], instruction: Optional[str]) -> str:
    """Summarize a transcript following the user's instruction.

    Raises MissingInput before touching the backend if either field is blank,
    and SummarizationFailed carrying the provider's message on any backend error.
    """
    if not isinstance(transcript, str) or not isinstance(instruction, str):
        raise MissingInput()
    if not transcript.strip() or not instruction.strip():
        raise MissingInput()

    try:
        text = backend.generate(build_prompt(transcript, instruction))
    except Exception as e:
        logger.warning("Summarization failed: %s: %s", type(e).__name__, e)
        raise SummarizationFailed(details=str(e)) from e

    if not (text or "").strip():
        return FALLBACK_SUMMARY
    return text
