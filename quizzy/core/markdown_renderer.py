"""Render question prompts and options from markdown to HTML for API clients.

Question banks are authored as plain text, so raw HTML in a prompt or option
is escaped rather than passed through to the browser.
"""

from __future__ import annotations

from dataclasses import dataclass

from markdown_it import MarkdownIt

from quizzy.core.models import Question

_markdown = MarkdownIt("commonmark", {"html": False}).enable("strikethrough")


@dataclass(frozen=True, slots=True)
class RenderedQuestion:
    question_id: str | None
    prompt_html: str
    options_html: tuple[str, ...]


def render_prompt(prompt: str) -> str:
    """Render a prompt as block-level HTML (paragraphs, lists, code blocks)."""
    return _markdown.render(prompt.strip())


def render_option(option: str) -> str:
    # Options sit inside a button or list item, so no <p> wrapper.
    return _markdown.renderInline(option.strip())


def render_question(question: Question) -> RenderedQuestion:
    return RenderedQuestion(
        question_id=question.id,
        prompt_html=render_prompt(question.prompt),
        options_html=tuple(render_option(option) for option in question.options),
    )
