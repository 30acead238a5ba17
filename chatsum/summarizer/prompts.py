"""Prompt construction for chunk summaries and the final merge."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

from jinja2 import Environment, FileSystemLoader

from chatsum.summarizer.types import ChatMessage, SummaryOptions, SummaryStyle

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"

# Literal token replaced in user-supplied prompts; those are never rendered
# as Jinja templates.
MESSAGES_PLACEHOLDER = "{{messages}}"

STYLE_INSTRUCTIONS: dict[SummaryStyle, str] = {
    SummaryStyle.DEFAULT: (
        "Provide a concise, well-structured summary. Keep the summary under "
        "300 words and use bullet points if helpful."
    ),
    SummaryStyle.DETAILED: (
        "Provide a detailed, comprehensive summary. Include all important "
        "points, context, and nuances. Keep the summary under 500 words."
    ),
    SummaryStyle.BRIEF: (
        "Provide a very brief summary. Focus only on the most critical "
        "points. Keep the summary under 150 words."
    ),
    SummaryStyle.BULLET: (
        "Provide a summary using bullet points. Each bullet should be concise "
        "and clear. Keep the summary under 300 words."
    ),
    SummaryStyle.TIMELINE: (
        "Provide a chronological summary, organizing events and discussions "
        "in the order they occurred. Keep the summary under 400 words."
    ),
}


def style_instructions(style: Optional[str]) -> str:
    """Instruction clause for ``style``; unknown styles get the default one."""
    return STYLE_INSTRUCTIONS[SummaryStyle.parse(style)]


def format_transcript(messages: Sequence[ChatMessage]) -> str:
    """Render messages as ``"{index}. {author}: {content}"`` blocks."""
    return "\n\n".join(
        f"{idx}. {msg.author}: {msg.content}"
        for idx, msg in enumerate(messages, start=1)
    )


class PromptBuilder:
    """Renders the built-in prompt templates."""

    def __init__(self, template_dir: Path = TEMPLATE_DIR) -> None:
        self._env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def summary_prompt(
        self,
        messages: Sequence[ChatMessage],
        options: Optional[SummaryOptions] = None,
    ) -> str:
        options = options or SummaryOptions()
        transcript = format_transcript(messages)

        if options.custom_prompt:
            if MESSAGES_PLACEHOLDER not in options.custom_prompt:
                logger.warning(
                    "Custom prompt has no %s placeholder; messages are not "
                    "included",
                    MESSAGES_PLACEHOLDER,
                )
            return options.custom_prompt.replace(
                MESSAGES_PLACEHOLDER, transcript
            )

        return self._env.get_template("summary.jinja2").render(
            style_instructions=style_instructions(options.summary_style),
            source="conversation",
            transcript=transcript,
        )

    def merge_prompt(
        self,
        partial_summaries: str,
        chunk_count: int,
        total_messages: int,
        options: Optional[SummaryOptions] = None,
    ) -> str:
        options = options or SummaryOptions()
        return self._env.get_template("merge.jinja2").render(
            style_instructions=style_instructions(options.summary_style),
            source="partial summaries",
            chunk_count=chunk_count,
            total_messages=total_messages,
            partial_summaries=partial_summaries,
        )
