"""Compress a unit body into a fixed-budget dense summary.

Later units receive only their predecessor's dense summary, so the context
forwarded per unit stays constant instead of growing with the book.
"""

from typing import Optional

from loguru import logger

from .extraction import parse_json_block, strip_fences
from .prompt_library import PromptLibrary
from .service import GenerationService
from .utils.text import strip_markup, word_count

SUMMARY_KEYS = ("denseSummary", "dense_summary", "summary")


class RollingSummarizer:
    def __init__(
        self,
        service: GenerationService,
        prompts: Optional[PromptLibrary] = None,
        min_words: int = 80,
        max_words: int = 150,
    ):
        self.service = service
        self.prompts = prompts or PromptLibrary()
        self.min_words = min_words
        self.max_words = max_words

    def system_prompt(self) -> str:
        return (
            self.prompts.get("dense_summarizer")
            .replace("{min_words}", str(self.min_words))
            .replace("{max_words}", str(self.max_words))
        )

    def summarize(self, unit_body: str, unit_title: str = "") -> str:
        """Return a dense summary of ``unit_body``.

        If the response carries no usable JSON object the trimmed raw text
        is kept as the summary rather than discarded.
        """
        body = strip_markup(unit_body)
        if not body:
            return ""

        user = f"Chapter: {unit_title}\n\n{body}" if unit_title else body
        raw = self.service.complete(self.system_prompt(), user)

        data = parse_json_block(raw, default=None)
        summary = ""
        if isinstance(data, dict):
            for key in SUMMARY_KEYS:
                value = data.get(key)
                if isinstance(value, str) and value.strip():
                    summary = value.strip()
                    break
        if not summary:
            logger.warning(
                f"Summary for '{unit_title or 'untitled'}' was not a JSON object; "
                "keeping raw text"
            )
            summary = strip_fences(raw)

        words = word_count(summary)
        if summary and not (self.min_words <= words <= self.max_words):
            logger.debug(
                f"Summary for '{unit_title or 'untitled'}' is {words} words "
                f"(target {self.min_words}-{self.max_words})"
            )
        return summary
