"""Small generation helpers used by the chat widget."""

import json
import logging
import re

from portfolio_chatbot.exceptions import ValidationError
from portfolio_chatbot.interfaces.generation_interface import GenerationClientInterface
from portfolio_chatbot.models.chat import Prompt

logger = logging.getLogger(__name__)

MAX_TITLE_WORDS = 5
SUGGESTION_COUNT = 6

_LIST_MARKER = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s*")


class AssistantTools:
    """Chat titles and follow-up question suggestions."""

    def __init__(self, generation_client: GenerationClientInterface) -> None:
        """Initialize assistant tools.

        Args:
            generation_client: Model used for generation
        """
        self.generation_client = generation_client

    async def generate_title(self, prompt: str) -> str:
        """Generate a short title for a chat started with ``prompt``.

        Raises:
            ValidationError: If the prompt is empty.
            UpstreamError: If generation fails.
        """
        if not (prompt or "").strip():
            raise ValidationError("Prompt is required")
        title = await self.generation_client.generate(
            Prompt(
                message=(
                    f"{prompt.strip()}\n\nGenerate exactly one title for this chat "
                    f"without any extra information and a maximum of "
                    f"{MAX_TITLE_WORDS} words."
                )
            )
        )
        words = title.strip().strip('"').split()
        return " ".join(words[:MAX_TITLE_WORDS])

    async def suggest_questions(self, questions: list[str]) -> list[str]:
        """Suggest follow-up questions based on what the visitor already asked.

        Args:
            questions: The visitor's recent questions, oldest first

        Returns:
            Up to six suggested questions

        Raises:
            ValidationError: If no questions are supplied.
            UpstreamError: If generation fails.
        """
        asked = [question.strip() for question in questions if question and question.strip()]
        if not asked:
            raise ValidationError("Messages are required")
        raw = await self.generation_client.generate(
            Prompt(
                message=(
                    "\n".join(asked)
                    + f"\n\nThese are the user's last asked questions. Based on this, "
                    f"generate {SUGGESTION_COUNT} suggested questions that the user may "
                    f"ask in the future. Return only the questions in a JSON array "
                    f"format without any extra text."
                )
            )
        )
        return _parse_suggestions(raw)[:SUGGESTION_COUNT]


def _parse_suggestions(raw: str) -> list[str]:
    """Read a JSON array of questions, tolerating code fences and plain lists."""
    text = raw.strip()
    if text.startswith("```"):
        text = text.strip("`")
        text = text.split("\n", 1)[1] if "\n" in text else ""
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        logger.debug("Suggestions were not JSON; splitting lines instead.")
        lines = (_LIST_MARKER.sub("", line).strip() for line in text.splitlines())
        return [line for line in lines if line]
    if isinstance(parsed, list):
        return [str(item).strip() for item in parsed if str(item).strip()]
    return []
