"""Question rephrasing to improve document retrieval."""

import logging
from typing import Sequence

from portfolio_chatbot.interfaces.generation_interface import GenerationClientInterface
from portfolio_chatbot.models.chat import ChatMessage, Prompt

logger = logging.getLogger(__name__)

REPHRASER_INSTRUCTION = (
    "You are an expert at rephrasing questions to improve document retrieval "
    "for a portfolio database."
)

# Only the most recent turns are worth the prompt space.
HISTORY_WINDOW = 4


class QueryRephraser:
    """Rewrites a visitor question into a search-friendly query."""

    def __init__(self, generation_client: GenerationClientInterface) -> None:
        """Initialize query rephraser.

        Args:
            generation_client: Model used for the rewrite
        """
        self.generation_client = generation_client

    async def rephrase(
        self, question: str, history: Sequence[ChatMessage] | None = None
    ) -> str:
        """Rephrase a question using recent conversation for context.

        Falls back to the original question when the model call fails or
        returns nothing.

        Args:
            question: Original user question
            history: Prior messages of the session, oldest first

        Returns:
            Rephrased question
        """
        context_block = ""
        recent = list(history or [])[-HISTORY_WINDOW:]
        if recent:
            lines = "\n".join(f"{message.role.value}: {message.content}" for message in recent)
            context_block = f"Previous conversation context:\n{lines}\n\n"

        prompt = f"""Your task is to rephrase the user's question to make it more comprehensive and search-friendly for retrieving relevant information from a portfolio database.

{context_block}Guidelines for rephrasing:
1. Expand the question to include related concepts and synonyms
2. Add context-specific terms that might be in portfolio documents
3. Include both specific and general aspects of the question
4. Maintain the original intent while making it more searchable
5. Consider technical terms, skills, projects, and experiences that might be relevant
6. Use context from previous conversation, if any, to make the rephrasing more relevant

Original Question: "{question}"

Return only the rephrased question, nothing else."""

        try:
            rephrased = await self.generation_client.generate(
                Prompt(message=prompt, system_instruction=REPHRASER_INSTRUCTION)
            )
        except Exception:  # noqa: BLE001 - best-effort rewrite
            logger.exception("Question rephrasing failed; using original.")
            return question

        rephrased = rephrased.strip().strip('"').strip()
        if not rephrased:
            return question
        logger.debug("Rephrased question '%s' to '%s'.", question, rephrased)
        return rephrased
