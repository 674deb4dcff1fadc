"""Generation client interface for the chat pipeline."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from portfolio_chatbot.models.chat import Prompt


class GenerationClientInterface(ABC):
    """Abstract interface for generative model providers."""

    @abstractmethod
    async def generate(self, prompt: Prompt) -> str:
        """Generate a complete reply.

        Args:
            prompt: Prior turns and the message to answer

        Returns:
            Reply text
        """
        pass

    @abstractmethod
    def generate_stream(self, prompt: Prompt) -> AsyncIterator[str]:
        """Generate a reply as a stream of text fragments.

        The iterator is finite and not restartable; issue a new call to retry.

        Args:
            prompt: Prior turns and the message to answer

        Returns:
            Async iterator of text fragments in arrival order
        """
        pass
