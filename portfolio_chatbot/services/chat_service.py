"""Chat session management with retrieval-augmented, streamed replies."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from portfolio_chatbot.exceptions import NotFoundError, ValidationError
from portfolio_chatbot.interfaces.embedder_interface import EmbedderInterface
from portfolio_chatbot.interfaces.generation_interface import GenerationClientInterface
from portfolio_chatbot.models.chat import (
    ChatAnswer,
    ChatMessage,
    ChatReply,
    ChatSession,
    ChunkEvent,
    ClientInfo,
    CompleteEvent,
    ConversationTurn,
    ErrorEvent,
    MessageRole,
    Prompt,
    PromptTurn,
    StreamEvent,
)
from portfolio_chatbot.repositories.chat_repository import ChatRepository
from portfolio_chatbot.repositories.document_repository import DocumentRepository
from portfolio_chatbot.repositories.vector_repository import VectorRepository
from portfolio_chatbot.retrieve import RetrievedChunk, retrieve_chunks
from portfolio_chatbot.services.query_rephraser import QueryRephraser

logger = logging.getLogger(__name__)

APOLOGY_MESSAGE = (
    "I apologize, but I'm having trouble processing your request right now. "
    "Please try again later."
)

ANSWER_INSTRUCTION = (
    "Please provide a helpful response based on the portfolio information and "
    "context provided."
)


class ChatSessionManager:
    """Runs chat turns: history, retrieval, prompt, generation, persistence."""

    def __init__(
        self,
        chat_repository: ChatRepository,
        generation_client: GenerationClientInterface,
        vector_repository: VectorRepository,
        document_repository: DocumentRepository,
        embedder: EmbedderInterface,
        rephraser: QueryRephraser | None = None,
        top_k: int = 3,
    ) -> None:
        """Initialize chat session manager.

        Args:
            chat_repository: Repository for chat sessions
            generation_client: Model producing replies
            vector_repository: Store searched for context
            document_repository: Resolves titles of retrieved chunks
            embedder: Embeds the query
            rephraser: Optional query rewriter applied before retrieval
            top_k: Number of chunks injected into each prompt
        """
        self.chat_repository = chat_repository
        self.generation_client = generation_client
        self.vector_repository = vector_repository
        self.document_repository = document_repository
        self.embedder = embedder
        self.rephraser = rephraser
        self.top_k = top_k

    @staticmethod
    def validate_input(session_id: str, text: str) -> None:
        """Reject a chat turn missing its message or session ID.

        Raises:
            ValidationError: If either value is empty.
        """
        if not (text or "").strip() or not (session_id or "").strip():
            raise ValidationError("Message and sessionId are required")

    async def get_or_create(
        self, session_id: str, client: ClientInfo | None = None
    ) -> ChatSession:
        """Return the stored session or create an empty one."""
        session = await self.chat_repository.get(session_id)
        if session is not None:
            return session
        logger.info("Creating chat session %s.", session_id)
        return await self.chat_repository.create(
            ChatSession(session_id=session_id, client=client or ClientInfo())
        )

    def append_user_message(
        self, session: ChatSession, text: str, rephrased_query: str | None = None
    ) -> ChatMessage:
        """Append a user turn to the in-memory session."""
        message = ChatMessage(
            role=MessageRole.USER, content=text, rephrased_query=rephrased_query
        )
        session.messages.append(message)
        return message

    def build_prompt(
        self,
        session: ChatSession,
        user_text: str,
        retrieved_chunks: list[RetrievedChunk],
    ) -> Prompt:
        """Build the model input for a turn.

        The session is expected to already hold the current user message as its
        last entry; that entry is left out of the history because it is sent as
        the prompt message itself.

        Args:
            session: Session including the just-appended user message
            user_text: Current user message
            retrieved_chunks: Context chunks in rank order

        Returns:
            Prompt with history turns and the context-augmented message
        """
        prior = session.messages
        if prior and prior[-1].role == MessageRole.USER:
            prior = prior[:-1]

        history = _history_turns(
            (message.role.value, message.content) for message in prior
        )
        return Prompt(history=history, message=_augment(user_text, retrieved_chunks))

    async def answer(
        self, prompt: str, messages: list[ConversationTurn] | None = None
    ) -> ChatAnswer:
        """Answer a question against client-held history without storing anything.

        Args:
            prompt: Question to answer
            messages: Earlier turns kept by the caller, oldest first

        Returns:
            The generated reply and the chunks used as context

        Raises:
            ValidationError: If the prompt is empty.
            UpstreamError: If embedding or generation fails.
        """
        if not (prompt or "").strip():
            raise ValidationError("Prompt is required")

        chunks = await self.retrieve(prompt)
        history = _history_turns((turn.role, turn.message) for turn in messages or [])
        reply = await self.generation_client.generate(
            Prompt(history=history, message=_augment(prompt, chunks))
        )
        logger.info("Answered stateless prompt with %s context chunks.", len(chunks))
        return ChatAnswer(
            response=reply.strip(),
            relevant_documents=[chunk.as_context() for chunk in chunks],
        )

    def stream_reply(self, prompt: Prompt) -> AsyncIterator[str]:
        """Start a streamed generation; the iterator cannot be restarted."""
        return self.generation_client.generate_stream(prompt)

    async def append_assistant_message(
        self,
        session: ChatSession,
        text: str,
        retrieved_chunks: list[RetrievedChunk],
    ) -> ChatMessage:
        """Append an assistant turn with its retrieved context and persist."""
        message = ChatMessage(
            role=MessageRole.ASSISTANT,
            content=text,
            retrieved_context=[chunk.as_context() for chunk in retrieved_chunks],
        )
        session.messages.append(message)
        await self.chat_repository.save(session)
        return message

    async def clear(self, session_id: str) -> None:
        """Empty the history of a session, keeping the session.

        Raises:
            NotFoundError: If the session does not exist.
        """
        if not await self.chat_repository.clear(session_id):
            raise NotFoundError("Chat session not found")
        logger.info("Cleared chat session %s.", session_id)

    async def history(self, session_id: str) -> list[ChatMessage]:
        """Return the messages of a session, or an empty list if it is unknown."""
        session = await self.chat_repository.get(session_id)
        return session.messages if session is not None else []

    async def retrieve(self, query: str) -> list[RetrievedChunk]:
        """Return the chunks most similar to ``query``."""
        return await retrieve_chunks(
            vector_repository=self.vector_repository,
            document_repository=self.document_repository,
            embedder=self.embedder,
            query=query,
            k=self.top_k,
        )

    async def send_message_stream(
        self, session_id: str, text: str, client: ClientInfo | None = None
    ) -> AsyncIterator[StreamEvent]:
        """Run a chat turn, yielding reply fragments as they arrive.

        Yields ``ChunkEvent`` per fragment, then either one ``CompleteEvent`` or,
        if retrieval or generation fails, one ``ErrorEvent`` after the apology
        has been stored as the assistant turn. Closing the iterator early (client
        disconnect) closes the upstream stream and stores no assistant turn.
        """
        self.validate_input(session_id, text)
        session, chunks = await self._start_turn(session_id, text, client)
        if chunks is None:
            await self.append_assistant_message(session, APOLOGY_MESSAGE, [])
            yield ErrorEvent(message=APOLOGY_MESSAGE)
            return

        prompt = self.build_prompt(session, text, chunks)
        fragments: list[str] = []
        stream = self.stream_reply(prompt)
        try:
            async for fragment in stream:
                fragments.append(fragment)
                yield ChunkEvent(content=fragment)
        except Exception:
            logger.exception("Generation failed mid-stream for session %s.", session_id)
            await self.append_assistant_message(session, APOLOGY_MESSAGE, chunks)
            yield ErrorEvent(message=APOLOGY_MESSAGE)
            return
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

        reply = "".join(fragments).strip()
        if not reply:
            logger.warning("Generation returned no text for session %s.", session_id)
            await self.append_assistant_message(session, APOLOGY_MESSAGE, chunks)
            yield ErrorEvent(message=APOLOGY_MESSAGE)
            return

        message = await self.append_assistant_message(session, reply, chunks)
        yield CompleteEvent(
            message=reply,
            session_id=session.session_id,
            message_id=message.id,
            relevant_documents=message.retrieved_context or [],
        )

    async def send_message(
        self, session_id: str, text: str, client: ClientInfo | None = None
    ) -> ChatReply:
        """Run a chat turn and return the whole reply at once.

        Generation failures produce the apology as the reply rather than an
        error.
        """
        self.validate_input(session_id, text)
        session, chunks = await self._start_turn(session_id, text, client)

        reply = APOLOGY_MESSAGE
        if chunks is not None:
            try:
                generated = await self.generation_client.generate(
                    self.build_prompt(session, text, chunks)
                )
                reply = generated.strip() or APOLOGY_MESSAGE
            except Exception:
                logger.exception("Generation failed for session %s.", session_id)

        message = await self.append_assistant_message(session, reply, chunks or [])
        return ChatReply(
            message=reply,
            session_id=session.session_id,
            message_id=message.id,
            relevant_documents=message.retrieved_context or [],
        )

    async def _start_turn(
        self, session_id: str, text: str, client: ClientInfo | None
    ) -> tuple[ChatSession, list[RetrievedChunk] | None]:
        """Store the user turn and fetch context; ``None`` context means retrieval failed."""
        session = await self.get_or_create(session_id, client)

        rephrased = None
        if self.rephraser is not None:
            candidate = await self.rephraser.rephrase(text, session.messages)
            if candidate != text:
                rephrased = candidate

        self.append_user_message(session, text, rephrased_query=rephrased)
        await self.chat_repository.save(session)

        try:
            chunks = await self.retrieve(rephrased or text)
        except Exception:
            logger.exception("Context retrieval failed for session %s.", session_id)
            return session, None
        return session, chunks


def _history_turns(turns) -> list[PromptTurn]:
    """Map ``(role, text)`` pairs to model turns, dropping blank ones."""
    return [
        PromptTurn(
            role="model" if role in (MessageRole.ASSISTANT.value, "model") else "user",
            text=text.strip(),
        )
        for role, text in turns
        if text and text.strip()
    ]


def _augment(user_text: str, retrieved_chunks: list[RetrievedChunk]) -> str:
    """Wrap the question with numbered context chunks and the answer instruction."""
    if retrieved_chunks:
        numbered = "\n\n".join(
            f"{rank}. {chunk.text}" for rank, chunk in enumerate(retrieved_chunks, start=1)
        )
        context = f"Based on the following information:\n\n{numbered}"
    else:
        context = "No relevant portfolio documents were found."

    return (
        f"{user_text}\n\n"
        f"Context from portfolio documents:\n{context}\n\n"
        f"{ANSWER_INSTRUCTION}"
    )
