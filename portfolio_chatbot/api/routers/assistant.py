"""Stateless chat, title and suggestion helpers for the chat widget."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from portfolio_chatbot.api.dependencies import Services, get_services
from portfolio_chatbot.api.responses import api_response
from portfolio_chatbot.models.chat import ConversationTurn

assistant_router = APIRouter(prefix="/assistant", tags=["Assistant"])


class QuestionRequest(BaseModel):
    prompt: str = ""
    messages: list[ConversationTurn] = Field(default_factory=list)


class TitleRequest(BaseModel):
    prompt: str = ""


class AskedMessage(BaseModel):
    message: str
    role: str | None = None


class SuggestionRequest(BaseModel):
    messages: list[AskedMessage] = Field(default_factory=list)


@assistant_router.post("/chat")
async def chat(
    body: QuestionRequest, services: Services = Depends(get_services)
) -> JSONResponse:
    """Answer from portfolio context using history the client sends; nothing is stored."""
    answer = await services.chat_manager.answer(body.prompt, body.messages)
    return api_response(answer.model_dump(mode="json"), "Response generated successfully")


@assistant_router.post("/generate-title")
async def generate_title(
    body: TitleRequest, services: Services = Depends(get_services)
) -> JSONResponse:
    title = await services.assistant_tools.generate_title(body.prompt)
    return api_response({"title": title}, "Title generated successfully")


@assistant_router.post("/suggested-messages")
async def suggested_messages(
    body: SuggestionRequest, services: Services = Depends(get_services)
) -> JSONResponse:
    """Suggest follow-up questions from the visitor's own messages."""
    asked = [item.message for item in body.messages if item.role in (None, "user")]
    suggestions = await services.assistant_tools.suggest_questions(asked)
    return api_response(
        {"suggestions": suggestions}, "Suggested messages generated successfully"
    )
