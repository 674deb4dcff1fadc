"""Admin document routes and the processing-log stream."""

import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, StreamingResponse

from portfolio_chatbot.api.dependencies import Services, get_services, require_admin
from portfolio_chatbot.api.responses import SSE_HEADERS, api_response, format_sse
from portfolio_chatbot.models.admin import Admin
from portfolio_chatbot.models.document import (
    DocumentCreate,
    DocumentUpdate,
    ProcessingLogEvent,
)

logger = logging.getLogger(__name__)

documents_router = APIRouter(prefix="/documents", tags=["Documents"])


@documents_router.post("/upload")
async def upload_document(
    body: DocumentCreate,
    admin: Admin = Depends(require_admin),
    services: Services = Depends(get_services),
) -> JSONResponse:
    """Store a text document and index it for retrieval."""
    document, result = await services.document_service.upload(
        title=body.title,
        content=body.content,
        description=body.description,
        uploaded_by=admin.id,
    )
    return api_response(
        {
            "document_id": document.id,
            "document": document.model_dump(mode="json"),
            "chunk_count": result.chunk_count,
        },
        "Document uploaded and processed successfully",
        status_code=201,
    )


@documents_router.get("", dependencies=[Depends(require_admin)])
async def list_documents(services: Services = Depends(get_services)) -> JSONResponse:
    documents = await services.document_service.list_active()
    return api_response(
        [document.model_dump(mode="json") for document in documents],
        "Documents retrieved successfully",
    )


@documents_router.get("/{document_id}/logs")
async def stream_document_logs(
    document_id: str, services: Services = Depends(get_services)
) -> StreamingResponse:
    """Stream processing messages for a document as server-sent events.

    Not admin-guarded: EventSource clients cannot set an Authorization header.
    """
    registry = services.registry
    heartbeat = services.sse_heartbeat_seconds

    async def event_stream() -> AsyncIterator[str]:
        async with registry.connect(document_id) as connection:
            logger.info("Log stream opened for document %s.", document_id)
            yield format_sse(
                ProcessingLogEvent(message="Connected to document processing stream")
            )
            async for event in connection.events(heartbeat_seconds=heartbeat):
                yield format_sse(event)
        logger.info("Log stream closed for document %s.", document_id)

    return StreamingResponse(
        event_stream(), media_type="text/event-stream", headers=SSE_HEADERS
    )


@documents_router.get("/{document_id}", dependencies=[Depends(require_admin)])
async def get_document(
    document_id: str, services: Services = Depends(get_services)
) -> JSONResponse:
    document = await services.document_service.get(document_id)
    return api_response(document.model_dump(mode="json"), "Document retrieved successfully")


@documents_router.patch("/{document_id}", dependencies=[Depends(require_admin)])
async def update_document(
    document_id: str,
    body: DocumentUpdate,
    services: Services = Depends(get_services),
) -> JSONResponse:
    """Update a document; new content is re-chunked and re-embedded."""
    document, result = await services.document_service.update(document_id, body)
    return api_response(
        {
            "document": document.model_dump(mode="json"),
            "chunk_count": result.chunk_count if result else None,
        },
        "Document updated successfully",
    )


@documents_router.delete("/{document_id}", dependencies=[Depends(require_admin)])
async def delete_document(
    document_id: str, services: Services = Depends(get_services)
) -> JSONResponse:
    await services.document_service.soft_delete(document_id)
    return api_response({}, "Document deleted successfully")
