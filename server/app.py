import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse

from core.exceptions import (
    AuthRequired,
    ChatAssistantError,
    CompletionFailure,
    EmbeddingFailure,
    StorageFailure,
    ValidationFailure,
    format_error_chain,
)
from generation.models import ChatAnswer, ChatRequest
from ingestion.models import DeleteResult, FileManifestEntry, IngestionResult, IngestRequest

from .config import ServerConfig
from .services import Services, build_services

logger = logging.getLogger(__name__)

USER_HEADER = "X-User-Id"

_STATUS_CODES = {
    AuthRequired: 401,
    ValidationFailure: 400,
    EmbeddingFailure: 502,
    CompletionFailure: 502,
    StorageFailure: 503,
}


def status_code_for(error: ChatAssistantError) -> int:
    for error_type, status in _STATUS_CODES.items():
        if isinstance(error, error_type):
            return status
    return 500


def current_user(x_user_id: Optional[str] = Header(None, alias=USER_HEADER)) -> Optional[str]:
    """User id set by the authenticating proxy; validated by the services."""
    return x_user_id


def create_app(
    config: ServerConfig | None = None,
    services: Services | None = None,
) -> FastAPI:
    if services is None:
        services = build_services(config or ServerConfig.from_env())

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        yield
        services.chat.close()

    app = FastAPI(
        title="Document Chat Service",
        version="1.0.0",
        description="Upload documents and chat with them using retrieval-augmented generation.",
        lifespan=lifespan,
    )
    app.state.services = services

    @app.exception_handler(ChatAssistantError)
    async def handle_assistant_error(request: Request, exc: ChatAssistantError) -> JSONResponse:
        status = status_code_for(exc)
        log = logger.warning if status < 500 else logger.error
        log(f"{request.method} {request.url.path} -> {status}\n{format_error_chain(exc)}")
        return JSONResponse(status_code=status, content={"error": exc.public_message})

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.post("/documents", response_model=IngestionResult)
    def ingest(
        request: IngestRequest,
        user_id: Optional[str] = Depends(current_user),
    ) -> IngestionResult:
        return services.ingestion.ingest(user_id, request.documents)

    @app.get("/files", response_model=list[FileManifestEntry])
    def list_files(user_id: Optional[str] = Depends(current_user)) -> list[FileManifestEntry]:
        return services.ingestion.list_files(user_id)

    @app.delete("/files/{filename:path}", response_model=DeleteResult)
    def delete_file(
        filename: str,
        user_id: Optional[str] = Depends(current_user),
    ) -> DeleteResult:
        return services.ingestion.delete_file(user_id, filename)

    @app.post("/chat", response_model=ChatAnswer)
    def chat(
        request: ChatRequest,
        user_id: Optional[str] = Depends(current_user),
    ) -> ChatAnswer:
        return services.chat.answer(user_id, request.message)

    return app
