from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..core.config_manager import ConfigManager
from ..core.error_handling import ErrorHandler, ErrorContext
from ..core.logging import logger
from ..core.models import Settings
from ..core.state_store import StateStore
from ..providers import get_provider_instance
from ..services.chat_service import ChatService
from ..services.model_service import ModelService
from .middleware import RequestLoggerMiddleware
from .schemas import (
    AddMessageRequest,
    ApiKeyRequest,
    ChatRequest,
    CreateSessionRequest,
    SettingsPayload,
)


def create_app(
    config_manager: Optional[ConfigManager] = None,
    httpx_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    config_manager = config_manager or ConfigManager()
    state_store = StateStore(
        settings=config_manager.default_settings(),
        credentials=config_manager.credentials_from_env(),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.httpx_client = httpx_client or httpx.AsyncClient()

        provider_config = {**config_manager.anthropic, "default_model": config_manager.default_model}
        provider = get_provider_instance(provider_config, app.state.httpx_client)

        app.state.model_service = ModelService(config_manager, state_store)
        app.state.chat_service = ChatService(state_store, provider, config_manager)

        logger.info("Application started", app_name=config_manager.app_name, version=config_manager.app_version)
        yield

        await app.state.httpx_client.aclose()

    app = FastAPI(title=config_manager.app_name, version=config_manager.app_version, lifespan=lifespan)
    app.state.config_manager = config_manager
    app.state.state_store = state_store
    app.add_middleware(RequestLoggerMiddleware)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorHandler.error_body(exc),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        context = ErrorContext(request_id=getattr(request.state, "request_id", None))
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        http_exception = ErrorHandler.handle_invalid_request(details, context)
        return JSONResponse(status_code=http_exception.status_code, content=http_exception.detail)

    # Health & catalogue

    @app.get("/api/health")
    async def health_check():
        return app.state.model_service.health()

    @app.get("/api/agents")
    async def list_agents():
        return [agent.to_dict() for agent in state_store.list_agents()]

    @app.get("/api/claude/models")
    async def claude_models():
        return [model.to_dict() for model in app.state.model_service.list_models()]

    # Chat

    @app.post("/api/claude/chat")
    async def claude_chat(chat_request: ChatRequest, request: Request):
        request_body = chat_request.model_dump(exclude_none=True)
        if chat_request.stream:
            return await app.state.chat_service.chat_stream(request_body, request.state.request_id)
        return await app.state.chat_service.chat(request_body, request.state.request_id)

    @app.post("/api/claude/chat/stream")
    async def claude_chat_stream(chat_request: ChatRequest, request: Request):
        request_body = chat_request.model_dump(exclude_none=True)
        return await app.state.chat_service.chat_stream(request_body, request.state.request_id)

    # Settings

    @app.get("/api/settings")
    async def get_settings():
        return state_store.get_settings().to_dict()

    @app.post("/api/settings")
    async def update_settings(payload: SettingsPayload):
        stored = state_store.replace_settings(Settings(**payload.model_dump()))
        return stored.to_dict()

    @app.post("/api/settings/api-key")
    async def set_api_key(payload: ApiKeyRequest):
        state_store.set_credential(payload.provider, payload.key)
        return {"status": "ok", "provider": payload.provider}

    # Sessions & history

    @app.get("/api/sessions")
    async def list_sessions():
        return [summary.to_dict() for summary in state_store.list_sessions()]

    @app.post("/api/sessions", status_code=status.HTTP_201_CREATED)
    async def create_session(payload: CreateSessionRequest):
        return state_store.create_session(payload.title).to_dict()

    @app.get("/api/sessions/{session_id}")
    async def get_session(session_id: str, request: Request):
        session = state_store.get_session(session_id)
        if session is None:
            raise ErrorHandler.handle_session_not_found(
                session_id, ErrorContext(request_id=request.state.request_id)
            )
        return session.to_dict()

    @app.delete("/api/sessions/{session_id}")
    async def delete_session(session_id: str, request: Request):
        if not state_store.delete_session(session_id):
            raise ErrorHandler.handle_session_not_found(
                session_id, ErrorContext(request_id=request.state.request_id)
            )
        return {"status": "deleted", "id": session_id}

    @app.post("/api/sessions/{session_id}/messages", status_code=status.HTTP_201_CREATED)
    async def add_session_message(session_id: str, payload: AddMessageRequest, request: Request):
        entry = state_store.append_message(
            session_id,
            role=payload.role,
            content=payload.content,
            model=payload.model,
            agent=payload.agent,
        )
        if entry is None:
            raise ErrorHandler.handle_session_not_found(
                session_id, ErrorContext(request_id=request.state.request_id)
            )
        return entry.to_dict()

    return app


app = create_app()


def run():
    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
