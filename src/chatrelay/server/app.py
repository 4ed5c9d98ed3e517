"""
HTTP layer - FastAPI application serving the chat API and the browser UI.

Handlers are thin: every request is delegated to the ConversationSession the
app was created with.
"""
import json
from contextlib import asynccontextmanager
from pathlib import Path
from typing import List

from fastapi import FastAPI, Request
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, ConfigDict, Field
import structlog

from ..core.session import AssistantUnavailableError, ConversationSession

logger = structlog.get_logger(__name__)

STATIC_DIR = Path(__file__).parent / "static"


class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    history_length: int = Field(..., alias="historyLength")


class TurnModel(BaseModel):
    role: str
    content: str


class HistoryResponse(BaseModel):
    history: List[TurnModel]


class StatusResponse(BaseModel):
    message: str


def _client_error(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": message})


def create_app(session: ConversationSession) -> FastAPI:
    """Build the FastAPI app around an already-constructed session"""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await session.client.close()
        logger.info("OpenRouter client closed")

    app = FastAPI(title="AI Chat App", lifespan=lifespan)
    app.state.session = session
    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    @app.get("/", include_in_schema=False)
    async def index():
        """Serve the browser UI."""
        return FileResponse(STATIC_DIR / "index.html")

    @app.post("/api/chat", response_model=ChatResponse, response_model_by_alias=True)
    async def chat(request: Request):
        """
        Relay one user message and return the assistant reply.

        Malformed bodies get a 400 and never reach the session.
        """
        try:
            payload = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return _client_error("Message is required")

        message = payload.get("message") if isinstance(payload, dict) else None
        if not isinstance(message, str) or not message:
            return _client_error("Message is required")

        try:
            reply = await session.request_reply(message)
        except AssistantUnavailableError as e:
            return JSONResponse(status_code=500, content={"error": str(e)})

        return ChatResponse(message=reply.content, history_length=len(session))

    @app.get("/api/history", response_model=HistoryResponse)
    async def history():
        return HistoryResponse(
            history=[TurnModel(**turn.to_dict()) for turn in session.get_log()]
        )

    @app.post("/api/clear", response_model=StatusResponse)
    async def clear():
        session.clear()
        return StatusResponse(message="History cleared")

    return app
