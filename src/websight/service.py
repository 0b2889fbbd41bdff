"""FastAPI application exposing the tool dispatcher over HTTP."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import APIRouter, FastAPI
from pydantic import BaseModel

from .config import WebsightConfig, load_config
from .tool import ToolRequest, WebsightTool

LOGGER = logging.getLogger(__name__)


class ToolResponse(BaseModel):
    action: str
    text: str


class ToolService:
    """Serializes requests from concurrent HTTP callers onto one session."""

    def __init__(self, tool: WebsightTool) -> None:
        self._tool = tool
        self._lock = asyncio.Lock()

    @property
    def tool(self) -> WebsightTool:
        return self._tool

    async def dispatch(self, request: ToolRequest) -> str:
        async with self._lock:
            return await self._tool.dispatch(request)

    async def close(self) -> None:
        async with self._lock:
            await self._tool.close()

    def create_app(self) -> FastAPI:
        @asynccontextmanager
        async def lifespan(_: FastAPI) -> AsyncIterator[None]:
            try:
                yield
            finally:
                LOGGER.info("Shutting down, closing browser session")
                await self.close()

        app = FastAPI(title="Websight", lifespan=lifespan)
        router = APIRouter()

        @router.get("/health")
        async def health() -> Dict[str, Any]:
            session = self._tool.session
            return {
                "status": "ok",
                "session_open": session.is_open,
                "remote": session.is_remote,
                "url": session.current_url,
            }

        @router.post("/tool", response_model=ToolResponse)
        async def run_tool(payload: ToolRequest) -> ToolResponse:
            text = await self.dispatch(payload)
            return ToolResponse(action=payload.action, text=text)

        @router.post("/session/close")
        async def close_session() -> Dict[str, bool]:
            await self.close()
            return {"closed": True}

        app.include_router(router)
        return app


def create_app(
    config: Optional[WebsightConfig] = None,
    tool: Optional[WebsightTool] = None,
) -> FastAPI:
    if tool is None:
        tool = WebsightTool(config or load_config())
    return ToolService(tool).create_app()
