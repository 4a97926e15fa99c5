"""FastAPI application factory."""

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import StreamingResponse

from transfer_monitor.api.models import SessionCreated, TransferPayload
from transfer_monitor.app_logging import configure_logging
from transfer_monitor.config import resolve_transfer_request
from transfer_monitor.containers import AppContainer
from transfer_monitor.domain.events import LogEvent, LogLevel
from transfer_monitor.services.sessions import SessionRegistry

_logger = logging.getLogger(__name__)

_STREAM_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
}
_END_FRAME = "event: end\ndata: {}\n\n"


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/api/send")
    async def send_transfer(
        payload: TransferPayload, request: Request
    ) -> SessionCreated:
        """Start a transfer attempt and return its session id immediately."""
        state_container: AppContainer = request.app.state.container
        transfer_request = resolve_transfer_request(
            payload.model_dump(), state_container.settings
        )
        session = state_container.transfer_service.submit(transfer_request)
        _logger.info("Transfer submitted: session_id=%s", session.id)
        return SessionCreated(session_id=session.id)

    @app.get("/api/events/{session_id}")
    async def stream_events(session_id: str, request: Request) -> StreamingResponse:
        """Stream a session's events as server-sent events."""
        state_container: AppContainer = request.app.state.container
        body = _event_stream(state_container.session_registry, session_id)
        return StreamingResponse(
            body, media_type="text/event-stream", headers=_STREAM_HEADERS
        )

    return app


def _data_frame(event: LogEvent) -> str:
    return f"data: {json.dumps(event.to_payload())}\n\n"


async def _event_stream(
    registry: SessionRegistry, session_id: str
) -> AsyncIterator[str]:
    subscription = registry.subscribe(session_id)
    if subscription is None:
        _logger.info("Stream requested for unknown session: session_id=%s", session_id)
        yield _data_frame(LogEvent(level=LogLevel.ERROR, message="Session not found."))
        yield _END_FRAME
        return
    try:
        async for event in subscription:
            yield _data_frame(event)
        yield _END_FRAME
    finally:
        subscription.close()

