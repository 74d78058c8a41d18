"""
Server-sent events: tells connected clients that something changed.
"""
import uuid
from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from stockledger.api.deps import get_event_bus
from stockledger.core.config import settings
from stockledger.core.security import get_current_user_id
from stockledger.services.events import EventBus, event_stream

router = APIRouter(prefix="/events", tags=["Events"])


@router.get("")
async def stream_events(
    request: Request,
    user_id: uuid.UUID = Depends(get_current_user_id),
    bus: EventBus = Depends(get_event_bus)
):
    """
    Long-lived ``text/event-stream`` of topic names.

    Each event carries only the topic; clients refetch what they display.
    There is no replay, so clients reconnect and refetch after a drop.
    """
    return StreamingResponse(
        event_stream(bus, request.is_disconnected, settings.event_stream_keepalive_seconds),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no"
        }
    )
