"""
Ticket API Routes

Handles ticket submission (analyze then save), live listing over
Server-Sent Events, status changes, sending responses, search, CSV export
and demo data.
"""
import asyncio
import json
import time
from typing import Any, AsyncGenerator, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import Response, StreamingResponse

from support_hub.config import get_settings
from support_hub.dependencies import get_analysis_proxy, get_ticket_store
from support_hub.exceptions import (
    TicketNotFoundError,
    TicketSubmissionError,
    TicketValidationError,
)
from support_hub.models.schemas import (
    SendResponseRequest,
    StatusFilter,
    StatusUpdateRequest,
    Ticket,
    TicketSubmitRequest,
    TicketSubmitResponse,
)
from support_hub.services.analysis_proxy import AnalysisProxy
from support_hub.services.dashboard import send_ticket_response, update_ticket_status
from support_hub.services.demo import DemoSeeder
from support_hub.services.export import export_tickets
from support_hub.services.search import TicketSearch
from support_hub.services.ticket_form import TicketForm
from support_hub.services.ticket_store import TicketStore
from support_hub.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/tickets", tags=["tickets"])


# SSE Streaming Helper

async def ticket_event_stream(
    store: TicketStore,
    status_filter: StatusFilter,
    heartbeat_seconds: float,
    max_events: Optional[int] = None
) -> AsyncGenerator[Dict[str, Any], None]:
    """
    Live ticket list as a stream of events.

    Yields:
        {"type": "tickets", "tickets": [...]} on every delivery,
        {"type": "error", "message": ..., "recoverable": True} on query failure,
        {"type": "heartbeat", "timestamp": ...} when idle

    The subscription is dropped when the consumer stops iterating.
    """
    # Only the newest pending snapshot is kept for a slow consumer
    queue: asyncio.Queue = asyncio.Queue(maxsize=1)

    def offer(event: Dict[str, Any], replace: bool) -> None:
        if queue.full():
            if not replace:
                return
            queue.get_nowait()
        queue.put_nowait(event)

    async def on_change(tickets: List[Ticket]) -> None:
        offer({
            "type": "tickets",
            "filter": status_filter.value,
            "tickets": [t.model_dump(mode="json") for t in tickets],
        }, replace=True)

    async def on_error(error: Exception) -> None:
        offer({"type": "error", "message": str(error), "recoverable": True}, replace=False)

    subscription = await store.subscribe(status_filter.to_status(), on_change, on_error)
    sent = 0
    try:
        while max_events is None or sent < max_events:
            try:
                event = await asyncio.wait_for(queue.get(), timeout=heartbeat_seconds)
            except asyncio.TimeoutError:
                event = {"type": "heartbeat", "timestamp": time.time()}
            yield event
            sent += 1
    finally:
        subscription.unsubscribe()


async def sse_generator(
    request: Request,
    events: AsyncGenerator[Dict[str, Any], None]
) -> AsyncGenerator[str, None]:
    """
    Convert event stream to SSE format.

    Format:
        data: {"type": "event_name", ...}\\n\\n
    """
    try:
        async for event in events:
            if await request.is_disconnected():
                break
            yield f"data: {json.dumps(event)}\n\n"
    except Exception as e:
        logger.error(f"SSE streaming error: {e}")
        error_event = {
            "type": "error",
            "message": str(e),
            "recoverable": False
        }
        yield f"data: {json.dumps(error_event)}\n\n"
    finally:
        await events.aclose()


# Routes

@router.post("", status_code=status.HTTP_201_CREATED, response_model=TicketSubmitResponse)
async def submit_ticket(
    request: TicketSubmitRequest,
    store: TicketStore = Depends(get_ticket_store),
    proxy: AnalysisProxy = Depends(get_analysis_proxy)
):
    """
    Analyze a new ticket with the webhook and save it

    Returns:
        Saved ticket document, raw analysis and save status
    """
    form = TicketForm(store, proxy, auto_reset=False)
    try:
        ticket_id = await form.submit(request.customer, request.subject, request.message)
    except TicketValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except TicketSubmissionError as e:
        code = status.HTTP_502_BAD_GATEWAY if e.stage == "analysis" else status.HTTP_500_INTERNAL_SERVER_ERROR
        raise HTTPException(status_code=code, detail=str(e))

    return TicketSubmitResponse(
        id=ticket_id,
        ticket={**form.ticket_data, "id": ticket_id},
        analysis=form.analysis or {},
        save_status=form.status.value
    )


@router.get("", response_model=List[Ticket])
async def list_tickets(
    status_filter: StatusFilter = Query(StatusFilter.ALL, alias="status"),
    store: TicketStore = Depends(get_ticket_store)
):
    """Tickets for a status filter, newest first"""
    try:
        return await store.query_ordered(status_filter.to_status())
    except Exception as e:
        logger.error(f"Error fetching tickets: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.get("/stream")
async def stream_tickets(
    request: Request,
    status_filter: StatusFilter = Query(StatusFilter.ALL, alias="status"),
    store: TicketStore = Depends(get_ticket_store)
):
    """
    Live ticket list over Server-Sent Events

    Events:
        - tickets: full ordered result set (sent on connect and after every change)
        - error: a query failed; the stream stays open
        - heartbeat: keep-alive ping when idle
    """
    settings = get_settings()
    events = ticket_event_stream(store, status_filter, settings.stream_heartbeat_seconds)
    return StreamingResponse(
        sse_generator(request, events),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no"
        }
    )


@router.get("/search", response_model=List[Ticket])
async def search_tickets(
    q: str = "",
    store: TicketStore = Depends(get_ticket_store)
):
    """Substring search over customer, subject, message and category"""
    results = await TicketSearch(store).search(q)
    if results is None:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Search failed")
    return results


@router.get("/export")
async def export_csv(
    status_filter: StatusFilter = Query(StatusFilter.ALL, alias="status"),
    q: str = "",
    store: TicketStore = Depends(get_ticket_store)
):
    """
    CSV download of the displayed list: search results when `q` is given,
    else the filtered list
    """
    try:
        if len(q) >= 2:
            tickets = await TicketSearch(store).search(q)
            if tickets is None:
                raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Search failed")
        else:
            tickets = await store.query_ordered(status_filter.to_status())
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Export failed: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    filename, content = export_tickets(tickets)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.post("/demo", status_code=status.HTTP_201_CREATED)
async def create_demo_tickets(
    store: TicketStore = Depends(get_ticket_store),
    proxy: AnalysisProxy = Depends(get_analysis_proxy)
):
    """Create the demo tickets one at a time"""
    try:
        created = await DemoSeeder(store, proxy).seed()
    except TicketSubmissionError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return {"created": created}


@router.get("/{ticket_id}", response_model=Ticket)
async def get_ticket(
    ticket_id: str,
    store: TicketStore = Depends(get_ticket_store)
):
    """Single ticket"""
    ticket = await store.get(ticket_id)
    if ticket is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Ticket {ticket_id} not found")
    return ticket


@router.patch("/{ticket_id}/status")
async def change_status(
    ticket_id: str,
    request: StatusUpdateRequest,
    store: TicketStore = Depends(get_ticket_store)
):
    """Set a ticket's status"""
    try:
        new_status = await update_ticket_status(store, ticket_id, request.status.value)
    except TicketNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return {"id": ticket_id, "status": new_status.value}


@router.post("/{ticket_id}/responses")
async def send_response(
    ticket_id: str,
    request: SendResponseRequest,
    store: TicketStore = Depends(get_ticket_store)
):
    """Send a response; replaces responses_sent and moves the ticket to in-progress"""
    try:
        entry = await send_ticket_response(store, ticket_id, request.response)
    except TicketValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except TicketNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return {"id": ticket_id, "status": "in-progress", "responses_sent": [entry.model_dump()]}
