"""
Dashboard WebSocket

One DashboardSession per connection. The client sends actions, the
server pushes the full view state after every delivery and action.

Client -> server:
    {"action": "set_filter", "filter": "all|new|in-progress|resolved"}
    {"action": "select", "ticket_id": "..."}
    {"action": "search", "term": "..."}
    {"action": "clear_search"}
    {"action": "change_status", "ticket_id": "...", "status": "..."}
    {"action": "set_draft", "text": "..."}
    {"action": "send_response", "ticket_id": "...", "response": "..."?}
    {"action": "send_suggested_response", "ticket_id": "..."}
    {"action": "open_new_ticket"}
    {"action": "submit_ticket", "customer": "...", "subject": "...", "message": "..."}
    {"action": "create_demo"}
    {"action": "toggle_theme"}
    {"action": "export"}

Server -> client:
    {"type": "state", ...}
    {"type": "notice" | "error", "message": "..."}
    {"type": "export", "filename": "...", "content": "..."}
"""
import asyncio
from typing import Any, Dict

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from support_hub.dependencies import get_analysis_proxy, get_ticket_store
from support_hub.exceptions import SupportHubError
from support_hub.services.analysis_proxy import AnalysisProxy
from support_hub.services.dashboard import DashboardSession
from support_hub.services.ticket_store import TicketStore
from support_hub.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["dashboard"])


class DashboardConnection:
    """Binds a DashboardSession to a websocket"""

    def __init__(self, websocket: WebSocket, store: TicketStore, proxy: AnalysisProxy):
        self.websocket = websocket
        self._send_lock = asyncio.Lock()
        self._tasks: set[asyncio.Task] = set()
        theme = websocket.cookies.get("theme")
        self.session = DashboardSession(
            store,
            proxy,
            on_update=self.push_state,
            on_notice=self.push_notice,
            theme=theme if theme in ("dark", "light") else "dark"
        )

    async def send(self, message: Dict[str, Any]) -> None:
        async with self._send_lock:
            await self.websocket.send_json(message)

    async def push_state(self) -> None:
        await self.send(self.session.snapshot())

    async def push_notice(self, kind: str, message: str) -> None:
        await self.send({"type": kind, "message": message})

    def _spawn(self, coro) -> None:
        """Run a long action without blocking the receive loop"""
        task = asyncio.create_task(self._guarded(coro))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _guarded(self, coro) -> None:
        try:
            await coro
        except Exception as e:
            logger.error(f"Dashboard background action failed: {e}")
            await self.push_notice("error", str(e))
        await self.push_state()

    async def handle(self, message: Dict[str, Any]) -> None:
        """Dispatch one client action"""
        action = message.get("action")
        session = self.session

        if action == "set_filter":
            await session.set_filter(message.get("filter", "all"))
        elif action == "select":
            session.select(message["ticket_id"])
        elif action == "search":
            await session.search(message.get("term", ""))
        elif action == "clear_search":
            session.clear_search()
        elif action == "change_status":
            await session.change_status(message["ticket_id"], message["status"])
        elif action == "set_draft":
            session.set_draft(message.get("text", ""))
        elif action == "send_response":
            await session.send_response(message["ticket_id"], message.get("response"))
        elif action == "send_suggested_response":
            await session.send_suggested_response(message["ticket_id"])
        elif action == "open_new_ticket":
            session.open_new_ticket()
        elif action == "submit_ticket":
            await session.submit_ticket(
                message.get("customer", ""),
                message.get("subject", ""),
                message.get("message", "")
            )
        elif action == "create_demo":
            self._spawn(session.create_demo_tickets())
        elif action == "toggle_theme":
            session.toggle_theme()
        elif action == "export":
            filename, content = session.export_csv()
            await self.send({"type": "export", "filename": filename, "content": content})
            return
        else:
            await self.push_notice("error", f"Unknown action: {action}")
            return

        await self.push_state()

    def close(self) -> None:
        self.session.close()
        for task in list(self._tasks):
            task.cancel()


@router.websocket("/ws/dashboard")
async def dashboard_socket(
    websocket: WebSocket,
    store: TicketStore = Depends(get_ticket_store),
    proxy: AnalysisProxy = Depends(get_analysis_proxy)
):
    """Live dashboard session"""
    await websocket.accept()
    connection = DashboardConnection(websocket, store, proxy)
    try:
        await connection.session.start()
        while True:
            message = await websocket.receive_json()
            try:
                await connection.handle(message)
            except (SupportHubError, KeyError, ValueError) as e:
                logger.warning(f"Dashboard action {message.get('action')!r} failed: {e}")
                await connection.push_notice("error", str(e))
    except WebSocketDisconnect:
        logger.info("Dashboard client disconnected")
    finally:
        connection.close()
