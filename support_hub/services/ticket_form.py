"""
Ticket Form

Collects customer name, subject and message, runs the analysis webhook,
derives sentiment/category/priority/suggested response and saves the ticket.

State machine:
    idle -> submitting-analysis -> saving -> saved -> (reset delay) -> idle
                  |                  |
                  +------> error <---+
"""
import asyncio
import re
from enum import Enum
from typing import Any, Callable, Dict, Optional

from support_hub.config import get_settings
from support_hub.exceptions import TicketSubmissionError, TicketValidationError
from support_hub.models.schemas import (
    AnalysisResult,
    Priority,
    Sentiment,
    TicketStatus,
    utc_now_iso,
)
from support_hub.services.analysis_proxy import (
    AnalysisProxy,
    as_analysis_dict,
    is_analysis_failure,
)
from support_hub.services.ticket_store import TicketStore, invoke_callback
from support_hub.utils.logger import get_logger

logger = get_logger(__name__)

URGENCY_KEYWORDS = ("urgent", "asap")


class FormStatus(str, Enum):
    """Ticket form states"""
    IDLE = "idle"
    SUBMITTING_ANALYSIS = "submitting-analysis"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


def derive_priority(sentiment: Sentiment, message: str) -> Priority:
    """
    Priority from sentiment and urgency keywords

    negative sentiment or "urgent"/"asap" anywhere in the message -> high,
    positive -> low, anything else -> medium.
    """
    text = (message or "").lower()
    if sentiment == Sentiment.NEGATIVE or any(k in text for k in URGENCY_KEYWORDS):
        return Priority.HIGH
    if sentiment == Sentiment.POSITIVE:
        return Priority.LOW
    return Priority.MEDIUM


def extract_analysis(data: Any) -> AnalysisResult:
    """
    Derive sentiment, category and suggested response from a webhook body

    Structured `sentiment`/`category`/`suggestedResponse` fields win; the
    suggested response otherwise falls back to the free-text `analysis` or
    `rawAnalysis` field. Defaults: neutral, "general", "".
    """
    raw = as_analysis_dict(data)

    sentiment = Sentiment.NEUTRAL
    category = "general"
    suggested_response = raw.get("analysis") or raw.get("rawAnalysis") or ""

    if raw.get("sentiment"):
        value = str(raw["sentiment"]).strip().lower()
        try:
            sentiment = Sentiment(value)
        except ValueError:
            logger.warning(f"Unknown sentiment from analysis: {value!r}, using neutral")
    if raw.get("category"):
        category = str(raw["category"])
    if raw.get("suggestedResponse"):
        suggested_response = raw["suggestedResponse"]

    if not isinstance(suggested_response, str):
        suggested_response = str(suggested_response)

    return AnalysisResult(
        sentiment=sentiment,
        category=category,
        suggested_response=suggested_response,
        raw=raw
    )


def slugify_customer(name: str) -> str:
    """"Jane  Doe" -> "jane-doe" """
    return re.sub(r"\s+", "-", name.lower())


def build_ticket_document(
    customer: str,
    subject: str,
    message: str,
    analysis: AnalysisResult,
    timestamp: Optional[str] = None
) -> Dict[str, Any]:
    """Full `tickets` row for a new form submission"""
    return {
        # Customer info
        "customer": customer,
        "customer_id": slugify_customer(customer),

        # Ticket details
        "subject": subject,
        "message": message,
        "status": TicketStatus.NEW.value,
        "priority": derive_priority(analysis.sentiment, message).value,

        # AI analysis
        "sentiment": analysis.sentiment.value,
        "category": analysis.category,
        "suggested_response": analysis.suggested_response,
        "ai_analysis": analysis.raw,

        # Display timestamp (ordering uses the server-side created_at)
        "timestamp": timestamp or utc_now_iso(),

        # Metadata
        "channel": "web",
        "assigned_to": None,
        "resolved": False,
        "resolved_at": None,
        "responses_sent": [],
    }


class TicketForm:
    """
    Stateful ticket form.

    One instance per form on screen. After a successful save the form
    resets itself once `reset_delay` has elapsed and then calls
    `on_success`.
    """

    def __init__(
        self,
        store: TicketStore,
        analyzer: Optional[AnalysisProxy] = None,
        on_success: Optional[Callable[[], Any]] = None,
        reset_delay: Optional[float] = None,
        auto_reset: bool = True
    ):
        self.store = store
        self.analyzer = analyzer or AnalysisProxy()
        self.on_success = on_success
        self.reset_delay = get_settings().form_reset_delay_seconds if reset_delay is None else reset_delay
        self.auto_reset = auto_reset

        self.customer_name = ""
        self.subject = ""
        self.message = ""
        self.status = FormStatus.IDLE
        self.analysis: Optional[Dict[str, Any]] = None
        self.result: Optional[AnalysisResult] = None
        self.ticket_id: Optional[str] = None
        self.ticket_data: Optional[Dict[str, Any]] = None
        self.error: Optional[str] = None
        self._reset_task: Optional[asyncio.Task] = None

    @property
    def loading(self) -> bool:
        return self.status in (FormStatus.SUBMITTING_ANALYSIS, FormStatus.SAVING)

    def missing_fields(self) -> list[str]:
        fields = {
            "customer": self.customer_name,
            "subject": self.subject,
            "message": self.message,
        }
        return [name for name, value in fields.items() if not (value or "").strip()]

    @property
    def can_submit(self) -> bool:
        return not self.loading and not self.missing_fields()

    def update(
        self,
        customer: Optional[str] = None,
        subject: Optional[str] = None,
        message: Optional[str] = None
    ) -> None:
        """Set field values (None leaves a field unchanged)"""
        if customer is not None:
            self.customer_name = customer
        if subject is not None:
            self.subject = subject
        if message is not None:
            self.message = message

    async def submit(
        self,
        customer: Optional[str] = None,
        subject: Optional[str] = None,
        message: Optional[str] = None
    ) -> str:
        """
        Analyze and save the ticket

        Returns:
            Id of the saved ticket

        Raises:
            TicketValidationError: A required field is blank (state stays idle)
            TicketSubmissionError: Analysis call or save failed (state -> error)
        """
        self.update(customer, subject, message)

        missing = self.missing_fields()
        if missing:
            raise TicketValidationError(missing)
        if self.loading:
            raise TicketSubmissionError("Submission already in progress", stage="busy")

        self.analysis = None
        self.error = None
        self.status = FormStatus.SUBMITTING_ANALYSIS

        try:
            status_code, body = await self.analyzer.analyze(
                ticket=self.message,
                customer_id=self.customer_name,
                subject=self.subject
            )
        except Exception as e:
            self._fail(f"Analysis request failed: {e}")
            raise TicketSubmissionError("Error submitting ticket", stage="analysis") from e

        if is_analysis_failure(status_code, body):
            logger.warning(f"Analysis unavailable (HTTP {status_code}), saving with defaults")

        self.analysis = as_analysis_dict(body)
        self.status = FormStatus.SAVING

        self.result = extract_analysis(body)
        self.ticket_data = build_ticket_document(
            self.customer_name, self.subject, self.message, self.result
        )

        try:
            self.ticket_id = await self.store.create(self.ticket_data)
        except Exception as e:
            self._fail(f"Saving ticket failed: {e}")
            raise TicketSubmissionError("Error submitting ticket", stage="save") from e

        logger.info(f"Ticket saved with ID: {self.ticket_id}")
        self.status = FormStatus.SAVED

        if self.auto_reset:
            self._reset_task = asyncio.create_task(self._reset_later())

        return self.ticket_id

    def _fail(self, message: str) -> None:
        logger.error(message)
        self.error = message
        self.status = FormStatus.ERROR

    async def _reset_later(self) -> None:
        await asyncio.sleep(self.reset_delay)
        self.reset()
        await invoke_callback(self.on_success)

    def reset(self) -> None:
        """Clear fields, analysis and save status"""
        self.customer_name = ""
        self.subject = ""
        self.message = ""
        self.analysis = None
        self.result = None
        self.error = None
        self.status = FormStatus.IDLE

    def cancel(self) -> None:
        """Drop a pending reset (form closed)"""
        if self._reset_task is not None and not self._reset_task.done():
            self._reset_task.cancel()
        self._reset_task = None

    def view(self) -> Dict[str, Any]:
        """Serializable snapshot for the UI"""
        return {
            "customer": self.customer_name,
            "subject": self.subject,
            "message": self.message,
            "status": self.status.value,
            "loading": self.loading,
            "can_submit": self.can_submit,
            "analysis": self.analysis,
            "ticket_id": self.ticket_id,
            "error": self.error,
        }
