"""
Pydantic models for Support Hub

This module contains the Pydantic schemas matching the Supabase `tickets` table,
the analysis webhook boundary and the API payloads.
"""
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any, List, Literal

from pydantic import BaseModel, Field, ConfigDict, model_validator


def utc_now_iso() -> str:
    """Client-side ISO timestamp, as stored in `Ticket.timestamp`"""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def utc_today() -> date:
    """Current UTC calendar day, the day `utc_now_iso` timestamps fall on"""
    return datetime.now(timezone.utc).date()


# ============================================================================
# Enums
# ============================================================================

class TicketStatus(str, Enum):
    """Valid ticket statuses (any transition is allowed)"""
    NEW = "new"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"


class StatusFilter(str, Enum):
    """Dashboard status filter; ALL disables the equality filter"""
    ALL = "all"
    NEW = "new"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"

    def to_status(self) -> Optional[TicketStatus]:
        """Status to filter on, or None for ALL"""
        if self is StatusFilter.ALL:
            return None
        return TicketStatus(self.value)


class Priority(str, Enum):
    """Valid ticket priorities"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Sentiment(str, Enum):
    """Coarse customer tone"""
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


Theme = Literal["dark", "light"]


# ============================================================================
# Database Models (matching Supabase tables)
# ============================================================================

class ResponseEntry(BaseModel):
    """A response sent to the customer"""
    response: str
    sent_at: str = Field(default_factory=utc_now_iso)
    sent_by: str = "AI Assistant"


# Fallbacks applied when a stored row is missing a field (or holds null)
READ_DEFAULTS: Dict[str, Any] = {
    "customer": "Unknown Customer",
    "subject": "No Subject",
    "status": TicketStatus.NEW,
    "priority": Priority.MEDIUM,
    "sentiment": Sentiment.NEUTRAL,
    "message": "",
    "responses_sent": [],
}


class Ticket(BaseModel):
    """
    Support ticket as stored in the `tickets` table.

    `timestamp` is the client clock at creation (display, relative time,
    daily histogram); `created_at` is assigned by the database and drives
    ordering.
    """
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Store-assigned identifier")
    customer: str = Field("Unknown Customer", description="Customer display name")
    customer_id: Optional[str] = Field(None, description="Slug of the customer name")
    subject: str = "No Subject"
    message: str = ""
    status: TicketStatus = TicketStatus.NEW
    priority: Priority = Priority.MEDIUM
    sentiment: Sentiment = Sentiment.NEUTRAL
    category: Optional[str] = None
    suggested_response: Optional[str] = None
    timestamp: str = Field(default_factory=utc_now_iso)
    responses_sent: List[ResponseEntry] = Field(default_factory=list)
    ai_analysis: Optional[Dict[str, Any]] = None
    channel: Optional[str] = None
    assigned_to: Optional[str] = None
    resolved: bool = False
    resolved_at: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    defaulted_fields: List[str] = Field(
        default_factory=list,
        exclude=True,
        description="Columns that were null or missing in the stored row"
    )

    @model_validator(mode="before")
    @classmethod
    def apply_read_defaults(cls, data: Any) -> Any:
        """Replace null columns with their display defaults"""
        if isinstance(data, dict):
            missing = [k for k in READ_DEFAULTS if data.get(k) is None]
            data = {k: v for k, v in data.items() if v is not None or k not in READ_DEFAULTS}
            data.setdefault("defaulted_fields", missing)
            if data.get("timestamp") is None:
                data.pop("timestamp", None)
            if "id" in data and data["id"] is not None:
                data["id"] = str(data["id"])
        return data


# ============================================================================
# Analysis webhook boundary
# ============================================================================

class AnalysisRequest(BaseModel):
    """Body accepted by POST /api/analyze-ticket and forwarded to the webhook"""
    model_config = ConfigDict(populate_by_name=True)

    ticket: Optional[str] = None
    customer_id: Optional[str] = Field(None, alias="customerId")
    subject: Optional[str] = None

    def to_webhook_payload(self) -> Dict[str, Any]:
        """Exactly the three forwarded fields"""
        return self.model_dump(by_alias=True)


class AnalysisResult(BaseModel):
    """Fields derived from an (untrusted) webhook response"""
    sentiment: Sentiment = Sentiment.NEUTRAL
    category: str = "general"
    suggested_response: str = ""
    raw: Dict[str, Any] = Field(default_factory=dict)


# ============================================================================
# API Models
# ============================================================================

class TicketSubmitRequest(BaseModel):
    """New ticket from the ticket form"""
    customer: str = ""
    subject: str = ""
    message: str = ""


class TicketSubmitResponse(BaseModel):
    """Result of a successful form submission"""
    id: str
    ticket: Dict[str, Any]
    analysis: Dict[str, Any]
    save_status: str


class StatusUpdateRequest(BaseModel):
    """Status change from the detail pane"""
    status: TicketStatus


class SendResponseRequest(BaseModel):
    """Custom or AI-suggested response to send"""
    response: str = Field(..., min_length=1)


class ThemePreference(BaseModel):
    """UI theme stored client-side"""
    theme: Theme = "dark"


class ChartDataPoint(BaseModel):
    """One slice/bar of a breakdown chart"""
    name: str
    value: int
    percentage: str = ""


class DailyTicketCount(BaseModel):
    """Tickets created on one calendar day"""
    date: str
    count: int


class AnalyticsSummary(BaseModel):
    """Aggregates shown on the analytics view"""
    total_tickets: int = 0
    resolved_tickets: int = 0
    avg_resolution_time: float = 0.0
    sentiment_breakdown: List[ChartDataPoint] = Field(default_factory=list)
    daily_tickets: List[DailyTicketCount] = Field(default_factory=list)
    category_breakdown: List[ChartDataPoint] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Standard error response"""
    error: str = Field(..., description="Error message")
