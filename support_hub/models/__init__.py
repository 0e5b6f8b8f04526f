"""
Pydantic models for Support Hub
"""

from support_hub.models.schemas import (
    # Enums
    TicketStatus,
    StatusFilter,
    Priority,
    Sentiment,

    # Database Models
    Ticket,
    ResponseEntry,

    # Analysis boundary
    AnalysisRequest,
    AnalysisResult,

    # API Models
    TicketSubmitRequest,
    TicketSubmitResponse,
    StatusUpdateRequest,
    SendResponseRequest,
    ThemePreference,
    ChartDataPoint,
    DailyTicketCount,
    AnalyticsSummary,
    ErrorResponse,
)

__all__ = [
    # Enums
    "TicketStatus",
    "StatusFilter",
    "Priority",
    "Sentiment",

    # Database Models
    "Ticket",
    "ResponseEntry",

    # Analysis boundary
    "AnalysisRequest",
    "AnalysisResult",

    # API Models
    "TicketSubmitRequest",
    "TicketSubmitResponse",
    "StatusUpdateRequest",
    "SendResponseRequest",
    "ThemePreference",
    "ChartDataPoint",
    "DailyTicketCount",
    "AnalyticsSummary",
    "ErrorResponse",
]
