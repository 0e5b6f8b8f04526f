"""
Analytics API routes
"""
from fastapi import APIRouter, Depends, HTTPException

from support_hub.dependencies import get_ticket_store
from support_hub.models.schemas import AnalyticsSummary
from support_hub.services.analytics import AnalyticsService
from support_hub.services.ticket_store import TicketStore

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


@router.get("", response_model=AnalyticsSummary)
async def get_analytics(store: TicketStore = Depends(get_ticket_store)):
    """
    Aggregates over the whole collection

    Metrics:
    - Total and resolved tickets
    - Sentiment breakdown with percentages
    - Daily ticket volume for the last 7 days
    - Category breakdown
    - Average resolution time (fixed placeholder)
    """
    try:
        return await AnalyticsService(store).fetch()
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching analytics: {e}")
