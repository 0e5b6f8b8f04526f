"""
Ticket analytics

Aggregates computed over the full collection: totals, sentiment
distribution, a trailing 7-day volume histogram and category distribution.
"""
from collections import Counter
from datetime import date, timedelta
from typing import List, Optional, Sequence

from support_hub.models.schemas import (
    AnalyticsSummary,
    ChartDataPoint,
    DailyTicketCount,
    Sentiment,
    Ticket,
    TicketStatus,
    utc_today,
)
from support_hub.services.ticket_store import TicketStore
from support_hub.utils.logger import get_logger

logger = get_logger(__name__)

HISTOGRAM_DAYS = 7

# Not derived from data yet: needs resolved_at to be stamped on resolution
AVG_RESOLUTION_TIME_PLACEHOLDER = 2.5


def sentiment_breakdown(tickets: Sequence[Ticket]) -> List[ChartDataPoint]:
    """Positive/Neutral/Negative counts with 1-decimal percentages"""
    total = len(tickets)
    counts = Counter(t.sentiment for t in tickets)
    breakdown = []
    for sentiment in (Sentiment.POSITIVE, Sentiment.NEUTRAL, Sentiment.NEGATIVE):
        value = counts.get(sentiment, 0)
        breakdown.append(ChartDataPoint(
            name=sentiment.value.capitalize(),
            value=value,
            percentage=f"{value / total * 100:.1f}" if total > 0 else "0"
        ))
    return breakdown


def daily_ticket_counts(tickets: Sequence[Ticket], today: date) -> List[DailyTicketCount]:
    """
    Tickets per day for the trailing week, oldest first

    A ticket counts for a day when its display timestamp starts with that
    day's YYYY-MM-DD.
    """
    days = [today - timedelta(days=i) for i in range(HISTOGRAM_DAYS)][::-1]
    counts = []
    for day in days:
        prefix = day.isoformat()
        counts.append(DailyTicketCount(
            date=day.strftime("%a"),
            count=sum(1 for t in tickets if t.timestamp and t.timestamp.startswith(prefix))
        ))
    return counts


def category_breakdown(tickets: Sequence[Ticket]) -> List[ChartDataPoint]:
    """Ticket count per category in first-seen order"""
    counts = Counter(t.category or "Uncategorized" for t in tickets)
    return [ChartDataPoint(name=name, value=value) for name, value in counts.items()]


def compute_analytics(tickets: Sequence[Ticket], today: Optional[date] = None) -> AnalyticsSummary:
    """Build the analytics summary for a set of tickets"""
    today = today or utc_today()
    return AnalyticsSummary(
        total_tickets=len(tickets),
        resolved_tickets=sum(1 for t in tickets if t.status == TicketStatus.RESOLVED),
        avg_resolution_time=AVG_RESOLUTION_TIME_PLACEHOLDER,
        sentiment_breakdown=sentiment_breakdown(tickets),
        daily_tickets=daily_ticket_counts(tickets, today),
        category_breakdown=category_breakdown(tickets),
    )


class AnalyticsService:
    """One-shot analytics over the whole collection"""

    def __init__(self, store: TicketStore):
        self.store = store

    async def fetch(self, today: Optional[date] = None) -> AnalyticsSummary:
        try:
            tickets = await self.store.fetch_all()
        except Exception as e:
            logger.error(f"Error fetching analytics: {e}")
            raise
        return compute_analytics(tickets, today)
