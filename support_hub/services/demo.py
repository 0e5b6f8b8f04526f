"""
Demo ticket seeding

Creates a fixed set of demonstration tickets one at a time, each analyzed
by the webhook and then saved, with a pause between items so the live
subscription visibly animates.
"""
import asyncio
from typing import Any, Callable, Dict, List, Optional

from support_hub.config import get_settings
from support_hub.exceptions import TicketSubmissionError
from support_hub.models.schemas import TicketStatus, utc_now_iso
from support_hub.services.analysis_proxy import AnalysisProxy, as_analysis_dict
from support_hub.services.ticket_form import slugify_customer
from support_hub.services.ticket_store import TicketStore, invoke_callback
from support_hub.utils.logger import get_logger

logger = get_logger(__name__)

DEMO_TICKETS: List[Dict[str, str]] = [
    {
        "customer": "Sarah Johnson",
        "subject": "Urgent: Payment charged twice!",
        "message": (
            "I was charged $99 twice for my subscription! This is completely "
            "unacceptable. I need an immediate refund for the duplicate charge. "
            "My bank account is now overdrawn because of this error!"
        ),
        "sentiment": "negative",
        "priority": "high",
        "category": "billing",
    },
    {
        "customer": "Mike Chen",
        "subject": "Feature request - Slack integration",
        "message": (
            "Your product is fantastic! Would love to see Slack integration so our "
            "team can get notifications directly. This would really improve our workflow."
        ),
        "sentiment": "positive",
        "priority": "low",
        "category": "feature request",
    },
    {
        "customer": "Emma Wilson",
        "subject": "Can't login after password reset",
        "message": (
            "I reset my password yesterday but now I can't login with the new "
            "password. It keeps saying invalid credentials. I've tried multiple "
            "times and cleared my browser cache."
        ),
        "sentiment": "negative",
        "priority": "high",
        "category": "technical",
    },
    {
        "customer": "David Brown",
        "subject": "Thank you for excellent support!",
        "message": (
            "Just wanted to say thanks to your support team, especially Alex who "
            "helped me yesterday. Problem solved in 5 minutes. Best customer "
            "service I've experienced!"
        ),
        "sentiment": "positive",
        "priority": "low",
        "category": "feedback",
    },
    {
        "customer": "Lisa Anderson",
        "subject": "API rate limit questions",
        "message": (
            "We're hitting rate limits on the API. Our plan says 10,000 requests "
            "per hour but we're getting blocked at around 5,000. Can you please "
            "check our account?"
        ),
        "sentiment": "neutral",
        "priority": "medium",
        "category": "technical",
    },
]


def build_demo_document(demo: Dict[str, str], analysis: Dict[str, Any]) -> Dict[str, Any]:
    """Demo tickets keep their preset sentiment, priority and category"""
    return {
        **demo,
        "customer_id": slugify_customer(demo["customer"]),
        "status": TicketStatus.NEW.value,
        "suggested_response": analysis.get("suggestedResponse") or analysis.get("analysis") or "",
        "ai_analysis": analysis,
        "timestamp": utc_now_iso(),
        "channel": "web",
        "responses_sent": [],
    }


class DemoSeeder:
    """Sequential analyze-then-save of DEMO_TICKETS"""

    def __init__(
        self,
        store: TicketStore,
        analyzer: Optional[AnalysisProxy] = None,
        delay: Optional[float] = None
    ):
        self.store = store
        self.analyzer = analyzer or AnalysisProxy()
        self.delay = get_settings().demo_seed_delay_seconds if delay is None else delay

    async def seed(
        self,
        tickets: Optional[List[Dict[str, str]]] = None,
        on_created: Optional[Callable[[str], Any]] = None
    ) -> List[str]:
        """
        Create the demo tickets

        Returns:
            Ids of the created tickets, in creation order

        Raises:
            TicketSubmissionError: the first failure aborts the run
        """
        created = []
        for demo in tickets if tickets is not None else DEMO_TICKETS:
            try:
                _, body = await self.analyzer.analyze(
                    ticket=demo["message"],
                    customer_id=demo["customer"],
                    subject=demo["subject"]
                )
                ticket_id = await self.store.create(
                    build_demo_document(demo, as_analysis_dict(body))
                )
            except Exception as e:
                logger.error(f"Error creating demo tickets: {e}")
                raise TicketSubmissionError(
                    "Error creating demo tickets. Make sure the analysis webhook is active.",
                    stage="demo"
                ) from e

            created.append(ticket_id)
            logger.info(f"Demo ticket created: {ticket_id} ({demo['subject']})")
            await invoke_callback(on_created, ticket_id)
            await asyncio.sleep(self.delay)

        return created
