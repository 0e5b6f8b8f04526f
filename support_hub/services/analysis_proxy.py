"""
Analysis webhook client

Forwards ticket text to the workflow-automation webhook that returns
sentiment, category and a suggested response. The webhook's JSON body is
passed back untouched; callers must tolerate missing fields.
"""
import httpx
from typing import Any, Dict, Optional, Tuple

from support_hub.config import get_settings
from support_hub.models.schemas import AnalysisRequest
from support_hub.utils.logger import get_logger

logger = get_logger(__name__)

ANALYSIS_FAILED = {"error": "Failed to analyze ticket"}


class AnalysisProxy:
    """
    Single-endpoint webhook proxy. No retry and no timeout.
    """

    def __init__(self, webhook_url: Optional[str] = None):
        self.webhook_url = webhook_url if webhook_url is not None else get_settings().analysis_webhook_url
        self.headers = {
            "Content-Type": "application/json"
        }

    async def forward(self, request: AnalysisRequest) -> Tuple[int, Any]:
        """
        POST the request to the webhook

        Args:
            request: ticket text, customer id and subject

        Returns:
            (status_code, body): (200, webhook JSON) on success,
            (500, {"error": ...}) on any network or parse failure
        """
        logger.debug(f"Analysis request received: {request.model_dump(by_alias=True)}")

        if not self.webhook_url:
            logger.error("Analysis webhook URL is not configured")
            return 500, dict(ANALYSIS_FAILED)

        try:
            async with httpx.AsyncClient(timeout=None) as client:
                response = await client.post(
                    self.webhook_url,
                    json=request.to_webhook_payload(),
                    headers=self.headers
                )
                data = response.json()

            return 200, data

        except Exception as e:
            logger.error(f"Analysis webhook call failed: {e}")
            return 500, dict(ANALYSIS_FAILED)

    async def analyze(
        self,
        ticket: Optional[str],
        customer_id: Optional[str],
        subject: Optional[str]
    ) -> Tuple[int, Any]:
        """Convenience wrapper around `forward`"""
        return await self.forward(
            AnalysisRequest(ticket=ticket, customer_id=customer_id, subject=subject)
        )


def is_analysis_failure(status_code: int, body: Any) -> bool:
    """True when a proxy result should be treated as a failed analysis"""
    return status_code >= 400 or (isinstance(body, dict) and set(body) == {"error"})


def as_analysis_dict(body: Any) -> Dict[str, Any]:
    """Webhook bodies are untyped; anything but an object becomes {}"""
    return body if isinstance(body, dict) else {}
