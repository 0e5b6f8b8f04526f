"""
Analysis proxy route

POST /api/analyze-ticket forwards {ticket, customerId, subject} to the
configured webhook and passes its JSON body straight back.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from support_hub.dependencies import get_analysis_proxy
from support_hub.models.schemas import AnalysisRequest
from support_hub.services.analysis_proxy import AnalysisProxy

router = APIRouter(prefix="/api", tags=["analysis"])


@router.post("/analyze-ticket")
async def analyze_ticket(
    request: AnalysisRequest,
    proxy: AnalysisProxy = Depends(get_analysis_proxy)
):
    """
    Analyze ticket text with the workflow webhook

    Returns:
        The webhook's JSON body (200), or {"error": ...} with 500 on failure
    """
    status_code, body = await proxy.forward(request)
    return JSONResponse(content=body, status_code=status_code)
