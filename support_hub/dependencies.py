"""
Shared service instances for route handlers

Created lazily on first use so that importing the app does not need a
configured Supabase project. Tests replace them through
`app.dependency_overrides`.
"""
from functools import lru_cache

from support_hub.services.analysis_proxy import AnalysisProxy
from support_hub.services.ticket_store import TicketStore


@lru_cache()
def get_ticket_store() -> TicketStore:
    """Process-wide ticket store (one subscription registry per process)"""
    return TicketStore()


@lru_cache()
def get_analysis_proxy() -> AnalysisProxy:
    return AnalysisProxy()
