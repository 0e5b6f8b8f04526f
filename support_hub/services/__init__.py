"""
Business Logic Services
"""
from .analysis_proxy import AnalysisProxy
from .ticket_store import TicketStore, TicketSubscription
from .ticket_form import TicketForm, FormStatus
from .dashboard import DashboardSession
from .search import TicketSearch
from .analytics import AnalyticsService
from .demo import DemoSeeder

__all__ = [
    "AnalysisProxy",
    "TicketStore",
    "TicketSubscription",
    "TicketForm",
    "FormStatus",
    "DashboardSession",
    "TicketSearch",
    "AnalyticsService",
    "DemoSeeder",
]
