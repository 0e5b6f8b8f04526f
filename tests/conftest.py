"""
Pytest configuration and fixtures
"""
import pytest
from typing import Dict, Any


@pytest.fixture
def stored_ticket_row() -> Dict[str, Any]:
    """A `tickets` row as returned by Supabase"""
    return {
        "id": "5f0c2d9e-7a1b-4c3d-9e8f-0a1b2c3d4e5f",
        "customer": "Emma Wilson",
        "customer_id": "emma-wilson",
        "subject": "Can't login after password reset",
        "message": "It keeps saying invalid credentials.",
        "status": "new",
        "priority": "high",
        "sentiment": "negative",
        "category": "technical",
        "suggested_response": "Please try resetting your password again.",
        "ai_analysis": {"sentiment": "negative", "category": "technical"},
        "timestamp": "2024-05-10T09:00:00.000Z",
        "responses_sent": [],
        "channel": "web",
        "assigned_to": None,
        "resolved": False,
        "resolved_at": None,
        "created_at": "2024-05-10T09:00:01.123456+00:00",
        "updated_at": None,
    }


@pytest.fixture
def sparse_ticket_row() -> Dict[str, Any]:
    """Row written by another client with most columns missing"""
    return {
        "id": 42,
        "customer": None,
        "subject": None,
        "status": None,
        "priority": None,
        "sentiment": None,
        "timestamp": None,
    }
