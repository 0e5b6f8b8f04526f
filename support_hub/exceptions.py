"""
Domain exceptions for Support Hub
"""


class SupportHubError(Exception):
    """Base class for all Support Hub errors"""


class TicketStoreError(SupportHubError):
    """Read or write against the ticket collection failed"""


class TicketNotFoundError(TicketStoreError):
    """No ticket with the given id"""

    def __init__(self, ticket_id: str):
        super().__init__(f"Ticket {ticket_id} not found")
        self.ticket_id = ticket_id


class TicketValidationError(SupportHubError):
    """Submitted ticket is missing a required field"""

    def __init__(self, missing: list[str]):
        super().__init__(f"Missing required fields: {', '.join(missing)}")
        self.missing = missing


class TicketSubmissionError(SupportHubError):
    """Analyze-then-save submission failed; `stage` is where it stopped"""

    def __init__(self, message: str, stage: str):
        super().__init__(message)
        self.stage = stage
