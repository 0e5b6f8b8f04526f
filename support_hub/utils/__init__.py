"""
Utility functions
"""
from support_hub.utils.logger import setup_logger, get_logger

__all__ = [
    "setup_logger",
    "get_logger",
]
