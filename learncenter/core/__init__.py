"""
Learning Center Core
====================

Core utilities shared by the dashboard modules.
"""

from .config import Config
from .logging_service import LoggingService
from .api_client import ApiClient, ApiResponse, get_api, handle_api_error

__all__ = ['Config', 'LoggingService', 'ApiClient', 'ApiResponse', 'get_api', 'handle_api_error']
