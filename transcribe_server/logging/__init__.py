"""
Centralized logging for transcribe-server.

Provides structured JSON logging with service tagging and log rotation.
"""

from transcribe_server.logging.setup import get_logger, reset_logging, setup_logging

__all__ = ["setup_logging", "get_logger", "reset_logging"]
