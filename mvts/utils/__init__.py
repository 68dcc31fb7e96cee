"""Error types, logging and configuration utilities."""

from mvts.utils.logging_config import setup_logging, get_logger

__all__ = ["setup_logging", "get_logger"]
