"""Utility helpers for FlickPick."""

from .logging_config import setup_logging, get_logger, FlickPickLogger

__all__ = ["setup_logging", "get_logger", "FlickPickLogger"]
