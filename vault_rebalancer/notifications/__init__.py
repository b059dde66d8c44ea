"""Notification modules."""
from .group import NotifierGroup
from .log import LoggingNotifier
from .telegram import TelegramNotifier

__all__ = ["LoggingNotifier", "NotifierGroup", "TelegramNotifier"]
