"""
octorequest Utils Package

ログ管理などの共通機能。
"""

from octorequest.utils.logger_manager import JSONLogFormatter, LoggerManager, redact

__all__ = [
    "LoggerManager",
    "JSONLogFormatter",
    "redact",
]
