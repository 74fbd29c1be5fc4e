"""
octorequest

GitHub v2 JSON APIのための非同期リクエストクライアント。
リクエストパスの組み立て、認証ヘッダーの付与、送信、
JSON/テキストレスポンスのデコードを行う。
"""

__version__ = "0.2.0"
__author__ = "octorequest contributors"
__license__ = "MIT"

from octorequest.api.request import Request
from octorequest.configuration.config_manager import ConfigManager
from octorequest.configuration.options import RequestOptions
from octorequest.core.base import BaseComponent, ComponentState
from octorequest.core.exceptions import (
    APIError,
    ConfigurationError,
    HTTPStatusError,
    NetworkError,
    OctoRequestError,
    ResponseDecodeError,
)
from octorequest.utils.logger_manager import LoggerManager

__all__ = [
    # バージョン情報
    "__version__",
    "__author__",
    "__license__",
    # クライアント
    "Request",
    "RequestOptions",
    "ConfigManager",
    # 基底クラス
    "BaseComponent",
    "ComponentState",
    # 例外クラス
    "OctoRequestError",
    "ConfigurationError",
    "APIError",
    "HTTPStatusError",
    "ResponseDecodeError",
    "NetworkError",
    # ログ
    "LoggerManager",
]
