"""
octorequest Core Package

基底クラスと例外を提供するパッケージ。
"""

from octorequest.core.base import BaseComponent, ComponentState
from octorequest.core.exceptions import (
    APIError,
    ConfigurationError,
    HTTPStatusError,
    InitializationError,
    NetworkError,
    OctoRequestError,
    ResponseDecodeError,
)

__all__ = [
    # 基底クラス
    "BaseComponent",
    "ComponentState",
    # 例外クラス
    "OctoRequestError",
    "ConfigurationError",
    "InitializationError",
    "APIError",
    "HTTPStatusError",
    "ResponseDecodeError",
    "NetworkError",
]
