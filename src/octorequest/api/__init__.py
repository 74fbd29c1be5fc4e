"""API通信関連モジュール

- base.py: BaseAPIClient（セッション管理とエラー処理）
- request.py: Request（GitHub v2 APIクライアント）
"""

from .base import BaseAPIClient
from .request import Request

__all__ = [
    "BaseAPIClient",
    "Request",
]
