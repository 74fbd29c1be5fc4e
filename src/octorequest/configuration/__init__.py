"""
octorequest Configuration Package

リクエスト設定（RequestOptions）、YAML設定ファイルの管理（ConfigManager）、
定数定義（settings）を提供するパッケージ。
"""

from octorequest.configuration.config_manager import ConfigManager
from octorequest.configuration.options import RequestOptions
from octorequest.configuration.settings import (
    DEFAULT_OPTIONS,
    FORMATS,
    LOGIN_TYPES,
    SUCCESS_STATUS_MAX,
    VERSION,
    mask_secret,
)

__all__ = [
    # クラス
    "ConfigManager",
    "RequestOptions",
    # 定数
    "VERSION",
    "DEFAULT_OPTIONS",
    "FORMATS",
    "LOGIN_TYPES",
    "SUCCESS_STATUS_MAX",
    # ヘルパー関数
    "mask_secret",
]
