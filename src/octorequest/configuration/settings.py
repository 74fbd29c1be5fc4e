"""
octorequest 定数定義

リクエストオプションのデフォルト値、認証方式、レスポンス形式、
環境変数名などを管理。
"""

from typing import Any, Dict

# ============================================================================
# バージョン情報
# ============================================================================

VERSION = "0.2.0"

# ============================================================================
# 環境変数名
# ============================================================================

ENV_PREFIX = "OCTOREQUEST_"
ENV_CONFIG_PATH = "OCTOREQUEST_CONFIG_PATH"
ENV_RUNTIME = "OCTOREQUEST_ENV"
ENV_LOG_LEVEL = "OCTOREQUEST_LOG_LEVEL"
ENV_LOG_DIR = "OCTOREQUEST_LOG_DIR"

# ============================================================================
# 認証方式（login_type）
# ============================================================================

LOGIN_NONE = "none"
LOGIN_OAUTH = "oauth"
LOGIN_TOKEN = "token"
LOGIN_BASIC = "basic"
LOGIN_TYPES = [LOGIN_NONE, LOGIN_OAUTH, LOGIN_TOKEN, LOGIN_BASIC]

# ============================================================================
# レスポンス形式（format）
# ============================================================================

FORMAT_JSON = "json"
FORMAT_TEXT = "text"
FORMATS = [FORMAT_JSON, FORMAT_TEXT]

# ============================================================================
# HTTP設定
# ============================================================================

SUPPORTED_METHODS = ["GET", "POST"]

# このステータスを超える応答はすべて失敗として扱う（201/204も失敗）
SUCCESS_STATUS_MAX = 200

# スキームごとのデフォルトポート（URLから省略する）
DEFAULT_PORTS = {"https": 443, "http": 80}

# ============================================================================
# デフォルトオプション
# ============================================================================

DEFAULT_OPTIONS: Dict[str, Any] = {
    "protocol": "https",
    "hostname": "github.com",
    "http_port": 443,
    "path": "/api/v2",
    "format": FORMAT_JSON,
    "user_agent": "octorequest (https://github.com/octorequest/octorequest)",
    "login_type": LOGIN_NONE,
    "username": None,
    "password": None,
    "api_token": None,
    "oauth_access_token": None,
    "timeout": 20,
    "debug": False,
}

# 環境変数から読み込む際に型変換が必要なオプション
INT_OPTIONS = {"http_port"}
FLOAT_OPTIONS = {"timeout"}
BOOL_OPTIONS = {"debug"}

# ============================================================================
# ヘルパー関数
# ============================================================================


def env_name_for(option: str) -> str:
    """オプション名に対応する環境変数名を取得

    Args:
        option: オプション名（例: api_token）

    Returns:
        str: 環境変数名（例: OCTOREQUEST_API_TOKEN）
    """
    return f"{ENV_PREFIX}{option.upper()}"


def mask_secret(secret: str) -> str:
    """認証情報をマスク表示用に変換

    Args:
        secret: マスクする文字列

    Returns:
        str: マスクされた文字列（例: "ghp...abcd"）
    """
    if not secret or len(secret) < 8:
        return "***"

    return f"{secret[:3]}...{secret[-4:]}"
