"""
ログ管理モジュール

octorequest全体で統一されたログ出力を提供する。
シングルトンパターンで実装され、環境変数による設定が可能。
認証情報（Authorizationヘッダー、パスワード、トークン）はログに残さない。
"""

import json
import logging
import logging.handlers
import os
import tempfile
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from octorequest.configuration.settings import (
    ENV_LOG_DIR,
    ENV_LOG_LEVEL,
    ENV_RUNTIME,
    mask_secret,
)

ROOT_LOGGER_NAME = "octorequest"

# 実行環境ごとの (ログディレクトリ, コンソールのログレベル)
ENVIRONMENT_DEFAULTS = {
    "production": (Path.home() / ".octorequest" / "logs", "WARNING"),
    "test": (Path(tempfile.gettempdir()) / "octorequest_test_logs", "INFO"),
    "development": (Path("logs"), "DEBUG"),
}

# マスク対象のキー（小文字で比較）
SENSITIVE_KEYS = frozenset(
    {"authorization", "password", "api_token", "oauth_access_token", "access_token"}
)

MAX_LOG_BYTES = 10_485_760
LOG_BACKUP_COUNT = 5


class LoggerManager:
    """
    統一されたログ管理クラス（シングルトン）

    "octorequest"ロガーにコンソール、JSONファイル、エラー専用ファイルの
    3つのハンドラーを設定する。パッケージ内の各モジュールは
    get_logger(__name__)でその配下のロガーを取得する。

    環境変数:
        OCTOREQUEST_ENV: 実行環境 (development/test/production)
        OCTOREQUEST_LOG_LEVEL: ログレベル (DEBUG/INFO/WARNING/ERROR/CRITICAL)
        OCTOREQUEST_LOG_DIR: ログ出力先ディレクトリ

    Attributes:
        log_dir: ログファイルの出力ディレクトリ
        log_level: コンソールのログレベル
        debug_mode: デバッグモードフラグ（リクエストのdebugオプションと対応）
    """

    _instance: Optional["LoggerManager"] = None
    _initialized: bool = False

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(
        self,
        log_dir: Optional[Path] = None,
        log_level: Optional[str] = None,
        debug_mode: bool = False,
    ):
        """
        Args:
            log_dir: ログディレクトリ（None時は環境変数または実行環境から決定）
            log_level: ログレベル（None時は環境変数または実行環境から決定）
            debug_mode: Trueの場合はログレベルをDEBUGに固定
        """
        if LoggerManager._initialized:
            return

        self.env = os.getenv(ENV_RUNTIME, "development")
        default_dir, default_level = ENVIRONMENT_DEFAULTS.get(
            self.env, ENVIRONMENT_DEFAULTS["development"]
        )

        self.log_dir = Path(log_dir or os.getenv(ENV_LOG_DIR) or default_dir)
        self.debug_mode = debug_mode
        self.log_level = (
            "DEBUG" if debug_mode else (log_level or os.getenv(ENV_LOG_LEVEL) or default_level)
        ).upper()

        self.log_dir.mkdir(parents=True, exist_ok=True)
        self._setup_package_logger()

        LoggerManager._initialized = True

        self.get_logger("LoggerManager").info(
            "LoggerManager initialized",
            extra={"env": self.env, "log_dir": str(self.log_dir), "log_level": self.log_level},
        )

    def _setup_package_logger(self) -> None:
        package_logger = logging.getLogger(ROOT_LOGGER_NAME)
        package_logger.setLevel(logging.DEBUG)  # ハンドラーで制御

        package_logger.handlers.clear()
        package_logger.addHandler(self._create_console_handler())
        package_logger.addHandler(self._create_rotating_handler("octorequest.log", logging.DEBUG))
        package_logger.addHandler(self._create_rotating_handler("errors.log", logging.ERROR))

    def _create_console_handler(self) -> logging.StreamHandler:
        handler = logging.StreamHandler()
        handler.setLevel(getattr(logging, self.log_level))

        # 開発環境では詳細フォーマット、それ以外は簡潔フォーマット
        if self.env == "development" or self.debug_mode:
            fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            fmt = "%(levelname)s - %(message)s"
        handler.setFormatter(logging.Formatter(fmt))
        return handler

    def _create_rotating_handler(
        self, filename: str, level: int
    ) -> logging.handlers.RotatingFileHandler:
        """
        JSON形式のローテーション付きファイルハンドラーを作成

        Args:
            filename: ログディレクトリ内のファイル名
            level: このハンドラーが記録する最低レベル

        Returns:
            設定済みのRotatingFileHandler
        """
        handler = logging.handlers.RotatingFileHandler(
            self.log_dir / filename,
            maxBytes=MAX_LOG_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        handler.setLevel(level)
        handler.setFormatter(JSONLogFormatter())
        return handler

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """
        "octorequest"配下のロガーを取得

        Args:
            name: ロガー名（通常は__name__を使用）
        """
        if not name.startswith(ROOT_LOGGER_NAME):
            name = f"{ROOT_LOGGER_NAME}.{name}"
        return logging.getLogger(name)

    @classmethod
    def reset(cls) -> None:
        """シングルトンをリセットし、ハンドラーを閉じて取り除く（テスト用）"""
        package_logger = logging.getLogger(ROOT_LOGGER_NAME)
        for handler in list(package_logger.handlers):
            handler.close()
            package_logger.removeHandler(handler)

        cls._instance = None
        cls._initialized = False


def redact(value: Any) -> Any:
    """辞書（入れ子を含む）の認証情報をマスクしたコピーを返す"""
    if isinstance(value, dict):
        return {
            key: (
                mask_secret(str(item))
                if isinstance(key, str) and key.lower() in SENSITIVE_KEYS and item
                else redact(item)
            )
            for key, item in value.items()
        }
    return value


class JSONLogFormatter(logging.Formatter):
    """
    JSON形式でログを出力するフォーマッター

    extraフィールドも出力するが、SENSITIVE_KEYSに該当する値はマスクする。
    """

    # LogRecordの標準属性（extraとして出力しない）
    STANDARD_FIELDS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "taskName"}

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in self.STANDARD_FIELDS and not key.startswith("_")
        }
        log_data.update(redact(extra))

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info),
            }

        return json.dumps(log_data, ensure_ascii=False, default=str)
