"""設定管理マネージャー

YAMLベースのリクエスト設定ファイルを読み込み、環境変数で上書きする。
読み込んだ結果はRequestOptionsとして取得できる。

優先順位（低→高）:
    1. デフォルト値
    2. YAMLファイル
    3. 環境変数（OCTOREQUEST_<OPTION>）
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from octorequest.configuration.options import RequestOptions
from octorequest.configuration.settings import (
    BOOL_OPTIONS,
    ENV_CONFIG_PATH,
    FLOAT_OPTIONS,
    INT_OPTIONS,
    env_name_for,
)
from octorequest.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class ConfigManager:
    """設定管理マネージャー

    YAMLファイルの形式:
        request:
          hostname: github.com
          login_type: token
          username: alice
          api_token: "..."

    トップレベルに直接オプションを書くことも可能。

    Attributes:
        config_path: 設定ファイルのパス（Noneの場合は環境変数から取得）
        _config: 現在の設定値
    """

    SECTION = "request"

    def __init__(self, config_path: Optional[Path] = None):
        """初期化

        Args:
            config_path: 設定ファイルのパス
        """
        if config_path is None and (env_path := os.getenv(ENV_CONFIG_PATH)):
            config_path = Path(env_path)

        self.config_path = Path(config_path) if config_path else None
        self._config: Dict[str, Any] = {}

        logger.debug(f"ConfigManager initialized with path: {self.config_path}")

    def load(self) -> Dict[str, Any]:
        """設定ファイルと環境変数から設定を読み込む

        Returns:
            Dict[str, Any]: 読み込んだオプション

        Raises:
            ConfigurationError: 設定ファイルの読み込みやパースに失敗
        """
        self._config = self.load_config(self.config_path)
        self._apply_env_overrides()
        return dict(self._config)

    def load_config(self, config_path: Optional[Path]) -> Dict[str, Any]:
        """YAMLファイルを読み込む

        ファイルが存在しない場合は空の設定を返す。

        Args:
            config_path: 設定ファイルのパス

        Returns:
            Dict[str, Any]: ファイル内のオプション
        """
        if config_path is None or not config_path.exists():
            logger.info(f"Config file not found, using defaults: {config_path}")
            return {}

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Failed to parse YAML config: {e}",
                config_file=str(config_path),
                cause=e,
            ) from e
        except OSError as e:
            raise ConfigurationError(
                f"Failed to read config file: {e}",
                config_file=str(config_path),
                cause=e,
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                "Config file must contain a mapping",
                config_file=str(config_path),
            )

        section = data.get(self.SECTION, data)
        if not isinstance(section, dict):
            raise ConfigurationError(
                f"'{self.SECTION}' section must be a mapping",
                config_file=str(config_path),
            )

        logger.info(f"Loaded request config from {config_path}")
        return dict(section)

    def _apply_env_overrides(self) -> None:
        """環境変数による上書きを適用"""
        for name in RequestOptions.option_names():
            raw = os.getenv(env_name_for(name))
            if raw is None:
                continue

            self._config[name] = self._convert_env_value(name, raw)
            logger.debug(f"Option '{name}' overridden by environment")

    def _convert_env_value(self, name: str, raw: str) -> Any:
        """環境変数の文字列をオプションの型に変換

        Raises:
            ConfigurationError: 数値変換に失敗した場合
        """
        try:
            if name in INT_OPTIONS:
                return int(raw)
            if name in FLOAT_OPTIONS:
                return float(raw)
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid value for {env_name_for(name)}: {raw!r}", option=name, cause=e
            ) from e

        if name in BOOL_OPTIONS:
            return raw.strip().lower() in ("1", "true", "yes", "on")
        return raw

    def get(self, key: str, default: Any = None) -> Any:
        """設定値を取得

        Args:
            key: オプション名
            default: デフォルト値

        Returns:
            Any: 設定値またはデフォルト値
        """
        value = self._config.get(key)
        return default if value is None else value

    def set(self, key: str, value: Any) -> None:
        """設定値を設定

        Raises:
            ConfigurationError: 未知のオプション名の場合
        """
        if key not in RequestOptions.option_names():
            raise ConfigurationError(f"Unknown request option: {key}", option=key)
        self._config[key] = value

    def load_options(self) -> RequestOptions:
        """設定を読み込みRequestOptionsとして取得"""
        return RequestOptions.from_mapping(self.load())

    def to_options(self) -> RequestOptions:
        """現在の設定値からRequestOptionsを生成（再読み込みなし）"""
        return RequestOptions.from_mapping(self._config)
