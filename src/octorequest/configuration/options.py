"""リクエストオプション

クライアント1インスタンス分の設定を表す不変の値オブジェクト。
呼び出し単位の上書きは新しいインスタンスを導出し、元の設定は変更しない。
"""

import logging
from dataclasses import asdict, dataclass, field, fields
from dataclasses import replace as dataclass_replace
from typing import Any, Dict, Mapping, Optional

from octorequest.configuration.settings import DEFAULT_OPTIONS, LOGIN_NONE, mask_secret
from octorequest.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestOptions:
    """リクエスト設定

    Attributes:
        protocol: "https"の場合はTLS、それ以外は平文HTTP
        hostname: 接続先ホスト
        http_port: 接続先ポート
        path: すべてのリクエストに付与するパス接頭辞
        format: レスポンス形式（json / text）
        user_agent: User-Agentヘッダー
        login_type: 認証方式（none / oauth / token / basic）
        username: ユーザー名（token / basic）
        password: パスワード（basic）
        api_token: APIトークン（token）
        oauth_access_token: OAuthアクセストークン（oauth）
        timeout: リクエスト全体のタイムアウト（秒）
        debug: Trueの場合、送信前にトレースログを出力
    """

    protocol: str = DEFAULT_OPTIONS["protocol"]
    hostname: str = DEFAULT_OPTIONS["hostname"]
    http_port: int = DEFAULT_OPTIONS["http_port"]
    path: str = DEFAULT_OPTIONS["path"]
    format: str = DEFAULT_OPTIONS["format"]
    user_agent: str = DEFAULT_OPTIONS["user_agent"]
    login_type: str = LOGIN_NONE
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    api_token: Optional[str] = field(default=None, repr=False)
    oauth_access_token: Optional[str] = field(default=None, repr=False)
    timeout: Optional[float] = DEFAULT_OPTIONS["timeout"]
    debug: bool = False

    @classmethod
    def option_names(cls) -> set:
        """認識されるオプション名の集合"""
        return {f.name for f in fields(cls)}

    @classmethod
    def from_mapping(cls, options: Optional[Mapping[str, Any]] = None) -> "RequestOptions":
        """デフォルト値に指定オプションを重ねた設定を生成

        指定されなかったオプションはすべてデフォルト値になる。
        Noneが明示された場合もデフォルト値を使う。

        Args:
            options: オプション名と値の辞書

        Returns:
            RequestOptions: 生成された設定
        """
        options = options or {}
        known = cls.option_names()

        unknown = [key for key in options if key not in known]
        if unknown:
            logger.warning(f"Ignoring unknown request options: {sorted(unknown)}")

        values = {
            key: value for key, value in options.items() if key in known and value is not None
        }
        return cls(**values)

    def replace(self, **changes: Any) -> "RequestOptions":
        """一部のオプションを変更した新しい設定を取得

        Raises:
            ConfigurationError: 未知のオプション名が指定された場合
        """
        known = self.option_names()
        for name in changes:
            if name not in known:
                raise ConfigurationError(f"Unknown request option: {name}", option=name)
        return dataclass_replace(self, **changes)

    def get(self, name: str, default: Any = None) -> Any:
        """オプション値を取得

        値が偽（None、空文字列、0、False）の場合はdefaultを返す。

        Args:
            name: オプション名
            default: 値が偽の場合に返す値

        Returns:
            Any: オプション値またはデフォルト値
        """
        value = getattr(self, name, None) if name in self.option_names() else None
        return value if value else default

    @property
    def use_tls(self) -> bool:
        """TLSで接続するか"""
        return self.protocol == "https"

    @property
    def scheme(self) -> str:
        """URLスキーム"""
        return "https" if self.use_tls else "http"

    def to_dict(self, mask: bool = False) -> Dict[str, Any]:
        """辞書形式で取得

        Args:
            mask: Trueの場合、認証情報をマスクする
        """
        data = asdict(self)
        if mask:
            for key in ("password", "api_token", "oauth_access_token"):
                if data[key]:
                    data[key] = mask_secret(data[key])
        return data
