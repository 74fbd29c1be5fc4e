"""GitHub v2 API リクエストクライアント

論理APIパスとパラメータからHTTPリクエストを組み立てて送信し、
設定されたレスポンス形式に従って本文をデコードする。

使用例:
    async with Request({"login_type": "basic", "username": "alice", "password": "secret"}) as client:
        user = await client.get("user/show/alice")
"""

import base64
import json
from typing import Any, Callable, Dict, Mapping, Optional, Union
from urllib.parse import quote, urlencode

from octorequest.api.base import BaseAPIClient
from octorequest.configuration.options import RequestOptions
from octorequest.configuration.settings import (
    DEFAULT_PORTS,
    FORMAT_JSON,
    FORMAT_TEXT,
    FORMATS,
    LOGIN_BASIC,
    LOGIN_OAUTH,
    LOGIN_TOKEN,
    LOGIN_TYPES,
    SUPPORTED_METHODS,
)
from octorequest.core.exceptions import (
    ConfigurationError,
    OctoRequestError,
    ResponseDecodeError,
)
from octorequest.utils.logger_manager import LoggerManager, redact

logger = LoggerManager.get_logger(__name__)

OptionsLike = Union[RequestOptions, Mapping[str, Any], None]
Callback = Callable[[Optional[OctoRequestError], Any], None]


class Request(BaseAPIClient):
    """GitHub v2 APIへのリクエストを実行する

    設定は不変のRequestOptionsとして保持する。
    呼び出し単位のoptionsは新しい設定を導出するだけで、
    クライアント自身の設定は変更しない。

    Attributes:
        _options: 現在の設定
    """

    def __init__(self, options: OptionsLike = None, connect_timeout: Optional[float] = None):
        """Requestの初期化

        Args:
            options: 初期設定（省略時はすべてデフォルト）
            connect_timeout: 接続タイムアウト（秒）
        """
        super().__init__(connect_timeout=connect_timeout)
        self._options = RequestOptions()
        self.configure(options)

    # ------------------------------------------------------------------------
    # 設定
    # ------------------------------------------------------------------------

    @property
    def options(self) -> RequestOptions:
        """現在の設定"""
        return self._options

    def configure(self, options: OptionsLike = None) -> "Request":
        """設定全体を置き換える

        デフォルト値に指定オプションを重ねた設定を作る。
        以前に設定した値でも、今回指定しなかったものはデフォルトに戻る。

        Args:
            options: オプションの辞書またはRequestOptions

        Returns:
            Request: 自身（メソッドチェーン用）
        """
        self._options = self._merge_options(options)
        return self

    def set_option(self, name: str, value: Any) -> "Request":
        """オプションを1つ変更する

        Raises:
            ConfigurationError: 未知のオプション名の場合
        """
        self._options = self._options.replace(**{name: value})
        return self

    def get_option(self, name: str, default: Any = None) -> Any:
        """オプション値を取得

        値が偽（空文字列や0を含む）の場合はdefaultを返す。
        """
        return self._options.get(name, default)

    @staticmethod
    def _merge_options(options: OptionsLike) -> RequestOptions:
        if isinstance(options, RequestOptions):
            return options
        return RequestOptions.from_mapping(options)

    # ------------------------------------------------------------------------
    # 送信
    # ------------------------------------------------------------------------

    async def get(
        self,
        api_path: str,
        parameters: Optional[Mapping[str, Any]] = None,
        options: OptionsLike = None,
        callback: Optional[Callback] = None,
    ) -> Any:
        """GETリクエストを送信（sendを参照）"""
        return await self.send(api_path, parameters, "GET", options, callback)

    async def post(
        self,
        api_path: str,
        parameters: Optional[Mapping[str, Any]] = None,
        options: OptionsLike = None,
        callback: Optional[Callback] = None,
    ) -> Any:
        """POSTリクエストを送信（sendを参照）"""
        return await self.send(api_path, parameters, "POST", options, callback)

    async def send(
        self,
        api_path: str,
        parameters: Optional[Mapping[str, Any]] = None,
        http_method: str = "GET",
        options: OptionsLike = None,
        callback: Optional[Callback] = None,
    ) -> Any:
        """リクエストを送信し、デコードしたレスポンスを返す

        Args:
            api_path: 論理APIパス（例: "user/show/alice"）
            parameters: リクエストパラメータ
            http_method: HTTPメソッド
            options: この呼び出しだけに使う設定（デフォルト値に重ねる）
            callback: 指定された場合、callback(error, result)の形で結果を通知し、
                エラーは送出しない

        Returns:
            Any: デコードされたレスポンス（json: 構造化データ、text: 文字列）

        Raises:
            HTTPStatusError: 成功範囲外のステータス
            NetworkError: 接続・TLS・タイムアウトのエラー
            ResponseDecodeError: JSONとして解釈できない本文
        """
        http_method = (http_method or "GET").upper()
        call_options = self._options if options is None else self._merge_options(options)

        try:
            raw = await self._do_send(api_path, parameters, http_method, call_options)
            result = self.decode_response(raw, call_options)
        except OctoRequestError as e:
            if callback is None:
                raise
            logger.debug(f"Delivering {type(e).__name__} to callback")
            callback(e, None)
            return None

        if callback is not None:
            callback(None, result)
        return result

    async def _do_send(
        self,
        api_path: str,
        parameters: Optional[Mapping[str, Any]],
        http_method: str,
        options: RequestOptions,
    ) -> str:
        """HTTPリクエストを組み立てて送信し、本文を返す"""
        if http_method not in SUPPORTED_METHODS and parameters:
            logger.warning(f"Parameters are not sent with {http_method} requests")

        headers = await self._prepare_headers(options)
        data = await self._process_request_data(dict(parameters or {}), options)
        query_string = self.encode_query(data)
        path = self.build_path(api_path, options)

        body = None
        if query_string:
            if http_method == "GET":
                path += "?" + query_string
            elif http_method == "POST":
                body = query_string.encode("utf-8")
                headers["Content-Length"] = str(len(body))
                headers["Content-Type"] = "application/x-www-form-urlencoded"

        if options.debug:
            logger.info(
                f"send {http_method} request: {path}",
                extra={"method": http_method, "headers": redact(headers)},
            )

        return await self._make_request(
            http_method,
            self.build_url(path, options),
            headers=headers,
            data=body,
            timeout=options.timeout,
        )

    # ------------------------------------------------------------------------
    # リクエスト組み立て
    # ------------------------------------------------------------------------

    async def _prepare_headers(self, options: RequestOptions) -> Dict[str, str]:
        """固定ヘッダーと認証ヘッダーを準備"""
        headers = {
            "Host": self._host_header(options),
            "User-Agent": options.user_agent,
            "Content-Length": "0",
        }

        if options.login_type == LOGIN_TOKEN:
            headers["Authorization"] = self._basic_auth(
                f"{options.username or ''}/token:{options.api_token or ''}"
            )
        elif options.login_type == LOGIN_BASIC:
            headers["Authorization"] = self._basic_auth(
                f"{options.username or ''}:{options.password or ''}"
            )
        elif options.login_type not in LOGIN_TYPES:
            logger.debug(f"Unknown login_type '{options.login_type}', sending without auth")

        return headers

    async def _process_request_data(
        self, data: Dict[str, Any], options: RequestOptions
    ) -> Dict[str, Any]:
        """OAuthの場合はaccess_tokenをパラメータに追加"""
        if options.login_type == LOGIN_OAUTH:
            data["access_token"] = options.oauth_access_token
        return data

    @staticmethod
    def _basic_auth(credentials: str) -> str:
        encoded = base64.b64encode(credentials.encode("utf-8")).decode("ascii")
        return f"Basic {encoded}"

    @staticmethod
    def _host_header(options: RequestOptions) -> str:
        if options.http_port and options.http_port != DEFAULT_PORTS.get(options.scheme):
            return f"{options.hostname}:{options.http_port}"
        return options.hostname

    @staticmethod
    def encode_query(parameters: Mapping[str, Any]) -> str:
        """パラメータをクエリ文字列に変換

        真偽値は true/false、Noneは空文字列、シーケンスはキーを繰り返す。
        """

        def normalize(value: Any) -> Any:
            if isinstance(value, bool):
                return "true" if value else "false"
            if value is None:
                return ""
            if isinstance(value, (list, tuple)):
                return [normalize(item) for item in value]
            return value

        pairs = [(key, normalize(value)) for key, value in parameters.items()]
        return urlencode(pairs, doseq=True, quote_via=quote)

    def build_path(self, api_path: str, options: Optional[RequestOptions] = None) -> str:
        """<path>/<format>/<api_path> を組み立てる（末尾のスラッシュは除去）"""
        options = options or self._options
        return f"{options.path}/{options.format}/{api_path.rstrip('/')}"

    def build_url(self, path: str, options: Optional[RequestOptions] = None) -> str:
        """スキーム・ホスト・ポートを付けた完全なURLを組み立てる

        ポートがスキームのデフォルトと同じ場合は省略する。
        """
        options = options or self._options
        return f"{options.scheme}://{self._host_header(options)}{path}"

    # ------------------------------------------------------------------------
    # レスポンス
    # ------------------------------------------------------------------------

    def decode_response(self, response: str, options: Optional[RequestOptions] = None) -> Any:
        """レスポンス本文を設定された形式でデコード

        Raises:
            ResponseDecodeError: format=jsonで本文がJSONでない場合
            ConfigurationError: 未対応のformatの場合
        """
        options = options or self._options

        if options.format == FORMAT_TEXT:
            return response
        elif options.format == FORMAT_JSON:
            try:
                return json.loads(response)
            except json.JSONDecodeError as e:
                raise ResponseDecodeError(
                    f"Invalid JSON response: {e}", response_format=FORMAT_JSON, cause=e
                ) from e

        raise ConfigurationError(
            f"Unsupported response format: {options.format} (expected one of {FORMATS})",
            option="format",
        )

    def __repr__(self) -> str:
        """文字列表現（認証情報をマスク）"""
        return (
            f"<{self.__class__.__name__} "
            f"url={self.build_url(self._options.path)} "
            f"login_type={self._options.login_type} "
            f"state={self._state.value}>"
        )
