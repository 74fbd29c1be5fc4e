"""API通信基底クラス

HTTPクライアントの基底となるクラス。
セッション管理、SSL/TLS、タイムアウト、エラー処理を実装する。
リトライは行わない。1回の呼び出しは1回の送信で完結する。
"""

# 標準ライブラリ
import asyncio
import ssl
from abc import abstractmethod
from typing import Any, Dict, Optional

# サードパーティ
import aiohttp
import certifi

# プロジェクト内
from octorequest.configuration.settings import SUCCESS_STATUS_MAX
from octorequest.core.base import BaseComponent, ComponentState
from octorequest.core.exceptions import HTTPStatusError, InitializationError, NetworkError
from octorequest.utils.logger_manager import LoggerManager

logger = LoggerManager.get_logger(__name__)


class BaseAPIClient(BaseComponent):
    """API通信の基底クラス

    Keep-Aliveを無効にしたコネクターを使うため、
    リクエストごとに接続を開き、応答後に閉じる。
    送信中のリクエストがある間はRUNNING、なくなるとREADYに戻る。

    Attributes:
        connect_timeout: 接続タイムアウト（秒）
        _session: aiohttp ClientSession
        _connector: aiohttp TCPConnector
        _in_flight: 送信中のリクエスト数
    """

    DEFAULT_CONNECT_TIMEOUT = 10.0

    # 成功として扱うステータスの上限（これを超えると失敗）
    SUCCESS_STATUS_MAX = SUCCESS_STATUS_MAX

    def __init__(self, connect_timeout: Optional[float] = None):
        """BaseAPIClientの初期化

        Args:
            connect_timeout: 接続タイムアウト（秒）
        """
        super().__init__()
        self.connect_timeout = connect_timeout or self.DEFAULT_CONNECT_TIMEOUT

        # セッション関連
        self._session: Optional[aiohttp.ClientSession] = None
        self._connector: Optional[aiohttp.TCPConnector] = None
        self._in_flight = 0

    # ------------------------------------------------------------------------
    # 非同期コンテキストマネージャー
    # ------------------------------------------------------------------------

    async def __aenter__(self):
        """セッションを初期化し、自身を返す"""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """セッションとコネクターをクリーンアップする"""
        await self.close()

    # ------------------------------------------------------------------------
    # セッション管理
    # ------------------------------------------------------------------------

    async def _ensure_session(self) -> None:
        """セッションが初期化されていることを確認

        セッションが存在しない場合はinitialize()で新規作成する。
        """
        if self._session is None or self._session.closed:
            await self.initialize()

    def _open_session(self) -> None:
        """コネクターとセッションを作成"""
        self._connector = aiohttp.TCPConnector(
            ssl=self._create_ssl_context(),
            force_close=True,  # Keep-Aliveを無効化（1リクエスト1接続）
        )
        self._session = aiohttp.ClientSession(
            connector=self._connector,
            timeout=aiohttp.ClientTimeout(connect=self.connect_timeout),
            trust_env=True,  # 環境変数のプロキシ設定を信頼
        )

    def _create_ssl_context(self) -> ssl.SSLContext:
        """SSL/TLSコンテキストを作成

        Returns:
            ssl.SSLContext: certifiのCAバンドルで検証するコンテキスト
        """
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        ssl_context.check_hostname = True
        ssl_context.verify_mode = ssl.CERT_REQUIRED
        ssl_context.minimum_version = ssl.TLSVersion.TLSv1_2
        return ssl_context

    async def close(self) -> None:
        """セッションとコネクターをクローズ

        一度も開いていない、またはクローズ済みの場合は何もしない。
        """
        if self._state in (ComponentState.NOT_INITIALIZED, ComponentState.TERMINATED):
            return

        self._set_state(ComponentState.TERMINATING)
        try:
            if self._session:
                await self._session.close()
            if self._connector:
                await self._connector.close()
        finally:
            self._session = None
            self._connector = None
            self._set_state(ComponentState.TERMINATED)
            logger.debug(f"{self.__class__.__name__} session closed")

    # ------------------------------------------------------------------------
    # リクエスト処理
    # ------------------------------------------------------------------------

    async def _make_request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        data: Optional[bytes] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """HTTPリクエストを1回実行し、本文をUTF-8テキストで返す

        UTF-8として不正なバイトは置換文字に変換する。

        Args:
            method: HTTPメソッド
            url: 完全なリクエストURL
            headers: リクエストヘッダー
            data: リクエスト本文
            timeout: リクエスト全体のタイムアウト（秒、偽の場合は無制限）

        Returns:
            str: レスポンス本文

        Raises:
            HTTPStatusError: 成功範囲外のステータス
            NetworkError: 接続・TLS・タイムアウトのエラー
        """
        await self._ensure_session()

        request_kwargs: Dict[str, Any] = {"headers": headers, "data": data}
        if timeout:
            request_kwargs["timeout"] = aiohttp.ClientTimeout(
                total=timeout, connect=self.connect_timeout
            )

        self._begin_request()
        try:
            async with self._session.request(method, url, **request_kwargs) as response:
                if response.status > self.SUCCESS_STATUS_MAX:
                    self._handle_response_error(response, url)

                return await response.text(encoding="utf-8", errors="replace")

        except aiohttp.ClientError as e:
            raise self._handle_connection_error(e, url) from e
        except asyncio.TimeoutError as e:
            raise NetworkError(
                f"Request timed out after {timeout}s", url=url, error_code="E5205", cause=e
            ) from e
        finally:
            self._end_request()

    def _begin_request(self) -> None:
        self._in_flight += 1
        if self._in_flight == 1:
            self._set_state(ComponentState.RUNNING)

    def _end_request(self) -> None:
        self._in_flight -= 1
        # 送信中にclose()された場合はTERMINATEDのまま
        if self._in_flight == 0 and self._state == ComponentState.RUNNING:
            self._set_state(ComponentState.READY)

    def _handle_response_error(self, response: aiohttp.ClientResponse, url: str) -> None:
        """成功範囲外のレスポンスの処理

        本文は読み込まずに破棄する。

        Raises:
            HTTPStatusError: 常に送出
        """
        logger.warning(
            f"Request failed with status {response.status}",
            extra={"status": response.status, "reason": response.reason},
        )
        raise HTTPStatusError(response.status, response.reason, url=url)

    def _handle_connection_error(self, error: aiohttp.ClientError, url: str) -> NetworkError:
        """接続エラーのハンドリング

        Args:
            error: aiohttp例外
            url: リクエストURL

        Returns:
            NetworkError: 適切なエラーコードのNetworkError
        """
        if isinstance(error, aiohttp.ClientProxyConnectionError):
            message, error_code = f"Proxy connection failed: {error}", "E5203"
        elif isinstance(error, aiohttp.ClientSSLError):
            message, error_code = f"TLS handshake failed: {error}", "E5204"
        elif isinstance(error, aiohttp.ClientConnectorError):
            message, error_code = f"Cannot connect to host: {error}", "E5502"
        elif isinstance(error, asyncio.TimeoutError):
            message, error_code = f"Request timed out: {error}", "E5205"
        else:
            message, error_code = f"HTTP client error: {error}", "E5201"

        return NetworkError(message, url=url, error_code=error_code, cause=error)

    # ------------------------------------------------------------------------
    # BaseComponent必須メソッド
    # ------------------------------------------------------------------------

    async def initialize(self) -> None:
        """HTTPセッションを作成し、READY状態にする

        作成前（NOT_INITIALIZED）、失敗後（ERROR）、クローズ後（TERMINATED）のみ呼び出せる。

        Raises:
            RuntimeError: セッションが既に有効な場合
            InitializationError: セッションの作成に失敗した場合
        """
        if self._state not in (
            ComponentState.NOT_INITIALIZED,
            ComponentState.ERROR,
            ComponentState.TERMINATED,
        ):
            raise RuntimeError(f"Cannot initialize component in state: {self._state.value}")

        self._set_state(ComponentState.INITIALIZING)
        self._error = None

        try:
            self._open_session()
        except Exception as e:
            self._handle_error(e)
            raise InitializationError(
                f"Failed to initialize HTTP session: {e}",
                component=self.__class__.__name__,
                cause=e,
            ) from e

        self._set_state(ComponentState.READY)
        logger.debug(
            f"{self.__class__.__name__} session initialized",
            extra={"initialized_at": self._initialized_at.isoformat()},
        )

    async def cleanup(self) -> None:
        """HTTPセッションをクローズする（エラーは記録のみ）"""
        try:
            await self.close()
        except Exception as e:
            logger.error(f"Cleanup error: {e}", extra={"error_type": type(e).__name__})

    # ------------------------------------------------------------------------
    # 抽象メソッド（サブクラスで実装）
    # ------------------------------------------------------------------------

    @abstractmethod
    async def _prepare_headers(self, options: Any) -> Dict[str, str]:
        """サービス固有のヘッダーを準備

        Args:
            options: この呼び出しで使う設定

        Returns:
            Dict[str, str]: リクエストヘッダー
        """
        pass

    @abstractmethod
    async def _process_request_data(self, data: Dict[str, Any], options: Any) -> Dict[str, Any]:
        """リクエストパラメータを処理

        Args:
            data: 元のパラメータ
            options: この呼び出しで使う設定

        Returns:
            Dict[str, Any]: 処理済みのパラメータ
        """
        pass
