"""BaseAPIClientの単体テスト

セッション管理、SSL/TLS設定、ステータス判定、接続エラーの変換を検証。
"""

import asyncio
import ssl
from typing import Any, Dict
from unittest.mock import MagicMock

import aiohttp
import pytest
from aioresponses import aioresponses

from octorequest.api.base import BaseAPIClient
from octorequest.core.base import ComponentState
from octorequest.core.exceptions import HTTPStatusError, InitializationError, NetworkError

# ============================================================================
# テスト用の具象クラス
# ============================================================================


class EchoAPIClient(BaseAPIClient):
    """テスト用のBaseAPIClient具象実装"""

    async def _prepare_headers(self, options: Any) -> Dict[str, str]:
        return {"User-Agent": "EchoClient/1.0"}

    async def _process_request_data(self, data: Dict[str, Any], options: Any) -> Dict[str, Any]:
        return data


def connection_key() -> MagicMock:
    """aiohttpの接続エラー生成用のダミー接続キー"""
    return MagicMock(host="github.com", port=443, ssl=True)


# ============================================================================
# 初期化とクリーンアップのテスト
# ============================================================================


@pytest.mark.unit
class TestSessionLifecycle:
    """セッションのライフサイクルのテスト"""

    def test_initialization_with_defaults(self):
        """デフォルト値での初期化テスト"""
        client = EchoAPIClient()

        assert client.connect_timeout == BaseAPIClient.DEFAULT_CONNECT_TIMEOUT
        assert client._session is None
        assert client.state == ComponentState.NOT_INITIALIZED

    @pytest.mark.asyncio
    async def test_async_context_manager(self):
        """非同期コンテキストマネージャーのテスト"""
        client = EchoAPIClient()

        async with client:
            assert isinstance(client._session, aiohttp.ClientSession)
            assert client.state == ComponentState.READY
            assert client.is_available()

        assert client._session is None
        assert client.state == ComponentState.TERMINATED

    @pytest.mark.asyncio
    async def test_connector_disables_keep_alive(self):
        """1リクエスト1接続（Keep-Aliveなし）"""
        async with EchoAPIClient() as client:
            assert client._connector.force_close is True

    @pytest.mark.asyncio
    async def test_initialize_and_cleanup(self):
        """initialize / cleanup による管理"""
        client = EchoAPIClient()

        await client.initialize()
        assert client.state == ComponentState.READY

        await client.cleanup()
        assert client._session is None
        assert client.state == ComponentState.TERMINATED

    @pytest.mark.asyncio
    async def test_close_before_open_is_noop(self):
        """一度も開いていないクライアントのcloseは何もしない"""
        client = EchoAPIClient()

        await client.close()

        assert client.state == ComponentState.NOT_INITIALIZED

    @pytest.mark.asyncio
    async def test_reopens_after_close(self):
        """クローズ後の送信でセッションを作り直す"""
        client = EchoAPIClient()
        async with client:
            pass

        with aioresponses() as mocked:
            mocked.get("https://api.example.com/ok", status=200, body="again")

            try:
                body = await client._make_request("GET", "https://api.example.com/ok")
                assert client.state == ComponentState.READY
            finally:
                await client.close()

        assert body == "again"
        assert client.state == ComponentState.TERMINATED

    @pytest.mark.asyncio
    async def test_initialize_failure_sets_error_state(self, monkeypatch):
        """セッション作成の失敗はInitializationErrorでERROR状態"""
        client = EchoAPIClient()

        def broken_ssl_context():
            raise ssl.SSLError("no CA bundle")

        monkeypatch.setattr(client, "_create_ssl_context", broken_ssl_context)

        with pytest.raises(InitializationError) as exc_info:
            await client.initialize()

        assert client.state == ComponentState.ERROR
        assert exc_info.value.error_code == "E0100"
        assert isinstance(exc_info.value.cause, ssl.SSLError)

    @pytest.mark.asyncio
    async def test_initialize_twice_is_rejected(self):
        """READY状態からの再初期化はできない"""
        client = EchoAPIClient()
        await client.initialize()

        try:
            with pytest.raises(RuntimeError):
                await client.initialize()
        finally:
            await client.cleanup()

    def test_ssl_context(self):
        """SSL証明書検証が有効であること"""
        ssl_context = EchoAPIClient()._create_ssl_context()

        assert ssl_context.check_hostname is True
        assert ssl_context.verify_mode == ssl.CERT_REQUIRED
        assert ssl_context.minimum_version == ssl.TLSVersion.TLSv1_2


# ============================================================================
# リクエストのテスト
# ============================================================================


@pytest.mark.unit
class TestMakeRequest:
    """_make_requestのテスト"""

    @pytest.mark.asyncio
    async def test_returns_body_text(self):
        """成功時は本文をテキストで返す"""
        with aioresponses() as mocked:
            mocked.get("https://api.example.com/ok", status=200, body="héllo")

            async with EchoAPIClient() as client:
                body = await client._make_request("GET", "https://api.example.com/ok")

        assert body == "héllo"

    @pytest.mark.asyncio
    async def test_status_above_boundary(self):
        """SUCCESS_STATUS_MAXを超えるとHTTPStatusError"""
        with aioresponses() as mocked:
            mocked.get("https://api.example.com/gone", status=410, reason="Gone")

            async with EchoAPIClient() as client:
                with pytest.raises(HTTPStatusError) as exc_info:
                    await client._make_request("GET", "https://api.example.com/gone")

        assert exc_info.value.status == 410
        assert exc_info.value.msg == "Gone"
        assert exc_info.value.details["url"] == "https://api.example.com/gone"

    @pytest.mark.asyncio
    async def test_lazy_session(self):
        """セッション未作成でも送信時に作成される"""
        client = EchoAPIClient()

        with aioresponses() as mocked:
            mocked.get("https://api.example.com/ok", status=200, body="{}")

            try:
                await client._make_request("GET", "https://api.example.com/ok")
                assert client._session is not None
            finally:
                await client.close()

    @pytest.mark.asyncio
    async def test_invalid_utf8_is_replaced(self):
        """UTF-8として不正なバイトは置換文字になる"""
        with aioresponses() as mocked:
            mocked.get("https://api.example.com/ok", status=200, body=b"caf\xe9")

            async with EchoAPIClient() as client:
                body = await client._make_request("GET", "https://api.example.com/ok")

        assert body == "caf\ufffd"

    @pytest.mark.asyncio
    async def test_running_while_in_flight(self):
        """送信中はRUNNING、完了後はREADY"""
        seen = []

        async with EchoAPIClient() as client:

            def record_state(url, **kwargs):
                seen.append(client.state)

            with aioresponses() as mocked:
                mocked.get(
                    "https://api.example.com/ok", status=200, body="ok", callback=record_state
                )
                await client._make_request("GET", "https://api.example.com/ok")

            assert seen == [ComponentState.RUNNING]
            assert client.state == ComponentState.READY

    @pytest.mark.asyncio
    async def test_ready_after_failed_request(self):
        """失敗したリクエストの後もREADYに戻る"""
        with aioresponses() as mocked:
            mocked.get("https://api.example.com/gone", status=404, reason="Not Found")

            async with EchoAPIClient() as client:
                with pytest.raises(HTTPStatusError):
                    await client._make_request("GET", "https://api.example.com/gone")

                assert client.state == ComponentState.READY

    @pytest.mark.asyncio
    async def test_ready_after_concurrent_requests(self):
        """並行リクエストがすべて終わるまでRUNNINGのまま"""
        seen = []

        async with EchoAPIClient() as client:

            async def record_state(url, **kwargs):
                await asyncio.sleep(0)
                seen.append(client.state)

            with aioresponses() as mocked:
                for _ in range(3):
                    mocked.get(
                        "https://api.example.com/ok", status=200, body="ok", callback=record_state
                    )

                await asyncio.gather(
                    *(client._make_request("GET", "https://api.example.com/ok") for _ in range(3))
                )

            assert seen == [ComponentState.RUNNING] * 3
            assert client.state == ComponentState.READY

    @pytest.mark.asyncio
    async def test_timeout_keeps_connect_timeout(self):
        """リクエスト単位のタイムアウトでも接続タイムアウトを維持する"""
        seen = {}

        def capture(url, **kwargs):
            seen.update(kwargs)

        with aioresponses() as mocked:
            mocked.get("https://api.example.com/ok", status=200, body="ok", callback=capture)

            async with EchoAPIClient(connect_timeout=3.0) as client:
                await client._make_request("GET", "https://api.example.com/ok", timeout=20)

        assert seen["timeout"].total == 20
        assert seen["timeout"].connect == 3.0

    @pytest.mark.asyncio
    async def test_no_timeout_uses_session_default(self):
        """タイムアウト未指定ならセッションの設定を使う"""
        seen = {}

        def capture(url, **kwargs):
            seen.update(kwargs)

        with aioresponses() as mocked:
            mocked.get("https://api.example.com/ok", status=200, body="ok", callback=capture)

            async with EchoAPIClient(connect_timeout=3.0) as client:
                await client._make_request("GET", "https://api.example.com/ok", timeout=None)
                session_timeout = client._session.timeout

        assert "timeout" not in seen
        assert session_timeout.connect == 3.0


# ============================================================================
# 接続エラー変換のテスト
# ============================================================================


@pytest.mark.unit
class TestConnectionErrorMapping:
    """_handle_connection_errorのテスト"""

    URL = "https://github.com/api/v2/json/user/show/alice"

    def test_proxy_error(self):
        """プロキシ接続エラー"""
        error = aiohttp.ClientProxyConnectionError(connection_key(), OSError("proxy down"))

        network_error = EchoAPIClient()._handle_connection_error(error, self.URL)

        assert network_error.error_code == "E5203"
        assert network_error.cause is error

    def test_ssl_error(self):
        """TLSエラー"""
        error = aiohttp.ClientSSLError(connection_key(), OSError("bad certificate"))

        network_error = EchoAPIClient()._handle_connection_error(error, self.URL)

        assert network_error.error_code == "E5204"

    def test_connector_error(self):
        """接続失敗"""
        error = aiohttp.ClientConnectorError(connection_key(), OSError("refused"))

        network_error = EchoAPIClient()._handle_connection_error(error, self.URL)

        assert isinstance(network_error, NetworkError)
        assert network_error.error_code == "E5502"
        assert network_error.details["url"] == self.URL

    def test_server_timeout(self):
        """読み取りタイムアウト"""
        error = aiohttp.ServerTimeoutError("read timeout")

        network_error = EchoAPIClient()._handle_connection_error(error, self.URL)

        assert network_error.error_code == "E5205"

    def test_generic_client_error(self):
        """その他のクライアントエラー"""
        error = aiohttp.ServerDisconnectedError()

        network_error = EchoAPIClient()._handle_connection_error(error, self.URL)

        assert network_error.error_code == "E5201"
