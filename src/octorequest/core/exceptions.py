"""octorequest 例外クラス階層

プロジェクト全体で使用される例外クラスを定義。
エラーコード体系に基づいた構造化されたエラーハンドリングを提供。

エラーコード:
    E0001-E0999: 設定・初期化関連
    E2000-E2999: API（HTTPレスポンス）関連
    E5200-E5599: ネットワーク関連
"""

from datetime import datetime
from typing import Any, Dict, Optional


class OctoRequestError(Exception):
    """octorequestの基底例外クラス

    すべてのカスタム例外の親クラス。
    エラーコード、詳細情報、原因となった例外の連鎖をサポート。

    Attributes:
        message: エラーメッセージ
        error_code: エラーコード（E0001など）
        details: 詳細情報の辞書
        cause: 原因となった例外
        timestamp: エラー発生時刻
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        """例外を初期化

        Args:
            message: エラーメッセージ
            error_code: エラーコード（E0001-E9999）
            details: 追加の詳細情報
            cause: 原因となった例外
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.cause = cause
        self.timestamp = datetime.now()

    def to_dict(self) -> Dict[str, Any]:
        """エラー情報を辞書形式で取得

        Returns:
            Dict[str, Any]: エラー情報の辞書
        """
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "cause": str(self.cause) if self.cause else None,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        """文字列表現"""
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


# ============================================================================
# 初期化・設定関連エラー (E0001-E0999)
# ============================================================================


class ConfigurationError(OctoRequestError):
    """設定関連エラー (E0001-E0099)

    オプション名の誤り、設定ファイルの読み込み・パース、
    未対応のレスポンス形式に関するエラー
    """

    def __init__(
        self,
        message: str,
        config_file: Optional[str] = None,
        option: Optional[str] = None,
        **kwargs,
    ):
        # デフォルトエラーコードを設定
        if "error_code" not in kwargs:
            kwargs["error_code"] = "E0001"
        super().__init__(message, **kwargs)
        if config_file:
            self.details["config_file"] = config_file
        if option:
            self.details["option"] = option


class InitializationError(OctoRequestError):
    """初期化関連エラー (E0100-E0199)

    HTTPセッションの生成など、コンポーネントの初期化に関するエラー
    """

    def __init__(self, message: str, component: Optional[str] = None, **kwargs):
        if "error_code" not in kwargs:
            kwargs["error_code"] = "E0100"
        super().__init__(message, **kwargs)
        if component:
            self.details["component"] = component


# ============================================================================
# API関連エラー (E2000-E2999)
# ============================================================================


class APIError(OctoRequestError):
    """API通信関連エラーの基底クラス (E2000-E2099)

    サーバーから応答は得られたが、結果を利用できない場合のエラー
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        url: Optional[str] = None,
        **kwargs,
    ):
        if "error_code" not in kwargs:
            kwargs["error_code"] = "E2000"
        super().__init__(message, **kwargs)
        if status_code:
            self.details["status_code"] = status_code
        if url:
            self.details["url"] = url


class HTTPStatusError(APIError):
    """成功範囲外のHTTPステータス (E2001)

    ステータスコードとステータスメッセージを保持する。
    to_payload()で {status, msg} 形式の辞書を取得できる。
    """

    def __init__(self, status: int, msg: Optional[str], url: Optional[str] = None, **kwargs):
        super().__init__(
            f"HTTP {status} {msg or ''}".rstrip(),
            status_code=status,
            url=url,
            error_code="E2001",
            **kwargs,
        )
        self.status = status
        self.msg = msg

    def to_payload(self) -> Dict[str, Any]:
        """呼び出し側へ返すエラー値 {status, msg}"""
        return {"status": self.status, "msg": self.msg}


class ResponseDecodeError(APIError):
    """レスポンス本文のデコード失敗 (E2002)

    format=json で本文がJSONとして解釈できない場合のエラー
    """

    def __init__(self, message: str, response_format: Optional[str] = None, **kwargs):
        super().__init__(message, error_code="E2002", **kwargs)
        if response_format:
            self.details["format"] = response_format


# ============================================================================
# ネットワーク関連エラー (E5200-E5599)
# ============================================================================


class NetworkError(OctoRequestError):
    """ネットワーク関連エラー (E5200-E5299)

    接続、TLS、タイムアウトなどトランスポート層のエラー

    エラーコード:
        E5201: クライアントエラー全般
        E5203: プロキシ接続エラー
        E5204: TLSエラー
        E5205: タイムアウト
        E5502: 接続失敗（名前解決・接続拒否）
    """

    def __init__(self, message: str, url: Optional[str] = None, **kwargs):
        if "error_code" not in kwargs:
            kwargs["error_code"] = "E5200"
        super().__init__(message, **kwargs)
        if url:
            self.details["url"] = url
