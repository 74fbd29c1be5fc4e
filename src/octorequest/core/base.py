"""octorequest コンポーネント基底クラス

HTTPセッションを持つクライアントの状態と、その遷移規則を定義する。
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Optional


class ComponentState(Enum):
    """セッションを持つクライアントの状態

    NOT_INITIALIZED → INITIALIZING → READY ⇄ RUNNING
                           ↓           ↓        ↓
                         ERROR → TERMINATING → TERMINATED → INITIALIZING（再接続）
    """

    NOT_INITIALIZED = "not_initialized"  # セッション未作成
    INITIALIZING = "initializing"  # セッション作成中
    READY = "ready"  # 送信可能
    RUNNING = "running"  # リクエスト送信中
    ERROR = "error"  # セッション作成に失敗
    TERMINATING = "terminating"  # セッションのクローズ中
    TERMINATED = "terminated"  # セッションはクローズ済み

    def can_transition_to(self, target: "ComponentState") -> bool:
        """指定の状態に遷移可能か判定"""
        return target in _TRANSITIONS[self]


_TRANSITIONS = {
    ComponentState.NOT_INITIALIZED: {ComponentState.INITIALIZING},
    ComponentState.INITIALIZING: {ComponentState.READY, ComponentState.ERROR},
    ComponentState.READY: {ComponentState.RUNNING, ComponentState.TERMINATING},
    ComponentState.RUNNING: {ComponentState.READY, ComponentState.TERMINATING},
    ComponentState.ERROR: {ComponentState.INITIALIZING, ComponentState.TERMINATING},
    ComponentState.TERMINATING: {ComponentState.TERMINATED},
    # close後も次の送信でセッションを作り直せる
    ComponentState.TERMINATED: {ComponentState.INITIALIZING},
}


class BaseComponent(ABC):
    """状態遷移を管理する抽象基底クラス

    状態の変更は必ず_set_state()を通し、遷移表にない変更はRuntimeErrorとする。

    Attributes:
        _state: 現在の状態
        _initialized_at: 最後にREADYになった時刻
        _error: セッション作成に失敗した原因
    """

    def __init__(self):
        self._state: ComponentState = ComponentState.NOT_INITIALIZED
        self._logger: logging.Logger = logging.getLogger(self.__class__.__module__)
        self._initialized_at: Optional[datetime] = None
        self._error: Optional[Exception] = None

    @abstractmethod
    async def initialize(self) -> None:
        """リソースを準備し、READY状態にする

        Raises:
            InitializationError: 準備に失敗した場合
        """

    @abstractmethod
    async def cleanup(self) -> None:
        """リソースを解放し、TERMINATED状態にする"""

    @property
    def state(self) -> ComponentState:
        """現在の状態"""
        return self._state

    def is_available(self) -> bool:
        """READYまたはRUNNING状態の場合True"""
        return self._state in (ComponentState.READY, ComponentState.RUNNING)

    def _set_state(self, new_state: ComponentState) -> None:
        """状態を変更する

        Raises:
            RuntimeError: 遷移表にない変更の場合
        """
        old_state = self._state
        if not old_state.can_transition_to(new_state):
            raise RuntimeError(
                f"{self.__class__.__name__}: invalid state transition "
                f"{old_state.value} -> {new_state.value}"
            )

        self._state = new_state
        if new_state == ComponentState.READY and old_state == ComponentState.INITIALIZING:
            self._initialized_at = datetime.now()

        self._logger.debug(
            f"状態遷移: {old_state.value} → {new_state.value}",
            extra={"component": self.__class__.__name__},
        )

    def _handle_error(self, error: Exception) -> None:
        """準備中のエラーを記録し、ERROR状態にする"""
        self._error = error
        self._set_state(ComponentState.ERROR)
        self._logger.error(
            f"[E0100] Initialization error: {error}",
            extra={"component": self.__class__.__name__, "error_type": type(error).__name__},
            exc_info=True,
        )

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self._state.value})"
