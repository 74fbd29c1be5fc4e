"""BaseComponent基底クラスのテスト

ComponentStateの遷移表と、_set_stateによる遷移の検証を確認。
"""

import pytest

from octorequest.core.base import BaseComponent, ComponentState

# ============================================================================
# テスト用の具象クラス
# ============================================================================


class ConcreteTestComponent(BaseComponent):
    """テスト用の具象コンポーネント（Test接頭辞を避けてpytestの誤認識を防ぐ）"""

    def __init__(self, should_fail_init: bool = False):
        super().__init__()
        self.should_fail_init = should_fail_init

    async def initialize(self) -> None:
        self._set_state(ComponentState.INITIALIZING)
        if self.should_fail_init:
            self._handle_error(OSError("no sockets available"))
            return
        self._set_state(ComponentState.READY)

    async def cleanup(self) -> None:
        self._set_state(ComponentState.TERMINATING)
        self._set_state(ComponentState.TERMINATED)


# ============================================================================
# ComponentStateのテスト
# ============================================================================


@pytest.mark.unit
class TestComponentState:
    """ComponentState Enumのテスト"""

    @pytest.mark.parametrize(
        "source, target, allowed",
        [
            (ComponentState.NOT_INITIALIZED, ComponentState.INITIALIZING, True),
            (ComponentState.INITIALIZING, ComponentState.READY, True),
            (ComponentState.READY, ComponentState.RUNNING, True),
            (ComponentState.RUNNING, ComponentState.READY, True),
            (ComponentState.RUNNING, ComponentState.TERMINATING, True),
            (ComponentState.TERMINATED, ComponentState.INITIALIZING, True),
            (ComponentState.NOT_INITIALIZED, ComponentState.READY, False),
            (ComponentState.NOT_INITIALIZED, ComponentState.RUNNING, False),
            (ComponentState.TERMINATED, ComponentState.READY, False),
            (ComponentState.READY, ComponentState.INITIALIZING, False),
        ],
    )
    def test_transitions(self, source, target, allowed):
        """状態遷移表"""
        assert source.can_transition_to(target) is allowed

    def test_every_state_has_transitions(self):
        """すべての状態に遷移表のエントリがある"""
        for state in ComponentState:
            state.can_transition_to(ComponentState.INITIALIZING)


# ============================================================================
# 状態遷移のテスト
# ============================================================================


@pytest.mark.unit
class TestSetState:
    """_set_state / _handle_error のテスト"""

    @pytest.mark.asyncio
    async def test_initialize_reaches_ready(self):
        """初期化成功でREADY、時刻が記録される"""
        component = ConcreteTestComponent()

        await component.initialize()

        assert component.state == ComponentState.READY
        assert component.is_available()
        assert component._initialized_at is not None

    @pytest.mark.asyncio
    async def test_initialize_failure_records_error(self, caplog):
        """初期化失敗でERROR、原因が記録される"""
        component = ConcreteTestComponent(should_fail_init=True)

        await component.initialize()

        assert component.state == ComponentState.ERROR
        assert not component.is_available()
        assert isinstance(component._error, OSError)
        assert "[E0100]" in caplog.text

    def test_invalid_transition_is_rejected(self):
        """遷移表にない変更はRuntimeErrorで、状態は変わらない"""
        component = ConcreteTestComponent()

        with pytest.raises(RuntimeError, match="not_initialized -> running"):
            component._set_state(ComponentState.RUNNING)

        assert component.state == ComponentState.NOT_INITIALIZED

    @pytest.mark.asyncio
    async def test_terminated_cannot_become_ready_directly(self):
        """TERMINATEDからはINITIALIZINGを経由する必要がある"""
        component = ConcreteTestComponent()
        await component.initialize()
        await component.cleanup()

        with pytest.raises(RuntimeError):
            component._set_state(ComponentState.READY)

        await component.initialize()
        assert component.state == ComponentState.READY

    def test_str(self):
        """文字列表現"""
        assert str(ConcreteTestComponent()) == "ConcreteTestComponent(not_initialized)"
