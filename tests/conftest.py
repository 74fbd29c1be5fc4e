"""pytest共通設定ファイル"""

import logging
import sys
from pathlib import Path

import pytest

# プロジェクトルートをPythonパスに追加
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))


# =============================================================================
# ログ設定
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_test_logging():
    """テスト実行時のログ設定"""
    logging.basicConfig(
        level=logging.DEBUG, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # 特定のロガーのレベル調整
    logging.getLogger("asyncio").setLevel(logging.WARNING)


# =============================================================================
# 環境変数
# =============================================================================


@pytest.fixture(autouse=True)
def clean_octorequest_env(monkeypatch):
    """OCTOREQUEST_で始まる環境変数をテストから除外"""
    import os

    for name in list(os.environ):
        if name.startswith("OCTOREQUEST_"):
            monkeypatch.delenv(name, raising=False)


# =============================================================================
# テスト用設定
# =============================================================================


@pytest.fixture
def basic_auth_options() -> dict:
    """Basic認証の設定"""
    return {"login_type": "basic", "username": "alice", "password": "secret"}


@pytest.fixture
def token_auth_options() -> dict:
    """トークン認証の設定"""
    return {"login_type": "token", "username": "alice", "api_token": "abc123"}


# =============================================================================
# テストマーカー
# =============================================================================


def pytest_configure(config):
    """pytestのカスタムマーカーを定義"""
    config.addinivalue_line("markers", "unit: 単体テスト")
    config.addinivalue_line("markers", "integration: 統合テスト")
