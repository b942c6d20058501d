import pytest

from looptask.infrastructure.config.config_manager import ENV_OVERRIDES


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep stray .looptask.yml files and LOOPTASK_* variables out of tests"""
    for name in ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
