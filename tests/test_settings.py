from pathlib import Path

from welfare.settings import REPO_ROOT, Settings


def test_defaults_are_local(monkeypatch):
    for name in ("WELFARE_DB_URL", "WELFARE_SECURITY_CONFIG_PATH", "WELFARE_SEED_DEMO_DATA"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings()
    assert settings.resolved_db_url() == f"sqlite:///{REPO_ROOT / 'welfare.db'}"
    assert settings.resolved_security_config_path() == REPO_ROOT / "config" / "security_config.yaml"
    assert settings.seed_demo_data is True


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("WELFARE_DB_URL", "sqlite:///:memory:")
    monkeypatch.setenv("WELFARE_SECURITY_CONFIG_PATH", str(tmp_path / "rules.yaml"))
    monkeypatch.setenv("WELFARE_SEED_DEMO_DATA", "false")
    settings = Settings()
    assert settings.resolved_db_url() == "sqlite:///:memory:"
    assert settings.resolved_security_config_path() == Path(tmp_path / "rules.yaml")
    assert settings.seed_demo_data is False
