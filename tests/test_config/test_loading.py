from pathlib import Path

import benchmate.config as config_module
from benchmate.config import Config, HomeAssistantConfig


def _isolate(monkeypatch, tmp_path: Path) -> Path:
    monkeypatch.chdir(tmp_path)
    for name in ("BENCHMATE_MODEL__MODEL", "BENCHMATE_MODEL__MAX_TOKENS", "BENCHMATE_LOGGING__LEVEL"):
        monkeypatch.delenv(name, raising=False)
    home_cfg = tmp_path / "home_config.yaml"
    monkeypatch.setattr(config_module, "DEFAULT_CONFIG_PATH", home_cfg)
    return home_cfg


def test_defaults_without_any_file(monkeypatch, tmp_path: Path):
    _isolate(monkeypatch, tmp_path)

    cfg = Config.load()

    assert cfg.model.model == "big-pickle"
    assert cfg.model.max_tokens == 4096
    assert cfg.model.temperature == 0.7
    assert cfg.provider.base_url == "https://opencode.ai/zen"
    assert cfg.skills.enabled == ["shell", "files", "git", "homeassistant"]
    assert "sudo" in cfg.shell.blocked


def test_load_prefers_local_config_yaml(monkeypatch, tmp_path: Path):
    home_cfg = _isolate(monkeypatch, tmp_path)
    home_cfg.write_text("model:\n  model: claude-sonnet-4\n", encoding="utf-8")
    (tmp_path / "config.yaml").write_text("model:\n  model: gpt-5.2\n", encoding="utf-8")

    cfg = Config.load()

    assert cfg.model.model == "gpt-5.2"


def test_load_falls_back_to_default_path_when_no_local(monkeypatch, tmp_path: Path):
    home_cfg = _isolate(monkeypatch, tmp_path)
    home_cfg.write_text("model:\n  model: claude-sonnet-4\nshell:\n  timeout: 5\n", encoding="utf-8")

    cfg = Config.load()

    assert cfg.model.model == "claude-sonnet-4"
    assert cfg.shell.timeout == 5


def test_environment_overrides_yaml(monkeypatch, tmp_path: Path):
    _isolate(monkeypatch, tmp_path)
    (tmp_path / "config.yaml").write_text(
        "model:\n  model: gpt-5.2\n  max_tokens: 1000\n", encoding="utf-8"
    )
    monkeypatch.setenv("BENCHMATE_MODEL__MODEL", "kimi-k2.5")

    cfg = Config.load()

    assert cfg.model.model == "kimi-k2.5"
    assert cfg.model.max_tokens == 1000


def test_save_round_trips_yaml(monkeypatch, tmp_path: Path):
    _isolate(monkeypatch, tmp_path)
    cfg = Config()
    cfg.model.model = "qwen3-coder"
    target = tmp_path / "saved" / "config.yaml"

    cfg.save(target)
    loaded = Config.from_yaml(target)

    assert loaded.model.model == "qwen3-coder"


def test_home_assistant_env_fallbacks(monkeypatch):
    monkeypatch.setenv("HA_URL", "http://ha.lan:8123/")
    monkeypatch.setenv("HA_TOKEN", "tok")
    cfg = HomeAssistantConfig()
    assert cfg.resolve_url() == "http://ha.lan:8123"
    assert cfg.resolve_token() == "tok"

    monkeypatch.delenv("HA_URL")
    assert HomeAssistantConfig().resolve_url() == "http://homeassistant.local:8123"
