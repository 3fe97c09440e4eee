"""测试配置：环境变量读取与 SURTITLE_* 覆盖"""
from surtitle.config.settings import AppConfig, get_access_code, get_openai_key, load_env_file


def test_defaults(monkeypatch):
    monkeypatch.delenv("SURTITLE_MAX_LINE_LENGTH", raising=False)
    monkeypatch.delenv("SURTITLE_ACCESS_CODE", raising=False)
    config = AppConfig()
    assert config.max_chunk_length == 2500
    assert config.max_line_length == 20
    assert config.default_session_id == "default"
    assert config.access_code is None


def test_env_overrides_are_typed(monkeypatch):
    monkeypatch.setenv("SURTITLE_MAX_LINE_LENGTH", "16")
    monkeypatch.setenv("SURTITLE_SOFTEN_PUNCTUATION", "false")
    monkeypatch.setenv("SURTITLE_OPENAI_TEMPERATURE", "0.5")
    config = AppConfig()
    assert config.max_line_length == 16
    assert config.soften_punctuation is False
    assert config.openai_temperature == 0.5


def test_keys_come_from_environment(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setenv("OPENAI_KEY", "sk-fallback")
    assert get_openai_key() == "sk-fallback"
    monkeypatch.setenv("OPENAI_API_KEY", "sk-primary")
    assert get_openai_key() == "sk-primary"

    monkeypatch.setenv("SURTITLE_ACCESS_CODE", "  20141017 ")
    assert get_access_code() == "20141017"
    assert AppConfig().access_code == "20141017"


def test_env_file_does_not_override_existing(monkeypatch, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("OPENAI_API_KEY=sk-from-file\n", encoding="utf-8")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-from-env")
    load_env_file(env_file)
    assert get_openai_key() == "sk-from-env"
