import os

import pytest

from statement_categorizer.core import settings


def test_read_config_file(tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(
        "# comment\n"
        "LOG_LEVEL: debug  # inline\n"
        "OPENAI_BASE_URL: 'http://localhost:11434/v1'\n"
        'OPENAI_MODEL: "llama3.2:3b # not a comment"\n'
        "EMPTY:\n"
        "not a pair\n",
        encoding="utf-8",
    )

    values = settings.read_config_file(str(path))

    assert values == {
        "LOG_LEVEL": "debug",
        "OPENAI_BASE_URL": "http://localhost:11434/v1",
        "OPENAI_MODEL": "llama3.2:3b # not a comment",
    }
    assert settings.read_config_file(str(tmp_path / "missing.yaml")) == {}


def test_load_environment_prefers_existing_env(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "config.yaml").write_text("BATCH_SIZE: 25\nOPENAI_MODEL: from-file\n", encoding="utf-8")
    monkeypatch.setenv("CONFIG_DIR", str(tmp_path))
    monkeypatch.setenv("OPENAI_MODEL", "from-env")
    # Registers BATCH_SIZE with monkeypatch so teardown removes the loaded value.
    monkeypatch.setenv("BATCH_SIZE", "1")
    monkeypatch.delenv("BATCH_SIZE")

    applied = settings.load_environment()

    assert applied == {"BATCH_SIZE": "25"}
    assert os.environ["OPENAI_MODEL"] == "from-env"
    assert settings.batch_size() == 25


@pytest.mark.parametrize("raw, expected", [("7", 7), ("0", 10), ("abc", 10), ("", 10)])
def test_get_env_int(monkeypatch: pytest.MonkeyPatch, raw: str, expected: int) -> None:
    monkeypatch.setenv("BATCH_SIZE", raw)
    assert settings.batch_size() == expected


@pytest.mark.parametrize("raw, expected", [("0.85", 0.85), ("1.5", 0.7), ("-1", 0.7), ("high", 0.7)])
def test_get_env_float(monkeypatch: pytest.MonkeyPatch, raw: str, expected: float) -> None:
    monkeypatch.setenv("RECATEGORIZE_THRESHOLD", raw)
    assert settings.recategorize_threshold() == expected


def test_database_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql://user:pw@db/categorizer")
    assert settings.database_url() == "postgresql://user:pw@db/categorizer"

    monkeypatch.delenv("DATABASE_URL")
    assert settings.database_url().startswith("sqlite:///")


@pytest.mark.parametrize(
    "name, value, expected",
    [
        ("OPENAI_API_KEY", "sk-abcdef123456", "sk...56"),
        ("OPENAI_MODEL", "sk-looks-secret", "sk...et"),
        ("DATABASE_URL", "postgresql://user:pw@db/x", "po.../x"),
        ("OPENAI_MODEL", "llama3.2:3b", "llama3.2:3b"),
        ("OPENAI_API_KEY", "abc", "****"),
    ],
)
def test_mask_env_value(name: str, value: str, expected: str) -> None:
    assert settings._mask_env_value(name, value) == expected
