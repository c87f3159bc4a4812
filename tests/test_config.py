import pytest
import yaml

from vocora.core.config import ModelConfig, VocoraConfig

ENV_VARS = [
    "VOCORA_STORY_PROVIDER", "VOCORA_OPENAI_MODEL", "VOCORA_OLLAMA_MODEL", "VOCORA_IMAGE_PROVIDER",
    "VOCORA_HF_IMAGE_MODEL", "OPENAI_API_KEY", "HF_API_TOKEN", "VOCORA_DICTIONARY_URL",
    "VOCORA_CORS_ORIGINS", "SUPABASE_URL", "SUPABASE_KEY", "VOCORA_STORE_BACKEND", "VOCORA_DEBUG",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = VocoraConfig()
    assert config.models.story_provider == "openai"
    assert config.models.image_provider == "openai"
    assert config.api.dictionary_url == "https://api.dictionaryapi.dev/api/v2/entries/en"
    assert config.store.backend == "memory"
    assert config.log_level == "INFO"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("VOCORA_OPENAI_MODEL", "gpt-4o")
    monkeypatch.setenv("VOCORA_CORS_ORIGINS", "http://localhost:5173, https://vocora.test")
    monkeypatch.setenv("SUPABASE_URL", "https://proj.supabase.test")
    monkeypatch.setenv("SUPABASE_KEY", "anon")
    monkeypatch.setenv("VOCORA_DEBUG", "true")

    config = VocoraConfig()
    assert config.models.openai_model == "gpt-4o"
    assert config.api.cors_origins == ["http://localhost:5173", "https://vocora.test"]
    assert config.store.backend == "supabase"
    assert config.store.supabase_key == "anon"
    assert config.log_level == "DEBUG"


def test_explicit_backend_wins(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://proj.supabase.test")
    monkeypatch.setenv("VOCORA_STORE_BACKEND", "memory")
    assert VocoraConfig().store.backend == "memory"


def test_save_and_load_round_trip_without_credentials(tmp_path):
    config = VocoraConfig(models=ModelConfig(image_provider="huggingface", story_sentences=4))
    config.api.openai_api_key = "sk-secret"
    path = tmp_path / "vocora.yaml"

    config.save_to_file(str(path))
    assert "sk-secret" not in path.read_text()

    loaded = VocoraConfig.load_from_file(str(path))
    assert loaded.models.image_provider == "huggingface"
    assert loaded.models.story_sentences == 4
    assert loaded.api.openai_api_key is None


def test_load_rejects_unknown_keys(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text(yaml.dump({"models": {"temperature_typo": 1}}))
    with pytest.raises(ValueError):
        VocoraConfig.load_from_file(str(path))


def test_load_missing_file(tmp_path):
    with pytest.raises(ValueError):
        VocoraConfig.load_from_file(str(tmp_path / "missing.yaml"))


def test_unknown_story_provider():
    with pytest.raises(ValueError):
        ModelConfig(story_provider="bard")
