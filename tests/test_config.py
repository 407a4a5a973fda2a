import pytest

from config.config import DEFAULT_RESEARCH_DIR, Config, ConfigurationError
from config.pricing import ModelPricing
from server.dependencies import build_handler
from utils.cost_calculator import CostCalculator


def test_missing_api_key_fails_validation(tmp_path):
    config = Config(env_path=tmp_path / "missing.env")
    with pytest.raises(ConfigurationError, match="PERPLEXITY_API_KEY"):
        config.validate()


def test_env_file_supplies_api_key(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("PERPLEXITY_API_KEY=from-dotenv\n", encoding="utf-8")
    # load_dotenv writes os.environ directly; make monkeypatch restore the key afterwards
    monkeypatch.setenv("PERPLEXITY_API_KEY", "")
    monkeypatch.delenv("PERPLEXITY_API_KEY")

    config = Config(env_path=env_file)

    assert config.PERPLEXITY_API_KEY == "from-dotenv"
    config.validate()


def test_research_dir_resolution_order(tmp_path, monkeypatch):
    config = Config(env_path=tmp_path / "missing.env")
    assert config.resolve_research_dir(tmp_path / "override") == tmp_path / "override"
    assert config.resolve_research_dir() == tmp_path / "env-research"

    monkeypatch.delenv("PERPLEXITY_RESEARCH_DIR")
    assert Config(env_path=tmp_path / "missing.env").resolve_research_dir() == DEFAULT_RESEARCH_DIR


def test_build_handler_requires_api_key(tmp_path):
    with pytest.raises(ConfigurationError):
        build_handler(Config(env_path=tmp_path / "missing.env"))


def test_build_handler_wires_collaborators(tmp_path, monkeypatch):
    monkeypatch.setenv("PERPLEXITY_API_KEY", "test-key")

    handler = build_handler(Config(env_path=tmp_path / "missing.env"), research_dir=tmp_path / "r")

    assert handler.store.research_dir == tmp_path / "r"
    assert handler.synthesizer.client is handler.client
    assert handler.client.analyzer is handler.analyzer


class TestPricing:
    def test_unknown_model_uses_fallback_pricing(self):
        assert ModelPricing.get_model_pricing("mystery") == ModelPricing.get_model_pricing("sonar")

    def test_cost_estimate_format(self):
        # 1M prompt tokens at $3 plus 1M completion tokens at $15
        assert CostCalculator("sonar-pro").estimate(1_000_000, 1_000_000) == "$18.0000"
        assert CostCalculator("sonar").estimate(0, 0) == "$0.0000"
