import pytest
from pydantic import ValidationError

from novelsmith.config import Config, GenerationSettings, OptimizerSettings


def test_default_config():
    config = Config()
    assert config.service.provider == "openai"
    assert config.optimizer.max_iterations == 2
    assert config.optimizer.target_score == 0.85
    assert config.generation.summary_min_words == 80
    assert config.generation.summary_max_words == 150


def test_config_from_yaml(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("""
service:
  provider: gemini
  model: gemini-2.0-flash
optimizer:
  enabled: true
  target_score: 0.9
generation:
  unit_count: 12
""")

    config = Config.from_yaml(config_file)
    assert config.service.provider == "gemini"
    assert config.optimizer.enabled is True
    assert config.optimizer.target_score == 0.9
    assert config.generation.unit_count == 12


def test_empty_yaml(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("")
    assert Config.from_yaml(config_file) == Config()


def test_config_validation():
    with pytest.raises(ValidationError):
        Config(optimizer=OptimizerSettings(target_score=1.5))
    with pytest.raises(ValidationError):
        Config(generation=GenerationSettings(unit_count=0))
    with pytest.raises(ValidationError):
        Config.model_validate({"service": {"provider": "anthropic"}})


def test_config_to_yaml(tmp_path):
    config = Config(generation=GenerationSettings(unit_count=4))
    output_file = tmp_path / "output.yaml"

    config.to_yaml(output_file)

    assert output_file.exists()
    loaded_config = Config.from_yaml(output_file)
    assert loaded_config.generation.unit_count == 4
