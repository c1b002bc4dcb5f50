import logging

import pytest

from faceguard.pipeline import FacePreservingPipeline, main
from faceguard.utils.config_loader import CONFIG_ENV_VAR, Config, get_config, load_config
from faceguard.utils.image_utils import save_image
from faceguard.utils.logging_config import get_logger, reconfigure_logging


def test_packaged_defaults():
    config = Config()
    assert config.get("mask.blend_ratio") == 0.4
    assert config.placement.width_factor == 2.2
    assert config.face_region.jaw_tightening == 0.85
    assert config.get("mask.nothing_here", "fallback") == "fallback"


def test_missing_key_attribute_error():
    with pytest.raises(AttributeError):
        Config().not_a_section


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        Config(tmp_path / "absent.yaml")


def test_invalid_yaml(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("mask: [1, 2\n")
    with pytest.raises(ValueError):
        Config(path)


def test_env_var_override(tmp_path, monkeypatch):
    path = tmp_path / "custom.yaml"
    path.write_text("mask:\n  blend_ratio: 0.25\n")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
    assert Config().get("mask.blend_ratio") == 0.25


def test_pipeline_reads_overrides(tmp_path):
    path = tmp_path / "custom.yaml"
    path.write_text(
        "mask:\n  default_strategy: horizontal\n  blend_ratio: 0.1\n"
        "pipeline:\n  max_workers: 2\n"
    )
    pipeline = FacePreservingPipeline(config=Config(path))
    assert pipeline.default_strategy == "horizontal"
    assert pipeline.mask_generator.blend_ratio == 0.1
    assert pipeline.max_workers == 2
    # sections left out keep the built-in defaults
    assert pipeline.radii_kwargs["jaw_tightening"] == 0.85


def test_logger_handlers_not_duplicated():
    first = get_logger("faceguard.tests.logging")
    count = len(first.handlers)
    second = get_logger("faceguard.tests.logging")
    assert first is second
    assert len(second.handlers) == count
    assert isinstance(first, logging.Logger)


@pytest.fixture
def restore_default_config():
    yield
    load_config()
    reconfigure_logging()


def test_cli_config_drives_logging(tmp_path, solid, restore_default_config):
    get_logger("faceguard.pipeline")
    path = tmp_path / "quiet.yaml"
    path.write_text("logging:\n  level: WARNING\n  console:\n    enabled: false\n")
    save_image(solid(50, 50, (0, 0, 0)), tmp_path / "original.png")
    (tmp_path / "face.json").write_text('{"x": 10, "y": 10, "width": 20, "height": 20}')

    code = main([
        "--original", str(tmp_path / "original.png"),
        "--face-json", str(tmp_path / "face.json"),
        "--config", str(path),
    ])

    assert code == 0
    assert get_config().get("logging.level") == "WARNING"
    logger = logging.getLogger("faceguard.pipeline")
    assert logger.level == logging.WARNING
    assert logger.handlers == []
