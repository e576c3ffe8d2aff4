import pytest

from main import _cli
from watermarker.config import RasterConfig, WatermarkConfig, configure_dependencies
from watermarker.errors import ConfigError
from watermarker.render.placement import PlacementMode


def test_watermark_config_defaults():
    config = WatermarkConfig()
    assert config.opacity == 0.5
    assert config.scale == 0.5
    assert config.position is PlacementMode.CENTER


def test_watermark_config_parses_position_string():
    assert WatermarkConfig(position="tile").position is PlacementMode.TILE


@pytest.mark.parametrize(
    "kwargs",
    [
        {"opacity": -0.1},
        {"opacity": 1.5},
        {"scale": 0},
        {"scale": -2},
        {"scale": float("inf")},
        {"opacity": "abc"},
        {"position": "middle"},
    ],
)
def test_watermark_config_rejects_invalid_values(kwargs):
    with pytest.raises(ConfigError):
        WatermarkConfig(**kwargs)


def test_configure_dependencies_env_fallback(tmp_path, monkeypatch):
    monkeypatch.setenv("POPPLER_PATH", str(tmp_path))
    result = configure_dependencies()
    # a config/dependencies.json entry takes precedence when present
    assert result is not None


def test_configure_dependencies_ignores_missing_env_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("POPPLER_PATH", str(tmp_path / "nope"))
    result = configure_dependencies()
    assert result is None or result != str(tmp_path / "nope")


def test_cli_rejects_invalid_opacity(capsys):
    code = _cli(["--file", "doc.pdf", "-w", "logo.png", "--opacity", "2"])
    assert code == 2
    assert capsys.readouterr().out.startswith("config:")


def test_cli_reports_missing_overlays(tmp_path, capsys):
    code = _cli(["--file", str(tmp_path / "doc.pdf")])
    assert code == 2
    assert "config:" in capsys.readouterr().out


@pytest.mark.parametrize("scale", [0, -1.5, float("nan"), "big"])
def test_raster_config_rejects_invalid_scale(scale):
    with pytest.raises(ConfigError):
        RasterConfig(scale=scale)


def test_cli_rejects_invalid_render_scale(capsys):
    code = _cli(["--file", "doc.pdf", "-w", "logo.png", "--render-scale", "0"])
    assert code == 2
    assert capsys.readouterr().out.startswith("config:")
