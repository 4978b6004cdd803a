import pytest

import print_ready_pipeline.config as config
import print_ready_pipeline.errors


ConfigurationError = print_ready_pipeline.errors.ConfigurationError


#============================================
def test_unit_conversions() -> None:
	"""
	Centimeters and points convert consistently.
	"""
	assert config.cm_to_points(2.54) == pytest.approx(72.0)
	assert config.points_to_cm(72.0) == pytest.approx(2.54)
	for value in (0.5, 14.0, 21.0, 100.0):
		assert config.points_to_cm(config.cm_to_points(value)) == pytest.approx(value)


#============================================
def test_defaults_without_environment() -> None:
	loaded = config.load_pipeline_config({})
	assert loaded.max_dimension == 14400
	assert loaded.max_decode_pixels == 4 * 14400 * 14400
	assert loaded.thumbnail_width == 400
	assert loaded.thumbnail_source == "document"
	assert loaded.strict_design_payloads is False
	assert loaded.renderer_backend == "reportlab"
	assert loaded.fonts_path == "/app/Fonts/"


#============================================
def test_environment_overrides() -> None:
	loaded = config.load_pipeline_config({
		"PRINT_READY_MAX_DIMENSION": "2000",
		"PRINT_READY_MAX_DECODE_PIXELS": "500000000",
		"PRINT_READY_THUMBNAIL_WIDTH": " 256 ",
		"PRINT_READY_THUMBNAIL_SOURCE": "Composite",
		"PRINT_READY_STRICT_DESIGNS": "yes",
		"PRINT_READY_BACKEND": "PyMuPDF",
		"FONTS_PATH": "/srv/fonts",
	})
	assert loaded.max_dimension == 2000
	assert loaded.max_decode_pixels == 500000000
	assert loaded.thumbnail_width == 256
	assert loaded.thumbnail_source == "composite"
	assert loaded.strict_design_payloads is True
	assert loaded.renderer_backend == "pymupdf"
	assert loaded.fonts_path == "/srv/fonts"


#============================================
@pytest.mark.parametrize(
	"environ",
	[
		{"PRINT_READY_MAX_DIMENSION": "big"},
		{"PRINT_READY_MAX_DIMENSION": "0"},
		{"PRINT_READY_MAX_DECODE_PIXELS": "1000"},
		{"PRINT_READY_MAX_DIMENSION": "30000"},
		{"PRINT_READY_THUMBNAIL_WIDTH": "-4"},
		{"PRINT_READY_STRICT_DESIGNS": "maybe"},
		{"PRINT_READY_BACKEND": "chrome"},
		{"PRINT_READY_THUMBNAIL_SOURCE": "page"},
	],
)
def test_invalid_environment_values(environ: dict) -> None:
	with pytest.raises(ConfigurationError):
		config.load_pipeline_config(environ)


#============================================
def test_process_environment_is_read(monkeypatch, tmp_path) -> None:
	"""
	Without an explicit mapping the process environment is used.
	"""
	monkeypatch.chdir(tmp_path)
	monkeypatch.setenv("PRINT_READY_THUMBNAIL_WIDTH", "128")
	loaded = config.load_pipeline_config()
	assert loaded.thumbnail_width == 128
