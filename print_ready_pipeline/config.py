"""
Shared configuration and constants.
"""

# Standard Library
import dataclasses
import os

# PIP3 modules
import dotenv

# local repo modules
import print_ready_pipeline as prp
import print_ready_pipeline.errors


ConfigurationError = prp.errors.ConfigurationError

POINTS_PER_INCH = 72.0
CM_PER_INCH = 2.54
LEGACY_DPI = 300

MAX_PIXEL_DIMENSION = 14400
# largest raster accepted for decoding, before any downscale
MAX_DECODE_PIXELS = 4 * MAX_PIXEL_DIMENSION * MAX_PIXEL_DIMENSION
THUMBNAIL_WIDTH = 400
DEFAULT_VIEW_ID = 1

WHITE_RGBA = (255, 255, 255, 255)
TRANSPARENT_RGBA = (0, 0, 0, 0)

DEFAULT_FONTS_PATH = "/app/Fonts/"
DEFAULT_RENDERER_BACKEND = "reportlab"
RENDERER_BACKENDS = ("reportlab", "pymupdf")
THUMBNAIL_SOURCES = ("document", "composite")
TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclasses.dataclass
class PipelineConfig:
	max_dimension: int = MAX_PIXEL_DIMENSION
	max_decode_pixels: int = MAX_DECODE_PIXELS
	thumbnail_width: int = THUMBNAIL_WIDTH
	thumbnail_source: str = "document"
	strict_design_payloads: bool = False
	renderer_backend: str = DEFAULT_RENDERER_BACKEND
	fonts_path: str = DEFAULT_FONTS_PATH

	def __post_init__(self) -> None:
		if self.max_dimension <= 0:
			raise ConfigurationError(f"max_dimension must be positive, got {self.max_dimension}")
		if self.max_decode_pixels < self.max_dimension * self.max_dimension:
			raise ConfigurationError(
				f"max_decode_pixels must cover a {self.max_dimension}x{self.max_dimension} raster,"
				f" got {self.max_decode_pixels}"
			)
		if self.thumbnail_width <= 0:
			raise ConfigurationError(f"thumbnail_width must be positive, got {self.thumbnail_width}")
		if self.thumbnail_source not in THUMBNAIL_SOURCES:
			raise ConfigurationError(f"Unknown thumbnail source: {self.thumbnail_source}")
		if self.renderer_backend not in RENDERER_BACKENDS:
			raise ConfigurationError(f"Unknown renderer backend: {self.renderer_backend}")


#============================================
def cm_to_points(value: float) -> float:
	"""
	Convert centimeters to PDF points.

	Args:
		value: Centimeters value.

	Returns:
		Points value.
	"""
	return value / CM_PER_INCH * POINTS_PER_INCH


#============================================
def points_to_cm(value: float) -> float:
	"""
	Convert PDF points to centimeters.

	Args:
		value: Points value.

	Returns:
		Centimeters value.
	"""
	return value / POINTS_PER_INCH * CM_PER_INCH


#============================================
def parse_bool(name: str, value: str) -> bool:
	normalized = value.strip().lower()
	if normalized in TRUE_VALUES:
		return True
	if normalized in FALSE_VALUES:
		return False
	raise ConfigurationError(f"{name} must be a boolean, got {value!r}")


#============================================
def parse_int(name: str, value: str) -> int:
	try:
		return int(value.strip())
	except ValueError as error:
		raise ConfigurationError(f"{name} must be an integer, got {value!r}") from error


#============================================
def load_pipeline_config(environ: dict[str, str] | None = None) -> PipelineConfig:
	"""
	Build the pipeline configuration from environment variables.

	A local .env file is loaded first when reading the process environment.
	Unset variables keep their defaults.

	Args:
		environ: Optional mapping used instead of os.environ.

	Returns:
		PipelineConfig.
	"""
	if environ is None:
		dotenv.load_dotenv()
		environ = dict(os.environ)

	config = PipelineConfig()
	if "PRINT_READY_MAX_DIMENSION" in environ:
		config.max_dimension = parse_int("PRINT_READY_MAX_DIMENSION", environ["PRINT_READY_MAX_DIMENSION"])
	if "PRINT_READY_MAX_DECODE_PIXELS" in environ:
		config.max_decode_pixels = parse_int("PRINT_READY_MAX_DECODE_PIXELS", environ["PRINT_READY_MAX_DECODE_PIXELS"])
	if "PRINT_READY_THUMBNAIL_WIDTH" in environ:
		config.thumbnail_width = parse_int("PRINT_READY_THUMBNAIL_WIDTH", environ["PRINT_READY_THUMBNAIL_WIDTH"])
	if "PRINT_READY_THUMBNAIL_SOURCE" in environ:
		config.thumbnail_source = environ["PRINT_READY_THUMBNAIL_SOURCE"].strip().lower()
	if "PRINT_READY_STRICT_DESIGNS" in environ:
		config.strict_design_payloads = parse_bool("PRINT_READY_STRICT_DESIGNS", environ["PRINT_READY_STRICT_DESIGNS"])
	if "PRINT_READY_BACKEND" in environ:
		config.renderer_backend = environ["PRINT_READY_BACKEND"].strip().lower()
	if environ.get("FONTS_PATH"):
		config.fonts_path = environ["FONTS_PATH"]

	# field assignment skips __post_init__, so validate the merged result
	return dataclasses.replace(config)
