"""
Print request, design payload and artwork data types.
"""

# Standard Library
import dataclasses
import json

# PIP3 modules
import defusedxml
import defusedxml.ElementTree as ElementTree
from loguru import logger

# local repo modules
import print_ready_pipeline as prp
import print_ready_pipeline.config
import print_ready_pipeline.errors


ConfigurationError = prp.errors.ConfigurationError
DesignPayloadError = prp.errors.DesignPayloadError

LEGACY_DPI = prp.config.LEGACY_DPI
CM_PER_INCH = prp.config.CM_PER_INCH


@dataclasses.dataclass(frozen=True)
class PhysicalPageSize:
	width_cm: float
	height_cm: float

	def __post_init__(self) -> None:
		if not (self.width_cm > 0 and self.height_cm > 0):
			raise ConfigurationError(
				f"Physical page size must be positive, got {self.width_cm} x {self.height_cm} cm"
			)

	def to_points(self) -> tuple[float, float]:
		"""
		Convert the page size to PDF points.

		Returns:
			Tuple of (width, height) in points.
		"""
		return (
			prp.config.cm_to_points(self.width_cm),
			prp.config.cm_to_points(self.height_cm),
		)

	@classmethod
	def from_points(cls, width: float, height: float) -> "PhysicalPageSize":
		return cls(prp.config.points_to_cm(width), prp.config.points_to_cm(height))

	@classmethod
	def from_pixels(cls, width_px: int, height_px: int, dpi: float = LEGACY_DPI) -> "PhysicalPageSize":
		"""
		Infer a physical size from a pixel count at a fixed resolution.

		Args:
			width_px: Raster width in pixels.
			height_px: Raster height in pixels.
			dpi: Dots per inch.

		Returns:
			PhysicalPageSize.
		"""
		if dpi <= 0:
			raise ConfigurationError(f"DPI must be positive, got {dpi}")
		return cls(width_px / dpi * CM_PER_INCH, height_px / dpi * CM_PER_INCH)


@dataclasses.dataclass
class UsedFont:
	name: str


@dataclasses.dataclass
class SvgFragment:
	content: str


@dataclasses.dataclass
class DesignPayload:
	used_fonts: list[UsedFont] = dataclasses.field(default_factory=list)
	svg_fragments: list[SvgFragment] = dataclasses.field(default_factory=list)
	custom_image_refs: list[str] = dataclasses.field(default_factory=list)

	def font_names(self) -> list[str]:
		return [font.name for font in self.used_fonts if font.name]


@dataclasses.dataclass
class ImageJob:
	view_id: int
	design_payload: str | None = None


@dataclasses.dataclass
class PrintRequest:
	product_variant_id: int
	jobs: list[ImageJob] = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class ArtworkLayer:
	image_bytes: bytes
	left: int = 0
	top: int = 0


@dataclasses.dataclass
class ViewArtwork:
	base_artwork: bytes
	page_size: PhysicalPageSize | None
	print_box_left: int = 0
	print_box_top: int = 0


@dataclasses.dataclass
class PrebuiltArtwork:
	print_file: bytes | None
	thumbnail: bytes | None = None


@dataclasses.dataclass
class PrintResult:
	document: bytes
	thumbnail: bytes | None = None


#============================================
def read_list_field(data: dict, *keys: str) -> list:
	"""
	Read the first present list field among alternative key spellings.

	Args:
		data: Parsed JSON object.
		keys: Candidate key names, in priority order.

	Returns:
		List value, empty when absent or null.
	"""
	for key in keys:
		if key not in data:
			continue
		value = data[key]
		if value is None:
			return []
		if not isinstance(value, list):
			raise DesignPayloadError(f"Design payload field '{key}' must be a list")
		return value
	return []


#============================================
def is_well_formed_svg(content: str) -> bool:
	"""
	Check that an SVG fragment parses as safe XML.

	Args:
		content: SVG markup.

	Returns:
		True if the fragment parses.
	"""
	try:
		ElementTree.fromstring(content)
	except (ElementTree.ParseError, defusedxml.DefusedXmlException):
		return False
	return True


#============================================
def parse_svg_fragments(entries: list) -> list[SvgFragment]:
	fragments = []
	for index, entry in enumerate(entries):
		if isinstance(entry, dict):
			content = entry.get("svg") or entry.get("content") or ""
		elif isinstance(entry, str):
			content = entry
		else:
			content = ""
		if not content.strip():
			logger.warning("Skipping empty SVG fragment {}", index)
			continue
		if not is_well_formed_svg(content):
			logger.warning("Skipping malformed SVG fragment {}", index)
			continue
		fragments.append(SvgFragment(content=content))
	return fragments


#============================================
def parse_design_payload(text: str | None) -> DesignPayload | None:
	"""
	Parse a design payload string.

	Both the designer wire keys (used_fonts, svg_data, custom_images) and
	the camelCase keys (usedFonts, svgFragments, customImageRefs) are read.

	Args:
		text: Raw JSON payload, or None.

	Returns:
		DesignPayload, or None when no payload was supplied.

	Raises:
		DesignPayloadError: The payload is not a JSON object.
	"""
	if text is None or not text.strip():
		return None
	try:
		data = json.loads(text)
	except json.JSONDecodeError as error:
		raise DesignPayloadError(f"Design payload is not valid JSON: {error.msg}") from error
	if not isinstance(data, dict):
		raise DesignPayloadError("Design payload must be a JSON object")

	used_fonts = []
	for entry in read_list_field(data, "used_fonts", "usedFonts"):
		if isinstance(entry, dict) and entry.get("name"):
			used_fonts.append(UsedFont(name=str(entry["name"])))
		elif isinstance(entry, str) and entry:
			used_fonts.append(UsedFont(name=entry))

	svg_entries = read_list_field(data, "svg_data", "svgFragments")
	custom_images = read_list_field(data, "custom_images", "customImageRefs")
	return DesignPayload(
		used_fonts=used_fonts,
		svg_fragments=parse_svg_fragments(svg_entries),
		custom_image_refs=[str(ref) for ref in custom_images if ref],
	)


#============================================
def read_required_int(data: dict, *keys: str) -> int:
	for key in keys:
		if data.get(key) is not None:
			try:
				return int(data[key])
			except (TypeError, ValueError) as error:
				raise ConfigurationError(f"Field '{key}' must be an integer") from error
	raise ConfigurationError(f"Missing required field '{keys[0]}'")


#============================================
def parse_print_request(data: dict) -> PrintRequest:
	"""
	Build a PrintRequest from a decoded request object.

	Args:
		data: Decoded JSON request.

	Returns:
		PrintRequest.
	"""
	product_variant_id = read_required_int(data, "productVariantId", "ProductVariantId")
	raw_jobs = data.get("jobs")
	if raw_jobs is None:
		raw_jobs = data.get("GenerateImages") or []
	jobs = []
	for entry in raw_jobs:
		view_id = read_required_int(entry, "viewId", "ProductVariantViewId")
		payload = entry.get("designPayload", entry.get("PrintOrder"))
		if isinstance(payload, dict):
			payload = json.dumps(payload)
		jobs.append(ImageJob(view_id=view_id, design_payload=payload))
	return PrintRequest(product_variant_id=product_variant_id, jobs=jobs)
