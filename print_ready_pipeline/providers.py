"""
Collaborator interfaces for artwork lookup and design rasterizing.
"""

# Standard Library
import pathlib
import typing

# PIP3 modules
from loguru import logger

# local repo modules
import print_ready_pipeline as prp
import print_ready_pipeline.config
import print_ready_pipeline.errors
import print_ready_pipeline.models


ViewArtwork = prp.models.ViewArtwork
PrebuiltArtwork = prp.models.PrebuiltArtwork
PipelineConfig = prp.config.PipelineConfig
ConfigurationError = prp.errors.ConfigurationError
DecodeError = prp.errors.DecodeError

DEFAULT_FONTS_PATH = prp.config.DEFAULT_FONTS_PATH
FONT_SUFFIXES = {".ttf", ".otf", ".woff", ".woff2"}


class ArtworkProvider(typing.Protocol):
	def get_view_artwork(self, product_variant_id: int, view_id: int) -> ViewArtwork:
		...

	def get_prebuilt_artwork(self, product_variant_id: int) -> PrebuiltArtwork:
		...


class DesignRasterizer(typing.Protocol):
	def rasterize(self, svg: str, fonts: list[str]) -> bytes:
		...


class InMemoryArtworkProvider:
	"""
	Artwork lookups backed by dictionaries, for local runs and tests.
	"""

	def __init__(self) -> None:
		self.views: dict[tuple[int, int], ViewArtwork] = {}
		self.prebuilt: dict[int, PrebuiltArtwork] = {}

	def add_view(self, product_variant_id: int, view_id: int, view: ViewArtwork) -> None:
		self.views[(product_variant_id, view_id)] = view

	def add_prebuilt(self, product_variant_id: int, artwork: PrebuiltArtwork) -> None:
		self.prebuilt[product_variant_id] = artwork

	def get_view_artwork(self, product_variant_id: int, view_id: int) -> ViewArtwork:
		view = self.views.get((product_variant_id, view_id))
		if view is None:
			raise ConfigurationError(
				f"No artwork registered for view {view_id}",
				product_variant_id=product_variant_id,
			)
		return view

	def get_prebuilt_artwork(self, product_variant_id: int) -> PrebuiltArtwork:
		artwork = self.prebuilt.get(product_variant_id)
		if artwork is None:
			raise ConfigurationError("No prebuilt artwork registered", product_variant_id=product_variant_id)
		return artwork


class CairoSvgRasterizer:
	"""
	Rasterize SVG design fragments to PNG with CairoSVG.
	"""

	def __init__(self, fonts_path: str = DEFAULT_FONTS_PATH) -> None:
		self.fonts_path = pathlib.Path(fonts_path)

	def available_fonts(self) -> set[str]:
		"""
		List font names installed in the fonts directory.

		Returns:
			Lowercased font file stems.
		"""
		if not self.fonts_path.is_dir():
			return set()
		names = set()
		for path in self.fonts_path.iterdir():
			if path.suffix.lower() in FONT_SUFFIXES:
				names.add(path.stem.lower())
		return names

	def report_missing_fonts(self, fonts: list[str]) -> list[str]:
		available = self.available_fonts()
		missing = [name for name in fonts if name.lower() not in available]
		if missing:
			logger.warning("Fonts not found in {}: {}", self.fonts_path, ", ".join(missing))
		return missing

	def rasterize(self, svg: str, fonts: list[str]) -> bytes:
		"""
		Render one SVG fragment to PNG bytes.

		Args:
			svg: SVG markup.
			fonts: Font names used by the design.

		Returns:
			PNG bytes.

		Raises:
			DecodeError: CairoSVG could not render the fragment.
		"""
		self.report_missing_fonts(fonts)
		# cairosvg loads the native cairo library at import time
		import cairosvg
		try:
			return cairosvg.svg2png(bytestring=svg.encode("utf-8"))
		except Exception as error:
			raise DecodeError(f"Failed to rasterize SVG fragment: {error}") from error


#============================================
def build_rasterizer(config: PipelineConfig) -> CairoSvgRasterizer:
	"""
	Build the SVG rasterizer for a pipeline configuration.

	Args:
		config: PipelineConfig supplying the fonts directory.

	Returns:
		CairoSvgRasterizer.
	"""
	return CairoSvgRasterizer(fonts_path=config.fonts_path)
