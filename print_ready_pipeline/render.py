"""
Print document rendering at exact physical page sizes.
"""

# Standard Library
import contextlib
import io
import typing

# PIP3 modules
import fitz
import PIL.Image
import pypdf
import pypdf.errors
import reportlab.lib.utils
import reportlab.pdfgen.canvas
from loguru import logger

# local repo modules
import print_ready_pipeline as prp
import print_ready_pipeline.compositor
import print_ready_pipeline.config
import print_ready_pipeline.errors
import print_ready_pipeline.models


PhysicalPageSize = prp.models.PhysicalPageSize
ConfigurationError = prp.errors.ConfigurationError
EncodingError = prp.errors.EncodingError
RenderError = prp.errors.RenderError

MAX_PIXEL_DIMENSION = prp.config.MAX_PIXEL_DIMENSION
DEFAULT_RENDERER_BACKEND = prp.config.DEFAULT_RENDERER_BACKEND
RESAMPLE_FILTER = PIL.Image.Resampling.LANCZOS
RESAMPLE_MODES = ("L", "LA", "RGB", "RGBA")


class PageRenderer(typing.Protocol):
	def render(self, raster: bytes, target_size: PhysicalPageSize) -> bytes:
		...


#============================================
def compute_bounded_size(width: int, height: int, bound: int) -> tuple[int, int]:
	"""
	Compute a proportional size whose longer side does not exceed the bound.

	Args:
		width: Source width in pixels.
		height: Source height in pixels.
		bound: Maximum pixel length of the longer side.

	Returns:
		Tuple of (width, height); unchanged when already within bound.
	"""
	longer = max(width, height)
	if longer <= bound:
		return (width, height)
	scale = bound / longer
	if width >= height:
		return (bound, max(1, round(height * scale)))
	return (max(1, round(width * scale)), bound)


#============================================
def prepare_raster(raster: bytes, max_dimension: int) -> PIL.Image.Image:
	"""
	Decode, flatten and size-bound a raster for page drawing.

	Oversized rasters are resampled before flattening, so the full-size
	source is never expanded to RGBA.

	Args:
		raster: Encoded raster bytes.
		max_dimension: Maximum pixel length of the longer side.

	Returns:
		Opaque RGB image owned by the caller.

	Raises:
		RenderError: The raster cannot be decoded.
	"""
	with prp.compositor.open_raster(raster, "print raster", RenderError) as decoded:
		target = compute_bounded_size(decoded.width, decoded.height, max_dimension)
		if target == decoded.size:
			return prp.compositor.flatten_on_white(decoded)
		logger.info(
			"Downscaling print raster from {}x{} to {}x{}",
			decoded.width, decoded.height, target[0], target[1],
		)
		with contextlib.ExitStack() as stack:
			source = decoded
			if decoded.mode not in RESAMPLE_MODES:
				source = stack.enter_context(decoded.convert("RGBA"))
			resized = stack.enter_context(source.resize(target, RESAMPLE_FILTER))
			return prp.compositor.flatten_on_white(resized)


#============================================
def encode_png(image: PIL.Image.Image) -> bytes:
	"""
	Encode an image as PNG bytes.

	Args:
		image: PIL image.

	Returns:
		PNG bytes.
	"""
	buffer = io.BytesIO()
	image.save(buffer, format="PNG")
	return buffer.getvalue()


class ReportlabPageRenderer:
	"""
	Draw the raster onto a ReportLab canvas sized to the physical page.
	"""

	def __init__(self, max_dimension: int = MAX_PIXEL_DIMENSION) -> None:
		self.max_dimension = max_dimension

	def render(self, raster: bytes, target_size: PhysicalPageSize) -> bytes:
		"""
		Render the raster as a single full-bleed PDF page.

		Args:
			raster: Encoded raster bytes.
			target_size: Physical page size.

		Returns:
			PDF bytes.
		"""
		page_width, page_height = target_size.to_points()
		buffer = io.BytesIO()
		with prepare_raster(raster, self.max_dimension) as image:
			pdf = reportlab.pdfgen.canvas.Canvas(buffer, pagesize=(page_width, page_height))
			try:
				pdf.drawImage(
					reportlab.lib.utils.ImageReader(image),
					0,
					0,
					width=page_width,
					height=page_height,
					mask=None,
					preserveAspectRatio=False,
					anchor="sw",
				)
			except Exception as error:
				raise RenderError(f"Failed to draw print raster: {error}") from error
			try:
				pdf.save()
			except Exception as error:
				raise EncodingError(f"Failed to serialize print document: {error}") from error
		return buffer.getvalue()


class PyMuPdfPageRenderer:
	"""
	Insert the raster into a PyMuPDF page sized to the physical page.
	"""

	def __init__(self, max_dimension: int = MAX_PIXEL_DIMENSION) -> None:
		self.max_dimension = max_dimension

	def render(self, raster: bytes, target_size: PhysicalPageSize) -> bytes:
		"""
		Render the raster as a single full-bleed PDF page.

		Args:
			raster: Encoded raster bytes.
			target_size: Physical page size.

		Returns:
			PDF bytes.
		"""
		page_width, page_height = target_size.to_points()
		with prepare_raster(raster, self.max_dimension) as image:
			png_bytes = encode_png(image)
		with fitz.open() as document:
			try:
				page = document.new_page(width=page_width, height=page_height)
				page.insert_image(page.rect, stream=png_bytes, keep_proportion=False)
			except Exception as error:
				raise RenderError(f"Failed to draw print raster: {error}") from error
			try:
				return document.tobytes(garbage=3, deflate=True)
			except Exception as error:
				raise EncodingError(f"Failed to serialize print document: {error}") from error


RENDERER_BACKENDS = {
	"reportlab": ReportlabPageRenderer,
	"pymupdf": PyMuPdfPageRenderer,
}


#============================================
def build_renderer(
	name: str = DEFAULT_RENDERER_BACKEND,
	max_dimension: int = MAX_PIXEL_DIMENSION,
) -> PageRenderer:
	"""
	Build a page renderer backend by name.

	Args:
		name: Backend name, "reportlab" or "pymupdf".
		max_dimension: Maximum pixel length of the longer raster side.

	Returns:
		PageRenderer instance.
	"""
	backend = RENDERER_BACKENDS.get(name.strip().lower())
	if backend is None:
		raise ConfigurationError(f"Unknown renderer backend: {name}")
	return backend(max_dimension=max_dimension)


#============================================
def read_page_size(document: bytes) -> PhysicalPageSize:
	"""
	Read the first page size of a PDF document.

	Args:
		document: PDF bytes.

	Returns:
		PhysicalPageSize of the first page MediaBox.
	"""
	try:
		reader = pypdf.PdfReader(io.BytesIO(document))
		box = reader.pages[0].mediabox
	except (pypdf.errors.PyPdfError, IndexError, ValueError) as error:
		raise RenderError(f"Failed to read print document: {error}") from error
	return PhysicalPageSize.from_points(float(box.width), float(box.height))
