"""
Preview thumbnails for print documents and composites.
"""

# Standard Library
import io

# PIP3 modules
import fitz
import PIL.Image
from loguru import logger

# local repo modules
import print_ready_pipeline as prp
import print_ready_pipeline.compositor
import print_ready_pipeline.config


THUMBNAIL_WIDTH = prp.config.THUMBNAIL_WIDTH
PDF_MAGIC = b"%PDF"


#============================================
def compute_thumbnail_height(width: int, height: int, target_width: int) -> int:
	"""
	Compute the thumbnail height that preserves the source aspect ratio.

	Args:
		width: Source width.
		height: Source height.
		target_width: Thumbnail width.

	Returns:
		Thumbnail height, at least 1.
	"""
	return max(1, round(target_width * height / width))


#============================================
def rasterize_pdf_page(document: bytes, target_width: int) -> PIL.Image.Image:
	"""
	Render the first PDF page at roughly the thumbnail width.

	Args:
		document: PDF bytes.
		target_width: Desired pixel width.

	Returns:
		RGB PIL image.
	"""
	with fitz.open(stream=document, filetype="pdf") as pdf:
		page = pdf[0]
		scale = target_width / page.rect.width
		matrix = fitz.Matrix(scale, scale)
		pixmap = page.get_pixmap(matrix=matrix, alpha=False)
		return PIL.Image.frombytes("RGB", [pixmap.width, pixmap.height], pixmap.samples)


#============================================
def open_thumbnail_source(source: bytes, target_width: int) -> PIL.Image.Image:
	if source.startswith(PDF_MAGIC):
		return rasterize_pdf_page(source, target_width)
	with prp.compositor.open_raster(source, "thumbnail source") as decoded:
		return prp.compositor.flatten_on_white(decoded)


#============================================
def make_thumbnail(source: bytes, width: int = THUMBNAIL_WIDTH) -> bytes | None:
	"""
	Build a PNG preview of fixed width from a PDF or raster.

	Failures are logged and reported as no thumbnail.

	Args:
		source: PDF or encoded raster bytes.
		width: Thumbnail width in pixels.

	Returns:
		PNG bytes, or None if no thumbnail could be produced.
	"""
	try:
		if width <= 0:
			raise ValueError(f"thumbnail width must be positive, got {width}")
		with open_thumbnail_source(source, width) as image:
			height = compute_thumbnail_height(image.width, image.height, width)
			with image.resize((width, height), PIL.Image.Resampling.LANCZOS) as thumbnail:
				buffer = io.BytesIO()
				thumbnail.save(buffer, format="PNG")
	except Exception as error:
		logger.warning("Failed to create thumbnail: {}", error)
		return None
	logger.debug("Created {}x{} thumbnail", width, height)
	return buffer.getvalue()
