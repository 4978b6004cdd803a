"""
Overlay compositing onto base artwork.
"""

# Standard Library
import contextlib
import io

# PIP3 modules
import PIL.Image
from loguru import logger

# local repo modules
import print_ready_pipeline as prp
import print_ready_pipeline.config
import print_ready_pipeline.errors
import print_ready_pipeline.models


ArtworkLayer = prp.models.ArtworkLayer
DecodeError = prp.errors.DecodeError

WHITE_RGBA = prp.config.WHITE_RGBA
TRANSPARENT_RGBA = prp.config.TRANSPARENT_RGBA
MAX_DECODE_PIXELS = prp.config.MAX_DECODE_PIXELS

DECODE_ERRORS = (OSError, ValueError, PIL.Image.DecompressionBombError)


#============================================
def set_decode_pixel_limit(max_pixels: int) -> None:
	"""
	Set the largest raster, in pixels, that decoding accepts.

	Pillow's decompression-bomb guard is process wide, so this applies to
	every decode in the process.

	Args:
		max_pixels: Pixel count limit.
	"""
	PIL.Image.MAX_IMAGE_PIXELS = max_pixels


set_decode_pixel_limit(MAX_DECODE_PIXELS)


#============================================
def open_raster(data: bytes, label: str, error_class: type = DecodeError) -> PIL.Image.Image:
	"""
	Decode raster bytes into a fully loaded PIL image.

	The caller owns the returned image and must close it.

	Args:
		data: Encoded raster bytes.
		label: Name used in the error message.
		error_class: PrintReadyError subclass raised on failure.

	Returns:
		Loaded PIL image.
	"""
	if not data:
		raise error_class(f"Failed to decode {label}: no data")
	try:
		image = PIL.Image.open(io.BytesIO(data))
	except DECODE_ERRORS as error:
		raise error_class(f"Failed to decode {label}: {error}") from error
	# pillow only warns between the limit and twice the limit
	max_pixels = PIL.Image.MAX_IMAGE_PIXELS
	if max_pixels is not None and image.width * image.height > max_pixels:
		image.close()
		raise error_class(
			f"Failed to decode {label}: {image.width}x{image.height} exceeds the {max_pixels} pixel limit"
		)
	try:
		image.load()
	except DECODE_ERRORS as error:
		image.close()
		raise error_class(f"Failed to decode {label}: {error}") from error
	return image


#============================================
def flatten_on_white(image: PIL.Image.Image) -> PIL.Image.Image:
	"""
	Flatten any transparency against a white background.

	Args:
		image: Source image in any mode.

	Returns:
		New opaque RGB image.
	"""
	if not {"A", "a"} & set(image.getbands()) and "transparency" not in image.info:
		return image.convert("RGB")
	with image.convert("RGBA") as rgba:
		with PIL.Image.new("RGBA", rgba.size, WHITE_RGBA) as background:
			background.alpha_composite(rgba)
			return background.convert("RGB")


#============================================
def clip_placement(
	left: int,
	top: int,
	overlay_size: tuple[int, int],
	canvas_size: tuple[int, int],
) -> tuple[tuple[int, int], tuple[int, int]] | None:
	"""
	Compute destination and source offsets for a clipped overlay.

	Args:
		left: Overlay left offset on the canvas, may be negative.
		top: Overlay top offset on the canvas, may be negative.
		overlay_size: Overlay (width, height).
		canvas_size: Canvas (width, height).

	Returns:
		Tuple of (dest, source) offsets, or None if nothing is visible.
	"""
	overlay_width, overlay_height = overlay_size
	canvas_width, canvas_height = canvas_size
	source = (max(0, -left), max(0, -top))
	dest = (max(0, left), max(0, top))
	if source[0] >= overlay_width or source[1] >= overlay_height:
		return None
	if dest[0] >= canvas_width or dest[1] >= canvas_height:
		return None
	return (dest, source)


#============================================
def draw_layer(canvas: PIL.Image.Image, layer: ArtworkLayer, index: int) -> bool:
	"""
	Alpha-composite one overlay layer onto the canvas in place.

	Undecodable overlays are skipped.

	Args:
		canvas: RGBA canvas.
		layer: ArtworkLayer to draw.
		index: Layer index, for logging.

	Returns:
		True if the layer was drawn.
	"""
	try:
		overlay = open_raster(layer.image_bytes, f"overlay layer {index}")
	except DecodeError as error:
		logger.warning("Skipping overlay layer {}: {}", index, error)
		return False

	with contextlib.ExitStack() as stack:
		stack.enter_context(overlay)
		rgba = stack.enter_context(overlay.convert("RGBA"))
		placement = clip_placement(layer.left, layer.top, rgba.size, canvas.size)
		if placement is None:
			logger.debug(
				"Overlay layer {} at ({}, {}) lies outside the {}x{} canvas",
				index, layer.left, layer.top, canvas.width, canvas.height,
			)
			return False
		dest, source = placement
		canvas.alpha_composite(rgba, dest=dest, source=source)
	return True


#============================================
def composite_image(base_bytes: bytes, layers: list[ArtworkLayer]) -> PIL.Image.Image:
	"""
	Composite overlays onto the base artwork and flatten to RGB.

	The canvas matches the base pixel size; overlays are clipped, never
	resized, and later layers draw over earlier ones.

	Args:
		base_bytes: Encoded base artwork.
		layers: Overlay layers in draw order.

	Returns:
		New opaque RGB image owned by the caller.
	"""
	with contextlib.ExitStack() as stack:
		base = stack.enter_context(open_raster(base_bytes, "base artwork"))
		if not layers:
			return flatten_on_white(base)
		base_rgba = stack.enter_context(base.convert("RGBA"))
		canvas = stack.enter_context(PIL.Image.new("RGBA", base.size, TRANSPARENT_RGBA))
		canvas.alpha_composite(base_rgba)

		drawn = 0
		for index, layer in enumerate(layers):
			if draw_layer(canvas, layer, index):
				drawn += 1
		logger.debug("Composited {} of {} overlay layers onto {}x{} base", drawn, len(layers), base.width, base.height)
		return flatten_on_white(canvas)


#============================================
def composite_layers(base_bytes: bytes, layers: list[ArtworkLayer]) -> bytes:
	"""
	Composite overlays onto the base artwork and encode the result as PNG.

	Args:
		base_bytes: Encoded base artwork.
		layers: Overlay layers in draw order.

	Returns:
		PNG bytes of the flattened composite.

	Raises:
		DecodeError: The base artwork cannot be decoded.
	"""
	with composite_image(base_bytes, layers) as composite:
		buffer = io.BytesIO()
		composite.save(buffer, format="PNG")
	return buffer.getvalue()
