"""
CLI entry point for rendering local artwork into a print-ready PDF.
"""

# Standard Library
import argparse
import dataclasses
import pathlib
import sys
import time

# PIP3 modules
from loguru import logger

# local repo modules
import print_ready_pipeline as prp
import print_ready_pipeline.compositor
import print_ready_pipeline.config
import print_ready_pipeline.errors
import print_ready_pipeline.models
import print_ready_pipeline.render
import print_ready_pipeline.thumbnail


ArtworkLayer = prp.models.ArtworkLayer
PhysicalPageSize = prp.models.PhysicalPageSize
PipelineConfig = prp.config.PipelineConfig
PrintReadyError = prp.errors.PrintReadyError

LEGACY_DPI = prp.config.LEGACY_DPI
RENDERER_BACKENDS = prp.config.RENDERER_BACKENDS


#============================================
def parse_layer_spec(value: str) -> tuple[pathlib.Path, int, int]:
	"""
	Parse an overlay argument of the form PATH@LEFT,TOP.

	Args:
		value: Overlay argument. The offset defaults to 0,0.

	Returns:
		Tuple of (path, left, top).
	"""
	path_text, separator, offset_text = value.rpartition("@")
	if not separator:
		return (pathlib.Path(value), 0, 0)
	parts = offset_text.split(",")
	if len(parts) != 2:
		raise argparse.ArgumentTypeError(f"Overlay offset must be LEFT,TOP: {value}")
	try:
		left = int(parts[0])
		top = int(parts[1])
	except ValueError as error:
		raise argparse.ArgumentTypeError(f"Overlay offset must be integers: {value}") from error
	return (pathlib.Path(path_text), left, top)


#============================================
def build_config(args: argparse.Namespace) -> PipelineConfig:
	"""
	Build the pipeline config from the environment and CLI overrides.

	Args:
		args: Parsed argparse namespace.

	Returns:
		PipelineConfig.
	"""
	config = prp.config.load_pipeline_config()
	overrides = {}
	if args.backend is not None:
		overrides["renderer_backend"] = args.backend
	if args.max_dimension is not None:
		overrides["max_dimension"] = args.max_dimension
	if args.thumbnail_width is not None:
		overrides["thumbnail_width"] = args.thumbnail_width
	return dataclasses.replace(config, **overrides)


#============================================
def resolve_page_size(args: argparse.Namespace, base_bytes: bytes) -> PhysicalPageSize:
	"""
	Resolve the physical page size from CLI args.

	Without an explicit size, the size is inferred from the base pixels
	at the given DPI.

	Args:
		args: Parsed argparse namespace.
		base_bytes: Encoded base artwork.

	Returns:
		PhysicalPageSize.
	"""
	if args.width_cm is not None and args.height_cm is not None:
		return PhysicalPageSize(args.width_cm, args.height_cm)
	if args.width_cm is not None or args.height_cm is not None:
		raise prp.errors.ConfigurationError("Both --width-cm and --height-cm are required")
	with prp.compositor.open_raster(base_bytes, "base artwork") as image:
		return PhysicalPageSize.from_pixels(image.width, image.height, args.dpi)


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command line arguments.

	Args:
		argv: Optional argument list, defaults to sys.argv.

	Returns:
		Parsed argparse namespace.
	"""
	parser = argparse.ArgumentParser(description="Render base artwork and overlays into a print-ready PDF.")
	parser.add_argument("base", help="Base artwork raster.")
	parser.add_argument(
		"-l", "--overlay", dest="overlays", action="append", type=parse_layer_spec, default=[],
		help="Overlay raster as PATH@LEFT,TOP (repeatable, drawn in order).",
	)

	output_group = parser.add_argument_group("Output")
	output_group.add_argument("-o", "--output", dest="output_path", required=True, help="Output PDF path.")
	output_group.add_argument("-t", "--thumbnail", dest="thumbnail_path", default=None, help="Output thumbnail PNG path.")

	size_group = parser.add_argument_group("Page size")
	size_group.add_argument("-W", "--width-cm", dest="width_cm", type=float, default=None, help="Page width in cm.")
	size_group.add_argument("-H", "--height-cm", dest="height_cm", type=float, default=None, help="Page height in cm.")
	size_group.add_argument(
		"-d", "--dpi", dest="dpi", type=float, default=LEGACY_DPI,
		help="DPI used to infer the page size when no physical size is given.",
	)

	render_group = parser.add_argument_group("Rendering")
	render_group.add_argument("-b", "--backend", dest="backend", choices=RENDERER_BACKENDS, default=None, help="PDF backend.")
	render_group.add_argument("-m", "--max-dimension", dest="max_dimension", type=int, default=None, help="Max raster side in pixels.")
	render_group.add_argument("-w", "--thumbnail-width", dest="thumbnail_width", type=int, default=None, help="Thumbnail width in pixels.")
	render_group.add_argument("-v", "--verbose", dest="verbose", action="store_true", help="Show debug logging.")

	args = parser.parse_args(argv)
	return args


#============================================
def configure_logging(verbose: bool) -> None:
	logger.remove()
	logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


#============================================
def run_pipeline(args: argparse.Namespace) -> None:
	"""
	Run compositing, rendering and thumbnailing for local files.

	Args:
		args: Parsed argparse namespace.
	"""
	config = build_config(args)
	prp.compositor.set_decode_pixel_limit(config.max_decode_pixels)
	print("Print-ready render")
	print(f"Base artwork: {args.base}")
	print(f"Output PDF: {args.output_path}")
	print(f"Backend: {config.renderer_backend}")

	start_time = time.perf_counter()
	base_bytes = pathlib.Path(args.base).read_bytes()
	layers = []
	for path, left, top in args.overlays:
		layers.append(ArtworkLayer(image_bytes=path.read_bytes(), left=left, top=top))
		print(f"Overlay: {path} at ({left}, {top})")

	page_size = resolve_page_size(args, base_bytes)
	composite = prp.compositor.composite_layers(base_bytes, layers)
	composite_end = time.perf_counter()

	renderer = prp.render.build_renderer(config.renderer_backend, config.max_dimension)
	document = renderer.render(composite, page_size)
	render_end = time.perf_counter()

	output_path = pathlib.Path(args.output_path)
	output_path.write_bytes(document)
	written_size = prp.render.read_page_size(document)
	print(f"Page size: {written_size.width_cm:.2f} x {written_size.height_cm:.2f} cm")
	print(f"PDF written: {len(document)} bytes")

	if args.thumbnail_path:
		thumbnail = prp.thumbnail.make_thumbnail(document, config.thumbnail_width)
		if thumbnail is None:
			print("Thumbnail: not produced")
		else:
			pathlib.Path(args.thumbnail_path).write_bytes(thumbnail)
			print(f"Thumbnail written: {args.thumbnail_path}")

	total_time = time.perf_counter() - start_time
	print(
		"Timing: composite={:.2f}s render={:.2f}s total={:.2f}s".format(
			composite_end - start_time,
			render_end - composite_end,
			total_time,
		)
	)


#============================================
def main(argv: list[str] | None = None) -> int:
	"""
	Main entry point.
	"""
	args = parse_args(argv)
	configure_logging(args.verbose)
	try:
		run_pipeline(args)
	except PrintReadyError as error:
		print(f"Error: {error}", file=sys.stderr)
		return 1
	return 0


if __name__ == "__main__":
	sys.exit(main())
