"""
Per-request coordination of compositing, rendering and thumbnails.
"""

# PIP3 modules
from loguru import logger

# local repo modules
import print_ready_pipeline as prp
import print_ready_pipeline.compositor
import print_ready_pipeline.config
import print_ready_pipeline.errors
import print_ready_pipeline.models
import print_ready_pipeline.providers
import print_ready_pipeline.render
import print_ready_pipeline.thumbnail


ArtworkLayer = prp.models.ArtworkLayer
ImageJob = prp.models.ImageJob
PrintRequest = prp.models.PrintRequest
PrintResult = prp.models.PrintResult
ViewArtwork = prp.models.ViewArtwork
PipelineConfig = prp.config.PipelineConfig
ArtworkProvider = prp.providers.ArtworkProvider
DesignRasterizer = prp.providers.DesignRasterizer
PageRenderer = prp.render.PageRenderer

PrintReadyError = prp.errors.PrintReadyError
ConfigurationError = prp.errors.ConfigurationError
DesignPayloadError = prp.errors.DesignPayloadError

DEFAULT_VIEW_ID = prp.config.DEFAULT_VIEW_ID


class PrintReadyOrchestrator:
	"""
	Turn a print request into a print document and preview thumbnail.

	Holds collaborators and configuration only; every buffer made
	while serving a request is scoped to that call.
	"""

	def __init__(
		self,
		artwork_provider: ArtworkProvider,
		design_rasterizer: DesignRasterizer | None = None,
		renderer: PageRenderer | None = None,
		config: PipelineConfig | None = None,
	) -> None:
		self.artwork_provider = artwork_provider
		self.config = config or PipelineConfig()
		if design_rasterizer is None:
			design_rasterizer = prp.providers.build_rasterizer(self.config)
		self.design_rasterizer = design_rasterizer
		prp.compositor.set_decode_pixel_limit(self.config.max_decode_pixels)
		if renderer is None:
			renderer = prp.render.build_renderer(self.config.renderer_backend, self.config.max_dimension)
		self.renderer = renderer

	#============================================
	def resolve_job_layers(self, job: ImageJob, view: ViewArtwork, job_index: int) -> list[ArtworkLayer]:
		"""
		Rasterize a job's design payload into overlay layers.

		Args:
			job: ImageJob to resolve.
			view: View lookup for the job, supplies the print-box offset.
			job_index: Index of the job in the request.

		Returns:
			Overlay layers, empty when the job carries no usable design.
		"""
		try:
			payload = prp.models.parse_design_payload(job.design_payload)
		except DesignPayloadError as error:
			if self.config.strict_design_payloads:
				raise
			logger.warning("Ignoring design payload of job {}: {}", job_index, error)
			return []
		if payload is None or not payload.svg_fragments:
			return []

		fonts = payload.font_names()
		if payload.custom_image_refs:
			logger.debug("Job {} references {} custom images", job_index, len(payload.custom_image_refs))
		layers = []
		for fragment_index, fragment in enumerate(payload.svg_fragments):
			try:
				image_bytes = self.design_rasterizer.rasterize(fragment.content, fonts)
			except PrintReadyError as error:
				logger.warning("Skipping SVG fragment {} of job {}: {}", fragment_index, job_index, error)
				continue
			layers.append(
				ArtworkLayer(
					image_bytes=image_bytes,
					left=view.print_box_left,
					top=view.print_box_top,
				)
			)
		return layers

	#============================================
	def generate_image(self, request: PrintRequest) -> PrintResult:
		"""
		Composite, render and thumbnail one print request.

		The first job's view supplies the base artwork and physical page
		size; overlays from every job are drawn onto that single canvas.

		Args:
			request: PrintRequest to process.

		Returns:
			PrintResult with the PDF and an optional PNG thumbnail.

		Raises:
			PrintReadyError: Fatal failure, tagged with the product variant
				and job index.
		"""
		product_variant_id = request.product_variant_id
		logger.info("Starting print file generation for product variant {}", product_variant_id)

		jobs = list(request.jobs)
		if not jobs:
			logger.warning("No images specified for product variant {}, using default view", product_variant_id)
			jobs = [ImageJob(view_id=DEFAULT_VIEW_ID)]

		layers: list[ArtworkLayer] = []
		layer_count = 0
		job_index = None
		try:
			base_view = None
			for job_index, job in enumerate(jobs):
				view = self.artwork_provider.get_view_artwork(product_variant_id, job.view_id)
				if base_view is None:
					base_view = view
				layers.extend(self.resolve_job_layers(job, view, job_index))

			# base artwork and page size come from the first job
			job_index = 0
			if base_view.page_size is None:
				raise ConfigurationError(f"No physical page size for view {jobs[0].view_id}")
			layer_count = len(layers)
			composite = prp.compositor.composite_layers(base_view.base_artwork, layers)

			job_index = None
			document = self.renderer.render(composite, base_view.page_size)
			if self.config.thumbnail_source == "composite":
				thumbnail = prp.thumbnail.make_thumbnail(composite, self.config.thumbnail_width)
			else:
				thumbnail = prp.thumbnail.make_thumbnail(document, self.config.thumbnail_width)
		except PrintReadyError as error:
			error.with_context(product_variant_id, job_index)
			logger.error("Print file generation failed: {}", error)
			raise
		except Exception:
			logger.exception("Unexpected error generating print file for product variant {}", product_variant_id)
			raise
		finally:
			layers.clear()

		logger.info(
			"Print file generated for product variant {}: {} overlay layers, pdf {} bytes, thumbnail {} bytes",
			product_variant_id,
			layer_count,
			len(document),
			len(thumbnail) if thumbnail else 0,
		)
		return PrintResult(document=document, thumbnail=thumbnail)

	#============================================
	def get_prebuilt_image(self, product_variant_id: int) -> PrintResult:
		"""
		Return a previously generated print file without rendering.

		Args:
			product_variant_id: Product variant to look up.

		Returns:
			PrintResult from the artwork provider.
		"""
		logger.info("Getting prebuilt print file for product variant {}", product_variant_id)
		artwork = self.artwork_provider.get_prebuilt_artwork(product_variant_id)
		if artwork.print_file is None:
			raise ConfigurationError("No prebuilt print file available", product_variant_id=product_variant_id)
		return PrintResult(document=artwork.print_file, thumbnail=artwork.thumbnail)
