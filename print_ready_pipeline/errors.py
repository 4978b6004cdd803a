"""
Error types raised by the print-ready pipeline.
"""


class PrintReadyError(Exception):
	"""
	Base error carrying the request context it was raised under.
	"""

	def __init__(
		self,
		message: str,
		product_variant_id: int | None = None,
		job_index: int | None = None,
	) -> None:
		super().__init__(message)
		self.message = message
		self.product_variant_id = product_variant_id
		self.job_index = job_index

	def with_context(
		self,
		product_variant_id: int | None,
		job_index: int | None = None,
	) -> "PrintReadyError":
		"""
		Attach request identifiers without overwriting ones already set.

		Args:
			product_variant_id: Product variant being processed.
			job_index: Index of the job within the request.

		Returns:
			The same error instance.
		"""
		if self.product_variant_id is None:
			self.product_variant_id = product_variant_id
		if self.job_index is None:
			self.job_index = job_index
		return self

	def __str__(self) -> str:
		context = []
		if self.product_variant_id is not None:
			context.append(f"product_variant_id={self.product_variant_id}")
		if self.job_index is not None:
			context.append(f"job_index={self.job_index}")
		if not context:
			return self.message
		return f"{self.message} ({', '.join(context)})"


class DecodeError(PrintReadyError):
	"""Raster data could not be decoded."""


class RenderError(PrintReadyError):
	"""The print document could not be constructed."""


class EncodingError(PrintReadyError):
	"""The print document could not be serialized."""


class ConfigurationError(PrintReadyError):
	"""Required configuration or physical-size metadata is missing or invalid."""


class DesignPayloadError(PrintReadyError):
	"""A design payload could not be parsed."""
