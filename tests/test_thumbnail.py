import pytest

import print_ready_pipeline.models
import print_ready_pipeline.render
import print_ready_pipeline.thumbnail as thumbnail


PhysicalPageSize = print_ready_pipeline.models.PhysicalPageSize


#============================================
@pytest.mark.parametrize(
	"size, expected",
	[
		((800, 600), (400, 300)),
		((1000, 333), (400, 133)),
		((200, 400), (400, 800)),
		((4000, 1), (400, 1)),
	],
)
def test_raster_thumbnail_keeps_aspect(size, expected, make_png, decode_png) -> None:
	"""
	Raster sources are resized to the target width with aspect preserved.
	"""
	data = thumbnail.make_thumbnail(make_png(size[0], size[1], (10, 20, 30)))
	assert data is not None
	image = decode_png(data)
	assert image.format == "PNG"
	assert image.size == expected


#============================================
def test_pdf_thumbnail_uses_first_page(make_png, decode_png) -> None:
	"""
	PDF sources are rasterized before resizing.
	"""
	renderer = print_ready_pipeline.render.ReportlabPageRenderer()
	document = renderer.render(make_png(800, 600, (0, 0, 255)), PhysicalPageSize(14.0, 21.0))
	data = thumbnail.make_thumbnail(document)
	assert data is not None
	image = decode_png(data).convert("RGB")
	assert image.width == 400
	assert abs(image.height - 400 * 21.0 / 14.0) <= 1
	red, green, blue = image.getpixel((200, image.height // 2))
	assert blue > 200 and red < 60 and green < 60


#============================================
def test_custom_width(make_png, decode_png) -> None:
	data = thumbnail.make_thumbnail(make_png(300, 150, (0, 0, 0)), width=120)
	assert decode_png(data).size == (120, 60)


#============================================
@pytest.mark.parametrize(
	"source",
	[
		b"",
		b"definitely not an image",
		b"\x89PNG\r\n\x1a\n truncated",
		b"%PDF-1.4 corrupted body",
	],
)
def test_corrupt_input_returns_none(source: bytes, log_messages) -> None:
	"""
	Corrupt inputs yield no thumbnail and never raise.
	"""
	assert thumbnail.make_thumbnail(source) is None
	assert any("Failed to create thumbnail" in message for message in log_messages)


#============================================
def test_invalid_width_returns_none(make_png) -> None:
	assert thumbnail.make_thumbnail(make_png(10, 10, (0, 0, 0)), width=0) is None


#============================================
def test_compute_thumbnail_height() -> None:
	assert thumbnail.compute_thumbnail_height(800, 600, 400) == 300
	assert thumbnail.compute_thumbnail_height(3, 2, 400) == 267
	assert thumbnail.compute_thumbnail_height(10000, 1, 400) == 1
