import json

import pytest

import print_ready_pipeline.errors
import print_ready_pipeline.models as models


VALID_SVG = '<svg xmlns="http://www.w3.org/2000/svg" width="10" height="10"><rect width="10" height="10"/></svg>'


#============================================
def test_page_size_points_conversion() -> None:
	"""
	One inch of paper is 72 points.
	"""
	size = models.PhysicalPageSize(2.54, 5.08)
	width, height = size.to_points()
	assert width == pytest.approx(72.0)
	assert height == pytest.approx(144.0)
	round_trip = models.PhysicalPageSize.from_points(width, height)
	assert round_trip.width_cm == pytest.approx(2.54)
	assert round_trip.height_cm == pytest.approx(5.08)


#============================================
def test_page_size_from_pixels_uses_dpi() -> None:
	size = models.PhysicalPageSize.from_pixels(3000, 1500)
	assert size.width_cm == pytest.approx(25.4)
	assert size.height_cm == pytest.approx(12.7)
	size = models.PhysicalPageSize.from_pixels(150, 150, dpi=150)
	assert size.width_cm == pytest.approx(2.54)


#============================================
@pytest.mark.parametrize("width, height", [(0, 10), (10, -1), (0, 0)])
def test_page_size_must_be_positive(width: float, height: float) -> None:
	with pytest.raises(print_ready_pipeline.errors.ConfigurationError):
		models.PhysicalPageSize(width, height)


#============================================
@pytest.mark.parametrize("text", [None, "", "   "])
def test_missing_design_payload_means_no_customization(text) -> None:
	assert models.parse_design_payload(text) is None


#============================================
def test_design_payload_wire_keys() -> None:
	"""
	Parse the designer output field names.
	"""
	text = json.dumps({
		"used_fonts": [{"name": "Roboto"}, {"name": ""}],
		"svg_data": [{"svg": VALID_SVG}],
		"custom_images": ["uploads/a.png"],
	})
	payload = models.parse_design_payload(text)
	assert payload.font_names() == ["Roboto"]
	assert [fragment.content for fragment in payload.svg_fragments] == [VALID_SVG]
	assert payload.custom_image_refs == ["uploads/a.png"]


#============================================
def test_design_payload_camel_case_keys() -> None:
	text = json.dumps({
		"usedFonts": [{"name": "Lato"}],
		"svgFragments": [{"content": VALID_SVG}, {"content": VALID_SVG}],
		"customImageRefs": [],
	})
	payload = models.parse_design_payload(text)
	assert payload.font_names() == ["Lato"]
	assert len(payload.svg_fragments) == 2


#============================================
def test_design_payload_drops_malformed_fragments(log_messages) -> None:
	"""
	Fragments that are empty or not well-formed XML are skipped.
	"""
	text = json.dumps({"svg_data": [{"svg": "<svg><g></svg>"}, {"svg": ""}, {"svg": VALID_SVG}]})
	payload = models.parse_design_payload(text)
	assert len(payload.svg_fragments) == 1
	assert any("malformed SVG fragment 0" in message for message in log_messages)


#============================================
def test_design_payload_rejects_entity_expansion() -> None:
	svg = '<!DOCTYPE svg [<!ENTITY x "boom">]><svg>&x;</svg>'
	payload = models.parse_design_payload(json.dumps({"svg_data": [{"svg": svg}]}))
	assert payload.svg_fragments == []


#============================================
@pytest.mark.parametrize("text", ["{not json", "[1, 2]", '"text"', '{"svg_data": "oops"}'])
def test_unparseable_design_payload_raises(text: str) -> None:
	with pytest.raises(print_ready_pipeline.errors.DesignPayloadError):
		models.parse_design_payload(text)


#============================================
def test_parse_print_request_both_spellings() -> None:
	"""
	Requests use either camelCase or the legacy service field names.
	"""
	request = models.parse_print_request({
		"productVariantId": 42,
		"jobs": [{"viewId": 3, "designPayload": "{}"}, {"viewId": 4}],
	})
	assert request.product_variant_id == 42
	assert [job.view_id for job in request.jobs] == [3, 4]
	assert request.jobs[0].design_payload == "{}"
	assert request.jobs[1].design_payload is None

	request = models.parse_print_request({
		"ProductVariantId": "7",
		"GenerateImages": [{"ProductVariantViewId": 1, "PrintOrder": {"svg_data": []}}],
	})
	assert request.product_variant_id == 7
	assert json.loads(request.jobs[0].design_payload) == {"svg_data": []}


#============================================
def test_parse_print_request_requires_ids() -> None:
	with pytest.raises(print_ready_pipeline.errors.ConfigurationError):
		models.parse_print_request({"jobs": []})
	with pytest.raises(print_ready_pipeline.errors.ConfigurationError):
		models.parse_print_request({"productVariantId": 1, "jobs": [{"designPayload": None}]})
	with pytest.raises(print_ready_pipeline.errors.ConfigurationError):
		models.parse_print_request({"productVariantId": "abc"})
