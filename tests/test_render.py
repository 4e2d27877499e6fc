import base64
import dataclasses
import io

import fitz
import PIL.Image
import pytest

import design_lab.errors
import design_lab.model
import design_lab.render


RATIO = 1013.0 / 800.0


#============================================
def text_field(field_id: str, key: str, side: str = "front", x: float = 50, y: float = 100) -> design_lab.model.OverlayField:
	return design_lab.model.OverlayField(
		id=field_id,
		side=side,
		field_type="text",
		binding=design_lab.model.TextBinding(key),
		x=x,
		y=y,
		width=150,
		height=20,
	)


#============================================
def with_fields(template: design_lab.model.Template, *fields) -> design_lab.model.Template:
	return dataclasses.replace(template, fields=tuple(fields))


#============================================
def page_words(pdf_bytes: bytes, index: int) -> dict[str, tuple]:
	"""
	Map each word on a page to its bounding box.

	Args:
		pdf_bytes: PDF document bytes.
		index: Page index.

	Returns:
		Dict of word to (x0, y0, x1, y1).
	"""
	document = fitz.open(stream=pdf_bytes, filetype="pdf")
	words = {item[4]: tuple(item[:4]) for item in document[index].get_text("words")}
	document.close()
	return words


#============================================
def png_data_url(size: tuple[int, int] = (40, 50)) -> str:
	buffer = io.BytesIO()
	PIL.Image.new("RGB", size, (200, 30, 30)).save(buffer, format="PNG")
	return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")


#============================================
def test_text_lands_at_transformed_position(ready_template: design_lab.model.Template) -> None:
	"""
	Injected text sits inside the field's box on the original page.
	"""
	template = with_fields(ready_template, text_field("field-1", "{{reg_no}}"))
	artifact = design_lab.render.inject_record(template, {"reg_no": "R001"})
	assert artifact.page_count == 2
	assert artifact.warnings == []
	words = page_words(artifact.pdf_bytes, 0)
	assert "PAGE1" in words
	x0, y0, x1, y1 = words["R001"]
	assert x0 == pytest.approx(50 * RATIO, abs=1.5)
	# PyMuPDF reports top-left origin boxes
	center = (y0 + y1) / 2.0
	assert 100 * RATIO < center < 120 * RATIO


#============================================
def test_back_fields_go_to_second_page(ready_template: design_lab.model.Template) -> None:
	template = with_fields(
		ready_template,
		text_field("field-1", "{{full_name}}"),
		text_field("field-2", "{{reg_no}}", side="back"),
	)
	artifact = design_lab.render.inject_record(template, {"full_name": "ALICE", "reg_no": "R001"})
	assert "ALICE" in page_words(artifact.pdf_bytes, 0)
	back_words = page_words(artifact.pdf_bytes, 1)
	assert "R001" in back_words
	assert "ALICE" not in back_words


#============================================
def test_back_fields_fall_back_to_first_page(ready_template: design_lab.model.Template, card_pdf: bytes) -> None:
	"""
	A one-page document receives back fields on its only page.
	"""
	pdf_base64 = "data:application/pdf;base64," + base64.b64encode(card_pdf).decode("ascii")
	template = dataclasses.replace(ready_template, pdf_base64=pdf_base64)
	template = with_fields(template, text_field("field-1", "{{reg_no}}", side="back"))
	artifact = design_lab.render.inject_record(template, {"reg_no": "R001"})
	assert artifact.page_count == 1
	assert "R001" in page_words(artifact.pdf_bytes, 0)


#============================================
def test_missing_dimensions_fail_fast(ready_template: design_lab.model.Template) -> None:
	template = dataclasses.replace(ready_template, back=design_lab.model.Side())
	template = with_fields(template, text_field("field-1", "{{reg_no}}", side="back"))
	with pytest.raises(design_lab.errors.MissingDimensions):
		design_lab.render.inject_record(template, {"reg_no": "R001"})


#============================================
def test_unresolved_placeholder_rendered_with_warning(ready_template: design_lab.model.Template) -> None:
	template = with_fields(ready_template, text_field("field-1", "{{stream_id}}"))
	artifact = design_lab.render.inject_record(template, {})
	assert "{{stream_id}}" in page_words(artifact.pdf_bytes, 0)
	assert [warning.key for warning in artifact.warnings] == ["{{stream_id}}"]


#============================================
def test_missing_photo_leaves_slot_empty(ready_template: design_lab.model.Template) -> None:
	"""
	A photo field with no image draws nothing at all.
	"""
	photo = design_lab.model.OverlayField(
		id="field-1",
		side="front",
		field_type="photo",
		binding=design_lab.model.ImageBinding("{{photo}}"),
		x=600,
		y=100,
		width=80,
		height=100,
	)
	template = with_fields(ready_template, photo)
	empty = design_lab.render.inject_record(template, {})
	document = fitz.open(stream=empty.pdf_bytes, filetype="pdf")
	assert document[0].get_images() == []
	assert sorted(page_words(empty.pdf_bytes, 0)) == ["PAGE1"]
	document.close()

	filled = design_lab.render.inject_record(template, {"photo": png_data_url()})
	document = fitz.open(stream=filled.pdf_bytes, filetype="pdf")
	assert len(document[0].get_images()) == 1
	document.close()


#============================================
def test_barcode_and_empty_payload(ready_template: design_lab.model.Template) -> None:
	barcode = design_lab.model.OverlayField(
		id="field-1",
		side="front",
		field_type="barcode",
		binding=design_lab.model.CompositeBinding("{{barcode}}", fields=("reg_no", "class_id")),
		x=400,
		y=300,
		width=200,
		height=60,
	)
	template = with_fields(ready_template, barcode)
	artifact = design_lab.render.inject_record(template, {"reg_no": "R001", "class_id": "S.1"})
	document = fitz.open(stream=artifact.pdf_bytes, filetype="pdf")
	assert len(document[0].get_drawings()) > 0
	document.close()

	blank_binding = design_lab.model.CompositeBinding("{{barcode}}", fields=("combination",))
	template = with_fields(ready_template, dataclasses.replace(barcode, binding=blank_binding))
	artifact = design_lab.render.inject_record(template, {})
	document = fitz.open(stream=artifact.pdf_bytes, filetype="pdf")
	assert document[0].get_drawings() == []
	document.close()


#============================================
def test_qr_renders(ready_template: design_lab.model.Template) -> None:
	qr = design_lab.model.OverlayField(
		id="field-1",
		side="back",
		field_type="qr",
		binding=design_lab.model.CompositeBinding("{{qr}}", mode="JSON"),
		x=600,
		y=200,
		width=120,
		height=120,
	)
	template = with_fields(ready_template, qr)
	artifact = design_lab.render.inject_record(template, {"full_name": "ALICE", "reg_no": "R001"})
	document = fitz.open(stream=artifact.pdf_bytes, filetype="pdf")
	assert len(document[1].get_drawings()) > 0
	assert document[0].get_drawings() == []
	document.close()


#============================================
def test_rerender_is_byte_identical(ready_template: design_lab.model.Template) -> None:
	template = with_fields(
		ready_template,
		text_field("field-1", "{{full_name}}"),
		text_field("field-2", "{{reg_no}}", side="back"),
	)
	record = {"full_name": "ALICE", "reg_no": "R001"}
	first = design_lab.render.inject_record(template, record)
	second = design_lab.render.inject_record(template, record)
	assert first.pdf_bytes == second.pdf_bytes


#============================================
def test_field_failure_names_field(ready_template: design_lab.model.Template) -> None:
	"""
	An unloadable image aborts the render and names the field.
	"""
	photo = design_lab.model.OverlayField(
		id="field-9",
		side="front",
		field_type="photo",
		binding=design_lab.model.ImageBinding("{{photo}}"),
		x=10,
		y=10,
		width=80,
		height=100,
	)
	template = with_fields(ready_template, photo)
	with pytest.raises(design_lab.errors.RenderFailure) as excinfo:
		design_lab.render.inject_record(template, {"photo": "no/such/photo.png"})
	assert excinfo.value.field_id == "field-9"


#============================================
def test_missing_master_document(ready_template: design_lab.model.Template) -> None:
	template = dataclasses.replace(ready_template, pdf_base64=None)
	with pytest.raises(design_lab.errors.DocumentParseFailure):
		design_lab.render.inject_record(template, {})


#============================================
@pytest.mark.parametrize(
	"weight, style, expected",
	[
		("bold", "normal", "Helvetica-Bold"),
		("400", "italic", "Helvetica-Oblique"),
		("700", "italic", "Helvetica-BoldOblique"),
		("normal", "normal", "Helvetica"),
	],
)
def test_font_mapping(weight: str, style: str, expected: str) -> None:
	assert design_lab.render.map_font_name(weight, style) == expected


#============================================
def test_hex_colors() -> None:
	assert design_lab.render.parse_hex_color("#ff0000") == (1.0, 0.0, 0.0)
	assert design_lab.render.parse_hex_color("#fff") == (1.0, 1.0, 1.0)
	assert design_lab.render.parse_hex_color("red") == (0.0, 0.0, 0.0)
