"""
Injection rendering: draw resolved record values onto the master document.
"""

# Standard Library
import collections.abc
import dataclasses
import io
import pathlib
import typing

# PIP3 modules
import PIL.Image
import pypdf
import pypdf.errors
import reportlab.graphics.barcode
import reportlab.graphics.renderPDF
import reportlab.lib.utils
import reportlab.pdfgen.canvas

# local repo modules
import design_lab as dl
import design_lab.binding
import design_lab.config
import design_lab.errors
import design_lab.geometry
import design_lab.ingest
import design_lab.model


Template = dl.model.Template
OverlayField = dl.model.OverlayField
FieldStyle = dl.model.FieldStyle
NativeBox = dl.geometry.NativeBox
Record = dl.binding.Record
TextValue = dl.binding.TextValue
ImageValue = dl.binding.ImageValue
CodeValue = dl.binding.CodeValue
EmptyValue = dl.binding.EmptyValue
DesignLabError = dl.errors.DesignLabError
DocumentParseFailure = dl.errors.DocumentParseFailure
MissingDimensions = dl.errors.MissingDimensions
RenderFailure = dl.errors.RenderFailure
UnresolvedBinding = dl.errors.UnresolvedBinding

DEFAULT_FONT_REGULAR = dl.config.DEFAULT_FONT_REGULAR
DEFAULT_FONT_BOLD = dl.config.DEFAULT_FONT_BOLD
DEFAULT_FONT_ITALIC = dl.config.DEFAULT_FONT_ITALIC
DEFAULT_FONT_BOLD_ITALIC = dl.config.DEFAULT_FONT_BOLD_ITALIC
QR_SYMBOLOGY = dl.config.QR_SYMBOLOGY

ImageLoader = collections.abc.Callable[[typing.Any], PIL.Image.Image]


@dataclasses.dataclass
class RenderedArtifact:
	pdf_bytes: bytes
	page_count: int
	warnings: list[UnresolvedBinding] = dataclasses.field(default_factory=list)


#============================================
def parse_hex_color(value: str) -> tuple[float, float, float]:
	"""
	Parse a hex color string into RGB floats.

	Args:
		value: Color string like "#AABBCC" or "#ABC".

	Returns:
		Tuple of (r, g, b) in 0.0-1.0 range.
	"""
	if not value or not value.startswith("#"):
		return (0.0, 0.0, 0.0)
	digits = value[1:]
	if len(digits) == 3:
		digits = "".join(char * 2 for char in digits)
	if len(digits) != 6:
		return (0.0, 0.0, 0.0)
	try:
		red = int(digits[0:2], 16) / 255.0
		green = int(digits[2:4], 16) / 255.0
		blue = int(digits[4:6], 16) / 255.0
	except ValueError:
		return (0.0, 0.0, 0.0)
	return (red, green, blue)


#============================================
def map_font_name(font_weight: str, font_style: str) -> str:
	"""
	Map CSS-like weight and style to a PDF base font.

	Args:
		font_weight: "normal", "bold" or a numeric weight string.
		font_style: "normal" or "italic".

	Returns:
		ReportLab font name.
	"""
	weight = str(font_weight).strip().lower()
	is_bold = weight == "bold" or (weight.isdigit() and int(weight) >= 700)
	italic = str(font_style).strip().lower() in ("italic", "oblique")
	if italic and is_bold:
		return DEFAULT_FONT_BOLD_ITALIC
	if italic:
		return DEFAULT_FONT_ITALIC
	if is_bold:
		return DEFAULT_FONT_BOLD
	return DEFAULT_FONT_REGULAR


#============================================
def draw_text_value(
	pdf: reportlab.pdfgen.canvas.Canvas,
	box: NativeBox,
	text: str,
	style: FieldStyle,
) -> None:
	"""
	Draw a single line of text inside a native box.

	The line is aligned horizontally per the field style and centred
	vertically, which puts the baseline a fifth of the way up a default
	20 px field.

	Args:
		pdf: ReportLab canvas.
		box: Target box in page points.
		text: Text to draw.
		style: Field style in workspace units.
	"""
	if not text:
		return
	font_name = map_font_name(style.font_weight, style.font_style)
	font_size = box.scale(style.font_size)
	pdf.setFont(font_name, font_size)
	color = parse_hex_color(style.color)
	pdf.setFillColorRGB(color[0], color[1], color[2])

	line_width = pdf.stringWidth(text, font_name, font_size)
	align = (style.text_align or "left").strip().lower()
	if align == "center":
		text_x = box.x + (box.width - line_width) / 2.0
	elif align == "right":
		text_x = box.x + box.width - line_width
	else:
		text_x = box.x
	text_y = box.y + (box.height - font_size) / 2.0
	pdf.drawString(text_x, text_y, text)


#============================================
def load_image(reference: typing.Any, image_loader: ImageLoader | None = None) -> PIL.Image.Image:
	"""
	Load an image reference from a record.

	Args:
		reference: Raw bytes, a data URL, a local path, or anything the
			loader understands.
		image_loader: Optional loader for other references (remote URLs).

	Returns:
		Loaded PIL image.
	"""
	if isinstance(reference, PIL.Image.Image):
		return reference
	if isinstance(reference, (bytes, bytearray)):
		image = PIL.Image.open(io.BytesIO(reference))
	elif isinstance(reference, str) and reference.startswith("data:"):
		image = PIL.Image.open(io.BytesIO(dl.ingest.decode_data_url(reference)))
	elif image_loader is not None:
		image = image_loader(reference)
	elif isinstance(reference, (str, pathlib.Path)) and pathlib.Path(reference).is_file():
		image = PIL.Image.open(reference)
	else:
		raise ValueError(f"Cannot load image reference: {str(reference)[:80]}")
	image.load()
	if image.mode not in ("RGB", "RGBA", "L"):
		image = image.convert("RGBA")
	return image


#============================================
def draw_image_value(
	pdf: reportlab.pdfgen.canvas.Canvas,
	box: NativeBox,
	image: PIL.Image.Image,
) -> None:
	"""
	Draw an image centred in a native box, keeping its aspect ratio.

	Args:
		pdf: ReportLab canvas.
		box: Target box in page points.
		image: Loaded PIL image.
	"""
	image_reader = reportlab.lib.utils.ImageReader(image)
	pdf.drawImage(
		image_reader,
		box.x,
		box.y,
		width=box.width,
		height=box.height,
		mask="auto",
		preserveAspectRatio=True,
		anchor="c",
	)


#============================================
def draw_code_value(
	pdf: reportlab.pdfgen.canvas.Canvas,
	box: NativeBox,
	value: CodeValue,
) -> None:
	"""
	Draw a barcode or QR symbol scaled into a native box.

	Args:
		pdf: ReportLab canvas.
		box: Target box in page points.
		value: Encoded payload and symbology.
	"""
	if not value.payload:
		return
	x = box.x
	y = box.y
	width = box.width
	height = box.height
	if value.symbology == QR_SYMBOLOGY:
		# QR symbols are square; centre them in the slot
		size = min(width, height)
		x += (width - size) / 2.0
		y += (height - size) / 2.0
		width = size
		height = size
	drawing = reportlab.graphics.barcode.createBarcodeDrawing(
		value.symbology,
		value=value.payload,
		width=width,
		height=height,
	)
	reportlab.graphics.renderPDF.draw(drawing, pdf, x, y)


#============================================
def draw_field(
	pdf: reportlab.pdfgen.canvas.Canvas,
	field: OverlayField,
	box: NativeBox,
	value: dl.binding.ResolvedValue,
	image_loader: ImageLoader | None = None,
) -> None:
	"""
	Draw one resolved field value.

	Args:
		pdf: ReportLab canvas.
		field: OverlayField being drawn.
		box: Target box in page points.
		value: Resolved value.
		image_loader: Optional loader for image references.
	"""
	if isinstance(value, TextValue):
		draw_text_value(pdf, box, value.text, field.style)
		return
	if isinstance(value, ImageValue):
		image = load_image(value.reference, image_loader)
		draw_image_value(pdf, box, image)
		return
	if isinstance(value, CodeValue):
		draw_code_value(pdf, box, value)
		return
	if isinstance(value, EmptyValue):
		return
	raise TypeError(f"Unsupported value for field {field.id}: {value!r}")


#============================================
def page_index_for_side(side: str, page_count: int) -> int:
	"""
	Pick the output page for a side.

	Args:
		side: "front" or "back".
		page_count: Pages in the master document.

	Returns:
		Zero-based page index; back falls back to the first page.
	"""
	if side == "back" and page_count >= 2:
		return 1
	return 0


#============================================
def check_dimensions(template: Template) -> None:
	"""
	Fail fast when any placed field's side lacks native dimensions.

	Args:
		template: Template to check.
	"""
	for field in template.fields:
		if template.side(field.side).dimensions is None:
			raise MissingDimensions(field.side)


#============================================
def open_master_document(template: Template) -> pypdf.PdfReader:
	"""
	Re-open the retained original document.

	Args:
		template: Template with pdf_base64.

	Returns:
		PdfReader over a private copy of the bytes.
	"""
	if not template.pdf_base64:
		raise DocumentParseFailure("Template has no retained master document.")
	try:
		source = dl.ingest.decode_data_url(template.pdf_base64)
		reader = pypdf.PdfReader(io.BytesIO(source))
		if len(reader.pages) < 1:
			raise DocumentParseFailure("Master document has no pages.")
	except (pypdf.errors.PyPdfError, ValueError) as error:
		raise DocumentParseFailure(f"Could not open master document: {error}") from error
	return reader


#============================================
def build_page_overlay(
	template: Template,
	fields: list[OverlayField],
	record: Record,
	page_width: float,
	page_height: float,
	warnings: list[UnresolvedBinding],
	image_loader: ImageLoader | None = None,
) -> pypdf.PageObject:
	"""
	Draw a page's fields onto a transparent overlay page.

	Args:
		template: Template being rendered.
		fields: Fields for this page, in stored order.
		record: Record mapping.
		page_width: Native page width.
		page_height: Native page height.
		warnings: Collects unresolved binding warnings.
		image_loader: Optional loader for image references.

	Returns:
		Overlay page object.
	"""
	buffer = io.BytesIO()
	# invariant mode pins the creation date and document id
	pdf = reportlab.pdfgen.canvas.Canvas(
		buffer,
		pagesize=(page_width, page_height),
		invariant=1,
	)
	for field in fields:
		side = template.side(field.side)
		box = dl.geometry.field_to_native(field, side, page_height=page_height)
		try:
			value = dl.binding.resolve_field(field, record)
			draw_field(pdf, field, box, value, image_loader)
		except DesignLabError:
			raise
		except Exception as error:
			raise RenderFailure(field.id, str(error) or type(error).__name__) from error
		if isinstance(value, TextValue) and value.warning is not None:
			warnings.append(value.warning)
	pdf.showPage()
	pdf.save()
	buffer.seek(0)
	reader = pypdf.PdfReader(buffer)
	return reader.pages[0]


#============================================
def inject_record(
	template: Template,
	record: Record,
	image_loader: ImageLoader | None = None,
) -> RenderedArtifact:
	"""
	Render a record onto the template's original document.

	Fields are drawn in stored order, so a later field covers an earlier one.
	Any field failure aborts the whole render. The template and its retained
	bytes are never modified.

	Args:
		template: Template with retained document and placed fields.
		record: Record mapping of field name to value.
		image_loader: Optional loader for image references.

	Returns:
		RenderedArtifact.
	"""
	check_dimensions(template)
	reader = open_master_document(template)
	page_count = len(reader.pages)

	fields_by_page: dict[int, list[OverlayField]] = {}
	for field in template.fields:
		index = page_index_for_side(field.side, page_count)
		fields_by_page.setdefault(index, []).append(field)

	writer = pypdf.PdfWriter()
	for page in reader.pages:
		writer.add_page(page)

	warnings: list[UnresolvedBinding] = []
	for index in sorted(fields_by_page):
		page = writer.pages[index]
		mediabox = page.mediabox
		page_width = float(mediabox.width)
		page_height = float(mediabox.height)
		overlay_page = build_page_overlay(
			template,
			fields_by_page[index],
			record,
			page_width,
			page_height,
			warnings,
			image_loader,
		)
		transform = pypdf.Transformation().translate(float(mediabox.left), float(mediabox.bottom))
		page.merge_transformed_page(overlay_page, transform)

	output = io.BytesIO()
	writer.write(output)
	return RenderedArtifact(
		pdf_bytes=output.getvalue(),
		page_count=page_count,
		warnings=warnings,
	)


#============================================
def describe_layout(template: Template) -> list[dict[str, typing.Any]]:
	"""
	Summarize each field's native placement against its side's page size.

	Args:
		template: Template to describe.

	Returns:
		List of dicts with field id, side, type, key and native box.
	"""
	rows: list[dict[str, typing.Any]] = []
	for field in template.fields:
		box = dl.geometry.field_to_native(field, template.side(field.side))
		rows.append(
			{
				"id": field.id,
				"side": field.side,
				"type": field.field_type,
				"key": field.binding_key,
				"x": box.x,
				"y": box.y,
				"width": box.width,
				"height": box.height,
				"font_size": box.scale(field.style.font_size),
			}
		)
	return rows
