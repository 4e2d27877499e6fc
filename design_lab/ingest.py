"""
Master document ingestion: preview rasters and native page sizes.
"""

# Standard Library
import base64
import dataclasses
import io

# PIP3 modules
import fitz
import PIL.Image

# local repo modules
import design_lab as dl
import design_lab.config
import design_lab.errors
import design_lab.model


Side = dl.model.Side
Dimensions = dl.model.Dimensions
Template = dl.model.Template
FileTooLarge = dl.errors.FileTooLarge
DocumentParseFailure = dl.errors.DocumentParseFailure

MAX_UPLOAD_BYTES = dl.config.MAX_UPLOAD_BYTES
MAX_SIDES = dl.config.MAX_SIDES
PREVIEW_SCALE = dl.config.PREVIEW_SCALE
NATIVE_SCALE = dl.config.NATIVE_SCALE
PDF_DATA_URL_PREFIX = dl.config.PDF_DATA_URL_PREFIX
PNG_DATA_URL_PREFIX = dl.config.PNG_DATA_URL_PREFIX


@dataclasses.dataclass(frozen=True)
class IngestionResult:
	front: Side
	back: Side
	pdf_base64: str
	page_count: int


#============================================
def check_upload_size(blob: bytes) -> None:
	"""
	Reject documents above the upload ceiling.

	Args:
		blob: Raw document bytes.
	"""
	if len(blob) > MAX_UPLOAD_BYTES:
		raise FileTooLarge(len(blob), MAX_UPLOAD_BYTES)


#============================================
def encode_pdf_data_url(blob: bytes) -> str:
	return PDF_DATA_URL_PREFIX + base64.b64encode(blob).decode("ascii")


#============================================
def decode_data_url(value: str) -> bytes:
	"""
	Decode base64 content, with or without its data URL prefix.

	Args:
		value: Base64 text, optionally prefixed "data:...;base64,".

	Returns:
		Document bytes.
	"""
	if "base64," in value:
		value = value.split("base64,", 1)[1]
	return base64.b64decode(value)


#============================================
def render_page_preview(page: fitz.Page, scale: float) -> str:
	"""
	Rasterize a page into a PNG data URL.

	Args:
		page: PyMuPDF page.
		scale: Oversampling factor relative to native points.

	Returns:
		PNG data URL.
	"""
	matrix = fitz.Matrix(scale, scale)
	pixmap = page.get_pixmap(matrix=matrix, alpha=False)
	image = PIL.Image.frombytes("RGB", [pixmap.width, pixmap.height], pixmap.samples)
	buffer = io.BytesIO()
	image.save(buffer, format="PNG")
	return PNG_DATA_URL_PREFIX + base64.b64encode(buffer.getvalue()).decode("ascii")


#============================================
def read_native_dimensions(page: fitz.Page) -> Dimensions:
	"""
	Read a page's size in native points.

	Args:
		page: PyMuPDF page.

	Returns:
		Dimensions.
	"""
	rect = page.rect * fitz.Matrix(NATIVE_SCALE, NATIVE_SCALE)
	return Dimensions(width=float(rect.width), height=float(rect.height))


#============================================
def ingest_document(blob: bytes) -> IngestionResult:
	"""
	Turn an uploaded master document into preview sides.

	Page 1 becomes the front and page 2, when present, the back. Nothing is
	returned unless every page renders, so callers never see a partial result.

	Args:
		blob: Raw document bytes.

	Returns:
		IngestionResult.
	"""
	check_upload_size(blob)
	try:
		document = fitz.open(stream=blob, filetype="pdf")
	except (RuntimeError, ValueError) as error:
		raise DocumentParseFailure(f"Could not open document: {error}") from error

	try:
		if document.page_count < 1:
			raise DocumentParseFailure("Document has no pages.")
		sides: list[Side] = []
		for index in range(min(document.page_count, MAX_SIDES)):
			page = document[index]
			sides.append(
				Side(
					background_url=render_page_preview(page, PREVIEW_SCALE),
					dimensions=read_native_dimensions(page),
				)
			)
		page_count = document.page_count
	except (RuntimeError, ValueError) as error:
		raise DocumentParseFailure(f"Could not render document: {error}") from error
	finally:
		document.close()

	back = sides[1] if len(sides) > 1 else Side()
	return IngestionResult(
		front=sides[0],
		back=back,
		pdf_base64=encode_pdf_data_url(blob),
		page_count=page_count,
	)


#============================================
def apply_ingestion(template: Template, result: IngestionResult) -> Template:
	"""
	Install freshly ingested sides on a template.

	Both sides are replaced together. Fields on a replaced side lose their
	meaning against the new page, so they are dropped rather than rescaled.

	Args:
		template: Template to update.
		result: IngestionResult.

	Returns:
		New Template.
	"""
	return dataclasses.replace(
		template,
		front=result.front,
		back=result.back,
		pdf_base64=result.pdf_base64,
		fields=(),
	)
