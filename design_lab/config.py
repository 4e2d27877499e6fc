"""
Shared configuration and constants.
"""

import dataclasses


WORKSPACE_WIDTH = 800
DEFAULT_WORKSPACE_HEIGHT = 600
PREVIEW_SCALE = 2.5
NATIVE_SCALE = 1.0
MAX_UPLOAD_BYTES = 5 * 1024 * 1024
MAX_SIDES = 2

MIN_FIELD_SIZE = 20
DEFAULT_FIELD_X = 50
DEFAULT_FIELD_Y = 50
DEFAULT_TEXT_WIDTH = 150
DEFAULT_TEXT_HEIGHT = 20
DEFAULT_PHOTO_WIDTH = 80
DEFAULT_PHOTO_HEIGHT = 100
DEFAULT_ASSET_WIDTH = 120
DEFAULT_ASSET_HEIGHT = 40

DEFAULT_FONT_SIZE = 12.0
DEFAULT_FONT_WEIGHT = "bold"
DEFAULT_FONT_STYLE = "normal"
DEFAULT_TEXT_COLOR = "#000000"
DEFAULT_TEXT_ALIGN = "left"

DEFAULT_FONT_REGULAR = "Helvetica"
DEFAULT_FONT_BOLD = "Helvetica-Bold"
DEFAULT_FONT_ITALIC = "Helvetica-Oblique"
DEFAULT_FONT_BOLD_ITALIC = "Helvetica-BoldOblique"

PLACEHOLDER_OPEN = "{{"
PLACEHOLDER_CLOSE = "}}"
PSV_SEPARATOR = "|"
ENCODING_MODES = ("PSV", "JSON")
DEFAULT_BOUND_FIELDS = ("full_name", "reg_no", "class_id")
BARCODE_SYMBOLOGY = "Code128"
QR_SYMBOLOGY = "QR"

FIELD_TYPES = ("text", "photo", "signature", "barcode", "qr")
IMAGE_FIELD_TYPES = ("photo", "signature")
CODE_FIELD_TYPES = ("barcode", "qr")
SIDES = ("front", "back")
TEMPLATE_KINDS = ("ID", "Report", "Certificate")
ORIENTATIONS = ("landscape", "portrait")
RESIZE_HANDLES = ("n", "s", "e", "w", "ne", "nw", "se", "sw")

PDF_DATA_URL_PREFIX = "data:application/pdf;base64,"
PNG_DATA_URL_PREFIX = "data:image/png;base64,"

IMAGE_KEY_ALIASES = {
	"photo": "photo_url",
	"signature": "signature_url",
}

SAMPLE_RECORD = {
	"full_name": "SAMPLE STUDENT",
	"reg_no": "REG/001/2024",
	"class_id": "S.1",
	"stream_id": "WHITE",
}

SYNC_ACTION = "TEMPLATE_SYNC_SUCCESS"


@dataclasses.dataclass(frozen=True)
class PaletteEntry:
	key: str
	label: str
	field_type: str


PALETTE = (
	PaletteEntry("{{full_name}}", "Full Name", "text"),
	PaletteEntry("{{reg_no}}", "Reg Number", "text"),
	PaletteEntry("{{class_id}}", "Class ID", "text"),
	PaletteEntry("{{stream_id}}", "Stream ID", "text"),
	PaletteEntry("{{combination}}", "A-Level Comb", "text"),
	PaletteEntry("{{expiry_date}}", "Expiry Date", "text"),
	PaletteEntry("STATIC_LABEL", "Static Text", "text"),
	PaletteEntry("{{photo}}", "Biometric Photo", "photo"),
	PaletteEntry("{{signature}}", "Student Signature", "signature"),
	PaletteEntry("{{barcode}}", "Barcode", "barcode"),
	PaletteEntry("{{qr}}", "QR Matrix", "qr"),
)


#============================================
def find_palette_entry(key: str) -> PaletteEntry | None:
	"""
	Find a palette entry by its binding key.

	Args:
		key: Binding key such as "{{reg_no}}".

	Returns:
		PaletteEntry or None.
	"""
	for entry in PALETTE:
		if entry.key == key:
			return entry
	return None


#============================================
def default_field_size(field_type: str) -> tuple[int, int]:
	"""
	Default workspace size for a new field of the given type.

	Args:
		field_type: Field type name.

	Returns:
		Tuple of (width, height) in workspace pixels.
	"""
	if field_type == "photo":
		return (DEFAULT_PHOTO_WIDTH, DEFAULT_PHOTO_HEIGHT)
	if field_type in ("signature", "barcode", "qr"):
		return (DEFAULT_ASSET_WIDTH, DEFAULT_ASSET_HEIGHT)
	return (DEFAULT_TEXT_WIDTH, DEFAULT_TEXT_HEIGHT)
