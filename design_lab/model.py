"""
Template model and its persisted JSON layout.
"""

# Standard Library
import dataclasses
import uuid

# local repo modules
import design_lab as dl
import design_lab.config


DEFAULT_FONT_SIZE = dl.config.DEFAULT_FONT_SIZE
DEFAULT_FONT_WEIGHT = dl.config.DEFAULT_FONT_WEIGHT
DEFAULT_FONT_STYLE = dl.config.DEFAULT_FONT_STYLE
DEFAULT_TEXT_COLOR = dl.config.DEFAULT_TEXT_COLOR
DEFAULT_TEXT_ALIGN = dl.config.DEFAULT_TEXT_ALIGN
DEFAULT_BOUND_FIELDS = dl.config.DEFAULT_BOUND_FIELDS
FIELD_TYPES = dl.config.FIELD_TYPES
IMAGE_FIELD_TYPES = dl.config.IMAGE_FIELD_TYPES
CODE_FIELD_TYPES = dl.config.CODE_FIELD_TYPES
SIDES = dl.config.SIDES
TEMPLATE_KINDS = dl.config.TEMPLATE_KINDS
ORIENTATIONS = dl.config.ORIENTATIONS
ENCODING_MODES = dl.config.ENCODING_MODES


@dataclasses.dataclass(frozen=True)
class Dimensions:
	width: float
	height: float


@dataclasses.dataclass(frozen=True)
class Side:
	background_url: str | None = None
	dimensions: Dimensions | None = None

	@property
	def is_ready(self) -> bool:
		return bool(self.background_url) and self.dimensions is not None


@dataclasses.dataclass(frozen=True)
class FieldStyle:
	font_size: float = DEFAULT_FONT_SIZE
	font_weight: str = DEFAULT_FONT_WEIGHT
	font_style: str = DEFAULT_FONT_STYLE
	color: str = DEFAULT_TEXT_COLOR
	text_align: str = DEFAULT_TEXT_ALIGN


@dataclasses.dataclass(frozen=True)
class TextBinding:
	# placeholder token such as "{{reg_no}}" or a literal string
	key: str


@dataclasses.dataclass(frozen=True)
class ImageBinding:
	key: str


@dataclasses.dataclass(frozen=True)
class CompositeBinding:
	key: str
	fields: tuple[str, ...] = DEFAULT_BOUND_FIELDS
	mode: str = "PSV"


Binding = TextBinding | ImageBinding | CompositeBinding


@dataclasses.dataclass(frozen=True)
class OverlayField:
	id: str
	side: str
	field_type: str
	binding: Binding
	x: float
	y: float
	width: float
	height: float
	style: FieldStyle = FieldStyle()

	@property
	def binding_key(self) -> str:
		return self.binding.key


@dataclasses.dataclass(frozen=True)
class Template:
	id: str
	tenant_id: str
	name: str
	kind: str = "ID"
	orientation: str = "landscape"
	front: Side = Side()
	back: Side = Side()
	fields: tuple[OverlayField, ...] = ()
	pdf_base64: str | None = None
	is_active: bool = True
	created_at: str | None = None

	#============================================
	def side(self, name: str) -> Side:
		"""
		Look up a side by name.

		Args:
			name: "front" or "back".

		Returns:
			Side.
		"""
		if name == "front":
			return self.front
		if name == "back":
			return self.back
		raise ValueError(f"Unknown side: {name}")

	#============================================
	def find_field(self, field_id: str) -> OverlayField | None:
		for field in self.fields:
			if field.id == field_id:
				return field
		return None

	#============================================
	def fields_on(self, side: str) -> list[OverlayField]:
		return [field for field in self.fields if field.side == side]


#============================================
def new_template(
	tenant_id: str,
	kind: str = "ID",
	name: str | None = None,
	template_id: str | None = None,
) -> Template:
	"""
	Create an empty template with no background on either side.

	Args:
		tenant_id: Owning tenant (school) id.
		kind: Artifact kind.
		name: Optional display name.
		template_id: Optional fixed id.

	Returns:
		Template.
	"""
	if kind not in TEMPLATE_KINDS:
		raise ValueError(f"Unknown template kind: {kind}")
	if template_id is None:
		template_id = uuid.uuid4().hex[:12]
	if name is None:
		name = f"Institutional {kind} Template"
	return Template(id=template_id, tenant_id=tenant_id, name=name, kind=kind)


#============================================
def next_field_id(template: Template) -> str:
	"""
	Pick the next unused field id within a template.

	Args:
		template: Template to scan.

	Returns:
		Field id string.
	"""
	existing = {field.id for field in template.fields}
	index = len(template.fields) + 1
	while f"field-{index}" in existing:
		index += 1
	return f"field-{index}"


#============================================
def default_binding(field_type: str, key: str) -> Binding:
	"""
	Build the binding variant that matches a field type.

	Args:
		field_type: Field type name.
		key: Binding key from the palette.

	Returns:
		Binding instance.
	"""
	if field_type not in FIELD_TYPES:
		raise ValueError(f"Unknown field type: {field_type}")
	if field_type in IMAGE_FIELD_TYPES:
		return ImageBinding(key=key)
	if field_type in CODE_FIELD_TYPES:
		return CompositeBinding(key=key)
	return TextBinding(key=key)


#============================================
def dimensions_to_dict(dimensions: Dimensions | None) -> dict | None:
	if dimensions is None:
		return None
	return {"width": dimensions.width, "height": dimensions.height}


#============================================
def dimensions_from_dict(data: dict | None) -> Dimensions | None:
	"""
	Parse stored dimensions, treating zero sizes as absent.

	Args:
		data: Stored dict or None.

	Returns:
		Dimensions or None.
	"""
	if not data:
		return None
	width = float(data.get("width") or 0.0)
	height = float(data.get("height") or 0.0)
	if width <= 0.0 or height <= 0.0:
		return None
	return Dimensions(width=width, height=height)


#============================================
def side_to_dict(side: Side) -> dict:
	data = {"backgroundUrl": side.background_url}
	if side.dimensions is not None:
		data["dimensions"] = dimensions_to_dict(side.dimensions)
	return data


#============================================
def side_from_dict(data: dict | None) -> Side:
	if not data:
		return Side()
	return Side(
		background_url=data.get("backgroundUrl"),
		dimensions=dimensions_from_dict(data.get("dimensions")),
	)


#============================================
def field_to_dict(field: OverlayField) -> dict:
	"""
	Serialize an overlay field.

	Args:
		field: OverlayField.

	Returns:
		JSON-ready dict.
	"""
	data = {
		"id": field.id,
		"key": field.binding.key,
		"type": field.field_type,
		"side": field.side,
		"x": field.x,
		"y": field.y,
		"width": field.width,
		"height": field.height,
		"style": {
			"fontSize": field.style.font_size,
			"fontWeight": field.style.font_weight,
			"fontStyle": field.style.font_style,
			"color": field.style.color,
			"textAlign": field.style.text_align,
		},
	}
	if isinstance(field.binding, CompositeBinding):
		data["barcodeConfig"] = {
			"fields": list(field.binding.fields),
			"format": field.binding.mode,
		}
	return data


#============================================
def field_from_dict(data: dict) -> OverlayField:
	"""
	Parse a stored overlay field.

	Args:
		data: Stored dict.

	Returns:
		OverlayField.
	"""
	field_type = data.get("type", "text")
	if field_type not in FIELD_TYPES:
		raise ValueError(f"Unknown field type: {field_type}")
	key = data.get("key", "")
	if field_type in CODE_FIELD_TYPES:
		config = data.get("barcodeConfig") or {}
		mode = config.get("format", "PSV")
		if mode not in ENCODING_MODES:
			raise ValueError(f"Unknown encoding mode: {mode}")
		binding = CompositeBinding(
			key=key,
			fields=tuple(config.get("fields", DEFAULT_BOUND_FIELDS)),
			mode=mode,
		)
	else:
		binding = default_binding(field_type, key)

	style_data = data.get("style") or {}
	style = FieldStyle(
		font_size=float(style_data.get("fontSize", DEFAULT_FONT_SIZE)),
		font_weight=style_data.get("fontWeight", DEFAULT_FONT_WEIGHT),
		font_style=style_data.get("fontStyle", DEFAULT_FONT_STYLE),
		color=style_data.get("color", DEFAULT_TEXT_COLOR),
		text_align=style_data.get("textAlign") or DEFAULT_TEXT_ALIGN,
	)
	# fields saved before sides existed belong to the front
	side = data.get("side") or "front"
	if side not in SIDES:
		raise ValueError(f"Unknown side: {side}")
	return OverlayField(
		id=str(data["id"]),
		side=side,
		field_type=field_type,
		binding=binding,
		x=float(data.get("x", 0.0)),
		y=float(data.get("y", 0.0)),
		width=float(data.get("width", 0.0)),
		height=float(data.get("height", 0.0)),
		style=style,
	)


#============================================
def template_to_dict(template: Template) -> dict:
	"""
	Serialize a template to its persisted layout.

	Args:
		template: Template.

	Returns:
		JSON-ready dict.
	"""
	return {
		"id": template.id,
		"school_id": template.tenant_id,
		"name": template.name,
		"type": template.kind,
		"orientation": template.orientation,
		"overlay_data": {
			"variables": [field_to_dict(field) for field in template.fields],
			"grid_mappings": [],
		},
		"design_data": {
			"front": side_to_dict(template.front),
			"back": side_to_dict(template.back),
		},
		"pdf_base64": template.pdf_base64,
		"is_active": template.is_active,
		"created_at": template.created_at,
	}


#============================================
def template_from_dict(data: dict) -> Template:
	"""
	Parse a persisted template.

	Args:
		data: Stored dict.

	Returns:
		Template.
	"""
	kind = data.get("type", "ID")
	if kind not in TEMPLATE_KINDS:
		raise ValueError(f"Unknown template kind: {kind}")
	orientation = data.get("orientation") or "landscape"
	if orientation not in ORIENTATIONS:
		raise ValueError(f"Unknown orientation: {orientation}")
	overlay_data = data.get("overlay_data") or {}
	design_data = data.get("design_data") or {}
	fields = tuple(field_from_dict(item) for item in overlay_data.get("variables", []))
	return Template(
		id=str(data["id"]),
		tenant_id=str(data.get("school_id", "")),
		name=data.get("name", ""),
		kind=kind,
		orientation=orientation,
		front=side_from_dict(design_data.get("front")),
		back=side_from_dict(design_data.get("back")),
		fields=fields,
		pdf_base64=data.get("pdf_base64"),
		is_active=bool(data.get("is_active", True)),
		created_at=data.get("created_at"),
	)
