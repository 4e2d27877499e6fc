"""
Interactive editor state machine.

Every editor operation is an action dataclass, and reduce() maps
(state, action) to a new state without mutating the old one. Pointer
handling is synchronous: each PointerMove recomputes geometry from the
session recorded when the drag or resize began.
"""

# Standard Library
import dataclasses
import typing

# local repo modules
import design_lab as dl
import design_lab.config
import design_lab.geometry
import design_lab.ingest
import design_lab.model
import design_lab.render


Template = dl.model.Template
OverlayField = dl.model.OverlayField
FieldStyle = dl.model.FieldStyle
CompositeBinding = dl.model.CompositeBinding
IngestionResult = dl.ingest.IngestionResult
RenderedArtifact = dl.render.RenderedArtifact
PaletteEntry = dl.config.PaletteEntry
round_pixel = dl.geometry.round_pixel

MIN_FIELD_SIZE = dl.config.MIN_FIELD_SIZE
DEFAULT_FIELD_X = dl.config.DEFAULT_FIELD_X
DEFAULT_FIELD_Y = dl.config.DEFAULT_FIELD_Y
SIDES = dl.config.SIDES
ORIENTATIONS = dl.config.ORIENTATIONS
ENCODING_MODES = dl.config.ENCODING_MODES
RESIZE_HANDLES = dl.config.RESIZE_HANDLES

NO_TEMPLATE = "no_template"
TEMPLATE_EMPTY = "template_empty"
TEMPLATE_READY = "template_ready"

IDLE = "idle"
FIELD_SELECTED = "field_selected"
DRAGGING = "dragging"
RESIZING = "resizing"

PLACEMENT_BLOCKED_NOTICE = "Upload the master document before placing fields."

GEOMETRY_KEYS = ("x", "y", "width", "height")
STYLE_KEYS = ("font_size", "font_weight", "font_style", "color", "text_align")
BINDING_KEYS = ("key", "fields", "mode")


@dataclasses.dataclass(frozen=True)
class DragSession:
	field_id: str
	offset_x: float
	offset_y: float


@dataclasses.dataclass(frozen=True)
class ResizeSession:
	field_id: str
	handle: str
	start_pointer_x: float
	start_pointer_y: float
	start_x: float
	start_y: float
	start_width: float
	start_height: float


@dataclasses.dataclass(frozen=True)
class EditorState:
	template: Template | None = None
	active_side: str = "front"
	selected_id: str | None = None
	drag: DragSession | None = None
	resize: ResizeSession | None = None
	notice: str | None = None
	artifact: RenderedArtifact | None = None

	@property
	def phase(self) -> str:
		if self.template is None:
			return NO_TEMPLATE
		if self.template.side(self.active_side).is_ready:
			return TEMPLATE_READY
		return TEMPLATE_EMPTY

	@property
	def mode(self) -> str:
		if self.drag is not None:
			return DRAGGING
		if self.resize is not None:
			return RESIZING
		if self.selected_id is not None:
			return FIELD_SELECTED
		return IDLE

	@property
	def can_place_fields(self) -> bool:
		return self.phase == TEMPLATE_READY

	@property
	def selected_field(self) -> OverlayField | None:
		if self.template is None or self.selected_id is None:
			return None
		return self.template.find_field(self.selected_id)

	@property
	def visible_fields(self) -> list[OverlayField]:
		if self.template is None:
			return []
		return self.template.fields_on(self.active_side)

	@property
	def workspace_height(self) -> float:
		if self.template is None:
			return float(dl.config.DEFAULT_WORKSPACE_HEIGHT)
		return dl.geometry.workspace_height(self.template.side(self.active_side))


#============================================
# actions

@dataclasses.dataclass(frozen=True)
class LoadTemplate:
	template: Template


@dataclasses.dataclass(frozen=True)
class CloseTemplate:
	pass


@dataclasses.dataclass(frozen=True)
class UpdateTemplate:
	changes: dict[str, typing.Any]


@dataclasses.dataclass(frozen=True)
class AddField:
	entry: PaletteEntry


@dataclasses.dataclass(frozen=True)
class SelectField:
	field_id: str


@dataclasses.dataclass(frozen=True)
class ClearSelection:
	pass


@dataclasses.dataclass(frozen=True)
class BeginDrag:
	field_id: str
	pointer_x: float
	pointer_y: float


@dataclasses.dataclass(frozen=True)
class BeginResize:
	field_id: str
	handle: str
	pointer_x: float
	pointer_y: float


@dataclasses.dataclass(frozen=True)
class PointerMove:
	pointer_x: float
	pointer_y: float


@dataclasses.dataclass(frozen=True)
class PointerRelease:
	pass


@dataclasses.dataclass(frozen=True)
class UpdateField:
	field_id: str
	changes: dict[str, typing.Any]


@dataclasses.dataclass(frozen=True)
class DeleteField:
	field_id: str


@dataclasses.dataclass(frozen=True)
class SwitchSide:
	side: str


@dataclasses.dataclass(frozen=True)
class DismissNotice:
	pass


@dataclasses.dataclass(frozen=True)
class IngestionCompleted:
	template_id: str
	result: IngestionResult


@dataclasses.dataclass(frozen=True)
class IngestionFailed:
	template_id: str
	message: str


@dataclasses.dataclass(frozen=True)
class RenderCompleted:
	template_id: str
	artifact: RenderedArtifact


@dataclasses.dataclass(frozen=True)
class RenderFailed:
	template_id: str
	message: str


#============================================
def replace_field(template: Template, field: OverlayField) -> Template:
	"""
	Swap in an updated field, keeping stored order.

	Args:
		template: Template holding the field.
		field: Updated field with the same id.

	Returns:
		New Template.
	"""
	fields = tuple(field if item.id == field.id else item for item in template.fields)
	return dataclasses.replace(template, fields=fields)


#============================================
def clamp_size(value: float) -> float:
	return max(float(MIN_FIELD_SIZE), float(value))


#============================================
def apply_field_changes(field: OverlayField, changes: dict[str, typing.Any]) -> OverlayField:
	"""
	Merge a property patch into a field.

	Args:
		field: Field to update.
		changes: Mapping of property name to new value.

	Returns:
		Updated OverlayField.
	"""
	geometry: dict[str, float] = {}
	style: dict[str, typing.Any] = {}
	binding: dict[str, typing.Any] = {}
	for name, value in changes.items():
		if name in GEOMETRY_KEYS:
			geometry[name] = float(value)
		elif name in STYLE_KEYS:
			style[name] = value
		elif name in BINDING_KEYS:
			binding[name] = value
		else:
			raise ValueError(f"Unknown field property: {name}")

	if "width" in geometry:
		geometry["width"] = clamp_size(geometry["width"])
	if "height" in geometry:
		geometry["height"] = clamp_size(geometry["height"])
	if "font_size" in style:
		style["font_size"] = float(style["font_size"])

	new_binding = field.binding
	if "fields" in binding or "mode" in binding:
		if not isinstance(field.binding, CompositeBinding):
			raise ValueError(f"Field {field.id} has no bound field list")
		if "fields" in binding:
			binding["fields"] = tuple(binding["fields"])
		if binding.get("mode", field.binding.mode) not in ENCODING_MODES:
			raise ValueError(f"Unknown encoding mode: {binding['mode']}")
	if binding:
		new_binding = dataclasses.replace(field.binding, **binding)

	return dataclasses.replace(
		field,
		binding=new_binding,
		style=dataclasses.replace(field.style, **style),
		**geometry,
	)


#============================================
def reduce_load_template(state: EditorState, action: LoadTemplate) -> EditorState:
	return EditorState(template=action.template)


#============================================
def reduce_close_template(state: EditorState, action: CloseTemplate) -> EditorState:
	return EditorState()


#============================================
def reduce_update_template(state: EditorState, action: UpdateTemplate) -> EditorState:
	if state.template is None:
		return state
	allowed = ("name", "orientation", "is_active")
	for name in action.changes:
		if name not in allowed:
			raise ValueError(f"Unknown template property: {name}")
	orientation = action.changes.get("orientation", state.template.orientation)
	if orientation not in ORIENTATIONS:
		raise ValueError(f"Unknown orientation: {orientation}")
	template = dataclasses.replace(state.template, **action.changes)
	return dataclasses.replace(state, template=template)


#============================================
def reduce_add_field(state: EditorState, action: AddField) -> EditorState:
	"""
	Place a new field from a palette entry on the active side.

	Blocked, with a notice, until the active side has a background.
	"""
	if state.template is None or not state.can_place_fields:
		return dataclasses.replace(state, notice=PLACEMENT_BLOCKED_NOTICE)
	entry = action.entry
	width, height = dl.config.default_field_size(entry.field_type)
	field = OverlayField(
		id=dl.model.next_field_id(state.template),
		side=state.active_side,
		field_type=entry.field_type,
		binding=dl.model.default_binding(entry.field_type, entry.key),
		x=DEFAULT_FIELD_X,
		y=DEFAULT_FIELD_Y,
		width=width,
		height=height,
		style=FieldStyle(),
	)
	template = dataclasses.replace(state.template, fields=state.template.fields + (field,))
	return dataclasses.replace(
		state,
		template=template,
		selected_id=field.id,
		drag=None,
		resize=None,
		notice=None,
	)


#============================================
def find_active_field(state: EditorState, field_id: str) -> OverlayField | None:
	"""
	Find a field on the active side.

	Args:
		state: Editor state.
		field_id: Field id.

	Returns:
		OverlayField or None when absent or on the other side.
	"""
	if state.template is None:
		return None
	field = state.template.find_field(field_id)
	if field is None or field.side != state.active_side:
		return None
	return field


#============================================
def reduce_select_field(state: EditorState, action: SelectField) -> EditorState:
	if find_active_field(state, action.field_id) is None:
		return state
	return dataclasses.replace(state, selected_id=action.field_id, drag=None, resize=None)


#============================================
def reduce_clear_selection(state: EditorState, action: ClearSelection) -> EditorState:
	return dataclasses.replace(state, selected_id=None, drag=None, resize=None)


#============================================
def reduce_begin_drag(state: EditorState, action: BeginDrag) -> EditorState:
	field = find_active_field(state, action.field_id)
	if field is None:
		return state
	drag = DragSession(
		field_id=field.id,
		offset_x=action.pointer_x - field.x,
		offset_y=action.pointer_y - field.y,
	)
	return dataclasses.replace(state, selected_id=field.id, drag=drag, resize=None)


#============================================
def reduce_begin_resize(state: EditorState, action: BeginResize) -> EditorState:
	if action.handle not in RESIZE_HANDLES:
		raise ValueError(f"Unknown resize handle: {action.handle}")
	field = find_active_field(state, action.field_id)
	if field is None:
		return state
	resize = ResizeSession(
		field_id=field.id,
		handle=action.handle,
		start_pointer_x=action.pointer_x,
		start_pointer_y=action.pointer_y,
		start_x=field.x,
		start_y=field.y,
		start_width=field.width,
		start_height=field.height,
	)
	return dataclasses.replace(state, selected_id=field.id, drag=None, resize=resize)


#============================================
def resize_geometry(session: ResizeSession, pointer_x: float, pointer_y: float) -> dict[str, float]:
	"""
	Compute field geometry for a resize in progress.

	Width and height never drop below MIN_FIELD_SIZE. Dragging a west or
	north handle moves the field origin so the east or south edge stays put.

	Args:
		session: ResizeSession recorded at the start of the resize.
		pointer_x: Current pointer x in workspace pixels.
		pointer_y: Current pointer y in workspace pixels.

	Returns:
		Dict with x, y, width and height.
	"""
	delta_x = pointer_x - session.start_pointer_x
	delta_y = pointer_y - session.start_pointer_y
	x = session.start_x
	y = session.start_y
	width = session.start_width
	height = session.start_height
	if "e" in session.handle:
		width = clamp_size(session.start_width + delta_x)
	if "s" in session.handle:
		height = clamp_size(session.start_height + delta_y)
	if "w" in session.handle:
		width = clamp_size(session.start_width - delta_x)
		x = session.start_x + session.start_width - width
	if "n" in session.handle:
		height = clamp_size(session.start_height - delta_y)
		y = session.start_y + session.start_height - height
	return {"x": x, "y": y, "width": width, "height": height}


#============================================
def reduce_pointer_move(state: EditorState, action: PointerMove) -> EditorState:
	if state.template is None:
		return state
	if state.drag is not None:
		field = state.template.find_field(state.drag.field_id)
		if field is None:
			return dataclasses.replace(state, drag=None)
		# no clamping: fields may be parked off the canvas
		moved = dataclasses.replace(
			field,
			x=round_pixel(action.pointer_x - state.drag.offset_x),
			y=round_pixel(action.pointer_y - state.drag.offset_y),
		)
		return dataclasses.replace(state, template=replace_field(state.template, moved))
	if state.resize is not None:
		field = state.template.find_field(state.resize.field_id)
		if field is None:
			return dataclasses.replace(state, resize=None)
		geometry = resize_geometry(state.resize, action.pointer_x, action.pointer_y)
		resized = dataclasses.replace(field, **geometry)
		return dataclasses.replace(state, template=replace_field(state.template, resized))
	return state


#============================================
def reduce_pointer_release(state: EditorState, action: PointerRelease) -> EditorState:
	if state.drag is None and state.resize is None:
		return state
	return dataclasses.replace(state, drag=None, resize=None)


#============================================
def reduce_update_field(state: EditorState, action: UpdateField) -> EditorState:
	if state.template is None:
		return state
	field = state.template.find_field(action.field_id)
	if field is None:
		return state
	updated = apply_field_changes(field, action.changes)
	return dataclasses.replace(state, template=replace_field(state.template, updated))


#============================================
def reduce_delete_field(state: EditorState, action: DeleteField) -> EditorState:
	if state.template is None or state.template.find_field(action.field_id) is None:
		return state
	fields = tuple(field for field in state.template.fields if field.id != action.field_id)
	template = dataclasses.replace(state.template, fields=fields)
	if state.selected_id != action.field_id:
		return dataclasses.replace(state, template=template)
	return dataclasses.replace(
		state,
		template=template,
		selected_id=None,
		drag=None,
		resize=None,
	)


#============================================
def reduce_switch_side(state: EditorState, action: SwitchSide) -> EditorState:
	if action.side not in SIDES:
		raise ValueError(f"Unknown side: {action.side}")
	return dataclasses.replace(
		state,
		active_side=action.side,
		selected_id=None,
		drag=None,
		resize=None,
	)


#============================================
def reduce_dismiss_notice(state: EditorState, action: DismissNotice) -> EditorState:
	return dataclasses.replace(state, notice=None)


#============================================
def is_current(state: EditorState, template_id: str) -> bool:
	return state.template is not None and state.template.id == template_id


#============================================
def reduce_ingestion_completed(state: EditorState, action: IngestionCompleted) -> EditorState:
	"""
	Install ingested sides if the template is still open.

	Only the sides, retained document and the fields they invalidate change;
	name, orientation and other edits made meanwhile are kept.
	"""
	if not is_current(state, action.template_id):
		return state
	template = dl.ingest.apply_ingestion(state.template, action.result)
	return dataclasses.replace(
		state,
		template=template,
		selected_id=None,
		drag=None,
		resize=None,
		notice=None,
	)


#============================================
def reduce_ingestion_failed(state: EditorState, action: IngestionFailed) -> EditorState:
	if not is_current(state, action.template_id):
		return state
	return dataclasses.replace(state, notice=action.message)


#============================================
def reduce_render_completed(state: EditorState, action: RenderCompleted) -> EditorState:
	if not is_current(state, action.template_id):
		return state
	notice = None
	if action.artifact.warnings:
		keys = sorted({warning.key for warning in action.artifact.warnings})
		notice = "Unresolved bindings: " + ", ".join(keys)
	return dataclasses.replace(state, artifact=action.artifact, notice=notice)


#============================================
def reduce_render_failed(state: EditorState, action: RenderFailed) -> EditorState:
	if not is_current(state, action.template_id):
		return state
	return dataclasses.replace(state, artifact=None, notice=action.message)


REDUCERS = {
	LoadTemplate: reduce_load_template,
	CloseTemplate: reduce_close_template,
	UpdateTemplate: reduce_update_template,
	AddField: reduce_add_field,
	SelectField: reduce_select_field,
	ClearSelection: reduce_clear_selection,
	BeginDrag: reduce_begin_drag,
	BeginResize: reduce_begin_resize,
	PointerMove: reduce_pointer_move,
	PointerRelease: reduce_pointer_release,
	UpdateField: reduce_update_field,
	DeleteField: reduce_delete_field,
	SwitchSide: reduce_switch_side,
	DismissNotice: reduce_dismiss_notice,
	IngestionCompleted: reduce_ingestion_completed,
	IngestionFailed: reduce_ingestion_failed,
	RenderCompleted: reduce_render_completed,
	RenderFailed: reduce_render_failed,
}


#============================================
def reduce(state: EditorState, action: typing.Any) -> EditorState:
	"""
	Apply one action to the editor state.

	Args:
		state: Current state; left untouched.
		action: Action dataclass instance.

	Returns:
		New EditorState.
	"""
	handler = REDUCERS.get(type(action))
	if handler is None:
		raise TypeError(f"Unknown editor action: {action!r}")
	return handler(state, action)
