import dataclasses

import pytest

import design_lab.config
import design_lab.editor as editor
import design_lab.ingest
import design_lab.model


READY_SIDE = design_lab.model.Side(
	background_url="data:image/png;base64,AAAA",
	dimensions=design_lab.model.Dimensions(width=1013.0, height=638.0),
)
REG_NO = design_lab.config.find_palette_entry("{{reg_no}}")
PHOTO = design_lab.config.find_palette_entry("{{photo}}")
BARCODE = design_lab.config.find_palette_entry("{{barcode}}")


#============================================
def make_state(back_ready: bool = False) -> editor.EditorState:
	template = design_lab.model.new_template("school-1", template_id="tpl-1")
	template = dataclasses.replace(
		template,
		front=READY_SIDE,
		back=READY_SIDE if back_ready else design_lab.model.Side(),
	)
	return editor.reduce(editor.EditorState(), editor.LoadTemplate(template))


#============================================
def apply_all(state: editor.EditorState, *actions) -> editor.EditorState:
	for action in actions:
		state = editor.reduce(state, action)
	return state


#============================================
def test_phases() -> None:
	"""
	Phase follows the open template and the active side's background.
	"""
	assert editor.EditorState().phase == editor.NO_TEMPLATE
	empty = editor.reduce(
		editor.EditorState(),
		editor.LoadTemplate(design_lab.model.new_template("school-1")),
	)
	assert empty.phase == editor.TEMPLATE_EMPTY
	assert make_state().phase == editor.TEMPLATE_READY


#============================================
def test_add_field_uses_palette_defaults() -> None:
	"""
	New fields land at (50, 50) with type-specific sizes and get selected.
	"""
	state = apply_all(make_state(), editor.AddField(REG_NO), editor.AddField(PHOTO), editor.AddField(BARCODE))
	text, photo, barcode = state.template.fields
	assert (text.x, text.y, text.width, text.height) == (50, 50, 150, 20)
	assert (photo.width, photo.height) == (80, 100)
	assert (barcode.width, barcode.height) == (120, 40)
	assert isinstance(text.binding, design_lab.model.TextBinding)
	assert isinstance(photo.binding, design_lab.model.ImageBinding)
	assert barcode.binding.fields == ("full_name", "reg_no", "class_id")
	assert barcode.binding.mode == "PSV"
	assert text.style.font_size == 12
	assert text.style.font_weight == "bold"
	assert len({field.id for field in state.template.fields}) == 3
	assert state.selected_id == barcode.id
	assert state.mode == editor.FIELD_SELECTED


#============================================
def test_add_field_blocked_without_background() -> None:
	"""
	Placing on a side with no background leaves the template untouched.
	"""
	state = apply_all(make_state(), editor.SwitchSide("back"))
	before = state.template
	state = editor.reduce(state, editor.AddField(REG_NO))
	assert state.template is before
	assert state.notice == editor.PLACEMENT_BLOCKED_NOTICE
	assert state.selected_id is None


#============================================
def test_drag_rounds_and_does_not_clamp() -> None:
	state = apply_all(make_state(), editor.AddField(REG_NO))
	field_id = state.selected_id
	state = apply_all(
		state,
		editor.BeginDrag(field_id, 60.0, 55.0),
		editor.PointerMove(20.4, 710.6),
	)
	assert state.mode == editor.DRAGGING
	field = state.template.find_field(field_id)
	assert (field.x, field.y) == (10, 706)
	state = editor.reduce(state, editor.PointerRelease())
	assert state.mode == editor.FIELD_SELECTED
	assert state.drag is None


#============================================
@pytest.mark.parametrize("handle", design_lab.config.RESIZE_HANDLES)
def test_resize_never_below_floor(handle: str) -> None:
	"""
	No resize delta can shrink a field under 20 workspace pixels.
	"""
	state = apply_all(make_state(), editor.AddField(REG_NO))
	field_id = state.selected_id
	state = apply_all(state, editor.BeginResize(field_id, handle, 100.0, 100.0))
	for pointer in ((-5000.0, -5000.0), (5000.0, 5000.0), (100.0, 100.0)):
		state = editor.reduce(state, editor.PointerMove(*pointer))
		field = state.template.find_field(field_id)
		assert field.width >= 20
		assert field.height >= 20


#============================================
def test_resize_west_and_north_keep_opposite_edge() -> None:
	state = apply_all(make_state(), editor.AddField(REG_NO))
	field_id = state.selected_id
	state = apply_all(
		state,
		editor.BeginResize(field_id, "nw", 50.0, 50.0),
		editor.PointerMove(30.0, 45.0),
	)
	field = state.template.find_field(field_id)
	assert (field.x, field.y, field.width, field.height) == (30, 45, 170, 25)
	state = editor.reduce(state, editor.PointerMove(400.0, 400.0))
	field = state.template.find_field(field_id)
	assert field.width == 20
	assert field.height == 20
	assert field.x + field.width == 200
	assert field.y + field.height == 70


#============================================
def test_resize_south_east_grows_from_start() -> None:
	"""
	Each move is measured from where the resize began.
	"""
	state = apply_all(make_state(), editor.AddField(REG_NO))
	field_id = state.selected_id
	state = apply_all(
		state,
		editor.BeginResize(field_id, "se", 200.0, 70.0),
		editor.PointerMove(210.0, 80.0),
		editor.PointerMove(250.0, 90.0),
	)
	field = state.template.find_field(field_id)
	assert (field.x, field.y, field.width, field.height) == (50, 50, 200, 40)


#============================================
def test_update_field_merges_and_floors() -> None:
	state = apply_all(make_state(), editor.AddField(BARCODE))
	field_id = state.selected_id
	state = editor.reduce(
		state,
		editor.UpdateField(field_id, {"width": 5, "color": "#ff0000", "fields": ["reg_no", "class_id"], "mode": "JSON"}),
	)
	field = state.template.find_field(field_id)
	assert field.width == 20
	assert field.style.color == "#ff0000"
	assert field.binding.fields == ("reg_no", "class_id")
	assert field.binding.mode == "JSON"


#============================================
def test_update_field_rejects_unknown_property() -> None:
	state = apply_all(make_state(), editor.AddField(REG_NO))
	with pytest.raises(ValueError):
		editor.reduce(state, editor.UpdateField(state.selected_id, {"rotation": 90}))
	with pytest.raises(ValueError):
		editor.reduce(state, editor.UpdateField(state.selected_id, {"mode": "JSON"}))


#============================================
def test_delete_selected_field_clears_selection() -> None:
	state = apply_all(make_state(), editor.AddField(REG_NO), editor.AddField(PHOTO))
	first_id = state.template.fields[0].id
	state = editor.reduce(state, editor.DeleteField(first_id))
	assert state.selected_id is not None
	state = editor.reduce(state, editor.DeleteField(state.selected_id))
	assert state.template.fields == ()
	assert state.selected_id is None
	assert state.mode == editor.IDLE


#============================================
def test_switch_side_scopes_selection_and_fields() -> None:
	state = apply_all(make_state(back_ready=True), editor.AddField(REG_NO))
	front_id = state.selected_id
	state = apply_all(state, editor.SwitchSide("back"), editor.AddField(PHOTO))
	assert state.template.find_field(state.selected_id).side == "back"
	assert [field.side for field in state.visible_fields] == ["back"]
	# fields on the other side cannot be selected
	state = editor.reduce(state, editor.SelectField(front_id))
	assert state.selected_id != front_id


#============================================
def test_ingestion_result_keeps_concurrent_edits() -> None:
	"""
	Edits made while ingestion runs survive the result being applied.
	"""
	state = make_state()
	state = editor.reduce(state, editor.UpdateTemplate({"name": "Renamed"}))
	result = design_lab.ingest.IngestionResult(
		front=READY_SIDE,
		back=READY_SIDE,
		pdf_base64="data:application/pdf;base64,AAAA",
		page_count=2,
	)
	state = editor.reduce(state, editor.IngestionCompleted("tpl-1", result))
	assert state.template.name == "Renamed"
	assert state.template.back.is_ready


#============================================
def test_stale_task_results_ignored() -> None:
	state = make_state()
	after = editor.reduce(state, editor.IngestionFailed("other-template", "boom"))
	assert after is state
	after = editor.reduce(state, editor.IngestionFailed("tpl-1", "boom"))
	assert after.notice == "boom"


#============================================
def test_reducers_leave_previous_state_untouched() -> None:
	state = apply_all(make_state(), editor.AddField(REG_NO))
	snapshot = state.template
	editor.reduce(state, editor.UpdateField(state.selected_id, {"x": 300}))
	assert state.template is snapshot
	assert state.template.fields[0].x == 50
