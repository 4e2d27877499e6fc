"""
CLI entry points for template ingestion, field placement and test renders.
"""

# Standard Library
import argparse
import pathlib
import sys
import time

# local repo modules
import design_lab as dl
import design_lab.config
import design_lab.editor
import design_lab.errors
import design_lab.ingest
import design_lab.model
import design_lab.render
import design_lab.store


Template = dl.model.Template
PaletteEntry = dl.config.PaletteEntry
DesignLabError = dl.errors.DesignLabError

TEMPLATE_KINDS = dl.config.TEMPLATE_KINDS
FIELD_TYPES = dl.config.FIELD_TYPES
SIDES = dl.config.SIDES
ENCODING_MODES = dl.config.ENCODING_MODES


#============================================
def load_template_file(path: str) -> Template:
	"""
	Load a template JSON file.

	Args:
		path: Template JSON path.

	Returns:
		Template.
	"""
	try:
		data = dl.store.read_json(pathlib.Path(path))
		return dl.model.template_from_dict(data)
	except (OSError, ValueError, KeyError, TypeError) as error:
		raise dl.errors.PersistenceFailure(f"Could not load template {path}: {error}") from error


#============================================
def write_template_file(template: Template, path: str) -> None:
	try:
		dl.store.write_json(pathlib.Path(path), dl.model.template_to_dict(template))
	except OSError as error:
		raise dl.errors.PersistenceFailure(f"Could not write template {path}: {error}") from error


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command line arguments.

	Args:
		argv: Optional argument list; defaults to sys.argv.

	Returns:
		Parsed argparse namespace.
	"""
	parser = argparse.ArgumentParser(description="Design and render data-bound document templates.")
	subparsers = parser.add_subparsers(dest="command", required=True)

	ingest_parser = subparsers.add_parser("ingest", help="Create a template from a master PDF.")
	ingest_parser.add_argument("pdf_path", help="Master PDF (one or two pages).")
	ingest_output = ingest_parser.add_argument_group("Output")
	ingest_output.add_argument("-o", "--output", dest="output_path", default=None, help="Output template JSON path.")
	ingest_output.add_argument("-s", "--store", dest="store_dir", default=None, help="Save into a template store directory.")
	ingest_output.add_argument("-a", "--audit-log", dest="audit_path", default=None, help="Append the save to a JSON lines audit log.")
	ingest_template = ingest_parser.add_argument_group("Template")
	ingest_template.add_argument("-t", "--tenant", dest="tenant_id", required=True, help="Owning tenant (school) id.")
	ingest_template.add_argument("-k", "--kind", dest="kind", choices=TEMPLATE_KINDS, default="ID", help="Template kind.")
	ingest_template.add_argument("-n", "--name", dest="name", default=None, help="Template display name.")

	place_parser = subparsers.add_parser("place", help="Add a field to a template.")
	place_parser.add_argument("template_path", help="Template JSON path (updated in place).")
	place_field = place_parser.add_argument_group("Field")
	place_field.add_argument("-k", "--key", dest="key", required=True, help="Binding key, e.g. {{reg_no}} or literal text.")
	place_field.add_argument("-f", "--field-type", dest="field_type", choices=FIELD_TYPES, default=None, help="Field type for keys not in the palette.")
	place_field.add_argument("--side", dest="side", choices=SIDES, default="front", help="Side to place the field on.")
	place_field.add_argument("--bind", dest="bound_fields", default=None, help="Comma separated record fields for barcode/qr.")
	place_field.add_argument("--mode", dest="mode", choices=ENCODING_MODES, default=None, help="Barcode/qr payload encoding.")
	place_geometry = place_parser.add_argument_group("Geometry")
	place_geometry.add_argument("-x", dest="x", type=float, default=None, help="Left edge in workspace pixels.")
	place_geometry.add_argument("-y", dest="y", type=float, default=None, help="Top edge in workspace pixels.")
	place_geometry.add_argument("-W", "--width", dest="width", type=float, default=None, help="Width in workspace pixels.")
	place_geometry.add_argument("-H", "--height", dest="height", type=float, default=None, help="Height in workspace pixels.")
	place_style = place_parser.add_argument_group("Style")
	place_style.add_argument("--font-size", dest="font_size", type=float, default=None, help="Font size in workspace pixels.")
	place_style.add_argument("--color", dest="color", default=None, help="Hex text color.")
	place_style.add_argument("--align", dest="text_align", choices=("left", "center", "right"), default=None, help="Text alignment.")

	render_parser = subparsers.add_parser("render", help="Inject a record into a template.")
	render_parser.add_argument("template_path", help="Template JSON path.")
	render_parser.add_argument("-o", "--output", dest="output_path", required=True, help="Output PDF path.")
	render_parser.add_argument("-r", "--record", dest="record_path", default=None, help="Record JSON file; defaults to the sample record.")

	inspect_parser = subparsers.add_parser("inspect", help="Print native field placement.")
	inspect_parser.add_argument("template_path", help="Template JSON path.")

	args = parser.parse_args(argv)
	return args


#============================================
def run_ingest(args: argparse.Namespace) -> None:
	"""
	Ingest a master PDF into a new template.

	Args:
		args: Parsed argparse namespace.
	"""
	if args.output_path is None and args.store_dir is None:
		raise ValueError("Give an output path or a store directory.")
	blob = pathlib.Path(args.pdf_path).read_bytes()
	print(f"Master document: {args.pdf_path} ({len(blob)} bytes)")
	start_time = time.perf_counter()
	result = dl.ingest.ingest_document(blob)
	template = dl.model.new_template(args.tenant_id, kind=args.kind, name=args.name)
	template = dl.ingest.apply_ingestion(template, result)
	elapsed = time.perf_counter() - start_time
	print(f"Pages in document: {result.page_count}")
	for side_name in SIDES:
		dimensions = template.side(side_name).dimensions
		if dimensions is None:
			print(f"{side_name}: no page")
			continue
		print(f"{side_name}: {dimensions.width:.1f} x {dimensions.height:.1f} pt")
	print(f"Ingest time: {elapsed:.2f}s")

	if args.store_dir is not None:
		store = dl.store.JsonTemplateStore(args.store_dir)
		audit = dl.store.JsonlAuditSink(args.audit_path) if args.audit_path else None
		template, audit_error = dl.store.save_template(template, store, audit)
		print(f"Template saved: {store.template_path(template.id)}")
		if audit_error:
			print(audit_error)
	if args.output_path is not None:
		write_template_file(template, args.output_path)
		print(f"Template written: {args.output_path}")
	print(f"Template id: {template.id}")


#============================================
def palette_entry_for(key: str, field_type: str | None) -> PaletteEntry:
	"""
	Pick the palette entry for a key, or build one for a custom key.

	Args:
		key: Binding key.
		field_type: Explicit field type, if given.

	Returns:
		PaletteEntry.
	"""
	entry = dl.config.find_palette_entry(key)
	if entry is not None and field_type in (None, entry.field_type):
		return entry
	return PaletteEntry(key=key, label=key, field_type=field_type or "text")


#============================================
def collect_field_changes(args: argparse.Namespace) -> dict:
	changes = {}
	for name in ("x", "y", "width", "height", "font_size", "color", "text_align", "mode"):
		value = getattr(args, name)
		if value is not None:
			changes[name] = value
	if args.bound_fields is not None:
		changes["fields"] = [item.strip() for item in args.bound_fields.split(",") if item.strip()]
	return changes


#============================================
def run_place(args: argparse.Namespace) -> None:
	"""
	Add one field to a template file through the editor reducers.

	Args:
		args: Parsed argparse namespace.
	"""
	editor = dl.editor
	template = load_template_file(args.template_path)
	state = editor.reduce(editor.EditorState(), editor.LoadTemplate(template))
	state = editor.reduce(state, editor.SwitchSide(args.side))
	state = editor.reduce(state, editor.AddField(palette_entry_for(args.key, args.field_type)))
	if state.selected_id is None:
		raise ValueError(state.notice or "Field could not be placed.")
	changes = collect_field_changes(args)
	if changes:
		state = editor.reduce(state, editor.UpdateField(state.selected_id, changes))
	field = state.selected_field
	write_template_file(state.template, args.template_path)
	print(
		f"Placed {field.id} ({field.field_type}) on {field.side} at "
		f"{field.x:g},{field.y:g} size {field.width:g}x{field.height:g}"
	)


#============================================
def run_render(args: argparse.Namespace) -> None:
	"""
	Render a record onto a template's master document.

	Args:
		args: Parsed argparse namespace.
	"""
	template = load_template_file(args.template_path)
	if args.record_path is None:
		record = dl.store.JsonRecordProvider().fetch_sample_record(template.tenant_id)
		print("Record: built-in sample")
	else:
		record = dl.store.read_json(pathlib.Path(args.record_path))
		print(f"Record: {args.record_path}")
	print(f"Fields: {len(template.fields)}")
	start_time = time.perf_counter()
	artifact = dl.render.inject_record(template, record)
	elapsed = time.perf_counter() - start_time
	pathlib.Path(args.output_path).write_bytes(artifact.pdf_bytes)
	for warning in artifact.warnings:
		print(f"Warning: {warning}")
	print(f"Pages written: {artifact.page_count}")
	print(f"Render time: {elapsed:.2f}s")
	print(f"Output PDF: {args.output_path}")


#============================================
def run_inspect(args: argparse.Namespace) -> None:
	template = load_template_file(args.template_path)
	print(f"{template.name} ({template.kind}, {template.orientation})")
	for row in dl.render.describe_layout(template):
		print(
			"{id} {side} {type} {key}: x={x:.1f} y={y:.1f} w={width:.1f} h={height:.1f} font={font_size:.1f}".format(
				**row
			)
		)


COMMANDS = {
	"ingest": run_ingest,
	"place": run_place,
	"render": run_render,
	"inspect": run_inspect,
}


#============================================
def main(argv: list[str] | None = None) -> None:
	"""
	Main entry point.
	"""
	args = parse_args(argv)
	try:
		COMMANDS[args.command](args)
	except (DesignLabError, ValueError, OSError) as error:
		print(f"Error: {error}", file=sys.stderr)
		raise SystemExit(1) from error


if __name__ == "__main__":
	main()
