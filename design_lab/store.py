"""
Local collaborators: template persistence, sample records and audit log.
"""

# Standard Library
import dataclasses
import datetime
import json
import pathlib
import typing

# local repo modules
import design_lab as dl
import design_lab.binding
import design_lab.config
import design_lab.errors
import design_lab.model


Template = dl.model.Template
Record = dl.binding.Record
PersistenceFailure = dl.errors.PersistenceFailure

SAMPLE_RECORD = dl.config.SAMPLE_RECORD
SYNC_ACTION = dl.config.SYNC_ACTION


class TemplateStore(typing.Protocol):
	def load_templates(self, tenant_id: str, kind: str) -> list[Template]:
		...

	def save_template(self, template: Template) -> Template:
		...


class RecordProvider(typing.Protocol):
	def fetch_sample_record(self, tenant_id: str) -> Record:
		...


class AuditSink(typing.Protocol):
	def log_event(self, action: str, context: dict[str, typing.Any]) -> None:
		...


#============================================
def utc_timestamp() -> str:
	return datetime.datetime.now(datetime.timezone.utc).isoformat()


#============================================
def write_json(path: pathlib.Path, payload: typing.Any) -> None:
	"""
	Write JSON with stable formatting.

	Args:
		path: Output path.
		payload: JSON-ready data.
	"""
	path.parent.mkdir(parents=True, exist_ok=True)
	with open(path, "w", encoding="utf-8") as handle:
		json.dump(payload, handle, indent=2, sort_keys=True)
		handle.write("\n")


#============================================
def read_json(path: pathlib.Path) -> typing.Any:
	with open(path, "r", encoding="utf-8") as handle:
		return json.load(handle)


class JsonTemplateStore:
	"""
	One JSON file per template, named by template id.
	"""

	#============================================
	def __init__(self, directory: str | pathlib.Path):
		self.directory = pathlib.Path(directory)

	#============================================
	def template_path(self, template_id: str) -> pathlib.Path:
		if not template_id or "/" in template_id or "\\" in template_id or template_id.startswith("."):
			raise PersistenceFailure(f"Invalid template id: {template_id!r}")
		return self.directory / f"{template_id}.json"

	#============================================
	def load_template(self, template_id: str) -> Template:
		"""
		Load one template by id.

		Args:
			template_id: Template id.

		Returns:
			Template.
		"""
		path = self.template_path(template_id)
		try:
			return dl.model.template_from_dict(read_json(path))
		except (OSError, ValueError, KeyError, TypeError) as error:
			raise PersistenceFailure(f"Could not load template {template_id}: {error}") from error

	#============================================
	def load_templates(self, tenant_id: str, kind: str) -> list[Template]:
		"""
		Load a tenant's templates of one kind, newest first.

		Args:
			tenant_id: Owning tenant id.
			kind: Template kind.

		Returns:
			List of Template.
		"""
		if not self.directory.is_dir():
			return []
		templates: list[Template] = []
		for path in sorted(self.directory.glob("*.json")):
			try:
				template = dl.model.template_from_dict(read_json(path))
			except (OSError, ValueError, KeyError, TypeError) as error:
				raise PersistenceFailure(f"Could not load {path.name}: {error}") from error
			if template.tenant_id == tenant_id and template.kind == kind:
				templates.append(template)
		templates.sort(key=lambda item: item.created_at or "", reverse=True)
		return templates

	#============================================
	def save_template(self, template: Template) -> Template:
		"""
		Upsert a template by id.

		Args:
			template: Template to store.

		Returns:
			The stored Template, with created_at filled in on first save.
		"""
		if template.created_at is None:
			template = dataclasses.replace(template, created_at=utc_timestamp())
		path = self.template_path(template.id)
		try:
			write_json(path, dl.model.template_to_dict(template))
		except (OSError, TypeError, ValueError) as error:
			raise PersistenceFailure(f"Could not save template {template.id}: {error}") from error
		return template


class JsonRecordProvider:
	"""
	Sample records from a JSON file mapping tenant id to a record or a list of records.
	"""

	#============================================
	def __init__(self, path: str | pathlib.Path | None = None):
		self.path = pathlib.Path(path) if path is not None else None

	#============================================
	def fetch_sample_record(self, tenant_id: str) -> Record:
		"""
		Fetch the first record for a tenant, or the built-in sample.

		Args:
			tenant_id: Tenant id.

		Returns:
			Record mapping.
		"""
		if self.path is None or not self.path.is_file():
			return dict(SAMPLE_RECORD)
		try:
			data = read_json(self.path)
		except (OSError, ValueError) as error:
			raise PersistenceFailure(f"Could not read records from {self.path}: {error}") from error
		entry = data.get(tenant_id) if isinstance(data, dict) else None
		if isinstance(entry, list):
			entry = entry[0] if entry else None
		if not isinstance(entry, dict):
			return dict(SAMPLE_RECORD)
		return entry


class JsonlAuditSink:
	"""
	Append-only JSON lines audit log.
	"""

	#============================================
	def __init__(self, path: str | pathlib.Path):
		self.path = pathlib.Path(path)

	#============================================
	def log_event(self, action: str, context: dict[str, typing.Any]) -> None:
		entry = {"action": action, "timestamp": utc_timestamp()}
		entry.update(context)
		self.path.parent.mkdir(parents=True, exist_ok=True)
		with open(self.path, "a", encoding="utf-8") as handle:
			handle.write(json.dumps(entry, sort_keys=True) + "\n")


#============================================
def sync_message(template: Template) -> str:
	return f"{SYNC_ACTION}: {template.name} ({template.kind}) updated with {len(template.fields)} fields"


#============================================
def save_template(
	template: Template,
	store: TemplateStore,
	audit: AuditSink | None = None,
) -> tuple[Template, str | None]:
	"""
	Persist a template and record the save in the audit log.

	A failing audit sink never fails the save; its error message is
	returned instead so the caller can report it.

	Args:
		template: Template to persist.
		store: TemplateStore.
		audit: Optional AuditSink.

	Returns:
		Tuple of (stored Template, audit error message or None).
	"""
	stored = store.save_template(template)
	if audit is None:
		return stored, None
	context = {
		"entity_id": stored.tenant_id,
		"entity_type": "SCHOOL",
		"template_id": stored.id,
	}
	try:
		audit.log_event(sync_message(stored), context)
	# audit is fire-and-forget; any sink error is reported, never raised
	except Exception as error:
		return stored, f"Audit log failed: {error}"
	return stored, None
