"""
Design session: owns the editor state and its collaborators.
"""

# Standard Library
import concurrent.futures
import dataclasses

# local repo modules
import design_lab as dl
import design_lab.binding
import design_lab.editor
import design_lab.errors
import design_lab.model
import design_lab.store
import design_lab.tasks


EditorState = dl.editor.EditorState
Template = dl.model.Template
Record = dl.binding.Record


class DesignSession:
	"""
	Single owner of an EditorState.

	Every change goes through dispatch(). Background results are queued
	and only applied when poll() or wait_for_tasks() is called, so edits
	made meanwhile are kept.
	"""

	#============================================
	def __init__(
		self,
		store: dl.store.TemplateStore | None = None,
		records: dl.store.RecordProvider | None = None,
		audit: dl.store.AuditSink | None = None,
		runner: dl.tasks.TaskRunner | None = None,
		image_loader=None,
	):
		self.store = store
		self.records = records if records is not None else dl.store.JsonRecordProvider()
		self.audit = audit
		self.runner = runner if runner is not None else dl.tasks.TaskRunner()
		self.image_loader = image_loader
		self.state = EditorState()
		self.pending: list[concurrent.futures.Future] = []

	#============================================
	def dispatch(self, action) -> EditorState:
		self.state = dl.editor.reduce(self.state, action)
		return self.state

	#============================================
	@property
	def template(self) -> Template | None:
		return self.state.template

	#============================================
	def require_template(self) -> Template:
		if self.state.template is None:
			raise ValueError("No template is open.")
		return self.state.template

	#============================================
	def create_template(self, tenant_id: str, kind: str = "ID", name: str | None = None) -> Template:
		template = dl.model.new_template(tenant_id, kind=kind, name=name)
		self.dispatch(dl.editor.LoadTemplate(template))
		return template

	#============================================
	def list_templates(self, tenant_id: str, kind: str) -> list[Template]:
		if self.store is None:
			return []
		return self.store.load_templates(tenant_id, kind)

	#============================================
	def open_template(self, template: Template) -> EditorState:
		return self.dispatch(dl.editor.LoadTemplate(template))

	#============================================
	def upload_document(self, blob: bytes) -> concurrent.futures.Future:
		"""
		Start ingesting a master document for the open template.

		Args:
			blob: Raw document bytes.

		Returns:
			Future resolving to the ingestion result action.
		"""
		template = self.require_template()
		future = self.runner.submit_ingestion(template.id, blob)
		self.pending.append(future)
		return future

	#============================================
	def run_test_injection(self, record: Record | None = None) -> concurrent.futures.Future:
		"""
		Start a test render of the open template.

		Args:
			record: Record to inject; defaults to the tenant's sample record.

		Returns:
			Future resolving to the render result action.
		"""
		template = self.require_template()
		if record is None:
			record = self.records.fetch_sample_record(template.tenant_id)
		future = self.runner.submit_render(template, record, self.image_loader)
		self.pending.append(future)
		return future

	#============================================
	def poll(self) -> int:
		"""
		Apply finished background results in submission order.

		Returns:
			Number of results applied.
		"""
		applied = 0
		while self.pending and self.pending[0].done():
			future = self.pending.pop(0)
			self.dispatch(future.result())
			applied += 1
		return applied

	#============================================
	def wait_for_tasks(self) -> int:
		concurrent.futures.wait(self.pending)
		return self.poll()

	#============================================
	def save(self) -> str | None:
		"""
		Persist the open template and log the save.

		Returns:
			Audit failure message, or None.
		"""
		template = self.require_template()
		if self.store is None:
			raise dl.errors.PersistenceFailure("No template store is configured.")
		stored, audit_error = dl.store.save_template(template, self.store, self.audit)
		# keep edits dispatched since; only adopt the stored timestamp
		current = self.require_template()
		if current.id == stored.id:
			updated = dataclasses.replace(current, created_at=stored.created_at)
			self.state = dataclasses.replace(self.state, template=updated, notice=audit_error)
		return audit_error

	#============================================
	def close(self) -> None:
		self.runner.shutdown(wait=True)
