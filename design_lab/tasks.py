"""
Background ingestion and injection tasks.

Work runs on a single worker thread. Each task resolves to an editor
action describing its outcome, never to a raw exception, so callers can
feed finished futures straight into the reducer.
"""

# Standard Library
import concurrent.futures

# local repo modules
import design_lab as dl
import design_lab.editor
import design_lab.errors
import design_lab.ingest
import design_lab.model
import design_lab.render


Template = dl.model.Template
DesignLabError = dl.errors.DesignLabError


#============================================
def unexpected_message(error: Exception) -> str:
	return f"Unexpected {type(error).__name__}: {error}"


#============================================
def run_ingestion(template_id: str, blob: bytes):
	"""
	Ingest a document and wrap the outcome as an editor action.

	Args:
		template_id: Template the upload belongs to.
		blob: Raw document bytes.

	Returns:
		IngestionCompleted or IngestionFailed.
	"""
	try:
		result = dl.ingest.ingest_document(blob)
	except DesignLabError as error:
		return dl.editor.IngestionFailed(template_id=template_id, message=str(error))
	except Exception as error:
		return dl.editor.IngestionFailed(template_id=template_id, message=unexpected_message(error))
	return dl.editor.IngestionCompleted(template_id=template_id, result=result)


#============================================
def run_injection(template: Template, record, image_loader=None):
	"""
	Render a record and wrap the outcome as an editor action.

	Args:
		template: Template snapshot taken when the render was requested.
		record: Record mapping.
		image_loader: Optional loader for image references.

	Returns:
		RenderCompleted or RenderFailed.
	"""
	try:
		artifact = dl.render.inject_record(template, record, image_loader)
	except DesignLabError as error:
		return dl.editor.RenderFailed(template_id=template.id, message=str(error))
	except Exception as error:
		return dl.editor.RenderFailed(template_id=template.id, message=unexpected_message(error))
	return dl.editor.RenderCompleted(template_id=template.id, artifact=artifact)


class TaskRunner:
	"""
	Single-worker executor for ingestion and injection.
	"""

	#============================================
	def __init__(self, max_workers: int = 1):
		self.executor = concurrent.futures.ThreadPoolExecutor(
			max_workers=max_workers,
			thread_name_prefix="design-lab",
		)

	#============================================
	def submit_ingestion(self, template_id: str, blob: bytes) -> concurrent.futures.Future:
		# copy so later mutation of the caller's buffer cannot leak in
		return self.executor.submit(run_ingestion, template_id, bytes(blob))

	#============================================
	def submit_render(self, template: Template, record, image_loader=None) -> concurrent.futures.Future:
		snapshot = dict(record)
		return self.executor.submit(run_injection, template, snapshot, image_loader)

	#============================================
	def shutdown(self, wait: bool = True) -> None:
		self.executor.shutdown(wait=wait)
