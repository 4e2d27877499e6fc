"""
Error kinds raised by ingestion, rendering and persistence.
"""


class DesignLabError(Exception):
	"""
	Base class for template engine errors.
	"""


class FileTooLarge(DesignLabError):
	def __init__(self, size: int, limit: int):
		self.size = size
		self.limit = limit
		super().__init__(
			f"Document is {size} bytes; the upload limit is {limit} bytes."
		)


class DocumentParseFailure(DesignLabError):
	pass


class MissingDimensions(DesignLabError):
	def __init__(self, side: str):
		self.side = side
		super().__init__(
			f"The {side} side has no recorded page dimensions; re-upload the master document."
		)


class RenderFailure(DesignLabError):
	def __init__(self, field_id: str, reason: str):
		self.field_id = field_id
		self.reason = reason
		super().__init__(f"Field {field_id} could not be rendered: {reason}")


class PersistenceFailure(DesignLabError):
	pass


class UnresolvedBinding(UserWarning):
	"""
	A text placeholder had no value in the record.

	Not fatal: the placeholder token itself is drawn so that missing
	mappings are easy to spot on a test render.
	"""

	def __init__(self, field_id: str, key: str):
		self.field_id = field_id
		self.key = key
		super().__init__(f"Field {field_id}: no value for {key}")
