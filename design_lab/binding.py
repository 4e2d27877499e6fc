"""
Resolve overlay field bindings against a record.
"""

# Standard Library
import collections.abc
import dataclasses
import json
import re
import typing

# local repo modules
import design_lab as dl
import design_lab.config
import design_lab.errors
import design_lab.model


OverlayField = dl.model.OverlayField
TextBinding = dl.model.TextBinding
ImageBinding = dl.model.ImageBinding
CompositeBinding = dl.model.CompositeBinding
UnresolvedBinding = dl.errors.UnresolvedBinding

PLACEHOLDER_OPEN = dl.config.PLACEHOLDER_OPEN
PLACEHOLDER_CLOSE = dl.config.PLACEHOLDER_CLOSE
PSV_SEPARATOR = dl.config.PSV_SEPARATOR
IMAGE_KEY_ALIASES = dl.config.IMAGE_KEY_ALIASES

Record = collections.abc.Mapping[str, typing.Any]

PLACEHOLDER_PATTERN = re.compile(
	re.escape(PLACEHOLDER_OPEN) + r"\s*([^{}]+?)\s*" + re.escape(PLACEHOLDER_CLOSE)
)


@dataclasses.dataclass(frozen=True)
class TextValue:
	text: str
	warning: UnresolvedBinding | None = None


@dataclasses.dataclass(frozen=True)
class ImageValue:
	# bytes, a data URL, a local path or anything an image loader accepts
	reference: typing.Any


@dataclasses.dataclass(frozen=True)
class CodeValue:
	payload: str
	symbology: str


@dataclasses.dataclass(frozen=True)
class EmptyValue:
	pass


ResolvedValue = TextValue | ImageValue | CodeValue | EmptyValue


#============================================
def parse_placeholder(key: str) -> str | None:
	"""
	Extract the record key from a placeholder token.

	Args:
		key: Binding key such as "{{reg_no}}".

	Returns:
		Bare record key, or None when the binding is a literal.
	"""
	match = PLACEHOLDER_PATTERN.fullmatch(key.strip())
	if match is None:
		return None
	return match.group(1)


#============================================
def lookup(record: Record, key: str) -> typing.Any | None:
	"""
	Look up a record value, treating None and "" as absent.

	Args:
		record: Record mapping.
		key: Record key.

	Returns:
		Value or None.
	"""
	value = record.get(key)
	if value is None or value == "":
		return None
	return value


#============================================
def format_value(value: typing.Any) -> str:
	if isinstance(value, bool):
		return "Yes" if value else "No"
	if isinstance(value, float) and value.is_integer():
		return str(int(value))
	return str(value)


#============================================
def resolve_text(field: OverlayField, binding: TextBinding, record: Record) -> TextValue:
	key = parse_placeholder(binding.key)
	if key is None:
		return TextValue(text=binding.key)
	value = lookup(record, key)
	if value is None:
		return TextValue(text=binding.key, warning=UnresolvedBinding(field.id, binding.key))
	return TextValue(text=format_value(value))


#============================================
def resolve_image(binding: ImageBinding, record: Record) -> ImageValue | EmptyValue:
	"""
	Resolve an image reference; a missing image leaves the slot empty.

	Args:
		binding: ImageBinding.
		record: Record mapping.

	Returns:
		ImageValue or EmptyValue.
	"""
	key = parse_placeholder(binding.key)
	if key is None:
		key = binding.key
	value = lookup(record, key)
	if value is None and key in IMAGE_KEY_ALIASES:
		value = lookup(record, IMAGE_KEY_ALIASES[key])
	if value is None:
		return EmptyValue()
	return ImageValue(reference=value)


#============================================
def build_payload(binding: CompositeBinding, record: Record) -> str:
	"""
	Concatenate the bound record values into a code payload.

	Args:
		binding: CompositeBinding.
		record: Record mapping.

	Returns:
		Payload string. Missing values contribute empty segments.
	"""
	values: list[str] = []
	for name in binding.fields:
		value = lookup(record, name)
		values.append("" if value is None else format_value(value))
	if binding.mode == "JSON":
		payload = dict(zip(binding.fields, values))
		return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
	return PSV_SEPARATOR.join(values)


#============================================
def payload_preview(binding: CompositeBinding) -> str:
	"""
	Show the data stream layout with placeholder tokens.

	Args:
		binding: CompositeBinding.

	Returns:
		Preview string, e.g. "{{reg_no}}|{{class_id}}".
	"""
	tokens = [f"{PLACEHOLDER_OPEN}{name}{PLACEHOLDER_CLOSE}" for name in binding.fields]
	if binding.mode == "JSON":
		return json.dumps(dict(zip(binding.fields, tokens)), separators=(",", ":"))
	return PSV_SEPARATOR.join(tokens)


#============================================
def resolve_field(field: OverlayField, record: Record) -> ResolvedValue:
	"""
	Produce the concrete value to draw for one field.

	Args:
		field: OverlayField.
		record: Record mapping; never modified.

	Returns:
		ResolvedValue.
	"""
	binding = field.binding
	if isinstance(binding, TextBinding):
		return resolve_text(field, binding, record)
	if isinstance(binding, ImageBinding):
		return resolve_image(binding, record)
	if isinstance(binding, CompositeBinding):
		symbology = dl.config.QR_SYMBOLOGY if field.field_type == "qr" else dl.config.BARCODE_SYMBOLOGY
		return CodeValue(payload=build_payload(binding, record), symbology=symbology)
	raise TypeError(f"Unsupported binding for field {field.id}: {binding!r}")
