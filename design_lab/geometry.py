"""
Coordinate transforms between workspace pixels and native document points.

Overlay fields are stored in workspace pixels: a canvas of fixed width
WORKSPACE_WIDTH whose height follows the page aspect ratio, origin top-left,
y growing downward. PDF pages use points with the origin bottom-left and y
growing upward. The flip between the two happens only in
workspace_box_to_native().
"""

# Standard Library
import dataclasses
import math

# local repo modules
import design_lab as dl
import design_lab.config
import design_lab.errors
import design_lab.model


Side = dl.model.Side
OverlayField = dl.model.OverlayField
MissingDimensions = dl.errors.MissingDimensions

WORKSPACE_WIDTH = dl.config.WORKSPACE_WIDTH
DEFAULT_WORKSPACE_HEIGHT = dl.config.DEFAULT_WORKSPACE_HEIGHT


@dataclasses.dataclass(frozen=True)
class NativeBox:
	x: float
	y: float
	width: float
	height: float
	ratio: float

	#============================================
	def scale(self, length: float) -> float:
		"""
		Scale a workspace length (font size, stroke) into native units.

		Args:
			length: Length in workspace pixels.

		Returns:
			Length in native points.
		"""
		return length * self.ratio


#============================================
def workspace_to_native_ratio(side: Side, side_name: str = "front") -> float:
	"""
	Compute the uniform workspace-to-native scale for a side.

	Args:
		side: Side with recorded dimensions.
		side_name: Side name used in the error message.

	Returns:
		Native points per workspace pixel.
	"""
	if side.dimensions is None:
		raise MissingDimensions(side_name)
	return side.dimensions.width / WORKSPACE_WIDTH


#============================================
def workspace_height(side: Side) -> float:
	"""
	Height of the design canvas for a side.

	Args:
		side: Side to measure.

	Returns:
		Canvas height in workspace pixels.
	"""
	if side.dimensions is None:
		return float(DEFAULT_WORKSPACE_HEIGHT)
	return WORKSPACE_WIDTH * side.dimensions.height / side.dimensions.width


#============================================
def workspace_box_to_native(
	x: float,
	y: float,
	width: float,
	height: float,
	ratio: float,
	page_height: float,
) -> NativeBox:
	"""
	Map a top-left anchored workspace box to a bottom-left anchored native box.

	Args:
		x: Workspace left edge.
		y: Workspace top edge.
		width: Workspace width.
		height: Workspace height.
		ratio: Native points per workspace pixel.
		page_height: Native height of the output page.

	Returns:
		NativeBox whose x, y is the bottom-left corner in page points.
	"""
	native_width = width * ratio
	native_height = height * ratio
	native_x = x * ratio
	native_y = page_height - (y * ratio) - native_height
	return NativeBox(
		x=native_x,
		y=native_y,
		width=native_width,
		height=native_height,
		ratio=ratio,
	)


#============================================
def field_to_native(
	field: OverlayField,
	side: Side,
	page_height: float | None = None,
) -> NativeBox:
	"""
	Transform a field's workspace geometry into native page coordinates.

	Args:
		field: OverlayField to place.
		side: The Side the field belongs to.
		page_height: Native height of the output page; defaults to the
			side's recorded height.

	Returns:
		NativeBox.
	"""
	ratio = workspace_to_native_ratio(side, field.side)
	if page_height is None:
		page_height = side.dimensions.height
	return workspace_box_to_native(
		field.x,
		field.y,
		field.width,
		field.height,
		ratio,
		page_height,
	)


#============================================
def round_pixel(value: float) -> int:
	"""
	Round a pointer coordinate to the nearest whole pixel, halves upward.

	Args:
		value: Coordinate in workspace pixels.

	Returns:
		Rounded integer pixel.
	"""
	return int(math.floor(value + 0.5))
