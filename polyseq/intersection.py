"""Crossing detection between polygon corners and the trigger line.

The trigger line sits at a fixed angle (``1.5pi``). A corner is "hitting"
while it is within 12 degrees of the line; that wide band drives visual
highlighting. Sound only fires on the rising edge of the hit state and only
once the corner is within 4 degrees, so a corner passing slowly through the
band cannot fire twice.

Only the lowest-index corner inside the band is reported for a polygon in a
given frame, even when several corners qualify at once.
"""

import dataclasses
import typing

import polyseq.constants
import polyseq.geometry
import polyseq.polygon


@dataclasses.dataclass
class Intersection:

	"""
	The corner currently crossing the trigger line, and how far it is from it (radians).
	"""

	corner: polyseq.polygon.Corner
	distance: float


	@property
	def within_fire_gate (self) -> bool:
		return self.distance < polyseq.constants.FIRE_TOLERANCE


def find_intersection (
	polygon: polyseq.polygon.RotatingPolygon,
	seconds: float,
	bpm: float,
	target: float = polyseq.constants.TRIGGER_ANGLE,
	tolerance: float = polyseq.constants.DETECTION_TOLERANCE
) -> typing.Optional[Intersection]:

	"""
	Return the first corner (in index order) within ``tolerance`` of ``target``.
	"""

	for corner in polygon.corners:
		theta = polygon.corner_angle(corner.index, seconds, bpm)
		distance = polyseq.geometry.angular_distance(theta, target)

		if distance < tolerance:
			return Intersection(corner=corner, distance=distance)

	return None


def check_trigger (polygon: polyseq.polygon.RotatingPolygon, seconds: float, bpm: float) -> typing.Tuple[typing.Optional[Intersection], bool]:

	"""
	Detect the polygon's intersection and update its edge state.

	Returns:
		``(intersection, fire)`` where ``fire`` is True only on the frame the
		polygon starts hitting the line inside the firing gate.
	"""

	hit = find_intersection(polygon, seconds, bpm)

	if hit is None:
		polygon.was_hitting_line = False
		return None, False

	if not polygon.was_hitting_line and hit.within_fire_gate:
		polygon.was_hitting_line = True
		return hit, True

	return hit, False


def line_intensity (hits: typing.Sequence[Intersection], polygon_count: int, base: float = 0.2) -> float:

	"""
	Brightness for the trigger line: closer hits add more, shared across all polygons.
	"""

	if polygon_count <= 0:
		return base

	intensity = base

	for hit in hits:
		intensity += (0.7 - hit.distance / polyseq.constants.DETECTION_TOLERANCE * 0.7) / polygon_count

	return intensity
