import typing

import polyseq.constants


class RadiusAllocator:

	"""
	Hands out default radii so new polygons don't sit exactly on top of each other.

	Fresh radii grow in fixed steps from a base value. Radii released by
	removed polygons are reused first, most recently released first.
	"""

	def __init__ (self, base_radius: float = polyseq.constants.BASE_RADIUS, radius_step: float = polyseq.constants.RADIUS_STEP) -> None:

		self.base_radius = base_radius
		self.radius_step = radius_step

		self._next_index = 0
		self._available: typing.List[float] = []


	def next_radius (self) -> float:

		"""
		Return a reclaimed radius if one is available, otherwise the next step.
		"""

		if self._available:
			return self._available.pop()

		radius = self.base_radius + self._next_index * self.radius_step
		self._next_index += 1

		return radius


	def recycle (self, radius: float) -> None:

		"""
		Return a radius to the pool for the next polygon.
		"""

		self._available.append(radius)


	@property
	def available (self) -> typing.List[float]:
		return list(self._available)
