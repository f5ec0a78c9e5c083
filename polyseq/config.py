"""YAML configuration for the command line player.

Example ``config.yaml``::

	transport:
	  bpm: 120
	  master_volume: 0.5
	player:
	  fps: 60
	output:
	  type: osc          # none, midi or osc
	  host: 127.0.0.1
	  port: 57120
	osc_control:
	  receive_port: 9000
	export:
	  filename: polygons.mid
	seed: 7
	polygons:
	  - name: Lead Synth
	    sides: 6
	    radius: 25
	    sequence: AAB
	    notes: [c4, e, g, 0, c5, g]

When ``polygons`` is missing the two demo polygons are created.
"""

import logging
import os
import typing

import yaml

import polyseq.midi_sink
import polyseq.osc
import polyseq.pitch
import polyseq.polygon
import polyseq.session
import polyseq.trigger


logger = logging.getLogger(__name__)


def load_config (config_path: str = "config.yaml") -> typing.Dict[str, typing.Any]:

	"""
	Load configuration from a YAML file. A missing or empty file yields ``{}``.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return {}

	with open(config_path, "r") as f:
		data = yaml.safe_load(f)

	if data is None:
		return {}

	if not isinstance(data, dict):
		raise ValueError(f"Config file {config_path} must contain a mapping, got {type(data).__name__}")

	return data


def section (config: typing.Dict[str, typing.Any], name: str) -> typing.Dict[str, typing.Any]:

	"""
	Return a top-level section as a mapping. A bare ``transport:`` line loads as ``None`` and counts as empty.
	"""

	value = config.get(name)

	if value is None:
		return {}

	if not isinstance(value, dict):
		raise ValueError(f"Config section {name!r} must be a mapping, got {type(value).__name__}")

	return value


def _note_value (value: typing.Any) -> float:

	"""
	Accept a frequency in Hz or a note key such as ``"c#"``.
	"""

	if isinstance(value, (int, float)):
		return float(value)

	frequency = polyseq.pitch.note_for_key(str(value))

	if frequency is None:
		raise ValueError(f"Unknown note {value!r}. Use Hz or one of {list(polyseq.pitch.NOTE_KEYS)}")

	return frequency


def apply_polygon_config (polygon: polyseq.polygon.RotatingPolygon, data: typing.Dict[str, typing.Any]) -> None:

	"""
	Apply per-corner notes, lengths and volumes plus the sequence to a polygon.
	"""

	for index, value in enumerate((data.get("notes") or [])[:polygon.sides]):
		polygon.set_corner_note(_note_value(value), index=index)

	for index, value in enumerate((data.get("lengths") or [])[:polygon.sides]):
		polygon.set_corner_length(float(value), index=index)

	for index, value in enumerate((data.get("volumes") or [])[:polygon.sides]):
		polygon.set_corner_volume(float(value), index=index)

	if "sequence" in data:
		polygon.set_sequence_text(str(data["sequence"]))


def build_session (config: typing.Dict[str, typing.Any], sink: typing.Optional[polyseq.trigger.ToneSink] = None) -> polyseq.session.Session:

	"""
	Create a session and its polygons from a loaded configuration.
	"""

	transport = section(config, "transport")

	session = polyseq.session.Session(
		bpm = transport.get("bpm", 120),
		master_volume = transport.get("master_volume", 0.5),
		sink = sink,
		seed = config.get("seed")
	)

	polygons = config.get("polygons")

	if not polygons:
		session.add_default_polygons()
		return session

	for data in polygons:

		polygon = session.add_polygon(
			name = data.get("name"),
			sides = data.get("sides"),
			radius = data.get("radius"),
			measures = data.get("measures", 1),
			volume = data.get("volume", 1.0)
		)

		apply_polygon_config(polygon, data)

	return session


def build_sink (config: typing.Dict[str, typing.Any]) -> typing.Optional[polyseq.trigger.ToneSink]:

	"""
	Create the tone sink named by ``output.type``.
	"""

	output = section(config, "output")
	output_type = output.get("type", "none")

	if output_type == "none":
		return None

	if output_type == "midi":
		return polyseq.midi_sink.MidiToneSink(device_name=output.get("device_name"), channel=output.get("channel", 0))

	if output_type == "osc":
		return polyseq.osc.OscToneSink(host=output.get("host", "127.0.0.1"), port=output.get("port", 57120))

	raise ValueError(f"Unknown output type {output_type!r}. Expected 'none', 'midi' or 'osc'")
