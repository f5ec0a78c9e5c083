import argparse
import logging

import polyseq.config
import polyseq.osc
import polyseq.player


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main () -> None:

	"""
	Main entry point: play the configured polygons, or export them to MIDI.
	"""

	parser = argparse.ArgumentParser(description="Rotating polygon step sequencer")
	parser.add_argument("--config", default="config.yaml", help="YAML config file (default: config.yaml)")
	parser.add_argument("--export", metavar="FILE", help="Write a MIDI file instead of playing")
	parser.add_argument("--seconds", type=float, default=None, help="Stop playback after this many seconds")
	args = parser.parse_args()

	logger.info("polyseq starting...")

	config = polyseq.config.load_config(args.config)

	export_filename = args.export or polyseq.config.section(config, "export").get("filename")

	if args.export:
		session = polyseq.config.build_session(config)
		session.export_midi(export_filename)
		return

	sink = polyseq.config.build_sink(config)
	session = polyseq.config.build_session(config, sink=sink)

	osc_server = None
	receive_port = polyseq.config.section(config, "osc_control").get("receive_port")

	if receive_port is not None:
		osc_server = polyseq.osc.OscServer(session, receive_port=receive_port)

	player = polyseq.player.Player(
		session,
		fps = polyseq.config.section(config, "player").get("fps", 60),
		osc_server = osc_server,
		max_seconds = args.seconds
	)

	try:
		player.play()
	finally:
		if export_filename:
			session.export_midi(export_filename)

		close = getattr(sink, "close", None)
		if close is not None:
			close()


if __name__ == "__main__":
	main()
