"""
polyseq - Three against four against five

Three polygons share one center and one tempo. Each corner plays when it
crosses the line at the top of the circle, so a triangle, a square and a
pentagon rotating once per bar give a 3:4:5 polyrhythm that lines up again
at every downbeat.

How it works
────────────
  Polygon   │ Sides │ Radius │ Octave │ Sequence
  ──────────┼───────┼────────┼────────┼──────────────────────────
  Bell      │ 5     │ 30     │ x2     │ A A B  (B is a variation)
  Pluck     │ 3     │ 60     │ x1     │ A
  Bass      │ 4     │ 120    │ /2     │ A B    (B rests on beat 2)

Patterns switch only when a polygon finishes a full rotation, so the
variations always land on a bar line.

How to run
──────────
1. Set OUTPUT below to "midi" (with MIDI_DEVICE) or "osc".
2. Run: python examples/polyrhythm.py
3. Press Ctrl+C to stop. The arrangement is written to polyrhythm.mid.
"""

import logging

import polyseq
import polyseq.midi_sink
import polyseq.osc
import polyseq.pitch
import polyseq.player


logging.basicConfig(level=logging.INFO)

OUTPUT = "midi"
MIDI_DEVICE = None		# None = first available port
OSC_PORT = 57120

BPM = 100


if OUTPUT == "midi":
	sink = polyseq.midi_sink.MidiToneSink(device_name=MIDI_DEVICE)
else:
	sink = polyseq.osc.OscToneSink(port=OSC_PORT)

session = polyseq.Session(bpm=BPM, master_volume=0.7, sink=sink)

bell = session.add_polygon(name="Bell", sides=5, radius=30)
pluck = session.add_polygon(name="Pluck", sides=3, radius=60)
bass = session.add_polygon(name="Bass", sides=4, radius=120)

# Bell: C E G A C, with B swapping the top note
for index, key in enumerate(["c4", "e", "g", "a", "c5"]):
	bell.set_corner_note(polyseq.pitch.note_for_key(key), index=index)
	bell.set_corner_length(0.4, index=index)

bell.save_current_state_to("B")
bell.select_pattern("B")
bell.set_corner_note(polyseq.pitch.note_for_key("d"), index=4)
bell.select_pattern("A")
bell.set_sequence_text("AAB")

pluck.set_corner_note(polyseq.pitch.note_for_key("g"), index=1)
pluck.set_corner_volume(0.6, index=2)

bass.set_corner_length(0.9, index=0)
bass.save_current_state_to("B")
bass.select_pattern("B")
bass.set_corner_note(0, index=1)
bass.select_pattern("A")
bass.set_sequence_text("AB")


if __name__ == "__main__":

	player = polyseq.player.Player(session, fps=60)

	try:
		player.play()
	finally:
		session.export_midi("polyrhythm.mid")
		if OUTPUT == "midi":
			sink.close()
