
"""
polyseq - a rotating-polygon step sequencer engine for Python.

Polygons rotate around a shared center; every corner carries a note, and
the note fires whenever the corner crosses a fixed line at the top of the
circle. A polygon with four corners that rotates once per bar is a
four-step sequencer; put a five-sided polygon next to it and you have a
polyrhythm.

What it does:

- **Continuous-time engine.** Rotation is a pure function of elapsed
  seconds and tempo, so real-time playback, hit testing and MIDI export all
  agree on exactly when a corner plays.
- **Edge-triggered crossings.** A 12 degree detection band for highlighting
  and a 4 degree firing gate so no corner ever fires twice in one pass.
- **Pattern bank.** Every polygon carries four patterns (A-D) and a
  sequence such as ``"AABD"``; patterns switch only on rotation boundaries,
  and edits made while playing are kept.
- **Pitch by size.** Smaller polygons play higher octaves.
- **Outputs.** MIDI ports via mido, OSC via python-osc, or any object with a
  ``play(volume, frequency, duration)`` method. Export the arrangement as a
  Standard MIDI File at 480 ticks per quarter note.

Minimal example:

    ```python
    import polyseq

    session = polyseq.Session(bpm=120)
    lead, bass = session.add_default_polygons()
    lead.set_sequence_text("AB")
    session.simulate(seconds=8)
    session.export_midi("polygons.mid")
    ```

Package-level exports: ``Session``, ``RotatingPolygon``, ``Corner``,
``MidiExporter``, ``Player``.
"""

import polyseq.midi_export
import polyseq.player
import polyseq.polygon
import polyseq.session


Session = polyseq.session.Session
RotatingPolygon = polyseq.polygon.RotatingPolygon
Corner = polyseq.polygon.Corner
MidiExporter = polyseq.midi_export.MidiExporter
Player = polyseq.player.Player
