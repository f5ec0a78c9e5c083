import logging
import typing

import mido

logger = logging.getLogger(__name__)


def select_output_device (device_name: typing.Optional[str] = None) -> typing.Tuple[typing.Optional[str], typing.Optional[typing.Any]]:
    """
    Select and open a MIDI output port for live note output.

    If `device_name` is provided and exists, that port is opened. If it is
    missing, or no name was given, the first available port is used and a
    warning is logged, so a configuration written on one machine still plays
    on another.

    Returns:
        A tuple of (device_name, midi_out_object) or (None, None) on failure.
    """
    try:
        outputs = mido.get_output_names()
        logger.info(f"Available MIDI outputs: {outputs}")

        if not outputs:
            logger.error("No MIDI output devices found.")
            return None, None

        target = device_name

        if target is None:
            target = outputs[0]
            logger.info(f"No MIDI output configured - using '{target}'")

        elif target not in outputs:
            logger.warning(f"MIDI output device '{target}' not found. Available devices: {outputs}")
            target = outputs[0]
            logger.warning(f"Fallback to: {target}")

        midi_out = mido.open_output(target)
        logger.info(f"Opened MIDI output: {target}")
        return target, midi_out

    except Exception as e:
        logger.error(f"Failed to open MIDI output: {e}")
        return None, None


def volume_to_velocity (volume: float) -> int:
    """
    Map a 0..1 volume onto MIDI velocity 1..127.
    """
    return max(1, min(127, round(volume * 127)))
