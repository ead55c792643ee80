import logging
import typing

import mido

logger = logging.getLogger(__name__)

def select_output_device(device_name: typing.Optional[str] = None) -> typing.Tuple[typing.Optional[str], typing.Optional[typing.Any]]:
    """
    Select and open a MIDI output port.

    If `device_name` is provided, attempts to open that specific port.
    If `device_name` is None, auto-discovers available ports:
    - If one or more ports exist, the first one is selected (and the others
      are listed in the log so the name can be put in the config file).
    - If no ports exist, logs an error and returns None.

    Never raises: the keyboard and the play control must keep working (and
    simply stay silent) when there is nothing to play through.

    Returns:
        A tuple of (device_name, midi_out_object) or (None, None) on failure.
    """
    try:
        outputs = mido.get_output_names()
        logger.info(f"Available MIDI outputs: {outputs}")

        if not outputs:
            logger.error("No MIDI output devices found.")
            return None, None

        # Explicit device requested
        if device_name is not None:
            if device_name in outputs:
                midi_out = mido.open_output(device_name)
                logger.info(f"Opened MIDI output: {device_name}")
                return device_name, midi_out
            else:
                logger.error(
                    f"MIDI output device '{device_name}' not found. "
                    f"Available devices: {outputs}"
                )
                return None, None

        selected_name = outputs[0]
        midi_out = mido.open_output(selected_name)

        if len(outputs) == 1:
            logger.info(f"One MIDI output found - using '{selected_name}'")
        else:
            logger.info(
                f"{len(outputs)} MIDI outputs found - using '{selected_name}'. "
                f"Set midi.device_name in the config file to choose another."
            )

        return selected_name, midi_out

    except Exception as e:
        logger.error(f"Failed to open MIDI output: {e}")
        return None, None
