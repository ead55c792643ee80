import argparse
import asyncio
import logging
import sys
import typing

import melodykeys.config
import melodykeys.device
import melodykeys.scheduler
import melodykeys.timeline


logger = logging.getLogger(__name__)


def parse_args (argv: typing.Optional[typing.List[str]] = None) -> argparse.Namespace:

	parser = argparse.ArgumentParser(
		prog = "melodykeys",
		description = "Play (or save) a melody written in keyboard notation, e.g. '4c5+4e5 2g5'."
	)
	parser.add_argument("notation", nargs="*", help="notation words; read from stdin when omitted")
	parser.add_argument("--config", default="melodykeys.yaml", help="YAML config file (default: %(default)s)")
	parser.add_argument("--output", default=None, help="MIDI output port name (overrides the config file)")
	parser.add_argument("--save", metavar="FILE", default=None, help="write a MIDI file instead of playing")
	parser.add_argument("--verbose", action="store_true", help="log every note decision")

	return parser.parse_args(argv)


async def play (timeline: melodykeys.timeline.Timeline, device: melodykeys.device.SequencingDevice) -> bool:

	"""
	Play the timeline and wait for the end-of-track notification.
	"""

	control = melodykeys.scheduler.ToggleControl()
	scheduler = melodykeys.scheduler.PlaybackScheduler(control, loop=asyncio.get_running_loop())

	if not scheduler.play(timeline, device):
		return False

	try:
		await scheduler.wait_finished()
	finally:
		device.close()

	return True


def main (argv: typing.Optional[typing.List[str]] = None) -> int:

	"""
	Main entry point for the melodykeys command.
	"""

	args = parse_args(argv)

	logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

	try:
		settings = melodykeys.config.load_config(args.config)
	except ValueError as e:
		logger.error(f"Invalid config: {e}")
		return 1

	text = " ".join(args.notation) if args.notation else sys.stdin.read()

	timeline = melodykeys.timeline.compile_notation(
		text,
		resolution = settings.resolution,
		channel = settings.channel_state(),
		chord_timing = settings.chord_timing
	)

	if not len(timeline):
		logger.warning("Nothing to play: no valid notes in the notation.")

	if args.save:
		timeline.save(args.save, bpm=settings.bpm)
		return 0

	device = melodykeys.device.MidoSequencer(
		output_device_name = args.output or settings.device_name,
		bpm = settings.bpm
	)

	try:
		played = asyncio.run(play(timeline, device))
	except KeyboardInterrupt:
		logger.info("Stopping...")
		device.close()
		return 0

	return 0 if played else 1


if __name__ == "__main__":
	sys.exit(main())
