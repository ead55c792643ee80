import asyncio
import dataclasses
import itertools
import logging
import queue
import typing

import melodykeys.device
import melodykeys.timeline


logger = logging.getLogger(__name__)


@typing.runtime_checkable
class Control (typing.Protocol):

	"""
	Protocol for the interface control that triggers playback (e.g. a play button).
	"""

	def set_enabled (self, enabled: bool) -> None:

		...


class ToggleControl:

	"""
	A control that only remembers whether it is enabled.

	Stands in for a real button when running headless, and records every
	change in ``history`` so the enable/disable sequence can be checked.
	"""

	def __init__ (self, enabled: bool = True) -> None:

		self.enabled = enabled
		self.history: typing.List[bool] = []


	def set_enabled (self, enabled: bool) -> None:

		self.enabled = enabled
		self.history.append(enabled)


@dataclasses.dataclass(frozen=True)
class PlaybackFinished:

	"""Message from the device side: playback ``playback_id`` reached its end."""

	playback_id: int


class PlaybackScheduler:

	"""
	Hands timelines to a sequencing device and tracks when they finish.

	:meth:`play` opens the device, loads the timeline, starts it, disables the
	control and returns at once.  The device reports the end of the track on
	whatever thread it likes; the notification is only queued there.  The
	interactive side picks it up in :meth:`process_notifications`, which closes
	the device and re-enables the control.

	With an asyncio ``loop`` the wake-up is scheduled automatically via
	``call_soon_threadsafe``.  Without one, the owner's event loop must call
	:meth:`process_notifications` itself (e.g. once per UI frame).
	"""

	def __init__ (self, control: Control, loop: typing.Optional[asyncio.AbstractEventLoop] = None) -> None:

		self.control = control
		self.loop = loop

		self.device: typing.Optional[melodykeys.device.SequencingDevice] = None
		self.playback_id: typing.Optional[int] = None
		self.finished = asyncio.Event() if loop is not None else None

		self._notifications: queue.Queue[PlaybackFinished] = queue.Queue()
		self._playback_counter = itertools.count(1)


	@property
	def is_playing (self) -> bool:

		return self.playback_id is not None


	def play (self, timeline: melodykeys.timeline.Timeline, device: melodykeys.device.SequencingDevice) -> bool:

		"""
		Start playing ``timeline`` on ``device``.

		Returns ``True`` once playback has started.  Returns ``False`` when the
		device could not be acquired; the failure is logged, the device is left
		closed and the control keeps the state it had.
		"""

		playback_id = next(self._playback_counter)

		try:
			device.open()
		except Exception as e:
			logger.error(f"Cannot play: sequencing device unavailable ({e})")
			return False

		try:
			device.on_end_of_track(lambda: self._notify(playback_id))
			device.load_timeline(timeline)
			device.start()
		except Exception:
			logger.exception("Cannot play: failed to start sequencing device")

			try:
				device.close()
			except Exception:
				logger.exception("Failed to release sequencing device")

			return False

		self.device = device
		self.playback_id = playback_id

		if self.finished is not None:
			self.finished.clear()

		self.control.set_enabled(False)

		logger.info(f"Playback {playback_id} started ({len(timeline)} events)")

		return True


	def _notify (self, playback_id: int) -> None:

		"""End-of-track observer.  Runs on the device's thread; only queues a message."""

		self._notifications.put(PlaybackFinished(playback_id))

		if self.loop is not None and not self.loop.is_closed():
			self.loop.call_soon_threadsafe(self.process_notifications)


	def process_notifications (self) -> int:

		"""
		Handle queued end-of-track messages on the interactive thread.

		Returns the number of playbacks that finished.  Messages for a playback
		that already finished (or was superseded) are ignored.
		"""

		handled = 0

		while True:

			try:
				message = self._notifications.get_nowait()
			except queue.Empty:
				break

			if message.playback_id != self.playback_id:
				logger.debug(f"Ignoring end-of-track for playback {message.playback_id}")
				continue

			self._finish()
			handled += 1

		return handled


	def _finish (self) -> None:

		device = self.device

		self.device = None
		self.playback_id = None

		if device is not None:
			device.close()

		self.control.set_enabled(True)

		if self.finished is not None:
			self.finished.set()

		logger.info("Playback finished")


	async def wait_finished (self) -> None:

		"""Wait until the current playback has finished (returns at once if idle)."""

		if self.finished is None:
			raise RuntimeError("wait_finished() needs a scheduler created with an event loop")

		if self.playback_id is None:
			return

		await self.finished.wait()
