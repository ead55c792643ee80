import logging


logger = logging.getLogger(__name__)


class NotationBuffer:

	"""
	The text the user is building, shared by the keyboard and the play control.

	Owned by the interface layer and handed to whoever writes into it.  The
	keyboard only appends; clearing is left to the owner.
	"""

	def __init__ (self, text: str = "") -> None:

		self._text = text


	def append (self, token: str) -> None:

		self._text += token
		logger.debug(f"Notation buffer: {self._text!r}")


	def read (self) -> str:

		return self._text


	def clear (self) -> None:

		self._text = ""


	def __str__ (self) -> str:

		return self._text
