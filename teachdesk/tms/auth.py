"""Session credential handling for the teacher management API."""

import asyncio
import json
import logging
import os
from typing import Any, Dict, Optional

from .models import TeacherProfile

_LOGGER = logging.getLogger(__name__)

DEFAULT_SESSION_FILE = os.path.join(os.path.expanduser("~"), ".teachdesk", "session.json")


async def _write_text_file_async(path: str, content: str) -> None:
	"""Write text to a file off the event loop to avoid blocking."""

	def _write():
		directory = os.path.dirname(path)
		if directory:
			os.makedirs(directory, exist_ok=True)
		with open(path, "w", encoding="utf-8") as f:
			f.write(content)

	await asyncio.to_thread(_write)


async def _read_text_file_async(path: str) -> Optional[str]:
	def _read():
		try:
			with open(path, "r", encoding="utf-8") as f:
				return f.read()
		except FileNotFoundError:
			return None

	return await asyncio.to_thread(_read)


class TMSAuth:
	"""Holds the bearer token for the current session.

	The token is persisted to a small JSON file so a later run can skip the
	login step. Pass ``session_file=None`` to keep it in memory only.
	"""

	def __init__(self, session_file: Optional[str] = DEFAULT_SESSION_FILE):
		self._session_file = session_file
		self.token: Optional[str] = None
		self.profile: Optional[TeacherProfile] = None

	@property
	def authenticated(self) -> bool:
		return bool(self.token)

	def headers(self) -> Dict[str, str]:
		"""Authorisation headers for the next request, if any."""
		if not self.token:
			return {}
		return {"Authorization": f"Bearer {self.token}"}

	async def load(self) -> bool:
		"""Restore a persisted token.

		Returns:
			True if a token was found
		"""
		if not self._session_file:
			return False
		try:
			text = await _read_text_file_async(self._session_file)
		except OSError as err:
			_LOGGER.warning("Could not read session file %s: %s", self._session_file, err)
			return False
		if not text:
			return False
		try:
			data = json.loads(text)
		except json.JSONDecodeError:
			_LOGGER.warning("Ignoring corrupt session file %s", self._session_file)
			return False
		if not isinstance(data, dict):
			_LOGGER.warning("Ignoring session file %s: expected an object", self._session_file)
			return False

		self.token = data.get("token") or None
		profile = data.get("teacher")
		self.profile = TeacherProfile.from_dict(profile) if isinstance(profile, dict) else None
		_LOGGER.debug("Restored session token: %s", self.authenticated)
		return self.authenticated

	async def set_session(self, token: str, teacher: Optional[Dict[str, Any]] = None) -> None:
		"""Store a freshly issued token and persist it."""
		self.token = token
		self.profile = TeacherProfile.from_dict(teacher or {})
		if not self._session_file:
			return
		payload = json.dumps({"token": token, "teacher": teacher or {}})
		try:
			await _write_text_file_async(self._session_file, payload)
		except OSError as err:
			_LOGGER.warning("Could not persist session to %s: %s", self._session_file, err)

	async def clear(self) -> None:
		"""Forget the token, in memory and on disk."""
		self.token = None
		self.profile = None
		if not self._session_file:
			return

		def _remove():
			try:
				os.remove(self._session_file)
			except FileNotFoundError:
				pass

		try:
			await asyncio.to_thread(_remove)
		except OSError as err:
			_LOGGER.warning("Could not remove session file %s: %s", self._session_file, err)
