"""Main client for the teacher management API."""

import asyncio
import json
import logging
from typing import Any, Callable, Dict, List, Optional, TypeVar

import aiohttp

from .auth import TMSAuth
from .exceptions import TMSAPIError, TMSAuthError, TMSConnectionError, TMSDataError, TMSError
from .models import (
	Assignment, AttendanceRecord, ClassAnalytics, ClassSection, Grade, Meeting,
	Message, Resource, Student, StudentDetail, TeacherProfile,
)

_LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:3000/api"

HTTP_METHODS = ("GET", "POST", "PUT", "DELETE")

DEFAULT_HEADERS = {
	"Accept": "application/json",
	"Content-Type": "application/json",
}

T = TypeVar("T")


class TMSClient:
	"""Client for the teacher management REST backend.

	Every backend call goes through :meth:`call`, which never raises for
	transport or HTTP failures. It reports them through the notifier and
	returns ``None`` instead, so callers can write ``await client.call(...) or []``.
	"""

	def __init__(
		self,
		base_url: str = DEFAULT_BASE_URL,
		session: Optional[aiohttp.ClientSession] = None,
		auth: Optional[TMSAuth] = None,
		notifier: Any = None,
		timeout: Optional[float] = None,
	):
		"""Initialise the client.

		Args:
			base_url: Backend root, e.g. ``http://localhost:3000/api``
			session: Optional aiohttp session. If None, one is created on entry.
			auth: Credential holder; an in-memory one is used if omitted.
			notifier: Object with ``set_busy(bool)`` and ``notify(message, level)``.
			timeout: Total request timeout in seconds; aiohttp's default if None.
		"""
		self.base_url = base_url.rstrip("/")
		self._session = session
		self._own_session = session is None
		self.auth = auth or TMSAuth(session_file=None)
		self.notifier = notifier
		self._timeout = timeout
		self._in_flight = 0

	async def __aenter__(self):
		"""Async context manager entry."""
		if self._own_session and self._session is None:
			kwargs = {}
			if self._timeout:
				kwargs["timeout"] = aiohttp.ClientTimeout(total=self._timeout)
			self._session = aiohttp.ClientSession(**kwargs)
		return self

	async def __aexit__(self, exc_type, exc_val, exc_tb):
		"""Async context manager exit."""
		await self.close()

	async def close(self) -> None:
		if self._own_session and self._session:
			await self._session.close()
			self._session = None

	# ------------------------------------------------------------------
	# Gateway
	# ------------------------------------------------------------------

	async def request(self, method: str, path: str, body: Optional[Any] = None) -> Any:
		"""Perform one backend call and return the parsed JSON body.

		Raises:
			TMSAPIError: non-2xx status; message is the response text if any
			TMSConnectionError: transport failure
			TMSDataError: 2xx response that is not valid JSON
		"""
		method = _check_method(method)
		if self._session is None:
			raise TMSConnectionError("Client session not initialised")

		url = f"{self.base_url}{path}"
		headers = DEFAULT_HEADERS.copy()
		headers.update(self.auth.headers())
		kwargs: Dict[str, Any] = {"headers": headers}
		if body is not None:
			kwargs["json"] = body

		_LOGGER.debug("%s %s", method, url)
		try:
			async with self._session.request(method, url, **kwargs) as resp:
				text = await resp.text()
				if not 200 <= resp.status < 300:
					raise TMSAPIError(text.strip() or f"HTTP {resp.status}", resp.status)
				if not text.strip():
					return {}
				try:
					return json.loads(text)
				except json.JSONDecodeError as e:
					_LOGGER.error(f"Response from {path} is not JSON: {text[:200]}...")
					raise TMSDataError("Invalid JSON response") from e
		except aiohttp.ClientError as e:
			raise TMSConnectionError(str(e) or "Network error") from e
		except asyncio.TimeoutError as e:
			raise TMSConnectionError("Request timed out") from e

	async def call(self, method: str, path: str, body: Optional[Any] = None) -> Optional[Any]:
		"""Gateway entry point used by every view and flow.

		Returns:
			Parsed JSON on success, ``None`` on any failure (already reported)
		"""
		method = _check_method(method)
		self._set_busy(True)
		try:
			return await self.request(method, path, body)
		except TMSError as err:
			message = str(err) or "Network error"
			_LOGGER.warning("API error on %s %s: %s", method, path, message)
			self.notify(message, "error")
			return None
		finally:
			self._set_busy(False)

	def notify(self, message: str, level: str = "info") -> None:
		if self.notifier is not None:
			self.notifier.notify(message, level)

	def _set_busy(self, busy: bool) -> None:
		# One indicator shared by all in-flight calls
		if busy:
			self._in_flight += 1
			if self._in_flight == 1 and self.notifier is not None:
				self.notifier.set_busy(True)
		else:
			self._in_flight = max(0, self._in_flight - 1)
			if self._in_flight == 0 and self.notifier is not None:
				self.notifier.set_busy(False)

	async def _get_list(self, path: str, parser: Callable[[Dict[str, Any]], T]) -> List[T]:
		data = await self.call("GET", path)
		if data is None:
			return []
		if not isinstance(data, list):
			_LOGGER.warning(f"Expected a list from {path}, got {type(data).__name__}")
			return []
		items: List[T] = []
		for item in data:
			if not isinstance(item, dict):
				_LOGGER.debug(f"Skipping malformed item from {path}: {item!r}")
				continue
			items.append(parser(item))
		return items

	async def _get_object(self, path: str, parser: Callable[[Dict[str, Any]], T]) -> Optional[T]:
		data = await self.call("GET", path)
		if not isinstance(data, dict) or not data:
			return None
		return parser(data)

	# ------------------------------------------------------------------
	# Authentication
	# ------------------------------------------------------------------

	async def login(self, username: str, password: str) -> bool:
		"""Log in and store the issued bearer token.

		Returns:
			True if login successful
		"""
		result = await self.call("POST", "/auth/login", {"username": username, "password": password})
		try:
			token = _extract_token(result)
		except TMSAuthError as err:
			if result is not None:
				self.notify(str(err), "error")
			return False
		await self.auth.set_session(token, result.get("teacher"))
		_LOGGER.info("Logged in as %s", username)
		return True

	async def logout(self) -> None:
		await self.auth.clear()

	async def get_profile(self) -> Optional[TeacherProfile]:
		return await self._get_object("/me", TeacherProfile.from_dict)

	async def request_account(self, name: str, school: str, email: str, subjects: List[str]) -> Optional[Any]:
		return await self.call("POST", "/teacher-requests", {
			"name": name, "school": school, "email": email, "subjects": subjects,
		})

	# ------------------------------------------------------------------
	# Classes and students
	# ------------------------------------------------------------------

	async def get_classes(self) -> List[ClassSection]:
		return await self._get_list("/classes", ClassSection.from_dict)

	async def get_class(self, class_id: str) -> Optional[ClassSection]:
		return await self._get_object(f"/classes/{class_id}", ClassSection.from_dict)

	async def create_class(self, name: str, section: str, subject: str, capacity: int = 40, teacher: str = "Current Teacher") -> Optional[Any]:
		return await self.call("POST", "/classes", {
			"name": name, "section": section, "subject": subject,
			"teacher": teacher, "capacity": capacity,
		})

	async def delete_class(self, class_id: str) -> Optional[Any]:
		return await self.call("DELETE", f"/classes/{class_id}")

	async def get_students(self) -> List[Student]:
		return await self._get_list("/students", Student.from_dict)

	async def get_student(self, student_id: str) -> Optional[StudentDetail]:
		return await self._get_object(f"/students/{student_id}", StudentDetail.from_dict)

	async def get_class_students(self, class_id: str) -> List[Student]:
		return await self._get_list(f"/classes/{class_id}/students", Student.from_dict)

	async def add_student(self, class_id: str, name: str, roll_no: str, email: str) -> Optional[Any]:
		return await self.call("POST", f"/classes/{class_id}/students", {
			"name": name, "rollNo": roll_no, "email": email,
		})

	async def move_student(self, student_id: str, class_id: str) -> Optional[Any]:
		"""Re-parent a student to another class."""
		return await self.call("PUT", f"/students/{student_id}", {"classId": class_id})

	async def delete_student(self, student_id: str) -> Optional[Any]:
		return await self.call("DELETE", f"/students/{student_id}")

	# ------------------------------------------------------------------
	# Attendance
	# ------------------------------------------------------------------

	async def get_attendance(self) -> List[AttendanceRecord]:
		return await self._get_list("/attendance", AttendanceRecord.from_dict)

	async def get_class_attendance(self, class_id: str, date: str) -> List[AttendanceRecord]:
		return await self._get_list(f"/classes/{class_id}/attendance?date={date}", AttendanceRecord.from_dict)

	async def save_attendance(self, class_id: str, date: str, entries: List[Dict[str, Any]]) -> Optional[int]:
		"""Batch upsert attendance for a class and day.

		Returns:
			Number of records the server stored, or None on failure
		"""
		result = await self.call("POST", f"/classes/{class_id}/attendance", {
			"attendanceData": entries,
			"date": date,
		})
		if result is None:
			return None
		if isinstance(result, dict):
			try:
				return int(result.get("marked") or 0)
			except (TypeError, ValueError):
				_LOGGER.warning(f"Unexpected marked count: {result.get('marked')!r}")
		return 0

	# ------------------------------------------------------------------
	# Assignments and grades
	# ------------------------------------------------------------------

	async def get_assignments(self) -> List[Assignment]:
		return await self._get_list("/assignments", Assignment.from_dict)

	async def get_class_assignments(self, class_id: str) -> List[Assignment]:
		return await self._get_list(f"/classes/{class_id}/assignments", Assignment.from_dict)

	async def create_assignment(self, class_id: str, title: str, description: str, due_date: str, total_marks: int) -> Optional[Any]:
		return await self.call("POST", f"/classes/{class_id}/assignments", {
			"title": title, "description": description,
			"dueDate": due_date, "totalMarks": total_marks,
		})

	async def delete_assignment(self, assignment_id: str) -> Optional[Any]:
		"""Delete an assignment; the backend removes its grades too."""
		return await self.call("DELETE", f"/assignments/{assignment_id}")

	async def get_class_grades(self, class_id: str) -> List[Grade]:
		return await self._get_list(f"/classes/{class_id}/grades", Grade.from_dict)

	async def create_grade(self, grade: Grade) -> Optional[Any]:
		return await self.call("POST", "/grades", grade.to_payload())

	async def update_grade(self, grade: Grade) -> Optional[Any]:
		return await self.call("PUT", f"/grades/{grade.id}", grade.to_payload())

	async def get_analytics(self, class_id: str) -> Optional[ClassAnalytics]:
		return await self._get_object(f"/classes/{class_id}/analytics", ClassAnalytics.from_dict)

	# ------------------------------------------------------------------
	# Resources, messages, meetings
	# ------------------------------------------------------------------

	async def get_resources(self) -> List[Resource]:
		return await self._get_list("/resources", Resource.from_dict)

	async def create_resource(self, title: str, url: str, category: Optional[str], type_: str) -> Optional[Any]:
		return await self.call("POST", "/resources", {
			"title": title, "url": url, "category": category, "type": type_,
		})

	async def delete_resource(self, resource_id: str) -> Optional[Any]:
		return await self.call("DELETE", f"/resources/{resource_id}")

	async def get_messages(self) -> List[Message]:
		return await self._get_list("/communications", Message.from_dict)

	async def send_message(self, text: str, sender_id: str = "teacher", receiver_id: str = "class", type_: str = "message") -> Optional[Any]:
		return await self.call("POST", "/messages", {
			"senderId": sender_id, "receiverId": receiver_id,
			"message": text, "type": type_,
		})

	async def delete_message(self, message_id: str) -> Optional[Any]:
		return await self.call("DELETE", f"/communications/{message_id}")

	async def get_meetings(self) -> List[Meeting]:
		return await self._get_list("/meetings", Meeting.from_dict)

	async def create_meeting(self, class_id: str, student_id: str, parent_name: str, scheduled_date: str) -> Optional[Any]:
		return await self.call("POST", f"/classes/{class_id}/meetings", {
			"studentId": student_id, "parentName": parent_name,
			"scheduledDate": scheduled_date,
		})

	async def delete_meeting(self, meeting_id: str) -> Optional[Any]:
		return await self.call("DELETE", f"/meetings/{meeting_id}")


def _check_method(method: str) -> str:
	method = (method or "").upper()
	if method not in HTTP_METHODS:
		raise ValueError(f"Unsupported HTTP method: {method!r}")
	return method


def _extract_token(result: Any) -> str:
	if not isinstance(result, dict) or not result.get("token"):
		raise TMSAuthError("Login failed")
	return str(result["token"])
