"""Modal flows: short open, edit, submit interactions that create or link records.

Every flow follows the same state machine::

	closed --open()--> open --update()--> open
	open --submit()--> error        (validation failed, no network call)
	open --submit()--> submitting --> closed (success, owning page reloaded)
	                              --> error  (gateway failure)
	any --cancel()--> closed

Field validation uses voluptuous schemas, one per flow.
"""

import logging
from typing import Any, Dict, List, Optional, Set

import voluptuous as vol

from .const import (
	DEFAULT_CLASS_CAPACITY, DEFAULT_RESOURCE_TYPE, DEFAULT_TOTAL_MARKS,
	FLOW_ACCOUNT_REQUEST, FLOW_ADD_STUDENT, FLOW_CONNECT_STUDENT,
	FLOW_CREATE_ASSIGNMENT, FLOW_CREATE_CLASS, FLOW_LOGIN,
	FLOW_SCHEDULE_MEETING, FLOW_SEND_MESSAGE, FLOW_UPLOAD_RESOURCE,
	LEVEL_ERROR, LEVEL_SUCCESS, PAGE_DASHBOARD, PAGE_REQUEST_ACCOUNT,
)
from .tms.exceptions import TMSError
from .tms.models import Student
from .viewmodels import Option, class_options
from .views import PageViews

_LOGGER = logging.getLogger(__name__)

STATE_CLOSED = "closed"
STATE_OPEN = "open"
STATE_SUBMITTING = "submitting"
STATE_ERROR = "error"


class TMSValidationError(TMSError):
	"""Client-side validation failed before any request was made."""
	pass


def _text(msg: str) -> vol.All:
	"""Non-blank string, stripped."""
	return vol.All(vol.Coerce(str), vol.Strip, vol.Length(min=1, msg=msg))


def _required_fields(msg: str, *keys: str) -> Dict[Any, Any]:
	return {vol.Required(key, msg=msg): _text(msg) for key in keys}


def _optional_text(value: Any) -> str:
	return "" if value is None else str(value).strip()


def _marks_or_default(value: Any) -> int:
	try:
		return int(str(value).strip())
	except (TypeError, ValueError):
		return DEFAULT_TOTAL_MARKS


def _subject_list(value: Any) -> List[str]:
	if isinstance(value, (list, tuple)):
		items = value
	else:
		items = str(value or "").split(",")
	return [str(item).strip() for item in items if str(item).strip()]


class ModalFlow:
	"""Base class for a modal flow bound to the page views."""

	name = ""
	schema = vol.Schema({})
	failure_message: Optional[str] = "Request failed"

	def __init__(self, views: PageViews) -> None:
		self.views = views
		self.client = views.client
		self.surface = views.surface
		self.state = STATE_CLOSED
		self.fields: Dict[str, Any] = {}
		self.error: Optional[str] = None

	@property
	def is_open(self) -> bool:
		return self.state != STATE_CLOSED

	def defaults(self) -> Dict[str, Any]:
		return {}

	async def open(self, **context: Any) -> bool:
		"""Reset fields, populate dependent options and show the modal.

		Returns:
			False if the flow cannot be opened (e.g. nothing to choose from)
		"""
		self.fields = self.defaults()
		self.error = None
		self.state = STATE_OPEN
		if not await self._populate(**context):
			self.state = STATE_CLOSED
			return False
		self.surface.open_modal(self.name, self)
		return True

	async def _populate(self, **context: Any) -> bool:
		return True

	def update(self, **fields: Any) -> None:
		"""Local field edits; never touches the network."""
		self._ensure_open()
		self.fields.update(fields)
		if self.state == STATE_ERROR:
			self.state = STATE_OPEN
			self.error = None

	def validate(self) -> Dict[str, Any]:
		submission = {k: v for k, v in self.fields.items() if v is not None and v != ""}
		try:
			return self.schema(submission)
		except vol.Invalid as err:
			_LOGGER.debug(f"{self.name} validation failed: {err}")
			raise TMSValidationError(err.msg) from err

	async def submit(self) -> bool:
		"""Validate, call the gateway and close on success."""
		self._ensure_open()
		if self.state == STATE_SUBMITTING:
			return False
		try:
			data = self.validate()
		except TMSValidationError as err:
			self._fail(str(err))
			return False

		self.state = STATE_SUBMITTING
		try:
			result = await self._perform(data)
		except Exception:
			self._fail(self.failure_message)
			raise
		if result is None:
			self._fail(self.failure_message)
			return False

		self.close()
		await self._after_success(data, result)
		return True

	async def _perform(self, data: Dict[str, Any]) -> Optional[Any]:
		raise NotImplementedError

	async def _after_success(self, data: Dict[str, Any], result: Any) -> None:
		pass

	def cancel(self) -> None:
		"""Discard local edits without any network call."""
		self.close()

	def close(self) -> None:
		self.state = STATE_CLOSED
		self.fields = {}
		self.error = None
		self.surface.close_modal(self.name)

	def _fail(self, message: Optional[str]) -> None:
		self.state = STATE_ERROR
		self.error = message
		if message:
			self.surface.notify(message, LEVEL_ERROR)

	def _ensure_open(self) -> None:
		if self.state == STATE_CLOSED:
			raise RuntimeError(f"{self.name} flow is not open")


class ConnectStudentFlow(ModalFlow):
	"""Attach an existing student to a class."""

	name = FLOW_CONNECT_STUDENT
	schema = vol.Schema(
		{
			vol.Required("class_id", msg="No target class"): _text("No target class"),
			vol.Required("student_id", msg="Select a student first"): _text("Select a student first"),
		}
	)
	failure_message = "Failed to connect student"

	def __init__(self, views: PageViews) -> None:
		super().__init__(views)
		self.students: List[Student] = []
		self.marked: Set[str] = set()
		self.empty_message: Optional[str] = None

	async def _populate(self, class_id: Optional[str] = None, **context: Any) -> bool:
		self.fields["class_id"] = class_id
		self.marked = set()
		self.students = await self.client.get_students()
		self.empty_message = None if self.students else "No students available. Create a student first."
		return True

	def select(self, student_id: str) -> None:
		"""Mark one student row, unmarking any previous one."""
		self._ensure_open()
		if student_id not in {s.id for s in self.students}:
			raise KeyError(f"Unknown student {student_id}")
		self.marked.clear()
		self.marked.add(student_id)
		self.update(student_id=student_id)

	def close(self) -> None:
		super().close()
		self.marked = set()

	async def _perform(self, data: Dict[str, Any]) -> Optional[Any]:
		return await self.client.move_student(data["student_id"], data["class_id"])

	async def _after_success(self, data: Dict[str, Any], result: Any) -> None:
		self.surface.notify("Student connected to class", LEVEL_SUCCESS)
		await self.views.load_classes()
		await self.views.load_students()


class CreateAssignmentFlow(ModalFlow):
	name = FLOW_CREATE_ASSIGNMENT
	schema = vol.Schema(
		{
			**_required_fields("Please fill class, title and due date", "class_id", "title", "due_date"),
			vol.Optional("description", default=""): _optional_text,
			vol.Optional("total_marks", default=DEFAULT_TOTAL_MARKS): _marks_or_default,
		}
	)
	failure_message = "Failed to create assignment"

	def __init__(self, views: PageViews) -> None:
		super().__init__(views)
		self.class_options: List[Option] = []

	def defaults(self) -> Dict[str, Any]:
		return {"title": "", "description": "", "due_date": "", "total_marks": DEFAULT_TOTAL_MARKS}

	async def _populate(self, **context: Any) -> bool:
		classes = await self.client.get_classes()
		if not classes:
			self.surface.notify("No classes available. Create a class first.", LEVEL_ERROR)
			return False
		self.class_options = class_options(classes, with_section=True)
		self.fields["class_id"] = classes[0].id
		return True

	async def _perform(self, data: Dict[str, Any]) -> Optional[Any]:
		return await self.client.create_assignment(
			data["class_id"], data["title"], data["description"],
			data["due_date"], data["total_marks"],
		)

	async def _after_success(self, data: Dict[str, Any], result: Any) -> None:
		await self.views.load_assignments()
		created = result.get("createdGrades") if isinstance(result, dict) else None
		self.surface.notify(
			f"Assignment created and {created or 0} grade placeholders initialized.",
			LEVEL_SUCCESS,
		)


class ScheduleMeetingFlow(ModalFlow):
	name = FLOW_SCHEDULE_MEETING
	schema = vol.Schema(
		{
			**_required_fields("Please fill all fields", "class_id", "student_id", "parent_name", "scheduled_date"),
		}
	)
	failure_message = "Failed to schedule meeting"

	def __init__(self, views: PageViews) -> None:
		super().__init__(views)
		self.class_options: List[Option] = []
		self.student_options: List[Option] = []

	def defaults(self) -> Dict[str, Any]:
		return {"parent_name": "", "scheduled_date": ""}

	async def _populate(self, **context: Any) -> bool:
		classes = await self.client.get_classes()
		if not classes:
			self.surface.notify("No classes available. Create a class first.", LEVEL_ERROR)
			return False
		self.class_options = class_options(classes, with_section=True)
		await self.choose_class(classes[0].id)
		return True

	async def choose_class(self, class_id: str) -> List[Option]:
		"""Load the chosen class's students into the dependent select."""
		self._ensure_open()
		students = await self.client.get_class_students(class_id)
		self.student_options = [Option(s.id, s.name) for s in students]
		self.fields["class_id"] = class_id
		self.fields["student_id"] = self.student_options[0].value if self.student_options else None
		return self.student_options

	async def _perform(self, data: Dict[str, Any]) -> Optional[Any]:
		return await self.client.create_meeting(
			data["class_id"], data["student_id"], data["parent_name"], data["scheduled_date"],
		)

	async def _after_success(self, data: Dict[str, Any], result: Any) -> None:
		await self.views.load_meetings()
		self.surface.notify("Meeting scheduled", LEVEL_SUCCESS)


class AccountRequestFlow(ModalFlow):
	"""Ask the school for a teacher account; usable without signing in."""

	name = FLOW_ACCOUNT_REQUEST
	schema = vol.Schema(
		{
			**_required_fields("Name and school are required", "name", "school"),
			vol.Optional("email", default=""): _optional_text,
			vol.Optional("subjects", default=[]): _subject_list,
		}
	)
	failure_message = None  # the gateway has already reported it

	def defaults(self) -> Dict[str, Any]:
		return {"name": "", "school": "", "email": "", "subjects": ""}

	async def _populate(self, **context: Any) -> bool:
		self.surface.show_login(False)
		await self.views.router.navigate(PAGE_REQUEST_ACCOUNT)
		return True

	async def _perform(self, data: Dict[str, Any]) -> Optional[Any]:
		return await self.client.request_account(data["name"], data["school"], data["email"], data["subjects"])

	async def _after_success(self, data: Dict[str, Any], result: Any) -> None:
		self.surface.notify("Request submitted", LEVEL_SUCCESS)
		await self._leave()

	def cancel(self) -> None:
		super().cancel()
		self.surface.show_login(not self.client.auth.authenticated)

	async def _leave(self) -> None:
		self.surface.show_login(not self.client.auth.authenticated)
		await self.views.router.navigate(PAGE_DASHBOARD)


class CreateClassFlow(ModalFlow):
	name = FLOW_CREATE_CLASS
	schema = vol.Schema(
		{
			**_required_fields("Name, section and subject are required", "name", "section", "subject"),
		}
	)
	failure_message = None

	async def _perform(self, data: Dict[str, Any]) -> Optional[Any]:
		return await self.client.create_class(
			data["name"], data["section"], data["subject"], capacity=DEFAULT_CLASS_CAPACITY,
		)

	async def _after_success(self, data: Dict[str, Any], result: Any) -> None:
		await self.views.load_classes()
		self.surface.notify("Class created successfully!", LEVEL_SUCCESS)


class AddStudentFlow(ModalFlow):
	name = FLOW_ADD_STUDENT
	schema = vol.Schema(
		{
			**_required_fields("Class, name, roll number and email are required", "class_id", "name", "roll_no", "email"),
		}
	)
	failure_message = None

	def __init__(self, views: PageViews) -> None:
		super().__init__(views)
		self.class_options: List[Option] = []

	async def _populate(self, class_id: Optional[str] = None, **context: Any) -> bool:
		self.class_options = class_options(await self.client.get_classes(), with_section=True)
		if class_id:
			self.fields["class_id"] = class_id
		elif self.class_options:
			self.fields["class_id"] = self.class_options[0].value
		return True

	async def _perform(self, data: Dict[str, Any]) -> Optional[Any]:
		return await self.client.add_student(data["class_id"], data["name"], data["roll_no"], data["email"])

	async def _after_success(self, data: Dict[str, Any], result: Any) -> None:
		await self.views.load_students()
		self.surface.notify("Student added successfully!", LEVEL_SUCCESS)


class UploadResourceFlow(ModalFlow):
	name = FLOW_UPLOAD_RESOURCE
	schema = vol.Schema(
		{
			**_required_fields("Title and URL are required", "title", "url"),
			vol.Optional("category"): _optional_text,
			vol.Optional("type", default=DEFAULT_RESOURCE_TYPE): _optional_text,
		}
	)
	failure_message = "Failed to upload"

	def defaults(self) -> Dict[str, Any]:
		return {"type": DEFAULT_RESOURCE_TYPE}

	async def _perform(self, data: Dict[str, Any]) -> Optional[Any]:
		return await self.client.create_resource(data["title"], data["url"], data.get("category"), data["type"])

	async def _after_success(self, data: Dict[str, Any], result: Any) -> None:
		self.surface.notify("Resource uploaded", LEVEL_SUCCESS)
		await self.views.load_resources()


class SendMessageFlow(ModalFlow):
	name = FLOW_SEND_MESSAGE
	schema = vol.Schema(
		{
			vol.Required("text", msg="Enter a message"): _text("Enter a message"),
		}
	)
	failure_message = "Failed to send message"

	async def _perform(self, data: Dict[str, Any]) -> Optional[Any]:
		return await self.client.send_message(data["text"])

	async def _after_success(self, data: Dict[str, Any], result: Any) -> None:
		await self.views.load_communications()


class LoginFlow(ModalFlow):
	name = FLOW_LOGIN
	schema = vol.Schema(
		{
			vol.Required("username", msg="Enter username and password"): _text("Enter username and password"),
			vol.Required("password", msg="Enter username and password"): vol.All(vol.Coerce(str), vol.Length(min=1, msg="Enter username and password")),
		}
	)
	failure_message = None  # login reports its own failure

	async def _perform(self, data: Dict[str, Any]) -> Optional[Any]:
		if await self.client.login(data["username"], data["password"]):
			return True
		return None

	async def _after_success(self, data: Dict[str, Any], result: Any) -> None:
		self.surface.show_login(False)
		self.views.show_profile(self.client.auth.profile)
		self.surface.notify("Logged in successfully", LEVEL_SUCCESS)
		await self.views.router.navigate(PAGE_DASHBOARD)


FLOW_TYPES = {
	flow.name: flow
	for flow in (
		ConnectStudentFlow, CreateAssignmentFlow, ScheduleMeetingFlow,
		AccountRequestFlow, CreateClassFlow, AddStudentFlow,
		UploadResourceFlow, SendMessageFlow, LoginFlow,
	)
}


def build_flows(views: PageViews) -> Dict[str, ModalFlow]:
	"""One instance of every flow, keyed by flow name."""
	return {name: flow_type(views) for name, flow_type in FLOW_TYPES.items()}
