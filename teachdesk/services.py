"""Action registration and dispatch.

Global buttons, per-row buttons and select changes all resolve to a stable
action identifier plus a small payload. Each action has a voluptuous schema
for its payload and one handler.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Tuple

import voluptuous as vol

from .const import (
	ACTION_ADD_STUDENT, ACTION_CONNECT_STUDENT, ACTION_CREATE_ASSIGNMENT,
	ACTION_DELETE_ASSIGNMENT, ACTION_DELETE_CLASS, ACTION_DELETE_MEETING,
	ACTION_DELETE_MESSAGE, ACTION_DELETE_RESOURCE, ACTION_DELETE_STUDENT,
	ACTION_LOGOUT, ACTION_MARK_ATTENDANCE, ACTION_NAVIGATE, ACTION_NEW_CLASS,
	ACTION_REQUEST_ACCOUNT, ACTION_SAVE_ATTENDANCE, ACTION_SAVE_GRADES,
	ACTION_SCHEDULE_MEETING, ACTION_SELECT_ANALYTICS_CLASS,
	ACTION_SELECT_ATTENDANCE_CLASS, ACTION_SELECT_GRADEBOOK_ASSIGNMENT,
	ACTION_SELECT_GRADEBOOK_CLASS, ACTION_SEND_MESSAGE, ACTION_UPLOAD_RESOURCE,
	ACTION_VIEW_ASSIGNMENT, ACTION_VIEW_CLASS, ACTION_VIEW_STUDENT,
	FLOW_ACCOUNT_REQUEST, FLOW_ADD_STUDENT, FLOW_CONNECT_STUDENT,
	FLOW_CREATE_ASSIGNMENT, FLOW_CREATE_CLASS, FLOW_SCHEDULE_MEETING,
	FLOW_SEND_MESSAGE, FLOW_UPLOAD_RESOURCE, PAGE_ATTENDANCE, PAGES,
)
from .flows import ModalFlow
from .views import PageViews

_LOGGER = logging.getLogger(__name__)

ActionHandler = Callable[[Dict[str, Any]], Awaitable[Any]]

EMPTY_SCHEMA = vol.Schema({})
ID_SCHEMA = vol.Schema({vol.Required("id"): vol.Coerce(str)})
VALUE_SCHEMA = vol.Schema({vol.Optional("value"): vol.Any(None, vol.Coerce(str))})
NAVIGATE_SCHEMA = vol.Schema({vol.Required("page"): vol.In(PAGES)})
ADD_STUDENT_SCHEMA = vol.Schema({vol.Optional("class_id"): vol.Coerce(str)})
SEND_MESSAGE_SCHEMA = vol.Schema({vol.Optional("text", default=""): vol.Any(None, str)})


class ActionDispatcher:
	"""Maps action identifiers to handlers."""

	def __init__(self) -> None:
		self._actions: Dict[str, Tuple[ActionHandler, vol.Schema]] = {}

	def register(self, action: str, handler: ActionHandler, schema: vol.Schema = EMPTY_SCHEMA) -> None:
		if action in self._actions:
			_LOGGER.debug(f"Replacing handler for action {action}")
		self._actions[action] = (handler, schema)

	async def dispatch(self, action: str, payload: Optional[Dict[str, Any]] = None) -> Any:
		"""Run the handler for ``action``.

		Unknown actions and malformed payloads are logged and ignored.
		"""
		entry = self._actions.get(action)
		if entry is None:
			_LOGGER.warning(f"No handler for action {action!r}")
			return None
		handler, schema = entry
		try:
			data = schema(dict(payload or {}))
		except vol.Invalid as err:
			_LOGGER.error("Invalid payload for action %s: %s", action, err)
			return None
		_LOGGER.debug("Dispatching %s %s", action, data)
		return await handler(data)

	async def dispatch_many(self, requests: Iterable[Tuple[str, Optional[Dict[str, Any]]]]) -> list:
		"""Run several actions concurrently; failures are logged, not raised."""
		requests = list(requests)
		results = await asyncio.gather(
			*(self.dispatch(action, payload) for action, payload in requests),
			return_exceptions=True,
		)
		for (action, _), result in zip(requests, results):
			if isinstance(result, Exception):
				_LOGGER.error("Action %s failed: %s", action, result)
		return results


def register_actions(
	dispatcher: ActionDispatcher,
	views: PageViews,
	flows: Dict[str, ModalFlow],
	logout: Callable[[], Awaitable[None]],
) -> None:
	"""Register every built-in action."""
	router = views.router

	def _open(flow_name: str, **context: Any) -> Awaitable[bool]:
		return flows[flow_name].open(**context)

	async def handle_navigate(data: Dict[str, Any]) -> Any:
		return await router.navigate(data["page"])

	async def handle_mark_attendance(data: Dict[str, Any]) -> Any:
		return await router.navigate(PAGE_ATTENDANCE)

	async def handle_new_class(data: Dict[str, Any]) -> Any:
		return await _open(FLOW_CREATE_CLASS)

	async def handle_add_student(data: Dict[str, Any]) -> Any:
		return await _open(FLOW_ADD_STUDENT, class_id=data.get("class_id"))

	async def handle_schedule_meeting(data: Dict[str, Any]) -> Any:
		return await _open(FLOW_SCHEDULE_MEETING)

	async def handle_create_assignment(data: Dict[str, Any]) -> Any:
		return await _open(FLOW_CREATE_ASSIGNMENT)

	async def handle_upload_resource(data: Dict[str, Any]) -> Any:
		return await _open(FLOW_UPLOAD_RESOURCE)

	async def handle_request_account(data: Dict[str, Any]) -> Any:
		return await _open(FLOW_ACCOUNT_REQUEST)

	async def handle_connect_student(data: Dict[str, Any]) -> Any:
		return await _open(FLOW_CONNECT_STUDENT, class_id=data["id"])

	async def handle_send_message(data: Dict[str, Any]) -> Any:
		flow = flows[FLOW_SEND_MESSAGE]
		await flow.open()
		flow.update(text=data.get("text"))
		return await flow.submit()

	async def handle_logout(data: Dict[str, Any]) -> Any:
		return await logout()

	def _by_id(method: Callable[[str], Awaitable[Any]]) -> ActionHandler:
		async def handler(data: Dict[str, Any]) -> Any:
			return await method(data["id"])
		return handler

	def _by_value(method: Callable[[Optional[str]], Awaitable[Any]]) -> ActionHandler:
		async def handler(data: Dict[str, Any]) -> Any:
			return await method(data.get("value"))
		return handler

	async def _no_args(method: Callable[[], Awaitable[Any]]) -> Any:
		return await method()

	table = {
		ACTION_NAVIGATE: (handle_navigate, NAVIGATE_SCHEMA),
		ACTION_MARK_ATTENDANCE: (handle_mark_attendance, EMPTY_SCHEMA),
		ACTION_NEW_CLASS: (handle_new_class, EMPTY_SCHEMA),
		ACTION_ADD_STUDENT: (handle_add_student, ADD_STUDENT_SCHEMA),
		ACTION_SCHEDULE_MEETING: (handle_schedule_meeting, EMPTY_SCHEMA),
		ACTION_CREATE_ASSIGNMENT: (handle_create_assignment, EMPTY_SCHEMA),
		ACTION_UPLOAD_RESOURCE: (handle_upload_resource, EMPTY_SCHEMA),
		ACTION_REQUEST_ACCOUNT: (handle_request_account, EMPTY_SCHEMA),
		ACTION_CONNECT_STUDENT: (handle_connect_student, ID_SCHEMA),
		ACTION_SEND_MESSAGE: (handle_send_message, SEND_MESSAGE_SCHEMA),
		ACTION_LOGOUT: (handle_logout, EMPTY_SCHEMA),
		ACTION_VIEW_CLASS: (_by_id(views.view_class), ID_SCHEMA),
		ACTION_DELETE_CLASS: (_by_id(views.delete_class), ID_SCHEMA),
		ACTION_VIEW_STUDENT: (_by_id(views.view_student), ID_SCHEMA),
		ACTION_DELETE_STUDENT: (_by_id(views.delete_student), ID_SCHEMA),
		ACTION_VIEW_ASSIGNMENT: (_by_id(views.view_assignment), ID_SCHEMA),
		ACTION_DELETE_ASSIGNMENT: (_by_id(views.delete_assignment), ID_SCHEMA),
		ACTION_DELETE_RESOURCE: (_by_id(views.delete_resource), ID_SCHEMA),
		ACTION_DELETE_MESSAGE: (_by_id(views.delete_message), ID_SCHEMA),
		ACTION_DELETE_MEETING: (_by_id(views.delete_meeting), ID_SCHEMA),
		ACTION_SAVE_ATTENDANCE: (lambda data: _no_args(views.save_attendance), EMPTY_SCHEMA),
		ACTION_SAVE_GRADES: (lambda data: _no_args(views.save_grades), EMPTY_SCHEMA),
		ACTION_SELECT_ATTENDANCE_CLASS: (_by_value(views.load_attendance_form), VALUE_SCHEMA),
		ACTION_SELECT_GRADEBOOK_CLASS: (_by_value(views.load_gradebook_form), VALUE_SCHEMA),
		ACTION_SELECT_GRADEBOOK_ASSIGNMENT: (_by_value(views.select_gradebook_assignment), VALUE_SCHEMA),
		ACTION_SELECT_ANALYTICS_CLASS: (_by_value(views.select_analytics_class), VALUE_SCHEMA),
	}

	for action, (handler, schema) in table.items():
		dispatcher.register(action, handler, schema)
