"""Shared fixtures: a routed fake aiohttp session and a desk wired to it."""

import asyncio
import json

import pytest

from teachdesk import TeacherDesk
from teachdesk.surface import MemorySurface
from teachdesk.tms.auth import TMSAuth
from teachdesk.tms.client import TMSClient

BASE_URL = "http://test/api"
TODAY = "2024-05-01"


class MockResponse:
	"""Simple mock response class."""
	def __init__(self, status, json_data=None, text_data=None, gate=None):
		self.status = status
		self._json_data = json_data
		self._text_data = text_data
		self._gate = gate
		self.headers = {}

	async def text(self):
		if self._gate is not None:
			await self._gate.wait()
		if self._text_data is not None:
			return self._text_data
		if self._json_data is None:
			return ""
		return json.dumps(self._json_data)

	async def __aenter__(self):
		return self

	async def __aexit__(self, exc_type, exc_val, exc_tb):
		pass


class RoutedSession:
	"""Stands in for ``aiohttp.ClientSession``; answers by (method, path).

	Route values:
		list or dict: 200 with that JSON body
		(status, text): that status and raw body
		Exception instance: raised when the request is made
	"""

	def __init__(self, routes=None):
		self.routes = dict(routes or {})
		self.gates = {}
		self.calls = []

	def request(self, method, url, headers=None, json=None):
		path = url[len(BASE_URL):]
		self.calls.append((method, path, json, headers))
		route = self.routes.get((method, path))
		gate = self.gates.get((method, path))
		if isinstance(route, Exception):
			raise route
		if route is None:
			return MockResponse(404, text_data="Not found", gate=gate)
		if isinstance(route, tuple):
			status, text = route
			return MockResponse(status, text_data=text, gate=gate)
		return MockResponse(200, json_data=route, gate=gate)

	def count(self, method, path):
		return sum(1 for m, p, _, _ in self.calls if (m, p) == (method, path))

	def bodies(self, method, path):
		return [body for m, p, body, _ in self.calls if (m, p) == (method, path)]

	async def close(self):
		pass


def make_client(routes=None, token="tok", notifier=None):
	session = RoutedSession(routes)
	auth = TMSAuth(session_file=None)
	auth.token = token
	client = TMSClient(base_url=BASE_URL, session=session, auth=auth, notifier=notifier)
	return client, session


@pytest.fixture
def make_desk():
	"""Factory returning ``(desk, surface, session)`` for a route table."""

	def _make(routes=None, confirm=True, token="tok"):
		client, session = make_client(routes, token=token)
		surface = MemorySurface(confirm_answer=confirm)
		desk = TeacherDesk(client, surface, today=lambda: TODAY)
		return desk, surface, session

	return _make


@pytest.fixture
def school_routes():
	"""A small school: two classes, three students, one assignment."""
	return {
		("GET", "/classes"): [
			{"id": 1, "name": "Math 10", "section": "A", "subject": "Math"},
			{"id": 2, "name": "Science 9", "section": "B", "subject": "Science"},
		],
		("GET", "/students"): [
			{"id": 11, "name": "Ada", "rollNo": 1, "classId": 1},
			{"id": 12, "name": "Ben", "rollNo": 2, "classId": 1},
			{"id": 13, "name": "Cy", "rollNo": 3, "classId": 2},
		],
		("GET", "/attendance"): [
			{"studentId": 11, "date": "2024-04-30", "status": "present"},
			{"studentId": 12, "date": "2024-04-30", "status": "absent"},
		],
		("GET", "/assignments"): [
			{"id": 21, "title": "Fractions", "classId": 1, "dueDate": "2024-05-10", "totalMarks": 50},
		],
		("GET", "/classes/1/students"): [
			{"id": 11, "name": "Ada", "rollNo": 1, "classId": 1},
			{"id": 12, "name": "Ben", "rollNo": 2, "classId": 1},
		],
		("GET", "/classes/1/assignments"): [
			{"id": 21, "title": "Fractions", "classId": 1},
		],
		("GET", f"/classes/1/attendance?date={TODAY}"): [
			{"studentId": 12, "date": f"{TODAY}T00:00:00.000Z", "status": "late", "reason": "bus"},
		],
		("GET", "/classes/1/grades"): [
			{"id": 31, "studentId": 11, "assignmentId": 21, "marksObtained": 40, "feedback": "good"},
		],
	}


def run(coro):
	return asyncio.run(coro)
