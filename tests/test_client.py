"""Gateway behaviour of TMSClient against a fake session."""

import asyncio

import aiohttp
import pytest

from conftest import make_client, run
from teachdesk.surface import MemorySurface
from teachdesk.tms.exceptions import TMSAPIError, TMSConnectionError, TMSDataError
from teachdesk.tms.models import Grade


def test_call_returns_parsed_json_and_sends_bearer_token():
	client, session = make_client({("GET", "/classes"): [{"id": 1, "name": "Math"}]}, token="abc")

	result = run(client.call("GET", "/classes"))

	assert result == [{"id": 1, "name": "Math"}]
	method, path, body, headers = session.calls[0]
	assert (method, path, body) == ("GET", "/classes", None)
	assert headers["Authorization"] == "Bearer abc"
	assert headers["Content-Type"] == "application/json"


def test_no_authorization_header_without_token():
	client, session = make_client({("GET", "/classes"): []}, token=None)
	run(client.call("GET", "/classes"))
	assert "Authorization" not in session.calls[0][3]


def test_non_2xx_returns_none_and_notifies_response_text():
	surface = MemorySurface()
	client, _ = make_client({("POST", "/classes"): (400, "Name already taken")}, notifier=surface)

	result = run(client.call("POST", "/classes", {"name": "Math"}))

	assert result is None
	assert surface.errors() == ["Name already taken"]
	assert surface.busy is False


def test_non_2xx_with_empty_body_uses_status():
	surface = MemorySurface()
	client, _ = make_client({("DELETE", "/classes/1"): (500, "")}, notifier=surface)
	assert run(client.call("DELETE", "/classes/1")) is None
	assert surface.errors() == ["HTTP 500"]


def test_network_failure_returns_none_and_clears_busy():
	surface = MemorySurface()
	client, _ = make_client({("GET", "/students"): aiohttp.ClientConnectionError("connection refused")}, notifier=surface)

	assert run(client.call("GET", "/students")) is None
	assert surface.errors() == ["connection refused"]
	assert surface.busy_changes == [True, False]


def test_empty_success_body_is_empty_object():
	client, _ = make_client({("DELETE", "/resources/4"): (204, "")})
	assert run(client.call("DELETE", "/resources/4")) == {}


def test_request_raises_typed_errors():
	client, _ = make_client({
		("GET", "/bad"): (200, "<html>"),
		("GET", "/missing"): (404, "Not found"),
		("GET", "/down"): aiohttp.ClientConnectionError(),
	})

	with pytest.raises(TMSDataError):
		run(client.request("GET", "/bad"))
	with pytest.raises(TMSAPIError) as excinfo:
		run(client.request("GET", "/missing"))
	assert excinfo.value.status == 404
	with pytest.raises(TMSConnectionError):
		run(client.request("GET", "/down"))


def test_unsupported_method_is_rejected():
	client, session = make_client()
	with pytest.raises(ValueError):
		run(client.call("PATCH", "/classes"))
	assert session.calls == []


def test_busy_indicator_stays_on_while_any_call_is_in_flight():
	surface = MemorySurface()
	client, session = make_client({("GET", "/classes"): [], ("GET", "/students"): []}, notifier=surface)

	async def scenario():
		slow = asyncio.Event()
		session.gates[("GET", "/classes")] = slow
		first = asyncio.create_task(client.call("GET", "/classes"))
		await asyncio.sleep(0)
		await client.call("GET", "/students")
		assert surface.busy is True
		slow.set()
		await first

	run(scenario())
	assert surface.busy is False
	assert surface.busy_changes == [True, False]


def test_list_helpers_swallow_failures_and_bad_shapes():
	client, _ = make_client({
		("GET", "/classes"): {"not": "a list"},
		("GET", "/students"): [{"id": 1, "name": "Ada"}, "junk"],
	})
	assert run(client.get_classes()) == []
	students = run(client.get_students())
	assert [s.id for s in students] == ["1"]
	assert run(client.get_assignments()) == []


def test_login_stores_token_and_profile():
	client, session = make_client({
		("POST", "/auth/login"): {"token": "t-1", "teacher": {"name": "Ms Rao", "school": "North High"}},
	}, token=None)

	assert run(client.login("rao", "pw")) is True
	assert client.auth.token == "t-1"
	assert client.auth.profile.display_name == "Ms Rao"
	assert session.bodies("POST", "/auth/login") == [{"username": "rao", "password": "pw"}]


def test_login_without_token_fails_once():
	surface = MemorySurface()
	client, _ = make_client({("POST", "/auth/login"): {"message": "ok"}}, token=None, notifier=surface)
	assert run(client.login("rao", "pw")) is False
	assert client.auth.authenticated is False
	assert surface.errors() == ["Login failed"]


def test_login_rejected_is_reported_by_gateway_only():
	surface = MemorySurface()
	client, _ = make_client({("POST", "/auth/login"): (401, "Invalid credentials")}, token=None, notifier=surface)
	assert run(client.login("rao", "bad")) is False
	assert surface.errors() == ["Invalid credentials"]


def test_save_attendance_returns_marked_count():
	client, session = make_client({("POST", "/classes/1/attendance"): {"marked": 2}})
	entries = [{"studentId": "11", "status": "present", "reason": ""}]

	assert run(client.save_attendance("1", "2024-05-01", entries)) == 2
	assert session.bodies("POST", "/classes/1/attendance") == [
		{"attendanceData": entries, "date": "2024-05-01"},
	]


def test_grade_create_and_update_endpoints():
	client, session = make_client({("POST", "/grades"): {"id": 5}, ("PUT", "/grades/5"): {"id": 5}})
	new = Grade(assignment_id="21", student_id="11", marks_obtained=7, class_id="1")
	old = Grade(assignment_id="21", student_id="12", marks_obtained=9, id="5", class_id="1")

	run(client.create_grade(new))
	run(client.update_grade(old))

	assert session.bodies("POST", "/grades")[0]["marksObtained"] == 7
	assert session.bodies("PUT", "/grades/5")[0] == {
		"classId": "1", "studentId": "12", "assignmentId": "21",
		"marksObtained": 9, "feedback": "",
	}


def test_move_student_puts_new_class():
	client, session = make_client({("PUT", "/students/13"): {"id": 13}})
	run(client.move_student("13", "1"))
	assert session.bodies("PUT", "/students/13") == [{"classId": "1"}]
