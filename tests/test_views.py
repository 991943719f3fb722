"""Page load routines and row actions, end to end through the gateway."""

import asyncio

from conftest import TODAY, run
from teachdesk.const import (
	ACTION_SELECT_ANALYTICS_CLASS, CHART_PERFORMANCE, COLLECTION_CLASSES,
	FIELD_ANALYTICS_OVERALL,
	FIELD_USER_DISPLAY, PAGE_ANALYTICS, PAGE_ASSIGNMENTS, PAGE_ATTENDANCE,
	PAGE_CLASSES, PAGE_DASHBOARD, PAGE_MEETINGS, PAGE_RESOURCES,
	REGION_ASSIGNMENTS, REGION_ATTENDANCE, REGION_CLASSES, REGION_GRADEBOOK,
	REGION_MEETINGS, REGION_TOP_PERFORMERS, SELECT_ANALYTICS_CLASS,
	SELECT_ATTENDANCE_CLASS, SELECT_GRADEBOOK_ASSIGNMENT, STAT_ASSIGNMENTS,
	STAT_ATTENDANCE, STAT_CLASSES, STAT_STUDENTS,
)


def test_dashboard_paints_stats(make_desk, school_routes):
	desk, surface, _ = make_desk(school_routes)
	run(desk.navigate(PAGE_DASHBOARD))

	assert surface.texts[STAT_CLASSES] == "2"
	assert surface.texts[STAT_STUDENTS] == "3"
	assert surface.texts[STAT_ASSIGNMENTS] == "1"
	# 2 records / (3 students * 30 days)
	assert surface.texts[STAT_ATTENDANCE] == "2%"


def test_dashboard_survives_one_failing_collection(make_desk, school_routes):
	school_routes[("GET", "/attendance")] = (500, "Database unavailable")
	desk, surface, _ = make_desk(school_routes)

	run(desk.navigate(PAGE_DASHBOARD))

	assert surface.texts[STAT_CLASSES] == "2"
	assert surface.texts[STAT_ATTENDANCE] == "0%"
	assert surface.errors() == ["Database unavailable"]
	assert surface.busy is False


def test_stale_page_load_is_dropped(make_desk, school_routes):
	school_routes[("GET", "/resources")] = [{"id": 1, "title": "Notes", "url": "http://x"}]
	desk, surface, session = make_desk(school_routes)

	async def scenario():
		gate = asyncio.Event()
		session.gates[("GET", "/classes")] = gate
		slow = asyncio.create_task(desk.navigate(PAGE_CLASSES))
		await asyncio.sleep(0)
		await desk.navigate(PAGE_RESOURCES)
		gate.set()
		await slow

	run(scenario())

	assert surface.active_page == PAGE_RESOURCES
	assert REGION_CLASSES not in surface.regions
	assert desk.store.get(COLLECTION_CLASSES) == []


def test_classes_page_rows(make_desk, school_routes):
	desk, surface, _ = make_desk(school_routes)
	run(desk.navigate(PAGE_DASHBOARD))
	run(desk.navigate(PAGE_CLASSES))
	rows = surface.rows(REGION_CLASSES)
	assert [r.cells for r in rows] == [["Math 10", "A", "Math", "2"], ["Science 9", "B", "Science", "1"]]


def test_delete_class_needs_confirmation(make_desk, school_routes):
	school_routes[("DELETE", "/classes/1")] = {}
	desk, surface, session = make_desk(school_routes, confirm=False)

	run(desk.views.delete_class("1"))

	assert surface.confirmations == ["Delete this class?"]
	assert session.count("DELETE", "/classes/1") == 0


def test_attendance_form_prefills_from_today(make_desk, school_routes):
	desk, surface, _ = make_desk(school_routes)
	run(desk.navigate(PAGE_ATTENDANCE))
	assert [o.value for o in surface.options[SELECT_ATTENDANCE_CLASS]] == ["1", "2"]

	form = run(desk.views.load_attendance_form("1"))

	assert form.date == TODAY
	assert [r.cells for r in surface.rows(REGION_ATTENDANCE)] == [["Ada", "present", ""], ["Ben", "late", "bus"]]


def test_reopening_attendance_form_prefills_identically(make_desk, school_routes):
	desk, _, session = make_desk(school_routes)
	first = run(desk.views.load_attendance_form("1"))
	second = run(desk.views.load_attendance_form("1"))

	assert first.batch() == second.batch()
	assert [r.cells for r in first.table_rows()] == [r.cells for r in second.table_rows()]
	assert not [c for c in session.calls if c[0] != "GET"]


def test_save_attendance_sends_one_batch_and_refreshes(make_desk, school_routes):
	school_routes[("POST", "/classes/1/attendance")] = {"marked": 2}
	desk, surface, session = make_desk(school_routes)
	run(desk.navigate(PAGE_ATTENDANCE))
	form = run(desk.views.load_attendance_form("1"))
	form.set_status("11", "absent")

	marked = run(desk.views.save_attendance())

	assert marked == 2
	bodies = session.bodies("POST", "/classes/1/attendance")
	assert len(bodies) == 1
	assert bodies[0]["date"] == TODAY
	assert [e["status"] for e in bodies[0]["attendanceData"]] == ["absent", "late"]
	assert ("success", "Attendance marked for 2 students") in surface.notifications
	assert session.count("GET", "/attendance") == 1


def test_save_attendance_without_class_makes_no_call(make_desk, school_routes):
	desk, surface, session = make_desk(school_routes)
	assert run(desk.views.save_attendance()) is None
	assert surface.errors() == ["Please select a class"]
	assert session.calls == []


def test_delete_assignment_reloads_once_each(make_desk, school_routes):
	school_routes[("DELETE", "/assignments/21")] = {"deleted": True}
	desk, surface, session = make_desk(school_routes)
	run(desk.navigate(PAGE_ASSIGNMENTS))
	session.calls.clear()

	run(desk.views.delete_assignment("21"))

	assert session.count("DELETE", "/assignments/21") == 1
	# One list reload plus one dashboard reload
	assert session.count("GET", "/assignments") == 2
	assert session.count("GET", "/students") == 1
	assert ("success", "Assignment deleted") in surface.notifications
	assert surface.rows(REGION_ASSIGNMENTS)[0].cells[1] == "Math 10"


def test_delete_assignment_failure_still_reloads(make_desk, school_routes):
	school_routes[("DELETE", "/assignments/21")] = (500, "Cannot delete")
	desk, surface, session = make_desk(school_routes)

	run(desk.views.delete_assignment("21"))

	assert session.count("GET", "/assignments") == 2
	assert surface.errors() == ["Cannot delete"]
	assert ("success", "Assignment deleted") not in surface.notifications


def test_gradebook_save_creates_and_updates(make_desk, school_routes):
	school_routes[("POST", "/grades")] = {"id": 32}
	school_routes[("PUT", "/grades/31")] = {"id": 31}
	desk, surface, session = make_desk(school_routes)

	options = run(desk.views.load_gradebook_form("1"))
	assert [o.value for o in options] == ["21"]
	assert [o.value for o in surface.options[SELECT_GRADEBOOK_ASSIGNMENT]] == ["21"]

	form = run(desk.views.select_gradebook_assignment("21"))
	assert [r.cells for r in surface.rows(REGION_GRADEBOOK)] == [["Ada", "40", "good"], ["Ben", "", ""]]
	form.set_marks("11", "44")
	form.set_marks("12", "38")

	saved = run(desk.views.save_grades())

	assert saved == 2
	assert session.bodies("PUT", "/grades/31")[0]["marksObtained"] == 44
	assert session.bodies("POST", "/grades")[0]["studentId"] == "12"
	assert ("success", "Grades saved successfully!") in surface.notifications


def test_gradebook_save_skips_blank_rows(make_desk, school_routes):
	school_routes[("PUT", "/grades/31")] = {"id": 31}
	desk, _, session = make_desk(school_routes)
	run(desk.views.load_gradebook_form("1"))
	run(desk.views.select_gradebook_assignment("21"))

	# Ada is prefilled, Ben is blank
	assert run(desk.views.save_grades()) == 1
	assert session.count("PUT", "/grades/31") == 1
	assert session.count("POST", "/grades") == 0


def test_save_grades_needs_selection(make_desk):
	desk, surface, session = make_desk()
	assert run(desk.views.save_grades()) == 0
	assert surface.errors() == ["Please select class and assignment"]
	assert session.calls == []


def test_analytics_draws_chart_for_first_class(make_desk, school_routes):
	school_routes[("GET", "/classes/1/analytics")] = {
		"topPerformers": [{"name": "Ada", "average": 90}],
		"weakestTopics": [{"topic": "Fractions", "average": 40}],
		"overallAverage": 72.5,
		"studentAverages": [{"name": "Ada", "average": 90}, {"name": "Ben", "average": 55}],
	}
	desk, surface, _ = make_desk(school_routes)

	run(desk.navigate(PAGE_ANALYTICS))

	assert surface.selected[SELECT_ANALYTICS_CLASS] == "1"
	assert [o.label for o in surface.options[SELECT_ANALYTICS_CLASS]] == ["Math 10 (A)", "Science 9 (B)"]
	assert surface.texts[FIELD_ANALYTICS_OVERALL] == "Avg: 72.5%"
	assert surface.rows(REGION_TOP_PERFORMERS)[0].title == "Ada"
	chart = surface.charts[CHART_PERFORMANCE]
	assert [b.value for b in chart.bars] == [90, 55]


def test_meetings_placeholder(make_desk):
	desk, surface, _ = make_desk({("GET", "/meetings"): []})
	run(desk.navigate(PAGE_MEETINGS))
	assert surface.rows(REGION_MEETINGS)[0].cells == ["No meetings scheduled."]


def test_delete_message_failure_is_reported(make_desk):
	desk, surface, session = make_desk({("DELETE", "/communications/5"): (500, "")})
	run(desk.views.delete_message("5"))
	assert surface.errors() == ["HTTP 500", "Failed to delete message"]
	assert session.count("GET", "/communications") == 0


def test_show_profile_placeholder(make_desk):
	desk, surface, _ = make_desk()
	desk.views.show_profile(None)
	assert surface.texts[FIELD_USER_DISPLAY] == "Signed in"


def test_dashboard_stats_wait_for_every_fetch(make_desk, school_routes):
	desk, surface, session = make_desk(school_routes)

	async def scenario():
		gate = asyncio.Event()
		session.gates[("GET", "/students")] = gate
		load = asyncio.create_task(desk.views.load_dashboard())
		for _ in range(5):
			await asyncio.sleep(0)
		assert session.count("GET", "/classes") == 1
		assert not [key for key in surface.texts if key.startswith("stat-")]
		gate.set()
		await load

	run(scenario())
	assert surface.texts[STAT_CLASSES] == "2"
	assert surface.texts[STAT_STUDENTS] == "3"


def test_gradebook_rows_stay_on_the_selected_class_after_save(make_desk, school_routes):
	school_routes[("POST", "/grades")] = {"id": 32}
	school_routes[("PUT", "/grades/31")] = {"id": 31}
	desk, surface, session = make_desk(school_routes)
	run(desk.views.load_gradebook_form("1"))
	form = run(desk.views.select_gradebook_assignment("21"))
	form.set_marks("12", "38")
	run(desk.views.save_grades())

	# The save reloaded the dashboard, which cached every student in the school
	form = run(desk.views.select_gradebook_assignment("21"))

	assert [r.name for r in form.rows] == ["Ada", "Ben"]
	assert [r.cells[0] for r in surface.rows(REGION_GRADEBOOK)] == ["Ada", "Ben"]
	form.set_marks("12", "39")
	run(desk.views.save_grades())
	graded = {body["studentId"] for body in session.bodies("POST", "/grades")}
	assert "13" not in graded


def test_changing_analytics_class_redraws_the_chart(make_desk, school_routes):
	school_routes[("GET", "/classes/1/analytics")] = {
		"overallAverage": 70,
		"studentAverages": [{"name": "Ada", "average": 90}, {"name": "Ben", "average": 50}],
	}
	school_routes[("GET", "/classes/2/analytics")] = {
		"overallAverage": 64,
		"studentAverages": [{"name": "Cy", "average": 64}],
	}
	desk, surface, _ = make_desk(school_routes)
	run(desk.navigate(PAGE_ANALYTICS))
	first = surface.charts[CHART_PERFORMANCE]

	run(desk.dispatch(ACTION_SELECT_ANALYTICS_CLASS, {"value": "2"}))

	chart = surface.charts[CHART_PERFORMANCE]
	assert chart is not first
	assert [label.text for label in chart.category_labels] == ["Cy"]
	assert [bar.value for bar in chart.bars] == [64]
	assert surface.selected[SELECT_ANALYTICS_CLASS] == "2"
	assert surface.texts[FIELD_ANALYTICS_OVERALL] == "Avg: 64%"
