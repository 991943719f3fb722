"""Page load routines and per-row actions.

Each routine fetches what its page needs, derives rows through
:mod:`teachdesk.viewmodels` and replaces the page's regions on the surface.
Actions call the gateway first and reload afterwards; nothing is removed
from the display before the server has answered.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from .chart import render_bar_chart
from .const import (
	CHART_PERFORMANCE, COLLECTION_ASSIGNMENTS, COLLECTION_ATTENDANCE,
	COLLECTION_CLASSES, COLLECTION_GRADES, COLLECTION_ROSTER, COLLECTION_STUDENTS,
	FIELD_ANALYTICS_OVERALL, FIELD_USER_AVATAR, FIELD_USER_DISPLAY,
	FIELD_USER_ROLE, LEVEL_ERROR, LEVEL_SUCCESS, PAGE_ANALYTICS,
	PAGE_ASSIGNMENTS, PAGE_ATTENDANCE, PAGE_CLASSES, PAGE_COMMUNICATIONS,
	PAGE_DASHBOARD, PAGE_GRADEBOOK, PAGE_MEETINGS, PAGE_RESOURCES,
	PAGE_STUDENTS, REGION_ASSIGNMENTS, REGION_ATTENDANCE, REGION_CLASSES,
	REGION_GRADEBOOK, REGION_MEETINGS, REGION_MESSAGES, REGION_RESOURCES,
	REGION_STUDENTS, REGION_TOP_PERFORMERS, REGION_WEAK_TOPICS,
	SELECT_ANALYTICS_CLASS, SELECT_ATTENDANCE_CLASS, SELECT_GRADEBOOK_ASSIGNMENT,
	SELECT_GRADEBOOK_CLASS, STAT_ASSIGNMENTS, STAT_ATTENDANCE, STAT_CLASSES,
	STAT_STUDENTS,
)
from .router import LoadTicket, PageRouter
from .store import StateStore
from .tms.client import TMSClient
from .tms.models import TeacherProfile
from .viewmodels import (
	GRADE_UPDATE, AttendanceForm, GradebookForm, Option, analytics_cards,
	assignment_rows, class_options, class_rows, dashboard_stats, meeting_rows,
	message_cards, resource_cards, student_rows,
)

_LOGGER = logging.getLogger(__name__)


def utc_today() -> str:
	return datetime.now(timezone.utc).date().isoformat()


class PageViews:
	"""Load routines for every page, sharing one store and one surface."""

	def __init__(
		self,
		client: TMSClient,
		store: StateStore,
		router: PageRouter,
		surface: Any,
		today: Callable[[], str] = utc_today,
	) -> None:
		self.client = client
		self.store = store
		self.router = router
		self.surface = surface
		self._today = today
		self.attendance_form: Optional[AttendanceForm] = None
		self.gradebook_form: Optional[GradebookForm] = None
		self.analytics_class: Optional[str] = None

	def register_pages(self) -> None:
		"""Hook every page's load routine into the router."""
		self.router.register(PAGE_DASHBOARD, self.load_dashboard)
		self.router.register(PAGE_CLASSES, self.load_classes)
		self.router.register(PAGE_STUDENTS, self.load_students)
		self.router.register(PAGE_ATTENDANCE, self.load_attendance_page)
		self.router.register(PAGE_ASSIGNMENTS, self.load_assignments)
		self.router.register(PAGE_GRADEBOOK, self.load_gradebook_page)
		self.router.register(PAGE_ANALYTICS, self.load_analytics)
		self.router.register(PAGE_RESOURCES, self.load_resources)
		self.router.register(PAGE_COMMUNICATIONS, self.load_communications)
		self.router.register(PAGE_MEETINGS, self.load_meetings)

	def _ticket(self, ticket: Optional[LoadTicket]) -> LoadTicket:
		return ticket or self.router.ticket()

	@staticmethod
	def _live(ticket: LoadTicket) -> bool:
		if ticket.is_current():
			return True
		_LOGGER.debug(f"Dropping stale result for {ticket}")
		return False

	def show_profile(self, profile: Optional[TeacherProfile]) -> None:
		"""Paint the signed-in teacher, or a neutral placeholder."""
		if profile is None or not profile.display_name:
			self.surface.set_text(FIELD_USER_DISPLAY, "Signed in")
			return
		self.surface.set_text(FIELD_USER_DISPLAY, profile.display_name)
		self.surface.set_text(FIELD_USER_ROLE, profile.school or "")
		self.surface.set_text(FIELD_USER_AVATAR, profile.initial)

	def show_signed_out(self) -> None:
		self.surface.set_text(FIELD_USER_DISPLAY, "Not signed in")
		self.surface.set_text(FIELD_USER_ROLE, "Guest")
		self.surface.set_text(FIELD_USER_AVATAR, "T")

	# ------------------------------------------------------------------
	# Dashboard
	# ------------------------------------------------------------------

	async def load_dashboard(self, ticket: Optional[LoadTicket] = None) -> None:
		"""Fetch the four headline collections concurrently, then paint stats."""
		ticket = self._ticket(ticket)
		classes, students, attendance, assignments = await asyncio.gather(
			self.client.get_classes(),
			self.client.get_students(),
			self.client.get_attendance(),
			self.client.get_assignments(),
		)
		if not self._live(ticket):
			return

		self.store.replace(COLLECTION_CLASSES, classes)
		self.store.replace(COLLECTION_STUDENTS, students)
		self.store.replace(COLLECTION_ATTENDANCE, attendance)
		self.store.replace(COLLECTION_ASSIGNMENTS, assignments)

		stats = dashboard_stats(classes, students, attendance, assignments)
		self.surface.set_text(STAT_CLASSES, str(stats.classes))
		self.surface.set_text(STAT_STUDENTS, str(stats.students))
		self.surface.set_text(STAT_ASSIGNMENTS, str(stats.assignments))
		if stats.attendance_percent is not None:
			self.surface.set_text(STAT_ATTENDANCE, f"{stats.attendance_percent}%")

	# ------------------------------------------------------------------
	# Classes
	# ------------------------------------------------------------------

	async def load_classes(self, ticket: Optional[LoadTicket] = None) -> None:
		ticket = self._ticket(ticket)
		classes = await self.client.get_classes()
		if not self.store.replace(COLLECTION_CLASSES, classes, ticket):
			return
		rows = class_rows(classes, self.store.get(COLLECTION_STUDENTS))
		self.surface.render_rows(REGION_CLASSES, rows)

	async def view_class(self, class_id: str) -> None:
		cls = await self.client.get_class(class_id)
		if cls is None:
			return
		enrolled = sum(1 for s in self.store.get(COLLECTION_STUDENTS) if s.class_id == cls.id)
		self.surface.show_detail(cls.name, [
			("Section", cls.section or ""),
			("Subject", cls.subject or ""),
			("Capacity", "" if cls.capacity is None else str(cls.capacity)),
			("Students", str(enrolled)),
		])

	async def delete_class(self, class_id: str) -> None:
		if not await self.surface.confirm("Delete this class?"):
			return
		await self.client.delete_class(class_id)
		await self.load_classes()

	# ------------------------------------------------------------------
	# Students
	# ------------------------------------------------------------------

	async def load_students(self, ticket: Optional[LoadTicket] = None) -> None:
		ticket = self._ticket(ticket)
		students = await self.client.get_students()
		if not self.store.replace(COLLECTION_STUDENTS, students, ticket):
			return
		rows = student_rows(students, self.store.get(COLLECTION_ATTENDANCE))
		self.surface.render_rows(REGION_STUDENTS, rows)

	async def view_student(self, student_id: str) -> None:
		detail = await self.client.get_student(student_id)
		if detail is None:
			return
		self.surface.show_detail(detail.name, [
			("Name", detail.name),
			("Attendance", f"{detail.attendance_rate:g}%"),
			("Average Marks", f"{detail.avg_marks:g}"),
			("Total Assignments", str(detail.total_assignments)),
		])

	async def delete_student(self, student_id: str) -> None:
		if not await self.surface.confirm("Delete this student?"):
			return
		await self.client.delete_student(student_id)
		await self.load_students()

	# ------------------------------------------------------------------
	# Attendance
	# ------------------------------------------------------------------

	async def load_attendance_page(self, ticket: Optional[LoadTicket] = None) -> None:
		ticket = self._ticket(ticket)
		classes = await self.client.get_classes()
		if not self.store.replace(COLLECTION_CLASSES, classes, ticket):
			return
		self.attendance_form = None
		self.surface.set_options(SELECT_ATTENDANCE_CLASS, class_options(classes))

	async def load_attendance_form(self, class_id: Optional[str], ticket: Optional[LoadTicket] = None) -> Optional[AttendanceForm]:
		"""Build today's sheet for a class, prefilled from stored records."""
		if not class_id:
			return None
		ticket = self._ticket(ticket)
		date = self._today()
		students = await self.client.get_class_students(class_id)
		existing = await self.client.get_class_attendance(class_id, date)
		if not self.store.replace(COLLECTION_ROSTER, students, ticket):
			return None

		self.store.select_class(class_id)
		form = AttendanceForm.build(class_id, date, students, existing)
		self.attendance_form = form
		self.surface.render_rows(REGION_ATTENDANCE, form.table_rows())
		return form

	async def save_attendance(self) -> Optional[int]:
		"""Submit the sheet as one batch.

		Returns:
			Number of records the server stored, None if nothing was saved
		"""
		form = self.attendance_form
		if form is None or not form.class_id:
			self.surface.notify("Please select a class", LEVEL_ERROR)
			return None

		marked = await self.client.save_attendance(form.class_id, form.date, form.batch())
		if marked is None:
			return None
		self.surface.notify(f"Attendance marked for {marked} students", LEVEL_SUCCESS)
		await self.load_dashboard()
		return marked

	# ------------------------------------------------------------------
	# Assignments
	# ------------------------------------------------------------------

	async def load_assignments(self, ticket: Optional[LoadTicket] = None) -> None:
		ticket = self._ticket(ticket)
		assignments, classes = await asyncio.gather(
			self.client.get_assignments(),
			self.client.get_classes(),
		)
		if not self.store.replace(COLLECTION_ASSIGNMENTS, assignments, ticket):
			return
		self.surface.render_rows(REGION_ASSIGNMENTS, assignment_rows(assignments, classes))

	async def view_assignment(self, assignment_id: str) -> None:
		for assignment in self.store.get(COLLECTION_ASSIGNMENTS):
			if assignment.id == assignment_id:
				self.surface.show_detail(assignment.title, [
					("Description", assignment.description),
					("Due", assignment.due_date or ""),
					("Total Marks", str(assignment.total_marks)),
					("Submissions", str(len(assignment.submissions))),
				])
				return
		_LOGGER.debug(f"Assignment {assignment_id} is not cached")

	async def delete_assignment(self, assignment_id: str) -> None:
		"""Delete an assignment (its grades go with it) and reload once."""
		if not assignment_id:
			return
		if not await self.surface.confirm("Delete this assignment? This will also remove associated grades."):
			return
		result = await self.client.delete_assignment(assignment_id)
		await self.load_assignments()
		await self.load_dashboard()
		if result is not None:
			self.surface.notify("Assignment deleted", LEVEL_SUCCESS)

	# ------------------------------------------------------------------
	# Gradebook
	# ------------------------------------------------------------------

	async def load_gradebook_page(self, ticket: Optional[LoadTicket] = None) -> None:
		ticket = self._ticket(ticket)
		classes = await self.client.get_classes()
		if not self.store.replace(COLLECTION_CLASSES, classes, ticket):
			return
		self.gradebook_form = None
		self.surface.set_options(SELECT_GRADEBOOK_CLASS, class_options(classes))

	async def load_gradebook_form(self, class_id: Optional[str], ticket: Optional[LoadTicket] = None) -> List[Option]:
		"""Load a class's roster and fill the dependent assignment select."""
		if not class_id:
			return []
		ticket = self._ticket(ticket)
		students, assignments = await asyncio.gather(
			self.client.get_class_students(class_id),
			self.client.get_class_assignments(class_id),
		)
		if not self._live(ticket):
			return []
		self.store.replace(COLLECTION_ROSTER, students)
		self.store.replace(COLLECTION_ASSIGNMENTS, assignments)
		self.store.select_class(class_id)

		self.gradebook_form = None
		self.surface.render_rows(REGION_GRADEBOOK, [])
		options = [Option(a.id, a.title) for a in assignments]
		self.surface.set_options(SELECT_GRADEBOOK_ASSIGNMENT, options)
		return options

	async def select_gradebook_assignment(self, assignment_id: Optional[str]) -> Optional[GradebookForm]:
		class_id = self.store.current_class
		if not class_id or not assignment_id:
			return None
		return await self.load_grades_list(class_id, assignment_id)

	async def load_grades_list(self, class_id: str, assignment_id: str, ticket: Optional[LoadTicket] = None) -> Optional[GradebookForm]:
		"""Index the class's existing grades for the assignment and paint rows."""
		ticket = self._ticket(ticket)
		grades = await self.client.get_class_grades(class_id)
		if not self.store.replace(COLLECTION_GRADES, grades, ticket):
			return None

		form = GradebookForm.build(class_id, assignment_id, self.store.get(COLLECTION_ROSTER), grades)
		self.store.select_assignment(assignment_id, form.index)
		self.gradebook_form = form
		self.surface.render_rows(REGION_GRADEBOOK, form.table_rows())
		return form

	async def save_grades(self) -> int:
		"""Create or update one grade per usable row, all at once.

		Every call is awaited before the list is refreshed. Rows succeed or
		fail independently; nothing is rolled back.

		Returns:
			Number of rows the server accepted
		"""
		form = self.gradebook_form
		class_id = self.store.current_class
		assignment_id = self.store.current_assignment
		if form is None or not class_id or not assignment_id:
			self.surface.notify("Please select class and assignment", LEVEL_ERROR)
			return 0

		calls = [
			self.client.update_grade(grade) if op == GRADE_UPDATE else self.client.create_grade(grade)
			for op, grade in form.save_plan(self.store.current_grades)
		]
		results = await asyncio.gather(*calls)
		saved = sum(1 for result in results if result is not None)
		if saved != len(results):
			_LOGGER.warning(f"{len(results) - saved} of {len(results)} grade saves failed")

		await self.load_grades_list(class_id, assignment_id)
		await self.load_dashboard()
		self.surface.notify("Grades saved successfully!", LEVEL_SUCCESS)
		return saved

	# ------------------------------------------------------------------
	# Analytics
	# ------------------------------------------------------------------

	async def load_analytics(self, ticket: Optional[LoadTicket] = None, class_id: Optional[str] = None) -> None:
		"""Paint the analytics for the chosen class, redrawing the chart."""
		ticket = self._ticket(ticket)
		if not self.store.get(COLLECTION_CLASSES):
			await self.load_dashboard(ticket)
		classes = self.store.get(COLLECTION_CLASSES)

		ids = [c.id for c in classes]
		chosen = class_id or self.analytics_class
		if chosen not in ids:
			chosen = ids[0] if ids else None
		options = [Option(c.id, f"{c.name} ({c.section})" if c.section else c.name) for c in classes]
		self.surface.set_options(SELECT_ANALYTICS_CLASS, options, chosen)
		if not chosen:
			return

		analytics = await self.client.get_analytics(chosen)
		if analytics is None or not self._live(ticket):
			return
		self.analytics_class = chosen

		performers, topics = analytics_cards(analytics)
		self.surface.render_rows(REGION_TOP_PERFORMERS, performers)
		self.surface.render_rows(REGION_WEAK_TOPICS, topics)
		overall = analytics.overall_average
		self.surface.set_text(FIELD_ANALYTICS_OVERALL, f"Avg: {overall:g}%")

		chart = render_bar_chart(
			[s.name for s in analytics.student_averages],
			[s.average for s in analytics.student_averages],
		)
		self.surface.draw_chart(CHART_PERFORMANCE, chart)

	async def select_analytics_class(self, class_id: str) -> None:
		await self.load_analytics(class_id=class_id)

	# ------------------------------------------------------------------
	# Resources, communications, meetings
	# ------------------------------------------------------------------

	async def load_resources(self, ticket: Optional[LoadTicket] = None) -> None:
		ticket = self._ticket(ticket)
		resources = await self.client.get_resources()
		if self._live(ticket):
			self.surface.render_rows(REGION_RESOURCES, resource_cards(resources))

	async def delete_resource(self, resource_id: str) -> None:
		if not await self.surface.confirm("Delete this resource?"):
			return
		await self.client.delete_resource(resource_id)
		await self.load_resources()

	async def load_communications(self, ticket: Optional[LoadTicket] = None) -> None:
		ticket = self._ticket(ticket)
		messages = await self.client.get_messages()
		if self._live(ticket):
			self.surface.render_rows(REGION_MESSAGES, message_cards(messages))

	async def delete_message(self, message_id: str) -> None:
		if not await self.surface.confirm("Delete this message?"):
			return
		result = await self.client.delete_message(message_id)
		if result is None:
			self.surface.notify("Failed to delete message", LEVEL_ERROR)
			return
		self.surface.notify("Message deleted", LEVEL_SUCCESS)
		await self.load_communications()

	async def load_meetings(self, ticket: Optional[LoadTicket] = None) -> None:
		ticket = self._ticket(ticket)
		meetings = await self.client.get_meetings()
		if self._live(ticket):
			self.surface.render_rows(REGION_MEETINGS, meeting_rows(meetings))

	async def delete_meeting(self, meeting_id: str) -> None:
		if not await self.surface.confirm("Delete this meeting?"):
			return
		await self.client.delete_meeting(meeting_id)
		await self.load_meetings()
