"""Row derivation for the page views.

Everything here is pure: it turns fetched models into display rows and
form state without touching the network or the surface.
"""

import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .const import (
	ACTION_CONNECT_STUDENT, ACTION_DELETE_ASSIGNMENT, ACTION_DELETE_CLASS,
	ACTION_DELETE_MEETING, ACTION_DELETE_MESSAGE, ACTION_DELETE_RESOURCE,
	ACTION_DELETE_STUDENT, ACTION_VIEW_ASSIGNMENT, ACTION_VIEW_CLASS,
	ACTION_VIEW_STUDENT, ATTENDANCE_DAYS_ASSUMED,
)
from .tms.models import (
	ATTENDANCE_STATUSES, Assignment, AttendanceRecord, ClassAnalytics,
	ClassSection, Grade, Meeting, Message, Resource, Student,
)

GRADE_CREATE = "create"
GRADE_UPDATE = "update"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass
class Option:
	value: str
	label: str


@dataclass
class TableRow:
	"""One display row with its action triggers, keyed by record id."""
	key: str
	cells: List[str]
	actions: List[str] = field(default_factory=list)


@dataclass
class Card:
	key: str
	title: str
	lines: List[str] = field(default_factory=list)
	actions: List[str] = field(default_factory=list)
	link: Optional[str] = None


@dataclass
class DashboardStats:
	classes: int = 0
	students: int = 0
	assignments: int = 0
	attendance_percent: Optional[int] = None


def _round(value: float) -> int:
	# Half-up, not banker's rounding
	return math.floor(value + 0.5)


def _text(value: Any) -> str:
	return "" if value is None else str(value)


def _format_number(value: float) -> str:
	return str(int(value)) if float(value).is_integer() else str(value)


def attendance_rate(student_id: str, records: Iterable[AttendanceRecord]) -> int:
	"""Percentage of a student's attendance records marked present."""
	own = [r for r in records if r.student_id == student_id]
	if not own:
		return 0
	present = sum(1 for r in own if r.status == "present")
	return _round(present / len(own) * 100)


def dashboard_stats(
	classes: List[ClassSection],
	students: List[Student],
	attendance: List[AttendanceRecord],
	assignments: List[Assignment],
) -> DashboardStats:
	stats = DashboardStats(len(classes), len(students), len(assignments))
	if students:
		stats.attendance_percent = _round(
			len(attendance) / max(len(students) * ATTENDANCE_DAYS_ASSUMED, 1) * 100
		)
	return stats


def class_options(classes: List[ClassSection], with_section: bool = False) -> List[Option]:
	if with_section:
		return [Option(c.id, f"{c.name} ({c.section or ''})") for c in classes]
	return [Option(c.id, c.name) for c in classes]


def class_rows(classes: List[ClassSection], students: List[Student]) -> List[TableRow]:
	rows = []
	for cls in classes:
		count = sum(1 for s in students if s.class_id == cls.id)
		rows.append(TableRow(
			key=cls.id,
			cells=[cls.name, _text(cls.section), _text(cls.subject), str(count)],
			actions=[ACTION_VIEW_CLASS, ACTION_CONNECT_STUDENT, ACTION_DELETE_CLASS],
		))
	return rows


def student_rows(students: List[Student], attendance: List[AttendanceRecord]) -> List[TableRow]:
	return [
		TableRow(
			key=s.id,
			cells=[s.name, _text(s.roll_no), _text(s.class_id), f"{attendance_rate(s.id, attendance)}%"],
			actions=[ACTION_VIEW_STUDENT, ACTION_DELETE_STUDENT],
		)
		for s in students
	]


def assignment_rows(assignments: List[Assignment], classes: List[ClassSection]) -> List[TableRow]:
	class_names = {c.id: c.name for c in classes if c.name}
	return [
		TableRow(
			key=a.id,
			cells=[
				a.title,
				class_names.get(a.class_id, _text(a.class_id)),
				_text(a.due_date),
				str(len(a.submissions)),
			],
			actions=[ACTION_VIEW_ASSIGNMENT, ACTION_DELETE_ASSIGNMENT],
		)
		for a in assignments
	]


def resource_cards(resources: List[Resource]) -> List[Card]:
	return [
		Card(
			key=r.id,
			title=r.title,
			lines=[f"{r.category or ''} · {_text(r.type)}"],
			actions=[ACTION_DELETE_RESOURCE],
			link=r.url,
		)
		for r in resources
	]


def format_sent_at(sent_at: Optional[str], now: Optional[datetime] = None) -> str:
	if not sent_at:
		return (now or datetime.now()).strftime("%Y-%m-%d %H:%M")
	try:
		return datetime.fromisoformat(sent_at.replace("Z", "+00:00")).strftime("%Y-%m-%d %H:%M")
	except ValueError:
		return sent_at


def message_cards(messages: List[Message], now: Optional[datetime] = None) -> List[Card]:
	return [
		Card(
			key=m.id,
			title=m.sender_id or "Teacher",
			lines=[format_sent_at(m.sent_at, now), m.message],
			actions=[ACTION_DELETE_MESSAGE],
		)
		for m in messages
	]


def meeting_rows(meetings: List[Meeting]) -> List[TableRow]:
	if not meetings:
		return [TableRow(key="", cells=["No meetings scheduled."])]
	return [
		TableRow(
			key=m.id,
			cells=[m.parent_name, _text(m.student_name), _text(m.date), _text(m.status)],
			actions=[ACTION_DELETE_MEETING],
		)
		for m in meetings
	]


def analytics_cards(analytics: ClassAnalytics) -> Tuple[List[Card], List[Card]]:
	"""Top performer cards and weak topic cards."""
	performers = [
		Card(key=p.name, title=p.name, lines=[f"Avg: {_format_number(p.average)}%"])
		for p in analytics.top_performers
	]
	topics = [
		Card(key=t.topic, title=t.topic, lines=[f"Avg: {_format_number(t.average)}%"])
		for t in analytics.weakest_topics
	]
	return performers, topics


# ----------------------------------------------------------------------
# Attendance form
# ----------------------------------------------------------------------

@dataclass
class AttendanceRow:
	student_id: str
	name: str
	status: str = "present"
	reason: str = ""


class AttendanceForm:
	"""Editable attendance sheet for one class and one day."""

	def __init__(self, class_id: str, date: str, rows: List[AttendanceRow]):
		self.class_id = class_id
		self.date = date
		self.rows = rows

	@classmethod
	def build(cls, class_id: str, date: str, students: List[Student], existing: List[AttendanceRecord]) -> "AttendanceForm":
		"""Prefill one row per student from the day's existing records."""
		by_student = {}
		for record in existing:
			by_student.setdefault(record.student_id, record)
		rows = []
		for student in students:
			record = by_student.get(student.id)
			status = record.status if record and record.status in ATTENDANCE_STATUSES else "present"
			reason = (record.reason or "") if record else ""
			rows.append(AttendanceRow(student.id, student.name, status, reason))
		return cls(class_id, date, rows)

	def _row(self, student_id: str) -> AttendanceRow:
		for row in self.rows:
			if row.student_id == student_id:
				return row
		raise KeyError(f"No attendance row for student {student_id}")

	def set_status(self, student_id: str, status: str) -> None:
		if status not in ATTENDANCE_STATUSES:
			raise ValueError(f"Invalid attendance status: {status!r}")
		self._row(student_id).status = status

	def set_reason(self, student_id: str, reason: str) -> None:
		self._row(student_id).reason = reason or ""

	def batch(self) -> List[Dict[str, Any]]:
		"""One entry per visible row, ready for the batch upsert."""
		return [
			{"studentId": row.student_id, "status": row.status, "reason": row.reason}
			for row in self.rows
		]

	def table_rows(self) -> List[TableRow]:
		return [TableRow(key=r.student_id, cells=[r.name, r.status, r.reason]) for r in self.rows]


# ----------------------------------------------------------------------
# Gradebook form
# ----------------------------------------------------------------------

def parse_marks(value: Any) -> Optional[int]:
	"""Read a mark the way a number input is read; None when unusable."""
	if value is None or isinstance(value, bool):
		return None
	if isinstance(value, int):
		return value
	match = _LEADING_INT.match(str(value))
	if not match:
		return None
	return int(match.group(1))


@dataclass
class GradebookRow:
	student_id: str
	name: str
	marks: str = ""
	feedback: str = ""
	existing: Optional[Grade] = None


class GradebookForm:
	"""Marks entry for one class and one assignment."""

	def __init__(self, class_id: str, assignment_id: str, rows: List[GradebookRow], index: Dict[str, Grade]):
		self.class_id = class_id
		self.assignment_id = assignment_id
		self.rows = rows
		self.index = index

	@classmethod
	def build(cls, class_id: str, assignment_id: str, students: List[Student], grades: List[Grade]) -> "GradebookForm":
		"""Index the class's grades for this assignment by student."""
		index = {g.student_id: g for g in grades if g.assignment_id == assignment_id}
		rows = []
		for student in students:
			grade = index.get(student.id)
			marks = "" if grade is None or grade.marks_obtained is None else str(grade.marks_obtained)
			feedback = grade.feedback if grade else ""
			rows.append(GradebookRow(student.id, student.name, marks, feedback, grade))
		return cls(class_id, assignment_id, rows, index)

	def _row(self, student_id: str) -> GradebookRow:
		for row in self.rows:
			if row.student_id == student_id:
				return row
		raise KeyError(f"No gradebook row for student {student_id}")

	def set_marks(self, student_id: str, marks: Any) -> None:
		self._row(student_id).marks = "" if marks is None else str(marks)

	def set_feedback(self, student_id: str, feedback: str) -> None:
		self._row(student_id).feedback = feedback or ""

	def save_plan(self, existing_grades: Optional[Dict[str, Grade]] = None) -> List[Tuple[str, Grade]]:
		"""Create-or-update operations for every row with a usable mark.

		Rows whose mark is empty, non-numeric or negative are skipped.

		Args:
			existing_grades: Stored grades by student id; defaults to the ones
				the form was built from
		"""
		index = self.index if existing_grades is None else existing_grades
		plan = []
		for row in self.rows:
			marks = parse_marks(row.marks)
			if marks is None or marks < 0:
				continue
			existing = index.get(row.student_id)
			grade = Grade(
				assignment_id=self.assignment_id,
				student_id=row.student_id,
				marks_obtained=marks,
				feedback=row.feedback,
				id=existing.id if existing else None,
				class_id=self.class_id,
			)
			plan.append((GRADE_UPDATE if grade.exists else GRADE_CREATE, grade))
		return plan

	def table_rows(self) -> List[TableRow]:
		return [TableRow(key=r.student_id, cells=[r.name, r.marks, r.feedback]) for r in self.rows]
