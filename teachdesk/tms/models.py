"""Data models for teacher management entities."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

ATTENDANCE_STATUSES = ("present", "absent", "late", "excused")


def _ident(value: Any) -> Optional[str]:
	"""Normalise backend identifiers, which may arrive as ints or strings."""
	if value is None or value == "":
		return None
	return str(value)


def _number(value: Any, default: float = 0) -> float:
	try:
		return float(value)
	except (TypeError, ValueError):
		return default


@dataclass
class TeacherProfile:
	"""The signed-in teacher."""
	name: Optional[str] = None
	username: Optional[str] = None
	school: Optional[str] = None

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "TeacherProfile":
		return cls(
			name=data.get("name"),
			username=data.get("username"),
			school=data.get("school"),
		)

	@property
	def display_name(self) -> str:
		return self.name or self.username or ""

	@property
	def initial(self) -> str:
		return (self.display_name or "T")[0].upper()


@dataclass
class ClassSection:
	"""A class section taught by the teacher."""
	id: str
	name: str
	section: Optional[str] = None
	subject: Optional[str] = None
	capacity: Optional[int] = None
	teacher: Optional[str] = None

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "ClassSection":
		return cls(
			id=_ident(data.get("id")) or "",
			name=data.get("name") or "",
			section=data.get("section"),
			subject=data.get("subject"),
			capacity=data.get("capacity"),
			teacher=data.get("teacher"),
		)

	def __str__(self) -> str:
		return f"{self.name} ({self.section})" if self.section else self.name


@dataclass
class Student:
	"""A student, optionally attached to a class."""
	id: str
	name: str
	roll_no: Optional[str] = None
	class_id: Optional[str] = None
	email: Optional[str] = None

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "Student":
		roll_no = data.get("rollNo")
		return cls(
			id=_ident(data.get("id")) or "",
			name=data.get("name") or "",
			roll_no=str(roll_no) if roll_no is not None else None,
			class_id=_ident(data.get("classId")),
			email=data.get("email"),
		)


@dataclass
class StudentDetail:
	"""Summary returned by the student detail endpoint."""
	name: str
	attendance_rate: float = 0
	avg_marks: float = 0
	total_assignments: int = 0

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "StudentDetail":
		return cls(
			name=data.get("name") or "",
			attendance_rate=_number(data.get("attendance_rate")),
			avg_marks=_number(data.get("avgMarks")),
			total_assignments=int(_number(data.get("totalAssignments"))),
		)


@dataclass
class AttendanceRecord:
	"""A single attendance mark for one student on one day."""
	student_id: str
	date: str
	status: str  # "present", "absent", "late", "excused"
	reason: Optional[str] = None
	id: Optional[str] = None
	class_id: Optional[str] = None

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "AttendanceRecord":
		return cls(
			student_id=_ident(data.get("studentId")) or "",
			date=str(data.get("date") or "")[:10],
			status=data.get("status") or "present",
			reason=data.get("reason"),
			id=_ident(data.get("id")),
			class_id=_ident(data.get("classId")),
		)


@dataclass
class Assignment:
	"""An assignment set for a class."""
	id: str
	title: str
	class_id: Optional[str] = None
	description: str = ""
	due_date: Optional[str] = None
	total_marks: int = 100
	submissions: List[Any] = field(default_factory=list)

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "Assignment":
		return cls(
			id=_ident(data.get("id")) or "",
			title=data.get("title") or "",
			class_id=_ident(data.get("classId")),
			description=data.get("description") or "",
			due_date=data.get("dueDate"),
			total_marks=int(_number(data.get("totalMarks"), 100)),
			submissions=list(data.get("submissions") or []),
		)


@dataclass
class Grade:
	"""Marks for one student on one assignment.

	A grade without an id has not been stored yet.
	"""
	assignment_id: str
	student_id: str
	marks_obtained: Optional[int] = None
	feedback: str = ""
	id: Optional[str] = None
	class_id: Optional[str] = None

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "Grade":
		marks = data.get("marksObtained")
		return cls(
			assignment_id=_ident(data.get("assignmentId")) or "",
			student_id=_ident(data.get("studentId")) or "",
			marks_obtained=int(marks) if isinstance(marks, (int, float)) else None,
			feedback=data.get("feedback") or "",
			id=_ident(data.get("id")),
			class_id=_ident(data.get("classId")),
		)

	@property
	def exists(self) -> bool:
		return self.id is not None

	def to_payload(self) -> Dict[str, Any]:
		return {
			"classId": self.class_id,
			"studentId": self.student_id,
			"assignmentId": self.assignment_id,
			"marksObtained": self.marks_obtained,
			"feedback": self.feedback,
		}


@dataclass
class Resource:
	"""A learning resource link."""
	id: str
	title: str
	url: str
	category: Optional[str] = None
	type: Optional[str] = None

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "Resource":
		return cls(
			id=_ident(data.get("id")) or "",
			title=data.get("title") or "",
			url=data.get("url") or "",
			category=data.get("category"),
			type=data.get("type"),
		)


@dataclass
class Message:
	"""A message or announcement."""
	id: str
	message: str
	sender_id: Optional[str] = None
	receiver_id: Optional[str] = None
	type: Optional[str] = None
	sent_at: Optional[str] = None

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "Message":
		return cls(
			id=_ident(data.get("id")) or "",
			message=data.get("message") or "",
			sender_id=_ident(data.get("senderId")),
			receiver_id=_ident(data.get("receiverId")),
			type=data.get("type"),
			sent_at=data.get("sentAt"),
		)


@dataclass
class Meeting:
	"""A parent-teacher meeting."""
	id: str
	parent_name: str
	student_id: Optional[str] = None
	student_name: Optional[str] = None
	date: Optional[str] = None
	status: Optional[str] = None
	class_id: Optional[str] = None

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "Meeting":
		return cls(
			id=_ident(data.get("id")) or "",
			parent_name=data.get("parentName") or "",
			student_id=_ident(data.get("studentId")),
			student_name=data.get("studentName"),
			date=data.get("date") or data.get("scheduledDate"),
			status=data.get("status"),
			class_id=_ident(data.get("classId")),
		)


@dataclass
class Performer:
	name: str
	average: float


@dataclass
class WeakTopic:
	topic: str
	average: float


@dataclass
class StudentAverage:
	name: str
	average: float


@dataclass
class ClassAnalytics:
	"""Aggregated performance figures for one class."""
	top_performers: List[Performer] = field(default_factory=list)
	weakest_topics: List[WeakTopic] = field(default_factory=list)
	overall_average: float = 0
	student_averages: List[StudentAverage] = field(default_factory=list)

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "ClassAnalytics":
		return cls(
			top_performers=[
				Performer(p.get("name") or "", _number(p.get("average")))
				for p in data.get("topPerformers") or []
			],
			weakest_topics=[
				WeakTopic(t.get("topic") or "", _number(t.get("average")))
				for t in data.get("weakestTopics") or []
			],
			overall_average=_number(data.get("overallAverage")),
			student_averages=[
				StudentAverage(s.get("name") or "", _number(s.get("average")))
				for s in data.get("studentAverages") or []
			],
		)
