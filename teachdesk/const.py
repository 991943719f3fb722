"""Constants for the teacher desk front end."""

DOMAIN = "teachdesk"

# Configuration
CONF_BASE_URL = "base_url"
CONF_USERNAME = "username"
CONF_PASSWORD = "password"
CONF_SESSION_FILE = "session_file"
CONF_TIMEOUT = "timeout"

# Pages
PAGE_DASHBOARD = "dashboard"
PAGE_CLASSES = "classes"
PAGE_STUDENTS = "students"
PAGE_ATTENDANCE = "attendance"
PAGE_ASSIGNMENTS = "assignments"
PAGE_GRADEBOOK = "gradebook"
PAGE_ANALYTICS = "analytics"
PAGE_RESOURCES = "resources"
PAGE_COMMUNICATIONS = "communications"
PAGE_MEETINGS = "meetings"
PAGE_REQUEST_ACCOUNT = "request-account"

PAGE_TITLES = {
	PAGE_DASHBOARD: "Dashboard",
	PAGE_CLASSES: "My Classes",
	PAGE_STUDENTS: "Students",
	PAGE_ATTENDANCE: "Mark Attendance",
	PAGE_ASSIGNMENTS: "Assignments",
	PAGE_GRADEBOOK: "Gradebook",
	PAGE_ANALYTICS: "Analytics",
	PAGE_RESOURCES: "Learning Resources",
	PAGE_COMMUNICATIONS: "Messages & Announcements",
	PAGE_MEETINGS: "Parent-Teacher Meetings",
	PAGE_REQUEST_ACCOUNT: "Request Account",
}
PAGES = tuple(PAGE_TITLES)
DEFAULT_TITLE = PAGE_TITLES[PAGE_DASHBOARD]

# Cached collections
COLLECTION_CLASSES = "classes"
COLLECTION_STUDENTS = "students"
COLLECTION_ATTENDANCE = "attendance"
COLLECTION_ASSIGNMENTS = "assignments"
COLLECTION_GRADES = "grades"
# Students of the class picked on the attendance or gradebook page
COLLECTION_ROSTER = "roster"
COLLECTIONS = (
	COLLECTION_CLASSES,
	COLLECTION_STUDENTS,
	COLLECTION_ATTENDANCE,
	COLLECTION_ASSIGNMENTS,
	COLLECTION_GRADES,
	COLLECTION_ROSTER,
)

# Surface regions and fields
STAT_CLASSES = "stat-classes"
STAT_STUDENTS = "stat-students"
STAT_ASSIGNMENTS = "stat-assignments"
STAT_ATTENDANCE = "stat-attendance"
REGION_CLASSES = "classes-tbody"
REGION_STUDENTS = "students-tbody"
REGION_ATTENDANCE = "attendance-tbody"
REGION_ASSIGNMENTS = "assignments-tbody"
REGION_GRADEBOOK = "gradebook-tbody"
REGION_TOP_PERFORMERS = "top-performers"
REGION_WEAK_TOPICS = "weak-topics"
REGION_RESOURCES = "resources-list"
REGION_MESSAGES = "messages-list"
REGION_MEETINGS = "meetings-tbody"
FIELD_ANALYTICS_OVERALL = "analytics-overall"
FIELD_USER_DISPLAY = "user-display"
FIELD_USER_ROLE = "sidebar-user-role"
FIELD_USER_AVATAR = "sidebar-avatar"
SELECT_ATTENDANCE_CLASS = "attendance-class"
SELECT_GRADEBOOK_CLASS = "gradebook-class"
SELECT_GRADEBOOK_ASSIGNMENT = "gradebook-assignment"
SELECT_ANALYTICS_CLASS = "analytics-class-select"
CHART_PERFORMANCE = "performance-chart"

# Notification levels
LEVEL_INFO = "info"
LEVEL_SUCCESS = "success"
LEVEL_ERROR = "error"

# Attendance heuristic used for the dashboard stat
ATTENDANCE_DAYS_ASSUMED = 30

# Modal flows
FLOW_CONNECT_STUDENT = "connect-student"
FLOW_CREATE_ASSIGNMENT = "create-assignment"
FLOW_SCHEDULE_MEETING = "schedule-meeting"
FLOW_ACCOUNT_REQUEST = "account-request"
FLOW_CREATE_CLASS = "create-class"
FLOW_ADD_STUDENT = "add-student"
FLOW_UPLOAD_RESOURCE = "upload-resource"
FLOW_SEND_MESSAGE = "send-message"
FLOW_LOGIN = "login"

DEFAULT_TOTAL_MARKS = 100
DEFAULT_CLASS_CAPACITY = 40
DEFAULT_RESOURCE_TYPE = "pdf"

# Actions
ACTION_NEW_CLASS = "new-class"
ACTION_ADD_STUDENT = "add-student"
ACTION_MARK_ATTENDANCE = "mark-attendance"
ACTION_SCHEDULE_MEETING = "schedule-meeting"
ACTION_CREATE_ASSIGNMENT = "create-assignment"
ACTION_UPLOAD_RESOURCE = "upload-resource"
ACTION_NAVIGATE = "navigate"
ACTION_VIEW_CLASS = "view-class"
ACTION_CONNECT_STUDENT = "connect-student"
ACTION_DELETE_CLASS = "delete-class"
ACTION_VIEW_STUDENT = "view-student"
ACTION_DELETE_STUDENT = "delete-student"
ACTION_VIEW_ASSIGNMENT = "view-assignment"
ACTION_DELETE_ASSIGNMENT = "delete-assignment"
ACTION_DELETE_RESOURCE = "delete-resource"
ACTION_DELETE_MESSAGE = "delete-message"
ACTION_DELETE_MEETING = "delete-meeting"
ACTION_SAVE_ATTENDANCE = "save-attendance"
ACTION_SAVE_GRADES = "save-grades"
ACTION_SEND_MESSAGE = "send-message"
ACTION_REQUEST_ACCOUNT = "request-account"
ACTION_LOGOUT = "logout"
ACTION_SELECT_ATTENDANCE_CLASS = "select-attendance-class"
ACTION_SELECT_GRADEBOOK_CLASS = "select-gradebook-class"
ACTION_SELECT_GRADEBOOK_ASSIGNMENT = "select-gradebook-assignment"
ACTION_SELECT_ANALYTICS_CLASS = "select-analytics-class"

# Chart geometry
CHART_HEIGHT = 300
CHART_PADDING = 40
CHART_MIN_WIDTH = 600
CHART_MAX_WIDTH = 900
CHART_WIDTH_PER_LABEL = 50
CHART_BAR_GUTTER = 8
CHART_MIN_BAR_WIDTH = 12
CHART_GRID_STEPS = 5
CHART_MAX_VALUE = 100
CHART_VALUE_LABEL_OFFSET = 6
CHART_CATEGORY_LABEL_OFFSET = 14
CHART_LABEL_ROTATION = -30  # degrees
