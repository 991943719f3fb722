"""Custom exceptions for the teacher management API."""


class TMSError(Exception):
	"""Base exception for teacher management errors."""
	pass


class TMSAuthError(TMSError):
	"""Authentication failed."""
	pass


class TMSAPIError(TMSError):
	"""API request returned a non-2xx status."""
	
	def __init__(self, message: str, status: int = 0):
		super().__init__(message)
		self.status = status


class TMSConnectionError(TMSError):
	"""Connection to the backend failed."""
	pass


class TMSDataError(TMSError):
	"""Data parsing or validation error."""
	pass
