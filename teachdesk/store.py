"""In-memory state cache shared by the page views."""

import logging
from typing import Any, Dict, List, Optional

from .const import COLLECTIONS
from .tms.models import Grade

_LOGGER = logging.getLogger(__name__)


class StateStore:
	"""Single-owner snapshot of the most recently fetched collections.

	Collections are replaced wholesale, never merged. Writes coming from a
	load routine pass that routine's ticket and are dropped once the ticket
	is no longer current.
	"""

	def __init__(self) -> None:
		self._collections: Dict[str, List[Any]] = {key: [] for key in COLLECTIONS}
		self.current_class: Optional[str] = None
		self.current_assignment: Optional[str] = None
		self.current_grades: Dict[str, Grade] = {}

	def get(self, key: str) -> List[Any]:
		"""Return a shallow copy of a cached collection."""
		self._check_key(key)
		return list(self._collections[key])

	def replace(self, key: str, items: List[Any], ticket: Any = None) -> bool:
		"""Overwrite a collection.

		Returns:
			False if the write was dropped because the ticket went stale
		"""
		self._check_key(key)
		if ticket is not None and not ticket.is_current():
			_LOGGER.debug(f"Dropping stale write to {key} from {ticket}")
			return False
		self._collections[key] = list(items)
		return True

	def select_class(self, class_id: Optional[str]) -> None:
		if class_id != self.current_class:
			self.current_assignment = None
			self.current_grades = {}
		self.current_class = class_id

	def select_assignment(self, assignment_id: Optional[str], grades: Optional[Dict[str, Grade]] = None) -> None:
		self.current_assignment = assignment_id
		self.current_grades = dict(grades or {})

	@staticmethod
	def _check_key(key: str) -> None:
		if key not in COLLECTIONS:
			raise KeyError(f"Unknown collection: {key}")
