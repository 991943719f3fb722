"""Page router: switches the visible page and runs its load routine."""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from .const import DEFAULT_TITLE, PAGE_TITLES

_LOGGER = logging.getLogger(__name__)

PageLoader = Callable[["LoadTicket"], Awaitable[None]]


@dataclass(frozen=True)
class LoadTicket:
	"""Generation token carried by one load routine."""
	router: "PageRouter"
	page: Optional[str]
	generation: int

	def is_current(self) -> bool:
		return self.router.generation == self.generation

	def __str__(self) -> str:
		return f"{self.page}#{self.generation}"


def get_page_title(page: str) -> str:
	return PAGE_TITLES.get(page, DEFAULT_TITLE)


class PageRouter:
	"""Owns the current page and the load generation counter."""

	def __init__(self, surface: Any) -> None:
		self.surface = surface
		self.current_page: Optional[str] = None
		self.generation = 0
		self._loaders: Dict[str, PageLoader] = {}

	def register(self, page: str, loader: PageLoader) -> None:
		self._loaders[page] = loader

	def ticket(self) -> LoadTicket:
		"""Ticket for the current generation, used by in-page reloads."""
		return LoadTicket(self, self.current_page, self.generation)

	async def navigate(self, page: str) -> LoadTicket:
		"""Show ``page`` and run its load routine.

		Results still arriving for the previous page are dropped from here on.
		"""
		if page not in PAGE_TITLES:
			_LOGGER.warning(f"Unknown page {page!r}")
			return self.ticket()
		self.surface.show_page(page, get_page_title(page))
		self.current_page = page
		self.generation += 1
		ticket = self.ticket()

		loader = self._loaders.get(page)
		if loader is None:
			return ticket
		try:
			await loader(ticket)
		except Exception:  # pylint: disable=broad-except
			_LOGGER.exception(f"Error loading page {page}")
		return ticket
