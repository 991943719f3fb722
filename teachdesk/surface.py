"""Display surfaces the views paint into.

The views never format output themselves. They hand rows, options, text and
charts to a surface. ``MemorySurface`` keeps the latest painted state, which
is what tests and scripted sessions read back. ``ConsoleSurface`` also prints
it.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from .chart import BarChart
from .const import LEVEL_ERROR, LEVEL_INFO, LEVEL_SUCCESS
from .viewmodels import Card, Option, TableRow

_LOGGER = logging.getLogger(__name__)


class MemorySurface:
	"""Records everything painted onto it."""

	def __init__(self, confirm_answer: bool = True) -> None:
		self.confirm_answer = confirm_answer
		self.active_page: Optional[str] = None
		self.title: Optional[str] = None
		self.page_history: List[str] = []
		self.texts: Dict[str, str] = {}
		self.regions: Dict[str, List[Any]] = {}
		self.options: Dict[str, List[Option]] = {}
		self.selected: Dict[str, Optional[str]] = {}
		self.charts: Dict[str, BarChart] = {}
		self.details: List[Tuple[str, List[Tuple[str, str]]]] = []
		self.open_modals: Dict[str, Any] = {}
		self.notifications: List[Tuple[str, str]] = []
		self.confirmations: List[str] = []
		self.busy = False
		self.busy_changes: List[bool] = []
		self.login_visible = False

	def show_page(self, page: str, title: str) -> None:
		self.active_page = page
		self.title = title
		self.page_history.append(page)

	def set_text(self, element_id: str, text: str) -> None:
		self.texts[element_id] = text

	def render_rows(self, region: str, rows: List[Any]) -> None:
		"""Replace the contents of a region."""
		self.regions[region] = list(rows)

	def set_options(self, select_id: str, options: List[Option], selected: Optional[str] = None) -> None:
		self.options[select_id] = list(options)
		self.selected[select_id] = selected

	def draw_chart(self, canvas_id: str, chart: BarChart) -> None:
		self.charts[canvas_id] = chart

	def show_detail(self, title: str, fields: List[Tuple[str, str]]) -> None:
		self.details.append((title, list(fields)))

	def open_modal(self, name: str, flow: Any) -> None:
		self.open_modals[name] = flow

	def close_modal(self, name: str) -> None:
		self.open_modals.pop(name, None)

	def show_login(self, visible: bool) -> None:
		self.login_visible = visible

	def set_busy(self, busy: bool) -> None:
		self.busy = busy
		self.busy_changes.append(busy)

	def notify(self, message: str, level: str = LEVEL_INFO) -> None:
		self.notifications.append((level, message))

	async def confirm(self, message: str) -> bool:
		self.confirmations.append(message)
		return self.confirm_answer

	# Helpers for reading the surface back

	def errors(self) -> List[str]:
		return [message for level, message in self.notifications if level == LEVEL_ERROR]

	def rows(self, region: str) -> List[Any]:
		return self.regions.get(region, [])


_LEVEL_ICONS = {
	LEVEL_INFO: "ℹ️",
	LEVEL_SUCCESS: "✅",
	LEVEL_ERROR: "❌",
}


class ConsoleSurface(MemorySurface):
	"""Memory surface that also prints to the terminal."""

	def show_page(self, page: str, title: str) -> None:
		super().show_page(page, title)
		print()
		print(f"📋 {title}")
		print("=" * 60)

	def set_text(self, element_id: str, text: str) -> None:
		super().set_text(element_id, text)
		print(f"  {element_id}: {text}")

	def render_rows(self, region: str, rows: List[Any]) -> None:
		super().render_rows(region, rows)
		if not rows:
			print(f"  ({region} is empty)")
			return
		for row in rows:
			print(f"  {_format_row(row)}")

	def set_options(self, select_id: str, options: List[Option], selected: Optional[str] = None) -> None:
		super().set_options(select_id, options, selected)
		labels = ", ".join(f"{o.label} [{o.value}]" for o in options) or "no options"
		print(f"  {select_id}: {labels}")

	def draw_chart(self, canvas_id: str, chart: BarChart) -> None:
		super().draw_chart(canvas_id, chart)
		for bar, label in zip(chart.bars, chart.category_labels):
			filled = int(round(bar.height / chart.plot_height * 40)) if chart.plot_height else 0
			print(f"  {label.text[:16]:<16} {'█' * filled} {bar.value}%")

	def show_detail(self, title: str, fields: List[Tuple[str, str]]) -> None:
		super().show_detail(title, fields)
		print(f"🔍 {title}")
		for name, value in fields:
			print(f"  {name}: {value}")

	def set_busy(self, busy: bool) -> None:
		super().set_busy(busy)
		_LOGGER.debug("busy=%s", busy)

	def notify(self, message: str, level: str = LEVEL_INFO) -> None:
		super().notify(message, level)
		print(f"{_LEVEL_ICONS.get(level, '')} {message}")

	async def confirm(self, message: str) -> bool:
		self.confirmations.append(message)
		answer = await asyncio.to_thread(input, f"{message} [y/N] ")
		return answer.strip().lower() in ("y", "yes")


def _format_row(row: Any) -> str:
	if isinstance(row, TableRow):
		text = " | ".join(row.cells)
		if row.actions:
			text += f"  [{', '.join(row.actions)}: {row.key}]"
		return text
	if isinstance(row, Card):
		parts = [row.title, *row.lines]
		if row.link:
			parts.append(row.link)
		return " · ".join(p for p in parts if p)
	return str(row)
