"""Bar chart renderer for the analytics page.

``render_bar_chart`` is pure: it maps (label, value) pairs on a fixed 0-100
scale to drawing primitives in canvas coordinates (origin top-left, y grows
downwards). ``render_png`` paints those primitives with matplotlib.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .const import (
	CHART_BAR_GUTTER, CHART_CATEGORY_LABEL_OFFSET, CHART_GRID_STEPS, CHART_HEIGHT,
	CHART_LABEL_ROTATION, CHART_MAX_VALUE, CHART_MAX_WIDTH, CHART_MIN_BAR_WIDTH,
	CHART_MIN_WIDTH, CHART_PADDING, CHART_VALUE_LABEL_OFFSET, CHART_WIDTH_PER_LABEL,
)

_LOGGER = logging.getLogger(__name__)

BAR_COLOUR = (102 / 255, 126 / 255, 234 / 255, 0.9)
GRID_COLOUR = "#eeeeee"
AXIS_TEXT_COLOUR = "#666666"
LABEL_TEXT_COLOUR = "#333333"

# Lazy import matplotlib to avoid startup overhead
_plt = None


@dataclass
class Gridline:
	y: float
	x0: float
	x1: float
	label: str


@dataclass
class Bar:
	x: float
	y: float
	width: float
	height: float
	value: float


@dataclass
class TextLabel:
	text: str
	x: float
	y: float
	rotation: float = 0
	align: str = "left"


@dataclass
class BarChart:
	"""Everything needed to paint one chart."""
	width: float
	height: float
	padding: float
	plot_width: float
	plot_height: float
	bar_width: float
	gridlines: List[Gridline] = field(default_factory=list)
	bars: List[Bar] = field(default_factory=list)
	value_labels: List[TextLabel] = field(default_factory=list)
	category_labels: List[TextLabel] = field(default_factory=list)

	@property
	def baseline(self) -> float:
		return self.padding + self.plot_height


def chart_width(label_count: int) -> float:
	return min(CHART_MAX_WIDTH, max(CHART_MIN_WIDTH, label_count * CHART_WIDTH_PER_LABEL))


def _format_value(value: float) -> str:
	if isinstance(value, float) and value.is_integer():
		value = int(value)
	return f"{value}%"


def render_bar_chart(labels: Sequence[str], values: Sequence[Optional[float]]) -> BarChart:
	"""Lay out a bar chart of percentages.

	Args:
		labels: Category label per bar
		values: Value per bar on a 0-100 scale; missing values count as 0

	Returns:
		The chart primitives
	"""
	count = len(labels)
	width = chart_width(count)
	height = CHART_HEIGHT
	padding = CHART_PADDING
	plot_width = width - padding * 2
	plot_height = height - padding * 2
	bar_width = max(CHART_MIN_BAR_WIDTH, plot_width / max(1, count) - CHART_BAR_GUTTER)

	chart = BarChart(width, height, padding, plot_width, plot_height, bar_width)

	for i in range(CHART_GRID_STEPS + 1):
		y = padding + plot_height * i / CHART_GRID_STEPS
		label = round((1 - i / CHART_GRID_STEPS) * CHART_MAX_VALUE)
		chart.gridlines.append(Gridline(y=y, x0=padding, x1=padding + plot_width, label=f"{label}%"))

	for idx, label in enumerate(labels):
		value = values[idx] if idx < len(values) and values[idx] is not None else 0
		scaled = min(max(value, 0), CHART_MAX_VALUE)
		x = padding + idx * (bar_width + CHART_BAR_GUTTER) + CHART_BAR_GUTTER
		bar_height = scaled / CHART_MAX_VALUE * plot_height
		y = padding + plot_height - bar_height

		chart.bars.append(Bar(x=x, y=y, width=bar_width, height=bar_height, value=value))
		chart.value_labels.append(TextLabel(_format_value(value), x, y - CHART_VALUE_LABEL_OFFSET))
		chart.category_labels.append(TextLabel(
			str(label),
			x + bar_width / 2,
			padding + plot_height + CHART_CATEGORY_LABEL_OFFSET,
			rotation=CHART_LABEL_ROTATION,
			align="right",
		))

	return chart


def _get_plt():
	"""Lazy load matplotlib."""
	global _plt
	if _plt is None:
		import matplotlib
		matplotlib.use("Agg")  # Non-interactive backend
		import matplotlib.pyplot as plt
		_plt = plt
	return _plt


def render_png(chart: BarChart, filepath: str, dpi: int = 100) -> str:
	"""Paint a laid-out chart to a PNG file and return its path."""
	plt = _get_plt()
	from matplotlib.patches import Rectangle

	fig = plt.figure(figsize=(chart.width / dpi, chart.height / dpi), dpi=dpi)
	ax = fig.add_axes((0, 0, 1, 1))
	ax.set_xlim(0, chart.width)
	ax.set_ylim(chart.height, 0)
	ax.axis("off")

	for line in chart.gridlines:
		ax.plot([line.x0, line.x1], [line.y, line.y], color=GRID_COLOUR, linewidth=1)
		ax.text(6, line.y + 4, line.label, color=AXIS_TEXT_COLOUR, fontsize=9)

	for bar in chart.bars:
		ax.add_patch(Rectangle((bar.x, bar.y), bar.width, bar.height, color=BAR_COLOUR))

	for text in chart.value_labels:
		ax.text(text.x, text.y, text.text, color=LABEL_TEXT_COLOUR, fontsize=8)

	for text in chart.category_labels:
		# Canvas rotation is clockwise-positive, matplotlib's is anticlockwise
		ax.text(
			text.x, text.y, text.text, color=LABEL_TEXT_COLOUR, fontsize=8,
			rotation=-text.rotation, ha=text.align, rotation_mode="anchor",
		)

	fig.savefig(filepath, dpi=dpi, facecolor="white", edgecolor="none")
	plt.close(fig)
	_LOGGER.debug("Wrote chart with %d bars to %s", len(chart.bars), filepath)
	return filepath
