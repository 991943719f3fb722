"""Layout tests for the analytics bar chart."""

import pytest

from teachdesk.chart import chart_width, render_bar_chart, render_png


def test_bar_heights_follow_value_ratio():
	chart = render_bar_chart(["A", "B", "C"], [0, 50, 100])

	assert chart.plot_height == 220
	heights = [bar.height for bar in chart.bars]
	assert heights == [0, 110, 220]
	assert heights[1] / heights[2] == pytest.approx(0.5)


def test_full_bar_top_meets_the_top_gridline():
	chart = render_bar_chart(["A", "B", "C"], [0, 50, 100])
	top = chart.gridlines[0]
	assert top.label == "100%"
	assert chart.bars[2].y == top.y == chart.padding
	assert chart.bars[0].y == chart.baseline


def test_gridlines_cover_the_scale():
	chart = render_bar_chart(["A"], [10])
	assert [g.label for g in chart.gridlines] == ["100%", "80%", "60%", "40%", "20%", "0%"]
	assert chart.gridlines[-1].y == chart.baseline


def test_width_is_clamped():
	assert chart_width(0) == 600
	assert chart_width(14) == 700
	assert chart_width(40) == 900


def test_bar_width_never_drops_below_minimum():
	labels = [f"S{i}" for i in range(80)]
	chart = render_bar_chart(labels, [50] * 80)
	assert chart.width == 900
	assert all(bar.width == 12 for bar in chart.bars)


def test_bar_positions_and_labels():
	chart = render_bar_chart(["Ada", "Ben"], [75.5, 40])
	step = chart.bar_width + 8
	assert chart.bar_width == 252
	assert chart.bars[0].x == 40 + 8
	assert chart.bars[1].x == pytest.approx(40 + step + 8)

	value = chart.value_labels[0]
	assert value.text == "75.5%"
	assert value.y == pytest.approx(chart.bars[0].y - 6)
	assert chart.value_labels[1].text == "40%"

	category = chart.category_labels[1]
	assert category.text == "Ben"
	assert category.x == pytest.approx(chart.bars[1].x + chart.bar_width / 2)
	assert category.y == chart.baseline + 14
	assert category.rotation == -30
	assert category.align == "right"


def test_out_of_range_values_are_clamped_for_geometry_only():
	chart = render_bar_chart(["A", "B", "C"], [140, -5, None])
	assert chart.bars[0].height == chart.plot_height
	assert chart.bars[0].value == 140
	assert chart.bars[1].height == 0
	assert chart.bars[2].value == 0


def test_empty_chart_still_has_gridlines():
	chart = render_bar_chart([], [])
	assert chart.bars == []
	assert len(chart.gridlines) == 6


def test_render_png_writes_file(tmp_path):
	pytest.importorskip("matplotlib")
	chart = render_bar_chart(["Ada", "Ben"], [80, 60])
	target = tmp_path / "chart.png"
	assert render_png(chart, str(target)) == str(target)
	assert target.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"
