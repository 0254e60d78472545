from collections.abc import Sequence
from html import escape

from heatmap_badge.domain import ChartSpec
from heatmap_badge.domain import DailyRecord
from heatmap_badge.domain import Week


CELL_SIZE = 10
CELL_GAP = 2
CELL_STEP = CELL_SIZE + CELL_GAP
LEFT_MARGIN = 32
TOP_MARGIN = 48
LEGEND_BAND = 28
LEGEND_GAP = 2
LEGEND_PADDING = 2
# Room reserved for the "Less" and "More" captions.
LEGEND_CAPTION_WIDTH = 24
FONT_FAMILY = "'Segoe UI', Tahoma, sans-serif"
TEXT_COLOR = "#767676"

MONTH_NAMES = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
# Row index (Sunday = 0) -> label.
WEEKDAY_LABELS = {1: "Mon", 3: "Wed", 5: "Fri"}


def canvas_size(week_count: int) -> tuple[int, int]:
    """Return ``(width, height)`` of a chart with ``week_count`` columns."""

    width = LEFT_MARGIN + week_count * CELL_STEP
    height = TOP_MARGIN + 7 * CELL_STEP + LEGEND_BAND
    return width, height


def cell_origin(week_index: int, day_index: int) -> tuple[int, int]:
    return LEFT_MARGIN + week_index * CELL_STEP, TOP_MARGIN + day_index * CELL_STEP


def cell_color(scheme: Sequence[str], level: int) -> str:
    if 0 <= level < len(scheme):
        return scheme[level]
    return scheme[0]


def contributions_phrase(total: int) -> str:
    noun = "contribution" if total == 1 else "contributions"
    return f"{total} {noun} in the last year"


def month_label_positions(weeks: Sequence[Week]) -> list[tuple[int, str]]:
    """Return ``(week_index, label)`` for each week that starts a new month.

    A label is emitted whenever a week's leading day falls in a different
    month than the label emitted before it.
    """

    positions: list[tuple[int, str]] = []
    previous_month: int | None = None
    for week_index, week in enumerate(weeks):
        month = week[0].date.month
        if month != previous_month:
            positions.append((week_index, MONTH_NAMES[month - 1]))
            previous_month = month
    return positions


def _text(x: int, y: int, content: str, size: int = 9, anchor: str = "start") -> str:
    return (
        f'<text x="{x}" y="{y}" font-size="{size}" font-family="{FONT_FAMILY}" '
        f'fill="{TEXT_COLOR}" text-anchor="{anchor}">{escape(content)}</text>'
    )


def _render_cell(day: DailyRecord, x: int, y: int, scheme: Sequence[str]) -> str:
    count_attribute = "" if day.count is None else f' data-count="{day.count}"'
    return (
        f'<rect x="{x}" y="{y}" width="{CELL_SIZE}" height="{CELL_SIZE}" '
        f'fill="{cell_color(scheme, day.level)}" rx="2" '
        f'data-date="{day.date.isoformat()}" data-level="{day.level}"'
        f"{count_attribute} />"
    )


def render_cells(weeks: Sequence[Week], scheme: Sequence[str]) -> str:
    cells: list[str] = []
    for week_index, week in enumerate(weeks):
        for day_index, day in enumerate(week):
            x, y = cell_origin(week_index, day_index)
            cells.append(_render_cell(day, x, y, scheme))
    return "".join(cells)


def render_axis_labels(weeks: Sequence[Week]) -> str:
    labels = [
        _text(cell_origin(week_index, 0)[0], TOP_MARGIN - 6, label)
        for week_index, label in month_label_positions(weeks)
    ]
    labels.extend(
        _text(LEFT_MARGIN - 6, cell_origin(0, row)[1] + 9, label, anchor="end")
        for row, label in WEEKDAY_LABELS.items()
    )
    return "".join(labels)


def legend_placement(width: int, swatch_count: int) -> tuple[float, float]:
    """Return the legend origin x and scale for a canvas ``width`` wide.

    The legend is right-aligned. When the canvas is narrower than the legend,
    it is scaled down so captions and swatches stay inside the canvas.
    """

    swatches_width = swatch_count * (CELL_SIZE + LEGEND_GAP)
    left_extent = LEGEND_CAPTION_WIDTH + 4
    right_extent = swatches_width + 2 + LEGEND_CAPTION_WIDTH
    natural_width = left_extent + right_extent
    available = width - 2 * LEGEND_PADDING
    scale = min(1.0, available / natural_width) if available > 0 else 0.0
    return width - LEGEND_PADDING - right_extent * scale, scale


def render_legend(scheme: Sequence[str], width: int, y: int) -> str:
    swatch_step = CELL_SIZE + LEGEND_GAP
    x, scale = legend_placement(width, len(scheme))
    transform = f"translate({x:g} {y})"
    if scale < 1:
        transform += f" scale({scale:.4g})"
    swatches = "".join(
        f'<rect x="{index * swatch_step}" y="0" width="{CELL_SIZE}" '
        f'height="{CELL_SIZE}" fill="{color}" rx="2" />'
        for index, color in enumerate(scheme)
    )
    return (
        f'<g aria-hidden="true" transform="{transform}">'
        f"{_text(-4, 9, 'Less', anchor='end')}"
        f"{swatches}"
        f"{_text(len(scheme) * swatch_step + 2, 9, 'More')}"
        "</g>"
    )


def render_svg(spec: ChartSpec, show_subject: bool = False) -> str:
    """Serialize a chart spec to a standalone SVG document."""

    width, height = canvas_size(len(spec.weeks))
    graph_bottom = TOP_MARGIN + 7 * CELL_STEP
    legend_y = graph_bottom + 8

    summary = f"{contributions_phrase(spec.total)} by {spec.subject}"
    header = summary if show_subject else contributions_phrase(spec.total)

    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}" role="img" '
        f'aria-label="{escape(summary, quote=True)}">'
        f"<title>{escape(summary)}</title>"
        '<rect width="100%" height="100%" fill="transparent" />'
        f"{_text(LEFT_MARGIN, 20, header, size=14)}"
        f"{render_axis_labels(spec.weeks)}"
        f"{render_cells(spec.weeks, spec.scheme)}"
        f"{render_legend(spec.scheme, width, legend_y)}"
        "</svg>\n"
    )
