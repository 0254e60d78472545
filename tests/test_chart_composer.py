from datetime import date
from datetime import timedelta
from xml.etree import ElementTree

from heatmap_badge.domain import ChartSpec
from heatmap_badge.domain import DailyRecord
from heatmap_badge.services.calendar_grid import build_weeks
from heatmap_badge.services.chart_composer import CELL_STEP
from heatmap_badge.services.chart_composer import LEFT_MARGIN
from heatmap_badge.services.chart_composer import LEGEND_BAND
from heatmap_badge.services.chart_composer import LEGEND_CAPTION_WIDTH
from heatmap_badge.services.chart_composer import TOP_MARGIN
from heatmap_badge.services.chart_composer import canvas_size
from heatmap_badge.services.chart_composer import cell_color
from heatmap_badge.services.chart_composer import cell_origin
from heatmap_badge.services.chart_composer import contributions_phrase
from heatmap_badge.services.chart_composer import legend_placement
from heatmap_badge.services.chart_composer import month_label_positions
from heatmap_badge.services.chart_composer import render_svg
from heatmap_badge.services.color_scheme import COLOR_SCHEMES


SVG_NS = "{http://www.w3.org/2000/svg}"
SCHEME = COLOR_SCHEMES["default"]


def make_spec(days: int = 60, subject: str = "octocat", total: int = 42) -> ChartSpec:
    start = date(2024, 1, 1)
    records = [
        DailyRecord(date=start + timedelta(days=offset), level=offset % 5, count=offset)
        for offset in range(days)
    ]
    return ChartSpec(weeks=build_weeks(records), scheme=SCHEME, subject=subject, total=total)


def test_canvas_size_follows_week_count() -> None:
    assert canvas_size(0) == (LEFT_MARGIN, TOP_MARGIN + 7 * CELL_STEP + LEGEND_BAND)
    assert canvas_size(53) == (LEFT_MARGIN + 53 * 12, TOP_MARGIN + 84 + LEGEND_BAND)


def test_cell_origin_is_week_major() -> None:
    assert cell_origin(0, 0) == (LEFT_MARGIN, TOP_MARGIN)
    assert cell_origin(2, 3) == (LEFT_MARGIN + 24, TOP_MARGIN + 36)


def test_cell_color_falls_back_to_no_activity_color() -> None:
    assert cell_color(SCHEME, 4) == SCHEME[4]
    assert cell_color(SCHEME, 9) == SCHEME[0]
    assert cell_color(SCHEME, -1) == SCHEME[0]


def test_contributions_phrase_pluralizes() -> None:
    assert contributions_phrase(1) == "1 contribution in the last year"
    assert contributions_phrase(0) == "0 contributions in the last year"


def test_month_labels_emitted_once_per_month() -> None:
    weeks = make_spec(days=70).weeks

    labels = [label for _, label in month_label_positions(weeks)]

    assert labels == ["Dec", "Jan", "Feb", "Mar"]
    assert month_label_positions(weeks)[0] == (0, "Dec")


def test_render_svg_is_well_formed_and_sized() -> None:
    spec = make_spec()

    svg = render_svg(spec)
    root = ElementTree.fromstring(svg.encode("utf-8"))

    width, height = canvas_size(len(spec.weeks))
    assert root.tag == f"{SVG_NS}svg"
    assert root.get("width") == str(width)
    assert root.get("height") == str(height)
    assert root.get("role") == "img"
    assert root.get("aria-label") == "42 contributions in the last year by octocat"
    assert root.find(f"{SVG_NS}title").text == "42 contributions in the last year by octocat"
    assert "href" not in svg
    assert "url(" not in svg


def test_render_svg_colors_cells_by_level() -> None:
    spec = make_spec(days=7)

    root = ElementTree.fromstring(render_svg(spec).encode("utf-8"))
    cells = [rect for rect in root.iter(f"{SVG_NS}rect") if rect.get("data-date")]

    assert len(cells) == 7 * len(spec.weeks)
    by_date = {cell.get("data-date"): cell for cell in cells}
    assert by_date["2024-01-05"].get("fill") == SCHEME[4]
    assert by_date["2024-01-05"].get("data-count") == "4"
    assert by_date["2023-12-31"].get("fill") == SCHEME[0]


def test_render_svg_out_of_range_level_uses_first_color() -> None:
    bad_day = DailyRecord.model_construct(date=date(2024, 1, 7), level=9, count=None)
    week = (bad_day,) + tuple(
        DailyRecord(date=date(2024, 1, 8) + timedelta(days=offset), level=0)
        for offset in range(6)
    )
    spec = ChartSpec.model_construct(weeks=[week], scheme=SCHEME, subject="x", total=0)

    svg = render_svg(spec)

    assert f'fill="{SCHEME[0]}" rx="2" data-date="2024-01-07"' in svg


def test_render_svg_includes_legend_and_weekday_labels() -> None:
    svg = render_svg(make_spec())
    root = ElementTree.fromstring(svg.encode("utf-8"))

    texts = [text.text for text in root.iter(f"{SVG_NS}text")]
    legend = root.find(f"{SVG_NS}g")
    swatches = [rect.get("fill") for rect in legend.iter(f"{SVG_NS}rect")]

    assert {"Mon", "Wed", "Fri", "Less", "More"} <= set(texts)
    assert swatches == SCHEME


def test_render_svg_header_mentions_subject_only_when_enabled() -> None:
    spec = make_spec(subject="octocat", total=1)

    hidden = ElementTree.fromstring(render_svg(spec).encode("utf-8"))
    shown = ElementTree.fromstring(render_svg(spec, show_subject=True).encode("utf-8"))

    assert hidden.find(f"{SVG_NS}text").text == "1 contribution in the last year"
    assert shown.find(f"{SVG_NS}text").text == "1 contribution in the last year by octocat"


def test_render_svg_escapes_subject() -> None:
    spec = make_spec(subject='<script>"x"</script>')

    svg = render_svg(spec, show_subject=True)

    assert "<script>" not in svg
    root = ElementTree.fromstring(svg.encode("utf-8"))
    assert root.get("aria-label").endswith('by <script>"x"</script>')


def test_render_svg_is_deterministic() -> None:
    assert render_svg(make_spec()) == render_svg(make_spec())


def test_legend_is_right_aligned_at_full_size_on_wide_charts() -> None:
    width, _ = canvas_size(53)

    x, scale = legend_placement(width, 5)

    assert scale == 1.0
    assert x + 5 * CELL_STEP + 2 + LEGEND_CAPTION_WIDTH <= width


def test_legend_shrinks_to_fit_single_week_chart() -> None:
    width, _ = canvas_size(1)

    x, scale = legend_placement(width, 5)

    assert 0 < scale < 1
    assert x - (LEGEND_CAPTION_WIDTH + 4) * scale >= 0
    assert x + (5 * CELL_STEP + 2 + LEGEND_CAPTION_WIDTH) * scale <= width


def test_single_week_svg_scales_legend_group() -> None:
    spec = make_spec(days=6)

    root = ElementTree.fromstring(render_svg(spec).encode("utf-8"))
    legend = root.find(f"{SVG_NS}g")

    assert len(spec.weeks) == 1
    assert "scale(" in legend.get("transform")
    assert [rect.get("fill") for rect in legend.iter(f"{SVG_NS}rect")] == SCHEME
