# ABOUTME: Maps correlation values to heatmap colors and cell labels.
# ABOUTME: Red at -1, white at 0, green at +1; missing values render grey.

import math

from price_correlation.matrix import CorrelationMatrix

NEUTRAL_COLOR = "rgb(200, 200, 200)"


def _is_missing(value) -> bool:
    return value is None or not math.isfinite(value)


def correlation_color(value: float | None) -> str:
    """Linearly interpolate red (-1) -> white (0) -> green (+1)."""
    if _is_missing(value):
        return NEUTRAL_COLOR

    clipped = min(1.0, max(-1.0, value))
    intensity = int(round(255 * abs(clipped)))
    fade = 255 - intensity
    if clipped >= 0:
        return f"rgb({fade}, 255, {fade})"
    return f"rgb(255, {fade}, {fade})"


def text_color(value: float | None) -> str:
    """White text on strongly positive cells, black elsewhere."""
    if _is_missing(value):
        return "black"
    return "white" if value > 0.5 else "black"


def format_cell(value: float | None) -> str:
    if _is_missing(value):
        return "n/a"
    return f"{value:.2f}"


def heatmap_cells(matrix: CorrelationMatrix) -> list[list[dict]]:
    """Per-cell render data for a correlation matrix, row-major.

    Sentinel entries render as neutral "n/a" cells with the fallback reason
    in the tooltip.
    """
    reasons = {(i, j): reason for i, j, reason in matrix.fallbacks}
    rows = []
    for i, (sym1, values) in enumerate(zip(matrix.symbols, matrix.values)):
        row = []
        for j, (sym2, value) in enumerate(zip(matrix.symbols, values)):
            reason = reasons.get((i, j))
            if reason is None:
                label = format_cell(value)
                color = correlation_color(value)
                tooltip = f"{sym1} vs {sym2}: {label}"
            else:
                label = format_cell(None)
                color = NEUTRAL_COLOR
                tooltip = f"{sym1} vs {sym2}: {label} ({reason})"
            row.append(
                {
                    "row": sym1,
                    "column": sym2,
                    "value": value,
                    "label": label,
                    "color": color,
                    "text_color": text_color(None if reason else value),
                    "tooltip": tooltip,
                    "fallback": reason,
                }
            )
        rows.append(row)
    return rows
