import re

from heatmap_badge.errors import ColorFormatError


DEFAULT_BACKGROUND = "#eeeeee"

COLOR_SCHEMES: dict[str, list[str]] = {
    "default": ["#eeeeee", "#d6e685", "#8cc665", "#44a340", "#1e6823"],
    "halloween": ["#eeeeee", "#ffee4a", "#ffc501", "#fe9600", "#03001c"],
    "teal": ["#eeeeee", "#7fffd4", "#76eec6", "#66cdaa", "#458b74"],
}

_NON_HEX_PATTERN = re.compile(r"[^0-9a-fA-F]")


def format_hex(raw_value: str | None, label: str) -> str:
    """Normalize a user supplied color to six lower-case hex digits.

    Non-hex characters are dropped first, so ``#ABC`` and ``abc`` both become
    ``aabbcc``.

    Raises:
        ColorFormatError: If fewer or more than 3 or 6 hex digits remain.
    """

    normalized = _NON_HEX_PATTERN.sub("", raw_value or "")
    if len(normalized) == 3:
        normalized = "".join(char * 2 for char in normalized)
    if len(normalized) != 6:
        raise ColorFormatError(
            f"Invalid {label} color: expected 3 or 6 hex characters."
        )
    return normalized.lower()


def hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
    value = hex_color.lstrip("#")
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


def rgb_to_hex(rgb: tuple[int, int, int]) -> str:
    return "#" + "".join(f"{channel:02x}" for channel in rgb)


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


def darken_color(hex_color: str, amount: float = 0.8) -> str:
    red, green, blue = hex_to_rgb(hex_color)
    return rgb_to_hex(
        (
            _round_half_up(red * amount),
            _round_half_up(green * amount),
            _round_half_up(blue * amount),
        )
    )


def lighten_color(hex_color: str, amount: float = 0.3) -> str:
    red, green, blue = hex_to_rgb(hex_color)
    return rgb_to_hex(
        (
            min(_round_half_up(red + 255 * amount), 255),
            min(_round_half_up(green + 255 * amount), 255),
            min(_round_half_up(blue + 255 * amount), 255),
        )
    )


def build_scheme(
    base_color: str | None = None, background_color: str | None = None
) -> list[str]:
    """Return the five fill colors for activity levels 0..4.

    ``base_color`` may name a preset, in which case ``background_color`` is
    ignored. Otherwise the scheme is derived from the base color, with the
    background used for days without activity.
    """

    if not base_color:
        return list(COLOR_SCHEMES["default"])

    preset = COLOR_SCHEMES.get(base_color)
    if preset:
        return list(preset)

    base = f"#{format_hex(base_color, 'base')}"
    background = (
        f"#{format_hex(background_color, 'background')}"
        if background_color
        else DEFAULT_BACKGROUND
    )

    return [
        background,
        lighten_color(base, 0.3),
        lighten_color(base, 0.2),
        base,
        darken_color(base, 0.8),
    ]
