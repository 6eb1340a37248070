"""Genre colour helpers.

Colours are stored as three nullable integer components.  The textual
forms (``rgb(r,g,b)`` and ``#RRGGBB``) are read-time projections and are
never persisted.
"""

from __future__ import annotations

import re

from src.utils.errors import CatalogValidationError

# rgb( 12 , 200,7 ) -- whitespace tolerated around each component.
_RGB_PATTERN = re.compile(r"^rgb\(\s*([^,()]+?)\s*,\s*([^,()]+?)\s*,\s*([^,()]+?)\s*\)$")

# ASCII decimal only: int() would also take "1_0", "+5" and non-ASCII digits.
_COMPONENT_PATTERN = re.compile(r"[0-9]{1,3}")

_COMPONENT_NAMES = ("red", "green", "blue")


def parse_rgb_color(value: str) -> tuple[int, int, int]:
    """Parse an ``rgb(r,g,b)`` string into three integers in ``[0, 255]``.

    Raises:
        CatalogValidationError: if the format is wrong or any component is
            not an integer in range.  Each component is checked on its own
            so the message names the bad channel.
    """
    match = _RGB_PATTERN.match(value.strip())
    if match is None:
        raise CatalogValidationError(
            f"Invalid RGB color format: {value!r} (expected rgb(r,g,b))",
            field_name="rgb",
        )

    components: list[int] = []
    for channel, raw in zip(_COMPONENT_NAMES, match.groups()):
        if not _COMPONENT_PATTERN.fullmatch(raw):
            raise CatalogValidationError(
                f"Invalid {channel} component in RGB color: {raw!r}",
                field_name="rgb",
            )
        component = int(raw)
        if not 0 <= component <= 255:
            raise CatalogValidationError(
                f"Invalid {channel} component in RGB color: {component} is outside 0-255",
                field_name="rgb",
            )
        components.append(component)

    return components[0], components[1], components[2]


def is_valid_rgb_color(value: str) -> bool:
    try:
        parse_rgb_color(value)
    except CatalogValidationError:
        return False
    return True


def format_rgb(r: int | None, g: int | None, b: int | None) -> str | None:
    """``rgb(r,g,b)`` when all three components are set, else None."""
    if r is None or g is None or b is None:
        return None
    return f"rgb({r},{g},{b})"


def format_hex(r: int | None, g: int | None, b: int | None) -> str | None:
    """Uppercase ``#RRGGBB`` when all three components are set, else None."""
    if r is None or g is None or b is None:
        return None
    return f"#{r:02X}{g:02X}{b:02X}"
