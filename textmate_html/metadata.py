"""packing of a token's resolved style into a single integer

layout (least significant bit first):

- bits 0-3: font style flags
- bits 4-17: foreground index into the theme's color map
- bits 18-31: background index into the theme's color map

index ``0`` means "theme default": no explicit color is emitted for it.
indices past the field widths are not checked, callers must stay within
``MAX_COLOR_INDEX``.
"""
import enum
from typing import NamedTuple


class FontStyle(enum.IntFlag):
    NONE = 0
    ITALIC = 1
    BOLD = 2
    UNDERLINE = 4
    STRIKETHROUGH = 8


FONT_STYLE_MASK = 0b1111
FOREGROUND_OFFSET = 4
FOREGROUND_MASK = 0x3fff << FOREGROUND_OFFSET
BACKGROUND_OFFSET = 18
BACKGROUND_MASK = 0x3fff << BACKGROUND_OFFSET

MAX_COLOR_INDEX = 0x3fff


class Metadata(NamedTuple):
    font_style: FontStyle
    color_index: int
    bg_color_index: int


def encode(font_style: int, color_index: int, bg_color_index: int) -> int:
    return (
        (font_style & FONT_STYLE_MASK) |
        (color_index << FOREGROUND_OFFSET) |
        (bg_color_index << BACKGROUND_OFFSET)
    )


def decode(metadata: int) -> Metadata:
    return Metadata(
        font_style=FontStyle(metadata & FONT_STYLE_MASK),
        color_index=(metadata & FOREGROUND_MASK) >> FOREGROUND_OFFSET,
        bg_color_index=(metadata & BACKGROUND_MASK) >> BACKGROUND_OFFSET,
    )
