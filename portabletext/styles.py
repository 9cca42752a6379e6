"""
Style tokens and the style sheet used by the renderer.

Design tokens (fonts, sizes, colors, spacing, page geometry) are module
level singletons. A ``StyleSheet`` maps a block's style key ("normal",
"h1".."h6", "code") to a ``BlockStyle``; sheets are immutable and every
"set style" operation returns a new sheet.

License: MIT
"""

from dataclasses import dataclass, field, fields, replace
from types import MappingProxyType
from typing import Dict, Literal, Mapping, Optional, Tuple

RGB = Tuple[float, float, float]
Alignment = Literal["left", "center", "right", "justify"]


@dataclass
class FontConfig:
    """Standard PDF font faces."""
    body: str = "Helvetica"
    bold: str = "Helvetica-Bold"
    italic: str = "Helvetica-Oblique"
    bold_italic: str = "Helvetica-BoldOblique"
    code: str = "Courier"
    code_bold: str = "Courier-Bold"
    code_italic: str = "Courier-Oblique"
    code_bold_italic: str = "Courier-BoldOblique"
    label: str = "Helvetica"

    def face(self, bold: bool = False, italic: bool = False, monospace: bool = False) -> str:
        """Pick the face for a combination of traits."""
        if monospace:
            if bold and italic:
                return self.code_bold_italic
            if bold:
                return self.code_bold
            if italic:
                return self.code_italic
            return self.code
        if bold and italic:
            return self.bold_italic
        if bold:
            return self.bold
        if italic:
            return self.italic
        return self.body


@dataclass
class FontSizes:
    """Font sizes in points."""
    h1: int = 28
    h2: int = 22
    h3: int = 18
    h4: int = 16
    h5: int = 14
    h6: int = 13
    body: int = 12
    code: int = 10
    label: int = 8

    def heading(self, level: int) -> int:
        return getattr(self, f"h{level}", self.body)


@dataclass
class Colors:
    """Color palette in RGB tuples (0-1 range for ReportLab)."""
    text_primary: RGB = (0.169, 0.169, 0.169)  # #2B2B2B
    text_muted: RGB = (0.416, 0.416, 0.416)  # #6A6A6A
    heading: RGB = (0.0, 0.0, 0.0)

    # Links
    link: RGB = (0.0, 0.0, 1.0)

    # Code
    code_bg: RGB = (0.961, 0.961, 0.961)  # #F5F5F5
    code_border: RGB = (0.898, 0.898, 0.898)  # #E5E5E5
    label_bg: RGB = (0.925, 0.925, 0.925)  # #ECECEC

    white: RGB = (1.0, 1.0, 1.0)
    black: RGB = (0.0, 0.0, 0.0)


@dataclass
class Spacing:
    """Spacing values in points (base unit 8pt)."""
    base: int = 8
    small: int = 4
    block_gap: int = 12
    line_gap: int = 4
    code_padding: int = 8
    label_gap: int = 4


@dataclass
class PageConfig:
    """Page size configurations in points (1 pt = 1/72 inch)."""

    # A4: 210 × 297 mm
    a4_width: float = 595.27
    a4_height: float = 841.89

    # LETTER: 8.5 × 11 inches
    letter_width: float = 612.0
    letter_height: float = 792.0

    default_margin_mm: float = 20.0

    def size(self, page_size: str) -> Tuple[float, float]:
        if page_size == "LETTER":
            return self.letter_width, self.letter_height
        return self.a4_width, self.a4_height

    @staticmethod
    def mm_to_points(mm: float) -> float:
        """Convert millimeters to points."""
        return mm * 2.83465


@dataclass(frozen=True)
class BlockStyle:
    """
    Style bundle for one style key.

    Every attribute is optional; None means "use the renderer default".
    """
    font: Optional[str] = None
    font_size: Optional[float] = None
    foreground_color: Optional[RGB] = None
    background_color: Optional[RGB] = None
    line_spacing: Optional[float] = None
    padding: Optional[float] = None
    alignment: Optional[Alignment] = None

    def merged_over(self, base: "BlockStyle") -> "BlockStyle":
        """Return ``base`` with every attribute set on ``self`` taking precedence."""
        overrides = {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}
        return replace(base, **overrides)


@dataclass(frozen=True)
class StyleSheet:
    """Immutable mapping from style key to ``BlockStyle``."""
    styles: Mapping[str, BlockStyle] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "styles", MappingProxyType(dict(self.styles)))

    def with_style(self, key: str, style: BlockStyle) -> "StyleSheet":
        """Return a new sheet with ``key`` set to ``style``."""
        return self.with_styles({key: style})

    def with_styles(self, styles: Mapping[str, BlockStyle]) -> "StyleSheet":
        updated: Dict[str, BlockStyle] = dict(self.styles)
        updated.update(styles)
        return StyleSheet(updated)

    def get(self, key: str) -> Optional[BlockStyle]:
        return self.styles.get(key)

    def style_for(self, block) -> BlockStyle:
        """
        Resolve the style of a classified block.

        The sheet's entry for ``block.style_key`` is merged over the built-in
        default for that key, so a partial override keeps the other defaults.
        """
        key = block.style_key
        base = DEFAULT_STYLES.get(key, BlockStyle())
        style = self.styles.get(key)
        if style is None:
            return base
        return style.merged_over(base)


# Global style instances (singletons)
fonts = FontConfig()
font_sizes = FontSizes()
colors = Colors()
spacing = Spacing()
page_config = PageConfig()


def _heading_style(level: int) -> BlockStyle:
    return BlockStyle(
        font=fonts.bold,
        font_size=font_sizes.heading(level),
        foreground_color=colors.heading,
        padding=float(8 - level),
    )


DEFAULT_STYLES: Mapping[str, BlockStyle] = MappingProxyType({
    "normal": BlockStyle(
        font=fonts.body,
        font_size=font_sizes.body,
        foreground_color=colors.text_primary,
        line_spacing=spacing.line_gap,
        alignment="left",
    ),
    **{f"h{level}": _heading_style(level) for level in range(1, 7)},
    "code": BlockStyle(
        font=fonts.code,
        font_size=font_sizes.code,
        foreground_color=colors.text_primary,
        background_color=colors.code_bg,
        line_spacing=spacing.line_gap,
        padding=spacing.code_padding,
    ),
})


def default_stylesheet() -> StyleSheet:
    """Style sheet holding the built-in defaults."""
    return StyleSheet(DEFAULT_STYLES)
