"""
PDF rendering of classified Portable Text blocks using ReportLab.

The renderer consumes classified blocks, derives their styled runs on every
render call, resolves block styles through a ``StyleSheet`` and lays the
result out with wrapping and pagination.

License: MIT
"""

import io
import logging
import re
from typing import Iterable, List as ListType, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field
from reportlab.pdfgen import canvas

from portabletext.errors import PortableTextError, RenderingFailureError
from portabletext.models import CodeBlock, ConcreteBlock, Heading, Paragraph, StyledRun
from portabletext.parser import WarningSink, parse_portable_text
from portabletext.runs import runs_for_block
from portabletext.styles import (
    BlockStyle,
    StyleSheet,
    colors,
    default_stylesheet,
    font_sizes,
    fonts,
    page_config,
    spacing,
)

logger = logging.getLogger(__name__)


class RenderOptions(BaseModel):
    """Page setup and document metadata."""
    page_size: Literal["A4", "LETTER"] = Field(default="A4", description="Page size")
    margin_mm: float = Field(default=page_config.default_margin_mm, ge=0, le=50,
                             description="Page margin in millimeters")
    title: Optional[str] = Field(default=None, description="Document title")
    author: Optional[str] = Field(default=None, description="Document author")


class PDFRenderer:
    """
    Renders classified blocks to PDF.

    Maintains cursor position, handles pagination, and switches on the block
    variant to pick a layout.
    """

    def __init__(self, blocks: Iterable[ConcreteBlock], stylesheet: Optional[StyleSheet] = None,
                 options: Optional[RenderOptions] = None):
        """
        Initialize renderer.

        Args:
            blocks: Classified blocks in document order
            stylesheet: Style overrides keyed by style key (defaults apply otherwise)
            options: Page setup and metadata
        """
        self.blocks = list(blocks)
        self.stylesheet = stylesheet or default_stylesheet()
        self.options = options or RenderOptions()
        self.buffer = io.BytesIO()

        self.page_width, self.page_height = page_config.size(self.options.page_size)

        margin_pts = page_config.mm_to_points(self.options.margin_mm)
        self.margin_left = margin_pts
        self.margin_right = margin_pts
        self.margin_top = margin_pts
        self.margin_bottom = margin_pts

        # Content area
        self.content_width = self.page_width - self.margin_left - self.margin_right
        self.content_height = self.page_height - self.margin_top - self.margin_bottom

        # Cursor position (y coordinate, grows downward from top)
        self.y = self.page_height - self.margin_top
        self.x = self.margin_left

        self.c = canvas.Canvas(self.buffer, pagesize=(self.page_width, self.page_height))

        if self.options.title:
            self.c.setTitle(self.options.title)
        if self.options.author:
            self.c.setAuthor(self.options.author)

    def render(self) -> bytes:
        """
        Render all blocks.

        Returns:
            PDF bytes

        Raises:
            RenderingFailureError: Drawing failed for a reason outside the error taxonomy
        """
        for block in self.blocks:
            try:
                self._render_block(block)
            except PortableTextError:
                raise
            except Exception as e:
                logger.error(f"Failed to render block '{block.key}': {e}", exc_info=True)
                raise RenderingFailureError.wrap(e, key=block.key) from e

        self.c.save()
        return self.buffer.getvalue()

    def _render_block(self, block: ConcreteBlock):
        """Render a single block based on its variant."""
        style = self.stylesheet.style_for(block)
        if isinstance(block, Heading):
            self._render_text_block(block, style, emphasize=True)
        elif isinstance(block, Paragraph):
            self._render_text_block(block, style, emphasize=False)
        elif isinstance(block, CodeBlock):
            self._render_code(block, style)
        else:
            raise RenderingFailureError(f"Unsupported block variant: {type(block).__name__}")

    def _check_page_break(self, required_height: float):
        """Start a new page if the next element would cross the bottom margin."""
        if self.y - required_height < self.margin_bottom:
            self._new_page()

    def _new_page(self):
        self.c.showPage()
        self.y = self.page_height - self.margin_top

    def _lines_that_fit(self, remaining: int, line_height: float, padding: float) -> int:
        """How many of ``remaining`` lines fit above the bottom margin (at least one)."""
        available = self.y - self.margin_bottom - 2 * padding
        return max(1, min(remaining, int(available // line_height)))

    def _font_for(self, run: StyledRun, style: BlockStyle, emphasize: bool = False) -> str:
        """Font face for a run; runs without traits use the block font."""
        attrs = run.attributes
        if not (attrs.bold or attrs.italic or attrs.monospace):
            return style.font or fonts.body
        return fonts.face(bold=attrs.bold or emphasize, italic=attrs.italic, monospace=attrs.monospace)

    def _run_width(self, run: StyledRun, style: BlockStyle, font_size: float, emphasize: bool) -> float:
        return self.c.stringWidth(run.text, self._font_for(run, style, emphasize), font_size)

    def _render_text_block(self, block: Union[Paragraph, Heading], style: BlockStyle, emphasize: bool):
        """
        Render a paragraph or heading with wrapping, alignment and padding.

        Blocks taller than the space left on a page continue on the next one;
        each page gets its own padded background.
        """
        font_size = style.font_size or font_sizes.body
        line_spacing = style.line_spacing if style.line_spacing is not None else spacing.line_gap
        padding = style.padding or 0
        line_height = font_size + line_spacing
        available_width = self.content_width - 2 * padding

        lines = self._wrap_runs(runs_for_block(block), available_width, font_size, style, emphasize)
        block_height = len(lines) * line_height + 2 * padding

        self._check_page_break(min(block_height + spacing.block_gap, self.content_height))
        self.y -= spacing.block_gap

        start = 0
        while start < len(lines):
            if start:
                self._new_page()
            count = self._lines_that_fit(len(lines) - start, line_height, padding)
            chunk_height = count * line_height + 2 * padding

            if style.background_color is not None:
                self.c.setFillColorRGB(*style.background_color)
                self.c.rect(self.x, self.y - chunk_height, self.content_width, chunk_height, fill=1, stroke=0)

            self.y -= padding

            for line_idx in range(start, start + count):
                line_runs = lines[line_idx]
                is_last_line = line_idx == len(lines) - 1
                line_width = sum(self._run_width(run, style, font_size, emphasize) for run in line_runs)

                x_offset = self.x + padding
                extra_space = 0.0
                if style.alignment == "center":
                    x_offset += (available_width - line_width) / 2
                elif style.alignment == "right":
                    x_offset += available_width - line_width
                elif style.alignment == "justify" and not is_last_line and len(line_runs) > 1:
                    extra_space = (available_width - line_width) / (len(line_runs) - 1)

                for run_idx, run in enumerate(line_runs):
                    x_offset = self._render_run(run, x_offset, self.y, font_size, style, emphasize)
                    if extra_space > 0 and run_idx < len(line_runs) - 1:
                        x_offset += extra_space

                self.y -= line_height

            self.y -= padding
            start += count

        # Reset color
        self.c.setFillColorRGB(*colors.text_primary)

    def _render_run(self, run: StyledRun, x: float, y: float, font_size: float,
                    style: BlockStyle, emphasize: bool = False) -> float:
        """
        Draw one run and return the new x position.

        Args:
            run: Styled run to draw
            x: Current x position
            y: Top of the current line
            font_size: Font size of the block
            style: Resolved block style
            emphasize: Force bold faces for runs with traits (headings)

        Returns:
            New x position after rendering
        """
        if not run.text:
            return x

        attrs = run.attributes
        font_name = self._font_for(run, style, emphasize)
        text_width = self.c.stringWidth(run.text, font_name, font_size)
        baseline = y - font_size

        color = attrs.foreground_color or style.foreground_color or colors.text_primary
        self.c.setFont(font_name, font_size)
        self.c.setFillColorRGB(*color)
        self.c.drawString(x, baseline, run.text)

        if attrs.underline or attrs.strikethrough:
            self.c.setStrokeColorRGB(*color)
            self.c.setLineWidth(max(font_size / 18.0, 0.5))
            if attrs.underline:
                self.c.line(x, baseline - 1.5, x + text_width, baseline - 1.5)
            if attrs.strikethrough:
                strike_y = baseline + font_size * 0.3
                self.c.line(x, strike_y, x + text_width, strike_y)

        if attrs.link:
            self.c.linkURL(attrs.link, (x, baseline - 2, x + text_width, baseline + font_size), relative=0)

        return x + text_width

    def _wrap_runs(self, runs: ListType[StyledRun], max_width: float, font_size: float,
                   style: BlockStyle, emphasize: bool = False) -> ListType[ListType[StyledRun]]:
        """Wrap runs across lines, splitting them at whitespace."""
        lines: ListType[ListType[StyledRun]] = []
        current_line: ListType[StyledRun] = []
        current_width = 0.0

        for run in runs:
            if run.text == "":
                continue

            tokens = [run.model_copy(update={"text": part}) for part in re.split(r'(\s+)', run.text) if part]

            for token in tokens:
                is_space = token.text.isspace()
                token_width = self._run_width(token, style, font_size, emphasize)

                if token_width == 0:
                    continue

                if current_width + token_width > max_width and current_line:
                    lines.append(current_line)
                    current_line = []
                    current_width = 0.0

                if is_space and not current_line:
                    continue

                current_line.append(token)
                current_width += token_width

        if current_line:
            lines.append(current_line)

        return lines if lines else [[]]

    def _render_code(self, code_block: CodeBlock, style: BlockStyle):
        """
        Render a code block with an optional language label.

        Long code continues on the following pages, one background box per page.
        """
        font_size = style.font_size or font_sizes.code
        line_spacing = style.line_spacing if style.line_spacing is not None else spacing.line_gap
        padding = style.padding if style.padding is not None else spacing.code_padding
        font_name = style.font or fonts.code

        lines = code_block.code.split('\n')
        line_height = font_size + line_spacing
        block_height = len(lines) * line_height + padding * 2
        label_height = font_sizes.label + spacing.label_gap * 2 if code_block.language else 0

        self._check_page_break(min(block_height + label_height + spacing.block_gap, self.content_height))
        self.y -= spacing.block_gap

        if code_block.language:
            self._render_language_label(code_block.language)

        start = 0
        while start < len(lines):
            if start:
                self._new_page()
            count = self._lines_that_fit(len(lines) - start, line_height, padding)
            box_height = count * line_height + padding * 2

            # Background with rounded corners
            self.c.setFillColorRGB(*(style.background_color or colors.code_bg))
            self.c.setStrokeColorRGB(*colors.code_border)
            self.c.setLineWidth(0.5)
            self.c.roundRect(self.x, self.y - box_height, self.content_width, box_height,
                             6, fill=1, stroke=1)  # 6pt corner radius

            # Code text
            self.c.setFillColorRGB(*(style.foreground_color or colors.text_primary))
            self.c.setFont(font_name, font_size)

            text_y = self.y - padding - font_size
            for line in lines[start:start + count]:
                self.c.drawString(self.x + padding, text_y, line)
                text_y -= line_height

            self.y -= box_height
            start += count

    def _render_language_label(self, language: str):
        label_width = self.c.stringWidth(language, fonts.label, font_sizes.label) + spacing.base * 2
        label_height = font_sizes.label + spacing.label_gap

        self.c.setFillColorRGB(*colors.label_bg)
        self.c.roundRect(self.x, self.y - label_height, label_width, label_height, 4, fill=1, stroke=0)
        self.c.setFillColorRGB(*colors.text_muted)
        self.c.setFont(fonts.label, font_sizes.label)
        self.c.drawString(self.x + spacing.base, self.y - font_sizes.label, language)

        self.y -= label_height + spacing.label_gap


def render_blocks(blocks: Iterable[ConcreteBlock], stylesheet: Optional[StyleSheet] = None,
                  options: Optional[RenderOptions] = None) -> bytes:
    """
    Render classified blocks to PDF bytes.

    Args:
        blocks: Classified blocks
        stylesheet: Style sheet (defaults when omitted)
        options: Page setup and metadata

    Returns:
        PDF bytes
    """
    renderer = PDFRenderer(blocks, stylesheet=stylesheet, options=options)
    return renderer.render()


def render_document(json_text: Union[str, bytes], stylesheet: Optional[StyleSheet] = None,
                    options: Optional[RenderOptions] = None,
                    on_warning: Optional[WarningSink] = None) -> Tuple[ListType[ConcreteBlock], bytes]:
    """
    Parse Portable Text JSON and render it.

    Returns:
        The classified blocks and the PDF bytes
    """
    blocks = parse_portable_text(json_text, on_warning=on_warning)
    return blocks, render_blocks(blocks, stylesheet=stylesheet, options=options)
