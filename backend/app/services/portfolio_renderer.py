"""
Portfolio PDF rendering on top of reportlab platypus

The assembler feeds this renderer one project at a time; the renderer only
turns already-resolved data (text, image bytes) into flowables and finally
writes the PDF.
"""

from dataclasses import dataclass
from io import BytesIO
from typing import Callable, List, Optional, BinaryIO
from xml.sax.saxutils import escape, quoteattr

from PIL import Image as PILImage
from reportlab.lib.colors import HexColor
from reportlab.lib.enums import TA_CENTER, TA_LEFT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas as rl_canvas
from reportlab.platypus import (
    SimpleDocTemplate, Paragraph, Spacer, PageBreak, Flowable,
    Image as RLImage,
)
from reportlab.platypus.flowables import HRFlowable

from app.core.exceptions import DocumentInitError


PAGE_MARGIN = 40
MAX_IMAGE_HEIGHT = 380
ERROR_RED = "#e74c3c"
FOOTER_GREY = "#666666"

# Everything Pillow raises for bytes it cannot decode (corrupt chunks raise
# SyntaxError, oversized headers DecompressionBombError)
IMAGE_DECODE_ERRORS = (OSError, ValueError, SyntaxError, PILImage.DecompressionBombError)


@dataclass(frozen=True)
class StyleProfile:
    """Named color/typeface bundle for one portfolio look"""
    key: str
    primary_color: str
    accent_color: str
    typeface: str
    bold_typeface: str


class SectionMarker(Flowable):
    """Zero-size flowable that reports the page it lands on"""

    def __init__(self, on_page: Callable[[int], None]):
        super().__init__()
        self._on_page = on_page

    def wrap(self, availWidth, availHeight):
        return 0, 0

    def draw(self):
        self._on_page(self.canv.getPageNumber())


def footer_canvas_factory(footer_text: str, font_name: str, font_size: float):
    """
    Canvas class that stamps `footer_text` at the bottom of the last page.

    Page states are kept until save() so the last page is known.
    """

    class FooterCanvas(rl_canvas.Canvas):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            self._saved_page_states = []

        def showPage(self):
            self._saved_page_states.append(dict(self.__dict__))
            self._startPage()

        def save(self):
            page_count = len(self._saved_page_states)
            for number, state in enumerate(self._saved_page_states, start=1):
                self.__dict__.update(state)
                if number == page_count:
                    self.saveState()
                    self.setFont(font_name, font_size)
                    self.setFillColor(HexColor(FOOTER_GREY))
                    self.drawCentredString(self._pagesize[0] / 2.0, PAGE_MARGIN, footer_text)
                    self.restoreState()
                super().showPage()
            super().save()

    return FooterCanvas


class PortfolioRenderer:
    """Builds the flowable story for one portfolio and writes it as PDF"""

    def __init__(
        self,
        output: BinaryIO,
        style: StyleProfile,
        image_width: int,
        footer_text: str,
        base_font_size: int = 10,
    ):
        try:
            for font in (style.typeface, style.bold_typeface):
                pdfmetrics.getFont(font)
            self.primary = HexColor(style.primary_color)
            self.accent = HexColor(style.accent_color)
            self.doc = SimpleDocTemplate(
                output,
                pagesize=A4,
                leftMargin=PAGE_MARGIN,
                rightMargin=PAGE_MARGIN,
                topMargin=PAGE_MARGIN,
                bottomMargin=PAGE_MARGIN + 20,
                title="ShareCase Portfolio",
            )
        except (KeyError, ValueError) as e:
            raise DocumentInitError(f"Failed to initialize portfolio document: {e}") from e

        self.output = output
        self.style = style
        self.image_width = image_width
        self.footer_text = footer_text
        self.base_font_size = base_font_size
        self.header_font_size = base_font_size + 2
        self.story: List[Flowable] = []
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        s = self.style
        self.styles.add(ParagraphStyle(
            name='PortfolioName',
            parent=self.styles['Normal'],
            fontName=s.bold_typeface,
            fontSize=28,
            leading=34,
            textColor=self.primary,
            alignment=TA_CENTER,
        ))
        self.styles.add(ParagraphStyle(
            name='PortfolioContact',
            parent=self.styles['Normal'],
            fontName=s.typeface,
            fontSize=12,
            leading=16,
            textColor=self.accent,
            alignment=TA_CENTER,
        ))
        self.styles.add(ParagraphStyle(
            name='SectionHeading',
            parent=self.styles['Normal'],
            fontName=s.bold_typeface,
            fontSize=22,
            leading=28,
            textColor=self.primary,
            spaceAfter=8,
        ))
        self.styles.add(ParagraphStyle(
            name='ProjectTitle',
            parent=self.styles['Normal'],
            fontName=s.bold_typeface,
            fontSize=self.header_font_size + 8,
            leading=self.header_font_size + 12,
            textColor=self.primary,
            spaceAfter=8,
        ))
        self.styles.add(ParagraphStyle(
            name='FieldLabel',
            parent=self.styles['Normal'],
            fontName=s.bold_typeface,
            fontSize=self.header_font_size,
            leading=self.header_font_size + 4,
            textColor=self.accent,
            alignment=TA_LEFT,
        ))
        self.styles.add(ParagraphStyle(
            name='FieldValue',
            parent=self.styles['Normal'],
            fontName=s.typeface,
            fontSize=self.base_font_size,
            leading=self.base_font_size + 4,
            leftIndent=10,
            spaceAfter=6,
        ))
        self.styles.add(ParagraphStyle(
            name='ImageNotice',
            parent=self.styles['Normal'],
            fontName=s.typeface,
            fontSize=self.base_font_size,
            leading=self.base_font_size + 4,
            textColor=HexColor(ERROR_RED),
            spaceAfter=6,
        ))
        self.styles.add(ParagraphStyle(
            name='EmptyNotice',
            parent=self.styles['Normal'],
            fontName=s.typeface,
            fontSize=self.base_font_size + 2,
            leading=self.base_font_size + 6,
            alignment=TA_CENTER,
        ))

    @staticmethod
    def _text(value: str) -> str:
        return escape(value).replace("\n", "<br/>")

    # ========== Story building ==========

    def add_header(self, name: str, email: str, linkedin_url: Optional[str]) -> None:
        self.story.append(Paragraph(self._text(name), self.styles['PortfolioName']))
        self.story.append(Spacer(1, 4))
        self.story.append(Paragraph(self._text(email), self.styles['PortfolioContact']))
        if linkedin_url:
            self.story.append(Spacer(1, 4))
            self.story.append(Paragraph(
                f'<a href={quoteattr(linkedin_url)}>LinkedIn: {self._text(linkedin_url)}</a>',
                self.styles['PortfolioContact'],
            ))
        self.story.append(Spacer(1, 12))
        self.story.append(HRFlowable(width="100%", thickness=2, color=self.primary, spaceAfter=12))
        self.story.append(Paragraph("My Projects", self.styles['SectionHeading']))

    def add_empty_notice(self, text: str) -> None:
        self.story.append(Paragraph(self._text(text), self.styles['EmptyNotice']))

    def start_project(self, new_page: bool, on_page: Callable[[int], None]) -> None:
        if new_page:
            self.story.append(PageBreak())
        self.story.append(SectionMarker(on_page))

    def add_project_title(self, title: str) -> None:
        self.story.append(Paragraph(self._text(title), self.styles['ProjectTitle']))

    def add_image(self, data: bytes) -> None:
        """
        Embed raw image bytes scaled to the configured width.

        The image is fully decoded here so that unreadable bytes fail now
        and not inside build(). Raises one of IMAGE_DECODE_ERRORS.
        """
        with PILImage.open(BytesIO(data)) as img:
            img.verify()
        with PILImage.open(BytesIO(data)) as img:
            img.load()
            px_width, px_height = img.size
            if img.format not in ("JPEG", "PNG"):
                # reportlab embeds JPEG directly; anything else goes in as PNG
                converted = BytesIO()
                img.convert("RGBA").save(converted, format="PNG")
                data = converted.getvalue()
        if not px_width or not px_height:
            raise ValueError("image has no dimensions")

        width = float(self.image_width)
        height = width * px_height / px_width
        if height > MAX_IMAGE_HEIGHT:
            width = width * MAX_IMAGE_HEIGHT / height
            height = float(MAX_IMAGE_HEIGHT)

        image = RLImage(BytesIO(data), width=width, height=height)
        image.hAlign = 'CENTER'
        self.story.append(image)
        self.story.append(Spacer(1, 8))

    def add_image_notice(self, text: str) -> None:
        self.story.append(Paragraph(self._text(text), self.styles['ImageNotice']))

    def add_field(self, label: str, value: str) -> None:
        self.story.append(Paragraph(self._text(label), self.styles['FieldLabel']))
        self.story.append(Paragraph(self._text(value), self.styles['FieldValue']))

    # ========== Output ==========

    def build(self) -> None:
        """Lay out the story and write the finished PDF to the output"""
        self.doc.build(
            self.story,
            canvasmaker=footer_canvas_factory(
                self.footer_text, self.style.typeface, self.base_font_size - 1
            ),
        )
