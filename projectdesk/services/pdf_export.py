"""
HTML → PDF export for quotations and developer documentation.

The HTML is parsed with BeautifulSoup and mapped onto reportlab platypus
flowables, giving a vector PDF. If that mapping fails the document is
rebuilt from its plain text so the user still gets a file.
"""

import asyncio
from io import BytesIO
from typing import List, Optional
from xml.sax.saxutils import escape

from bs4 import BeautifulSoup, NavigableString, Tag
from reportlab.lib.enums import TA_LEFT
from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import (
    SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle,
    ListFlowable, ListItem, Preformatted,
)

from projectdesk.core.exceptions import PDFExportError
from projectdesk.core.logging_config import logger


# Decorative markers the document templates use; the built-in fonts have no glyphs for them
EMOJI_MARKERS = ("📌", "✅", "🔷", "🔹", "1️⃣", "2️⃣", "3️⃣")

BLOCK_TAGS = {"h1", "h2", "h3", "h4", "p", "ul", "ol", "table", "pre", "blockquote", "hr"}

INLINE_TAGS = {
    "b": ("<b>", "</b>"),
    "strong": ("<b>", "</b>"),
    "i": ("<i>", "</i>"),
    "em": ("<i>", "</i>"),
    "u": ("<u>", "</u>"),
    "code": ('<font name="Courier">', "</font>"),
}


def replace_unprintable_markers(html: str) -> str:
    for marker in EMOJI_MARKERS:
        html = html.replace(marker, " ")
    return html.replace("₹", "Rs. ")


def to_base_font_charset(text: str) -> str:
    """Replace characters the standard PDF fonts cannot encode"""
    return text.encode("cp1252", "replace").decode("cp1252")


class HTMLToPDFConverter:
    """Stateless converter; one instance is shared by the whole process"""

    def __init__(self):
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        self.styles.add(ParagraphStyle(
            name='DocH1',
            parent=self.styles['Normal'],
            fontSize=18,
            leading=22,
            textColor=HexColor('#1a1a1a'),
            spaceBefore=6,
            spaceAfter=10,
            fontName='Helvetica-Bold',
            keepWithNext=True
        ))
        self.styles.add(ParagraphStyle(
            name='DocH2',
            parent=self.styles['Normal'],
            fontSize=16,
            leading=20,
            textColor=HexColor('#2c3e50'),
            spaceBefore=10,
            spaceAfter=8,
            fontName='Helvetica-Bold',
            keepWithNext=True
        ))
        self.styles.add(ParagraphStyle(
            name='DocH3',
            parent=self.styles['Normal'],
            fontSize=14,
            leading=18,
            textColor=HexColor('#34495e'),
            spaceBefore=8,
            spaceAfter=6,
            fontName='Helvetica-Bold',
            keepWithNext=True
        ))
        self.styles.add(ParagraphStyle(
            name='DocBody',
            parent=self.styles['Normal'],
            fontSize=11,
            leading=14,
            textColor=HexColor('#333333'),
            spaceAfter=6,
            alignment=TA_LEFT,
            fontName='Helvetica'
        ))
        self.styles.add(ParagraphStyle(
            name='DocCode',
            parent=self.styles['Normal'],
            fontSize=9,
            leading=11,
            fontName='Courier',
            backColor=HexColor('#f5f5f5'),
            leftIndent=12,
            spaceAfter=6
        ))
        self.styles.add(ParagraphStyle(
            name='DocTableCell',
            parent=self.styles['Normal'],
            fontSize=10,
            leading=12,
            fontName='Helvetica'
        ))

    # ========== HTML walking ==========

    def _inline_markup(self, node) -> str:
        """Paragraph markup for the inline content of `node`"""
        if isinstance(node, NavigableString):
            return escape(str(node))
        if not isinstance(node, Tag):
            return ""
        if node.name == "br":
            return "<br/>"
        inner = "".join(self._inline_markup(child) for child in node.children)
        if node.name in INLINE_TAGS:
            start, end = INLINE_TAGS[node.name]
            return f"{start}{inner}{end}" if inner.strip() else inner
        return inner

    def _paragraph(self, node, style: str) -> Optional[Paragraph]:
        markup = " ".join(self._inline_markup(node).split())
        if not markup:
            return None
        return Paragraph(markup, self.styles[style])

    def _list(self, node: Tag) -> Optional[ListFlowable]:
        items = []
        for li in node.find_all("li", recursive=False):
            nested = [child for child in li.children if isinstance(child, Tag) and child.name in ("ul", "ol")]
            for child in nested:
                child.extract()
            flowables = []
            para = self._paragraph(li, 'DocBody')
            if para is not None:
                flowables.append(para)
            for child in nested:
                sub = self._list(child)
                if sub is not None:
                    flowables.append(sub)
            if flowables:
                items.append(ListItem(flowables, leftIndent=12))
        if not items:
            return None
        if node.name == "ol":
            return ListFlowable(items, bulletType='1', leftIndent=18)
        return ListFlowable(items, bulletType='bullet', start='•', leftIndent=18)

    def _table(self, node: Tag) -> Optional[Table]:
        rows = []
        for tr in node.find_all("tr"):
            cells = tr.find_all(["th", "td"])
            row = [self._paragraph(cell, 'DocTableCell') or "" for cell in cells]
            if row:
                rows.append(row)
        if not rows:
            return None
        width = max(len(r) for r in rows)
        rows = [r + [""] * (width - len(r)) for r in rows]
        table = Table(rows, hAlign='LEFT', colWidths=[(A4[0] - 1.5 * inch) / width] * width)
        table.setStyle(TableStyle([
            ('GRID', (0, 0), (-1, -1), 0.5, HexColor('#cccccc')),
            ('BACKGROUND', (0, 0), (-1, 0), HexColor('#f3f4f6')),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ]))
        return table

    def _block(self, node: Tag) -> List:
        name = node.name
        if name in ("h1", "h2", "h3", "h4"):
            style = {"h1": 'DocH1', "h2": 'DocH2'}.get(name, 'DocH3')
            para = self._paragraph(node, style)
            return [para] if para else []
        if name in ("p", "blockquote"):
            para = self._paragraph(node, 'DocBody')
            return [para] if para else []
        if name in ("ul", "ol"):
            lst = self._list(node)
            return [lst, Spacer(1, 4)] if lst else []
        if name == "table":
            table = self._table(node)
            return [table, Spacer(1, 8)] if table else []
        if name == "pre":
            text = node.get_text()
            return [Preformatted(text, self.styles['DocCode'])] if text.strip() else []
        if name == "hr":
            return [Spacer(1, 12)]
        return self._container(node)

    def _container(self, node: Tag) -> List:
        """Flowables for a container element, grouping loose inline content into paragraphs"""
        flowables = []
        pending = []

        def flush():
            if pending:
                wrapper = BeautifulSoup("<span></span>", "html.parser").span
                for piece in pending:
                    wrapper.append(piece)
                para = self._paragraph(wrapper, 'DocBody')
                if para is not None:
                    flowables.append(para)
                pending.clear()

        for child in list(node.children):
            if isinstance(child, Tag) and (child.name in BLOCK_TAGS or child.find(list(BLOCK_TAGS))):
                flush()
                flowables.extend(self._block(child))
            elif isinstance(child, (Tag, NavigableString)):
                pending.append(child.extract() if isinstance(child, Tag) else NavigableString(str(child)))
        flush()
        return flowables

    def _to_flowables(self, html: str) -> List:
        soup = BeautifulSoup(replace_unprintable_markers(html), "html.parser")
        for element in soup(["style", "script"]):
            element.decompose()
        return self._container(soup)

    def _plain_text_flowables(self, html: str) -> List:
        soup = BeautifulSoup(replace_unprintable_markers(html), "html.parser")
        for element in soup(["style", "script"]):
            element.decompose()
        text = soup.get_text(separator="\n", strip=True)
        return [Paragraph(escape(to_base_font_charset(line)), self.styles['DocBody']) for line in text.splitlines() if line.strip()]

    # ========== Output ==========

    def _build(self, flowables: List, title: Optional[str]) -> bytes:
        if not flowables:
            flowables = [Paragraph(" ", self.styles['DocBody'])]
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=0.75 * inch,
            rightMargin=0.75 * inch,
            topMargin=0.75 * inch,
            bottomMargin=0.75 * inch,
            title=title or "",
        )
        doc.build(flowables)
        return buffer.getvalue()

    def convert(self, html: str, title: Optional[str] = None) -> bytes:
        """Render `html` to PDF bytes, falling back to plain text layout"""
        try:
            return self._build(self._to_flowables(html), title)
        except Exception as e:
            logger.warning(f"Structured PDF layout failed, using plain text: {type(e).__name__}: {e}")

        try:
            return self._build(self._plain_text_flowables(html), title)
        except Exception as e:
            logger.log_failure(e, operation="pdf_export", title=title)
            raise PDFExportError(f"Could not export '{title or 'document'}' to PDF: {e}") from e


pdf_converter = HTMLToPDFConverter()


def html_to_pdf(html: str, title: Optional[str] = None) -> bytes:
    return pdf_converter.convert(html, title=title)


async def html_to_pdf_async(html: str, title: Optional[str] = None) -> bytes:
    return await asyncio.to_thread(pdf_converter.convert, html, title)
