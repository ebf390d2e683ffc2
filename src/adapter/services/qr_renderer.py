"""ReportLab QR Renderer Implementation

Renders verification links with ReportLab's QR barcode widget.
"""

from reportlab.graphics import renderPDF, renderSVG
from reportlab.graphics.barcode.qr import QrCodeWidget
from reportlab.graphics.shapes import Drawing

from src.app.services.qr_renderer import QrFormat, QrRenderer


class ReportLabQrRenderer(QrRenderer):
    """
    ReportLab implementation of QrRenderer

    The widget is scaled to a square drawing of ``size`` points.
    """

    def render(self, content: str, fmt: QrFormat = QrFormat.SVG, size: int = 200) -> bytes:
        if not content:
            raise ValueError("QR content must not be empty")

        widget = QrCodeWidget(content)
        x0, y0, x1, y1 = widget.getBounds()
        width, height = x1 - x0, y1 - y0

        drawing = Drawing(size, size, transform=[size / width, 0, 0, size / height, 0, 0])
        drawing.add(widget)

        if QrFormat(fmt) == QrFormat.PDF:
            return renderPDF.drawToString(drawing)
        return renderSVG.drawToString(drawing).encode("utf-8")
