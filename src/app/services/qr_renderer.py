"""QR Renderer Interface

Defines the contract for rendering verification links as QR code images.
"""

from abc import ABC, abstractmethod
from enum import Enum


class QrFormat(str, Enum):
    SVG = "svg"
    PDF = "pdf"


QR_MEDIA_TYPES = {
    QrFormat.SVG: "image/svg+xml",
    QrFormat.PDF: "application/pdf",
}


class QrRenderer(ABC):
    """
    Abstract QR code renderer

    Implementations must be deterministic for a given content, format and size.
    """

    @abstractmethod
    def render(self, content: str, fmt: QrFormat = QrFormat.SVG, size: int = 200) -> bytes:
        """
        Render ``content`` as a QR code

        Args:
            content: Text to encode (the DGII verification URL)
            fmt: Output format
            size: Width and height in points

        Returns:
            Encoded image as bytes
        """
        pass
