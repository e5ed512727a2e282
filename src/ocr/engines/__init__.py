from .base import OcrProvider
from .document_ai import DocumentAiOcrProvider
from .mathpix import MathpixOcrProvider

__all__ = ["OcrProvider", "DocumentAiOcrProvider", "MathpixOcrProvider"]
