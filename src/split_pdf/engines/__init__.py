from .base import PdfSplitEngine
from .pypdfium2_engine import Pypdfium2Engine

__all__ = ["PdfSplitEngine", "Pypdfium2Engine"]
