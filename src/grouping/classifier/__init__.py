from .base import ClassifierProvider
from .openai_provider import OpenAiClassifierProvider

__all__ = ["ClassifierProvider", "OpenAiClassifierProvider"]
