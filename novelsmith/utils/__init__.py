from .logger import setup_logger
from .text import strip_markup, word_count

__all__ = ["setup_logger", "strip_markup", "word_count"]
