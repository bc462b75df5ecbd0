"""占位符语法与检测器包."""

from uml_docgen.data.placeholder.base_detector import PlaceholderDetector, PlaceholderMatch
from uml_docgen.data.placeholder.content_detector import ContentPlaceholderDetector
from uml_docgen.data.placeholder.grammar import Placeholder, PlaceholderKind, parse, supported_formats
from uml_docgen.data.placeholder.hyperlink_detector import HyperlinkPlaceholderDetector

__all__ = [
    'PlaceholderDetector',
    'PlaceholderMatch',
    'ContentPlaceholderDetector',
    'HyperlinkPlaceholderDetector',
    'Placeholder',
    'PlaceholderKind',
    'parse',
    'supported_formats',
]
