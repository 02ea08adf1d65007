"""Parser package exports."""

from .classify import form_purpose_for, image_context_for, page_type_for, section_type_for
from .content import extract_content
from .forms import extract_forms
from .html_parser import HTMLParser, HTMLParserConfig, ParsedPage, extract_structured_data
from .media import extract_documents, extract_images, extract_videos
from .metadata import extract_metadata

__all__ = [
    "HTMLParser",
    "HTMLParserConfig",
    "ParsedPage",
    "extract_content",
    "extract_documents",
    "extract_forms",
    "extract_images",
    "extract_metadata",
    "extract_structured_data",
    "extract_videos",
    "form_purpose_for",
    "image_context_for",
    "page_type_for",
    "section_type_for",
]
