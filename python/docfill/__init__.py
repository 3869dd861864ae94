from importlib.metadata import PackageNotFoundError, version

from docfill.highlight import highlight
from docfill.log import configure_logging
from docfill.models import HighlightEntry
from docfill.package import fill_docx_template, list_template_placeholders
from docfill.template.reassembler import reassemble
from docfill.template.substitution import find_placeholders, substitute

try:
    __version__ = version("docfill")
except PackageNotFoundError:
    # Running from a source checkout without an install
    __version__ = "0.0.0-dev"

__all__ = [
    "reassemble",
    "substitute",
    "highlight",
    "find_placeholders",
    "fill_docx_template",
    "list_template_placeholders",
    "HighlightEntry",
    "configure_logging",
    "__version__",
]
