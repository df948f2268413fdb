"""mdclip - web page clipper.

Converts the main article of an HTML page into a Markdown document with
templated front matter and a ready-to-save file name.
"""

from mdclip.config import Settings, settings
from mdclip.converter import Converter
from mdclip.models import ConversionOptions, ConversionResult

__version__ = "0.1.0"

__all__ = [
    "ConversionOptions",
    "ConversionResult",
    "Converter",
    "Settings",
    "__version__",
    "settings",
]
