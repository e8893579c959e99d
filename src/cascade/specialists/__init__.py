"""Non-worker collaborators: reasoning, context search, writer and style validator.

Re-exports here provide a shorter import path; __all__ documents the public API.
"""

from .reasoning import parse_reasoning
from .service import Specialists
from .style import apply_quick_fixes

__all__ = ["Specialists", "apply_quick_fixes", "parse_reasoning"]
