"""Per-document error taxonomy for the content pipeline"""

from pathlib import Path
from typing import Optional


class PipelineError(Exception):
    """A content error that excludes one document from the build."""
    code = "PipelineError"

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        return f"{self.path}: {self.message}" if self.path else self.message


class InvalidFilename(PipelineError):
    code = "InvalidFilename"


class DuplicateSlug(PipelineError):
    code = "DuplicateSlug"


class MalformedFrontMatter(PipelineError):
    code = "MalformedFrontMatter"


class UnbalancedCodeFence(PipelineError):
    code = "UnbalancedCodeFence"


class AmbiguousReference(PipelineError):
    code = "AmbiguousReference"


class UnknownLayout(PipelineError):
    code = "UnknownLayout"


class ReadError(PipelineError):
    code = "ReadError"


class InvalidPermalink(PipelineError):
    code = "InvalidPermalink"


class PermalinkCollision(PipelineError):
    code = "PermalinkCollision"


class MissingLayout(PipelineError):
    code = "MissingLayout"


# Soft issue codes; reported without excluding the document.
UNRESOLVED_REFERENCE = "UnresolvedReference"
MISSING_LAYOUT = MissingLayout.code
