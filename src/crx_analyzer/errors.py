"""
Analysis errors
Every fatal condition raised by the analysis pipeline derives from AnalysisError
"""


class AnalysisError(Exception):
    """Base class for errors that abort an extension analysis"""


class InvalidArchive(AnalysisError):
    """Package bytes (after CRX header stripping) are not a readable ZIP archive"""


class ManifestNotFound(AnalysisError):
    """The archive has no manifest.json entry"""


class ManifestParseError(AnalysisError):
    """manifest.json exists but is not a valid JSON object"""


class EntryReadError(AnalysisError):
    """A single archive entry could not be read or decoded"""

    def __init__(self, path, reason=None):
        self.path = path
        message = f"Failed to read {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
