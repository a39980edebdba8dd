"""
Failure kinds of a refresh.

The set is closed: the views and the management command translate each kind
into their own response, nothing else escapes the refresh as a known failure.
"""


class RefreshError(Exception):
    """Base class for every known refresh failure."""


class SourceUnavailable(RefreshError):
    """One of the two external sources failed or returned a malformed payload."""

    def __init__(self, source, url, reason=None):
        self.source = source
        self.url = url
        self.reason = reason
        super().__init__(self.details)

    @property
    def details(self):
        return f"Could not fetch data from {self.source} ({self.url})"


class ValidationFailed(RefreshError):
    """A catalog record misses a required field; nothing was stored."""

    def __init__(self, details, index=None, record_name=None):
        self.details = details
        self.index = index
        self.record_name = record_name
        super().__init__(f"Validation failed for record {index}: {details}")


class PersistenceFailed(RefreshError):
    """The upsert transaction failed and was rolled back."""

    def __init__(self, reason):
        self.reason = reason
        super().__init__(f"Refresh transaction rolled back: {reason}")


class ArtifactRenderFailed(RefreshError):
    """The summary image could not be produced. Logged, never surfaced."""

    def __init__(self, path, reason):
        self.path = path
        self.reason = reason
        super().__init__(f"Could not write summary image to {path}: {reason}")
