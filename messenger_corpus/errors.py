"""Exceptions raised by the corpus pipeline. The CLI maps all of them to exit code 1."""

from __future__ import annotations


class CorpusError(Exception):
    """Base class for every error the pipeline reports."""


class MalformedEscapeSequence(CorpusError, ValueError):
    """A run of byte escapes (or a literal span) is not valid UTF-8."""

    def __init__(self, message: str, offset: int | None = None):
        super().__init__(message)
        self.offset = offset


class SchemaError(CorpusError, ValueError):
    """A decoded export file does not have the expected shape."""


class ParticipantMismatch(CorpusError):
    """Two files of the same conversation list different participants."""


class ConfigurationError(CorpusError, ValueError):
    """An option is out of range (e.g. a test ratio outside (0, 1))."""


class UnknownConversation(CorpusError, LookupError):
    """The requested conversation is not in the archive."""
