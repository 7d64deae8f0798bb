"""
Error taxonomy for the recruiter pipeline.

Every condition below is recovered at the turn boundary. Only the exception
classes are ever raised; the remaining kinds are reported as values.
"""
from enum import Enum


class ErrorKind(str, Enum):
    MALFORMED_HISTORY = "MalformedHistory"
    TRUNCATION_BOUNDARY = "TruncationBoundary"
    TOOL_EXECUTION_DENIED = "ToolExecutionDenied"
    MISSING_PREREQUISITE = "MissingPrerequisite"
    PROVIDER_FAILURE = "ProviderFailure"
    PARSE_FAILURE = "ParseFailure"


class RecruiterError(Exception):
    """Base class for errors raised inside a turn."""
    kind: ErrorKind = ErrorKind.PROVIDER_FAILURE


class ProviderFailure(RecruiterError, ConnectionError):
    """The model or transcription provider could not be reached or answered garbage."""
    kind = ErrorKind.PROVIDER_FAILURE


class ParseFailure(RecruiterError, ValueError):
    """A structured payload (results marker, generated JSON) could not be parsed."""
    kind = ErrorKind.PARSE_FAILURE
