"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested input file or directory does not exist."""


class ConfigurationError(DomainError):
    """Invalid or unusable configuration, such as a broken field map."""


class FieldMapNotFoundError(ConfigurationError, FileNotFoundError):
    """The field map configuration file could not be located."""


class LedgerParseError(DomainError):
    """A source file could not be parsed as a ledger export."""

    def __init__(self, message: str, source_file: str | None = None):
        super().__init__(message)
        self.source_file = source_file


def field_map_not_found(path: str) -> str:
    """Return message for a missing field map file."""
    return f"Field map configuration not found: {path}"


def field_map_invalid(path: str, reason: str) -> str:
    """Return message for a field map that cannot be loaded."""
    return f"Invalid field map configuration '{path}': {reason}"


def malformed_xml(path: str, reason: str) -> str:
    """Return message for an XML file that is not well-formed."""
    return f"Malformed XML in '{path}': {reason}"


def unreadable_text_ledger(path: str, reason: str) -> str:
    """Return message for a text ledger that cannot be read."""
    return f"Could not read text ledger '{path}': {reason}"


def input_not_found(path: str) -> str:
    """Return message for a missing input path."""
    return f"Input not found: {path}"


def invalid_date_window(start, end) -> str:
    """Return message when a start date falls after the end date."""
    return f"Start date {start} is after end date {end}"
