"""Exceptions raised at the service boundary (never by the LCA core)."""


class LCAServiceError(Exception):
    """Base class for errors surfaced by the API and report collaborators."""


class IngestError(LCAServiceError):
    """An uploaded spreadsheet could not be read."""


class ReportServiceNotConfigured(LCAServiceError):
    """No API key is configured for the narrative service."""


class ReportGenerationError(LCAServiceError):
    """The narrative service failed or returned no usable content."""
