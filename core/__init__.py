"""Core module - shared runtime for the activity ingestion service.

Configuration, the error taxonomy, structured logging, metrics and the
audit trail used by every pipeline component.
"""

__version__ = "1.0.0"
