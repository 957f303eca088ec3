"""Ingestion Module - voice submission pipeline."""

from ingestion.orchestrator import (
    ActivityIngestionOrchestrator,
    IngestionRequest,
    new_submission_id,
)

__all__ = [
    "ActivityIngestionOrchestrator",
    "IngestionRequest",
    "new_submission_id",
]
