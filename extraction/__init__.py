"""Extraction Module - language-model activity extraction."""

from extraction.oracle import (
    ExtractionOracle,
    OpenAIExtractionOracle,
    build_log_activity_tool,
    read_prompt,
)

__all__ = [
    "ExtractionOracle",
    "OpenAIExtractionOracle",
    "build_log_activity_tool",
    "read_prompt",
]
