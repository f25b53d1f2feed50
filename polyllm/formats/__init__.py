"""Vendor format adapters (request building and response parsing)."""

from polyllm.formats.base import EXTRACTION_SCHEMA_NAME, FormatAdapter
from polyllm.formats.databricks import DatabricksFormat
from polyllm.formats.openai import OpenAIFormat

__all__ = [
    "EXTRACTION_SCHEMA_NAME",
    "FormatAdapter",
    "OpenAIFormat",
    "DatabricksFormat",
]
