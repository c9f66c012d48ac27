"""
ruletree domain types.

File: src/ruletree/domain/__init__.py

Purpose
- Value types shared by the engine and its hosts: the status lattice, immutable
  results, rule descriptors and the structured validation error.

Non-functional requirements
- No IO or logging side effects at import time.
"""

from ruletree.domain.errors import NodeAttachmentError, ValidationError
from ruletree.domain.models import (
    AUTHORITATIVE_STATUSES,
    TERMINAL_STATUSES,
    Guard,
    JSONScalar,
    JSONValue,
    RuleBody,
    RuleSpec,
    Status,
    ValidationResult,
)

__all__ = [
    "AUTHORITATIVE_STATUSES",
    "Guard",
    "JSONScalar",
    "JSONValue",
    "NodeAttachmentError",
    "RuleBody",
    "RuleSpec",
    "Status",
    "TERMINAL_STATUSES",
    "ValidationError",
    "ValidationResult",
]
