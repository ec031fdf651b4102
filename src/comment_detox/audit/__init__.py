"""
Incremental audit pipeline.

Main components:
- ledger: session-scoped deduplication of classified texts
- pagination: scroll-and-measure growth detection
- orchestrator: the scan / classify / paginate control loop
- session: thread-confined controller used by the CLI and the API
"""

from .ledger import DeduplicationLedger
from .orchestrator import (
    STATUS_CANCELLED,
    STATUS_END_REACHED,
    STATUS_NOTHING_VISIBLE,
    STATUS_PASS_COMPLETE,
    AuditOrchestrator,
)
from .pagination import PaginationController
from .session import AuditSession

__all__ = [
    "DeduplicationLedger",
    "PaginationController",
    "AuditOrchestrator",
    "AuditSession",
    "STATUS_CANCELLED",
    "STATUS_END_REACHED",
    "STATUS_NOTHING_VISIBLE",
    "STATUS_PASS_COMPLETE",
]
