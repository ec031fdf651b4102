"""
Deduplication ledger: comment texts already classified in this session.
"""

from typing import Set


class DeduplicationLedger:
    """
    Append-only set of classified comment texts.

    Query with seen() before submitting a candidate; record() only after a
    non-retryable classification outcome, so a candidate still waiting on a
    rate-limit retry is picked up again by the next pass.
    Never persisted; one ledger per audit run.
    """

    def __init__(self):
        self._texts: Set[str] = set()

    def seen(self, text: str) -> bool:
        return text in self._texts

    def record(self, text: str) -> None:
        self._texts.add(text)

    def __contains__(self, text: object) -> bool:
        return text in self._texts

    def __len__(self) -> int:
        return len(self._texts)
