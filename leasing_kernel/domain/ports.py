"""
External collaborator ports (``leasing_kernel.domain.ports``).

The kernel consumes the insurance OCR service and document storage only
through these protocols.  Concrete adapters live with the surrounding
service layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from leasing_kernel.domain.insurance import InsuranceScanResult


@dataclass(frozen=True)
class StoredObject:
    """Location of a stored document; ``url`` may be presigned and expire."""

    url: str


class InsuranceScanner(Protocol):
    def scan(self, document_url: str) -> InsuranceScanResult:
        """Extract certificate fields from the document at ``document_url``."""
        ...


class DocumentStorage(Protocol):
    def put(self, key: str, data: bytes, content_type: str) -> StoredObject:
        ...

    def get(self, key: str) -> StoredObject:
        ...
