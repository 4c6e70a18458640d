"""
Batch results.

Every collection in a batch is an independent unit; its outcome is
recorded as a CollectionResult whether it succeeded or failed, and the
batch call returns all of them together.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class ExportError(Exception):
    """Base exception for export operations."""
    pass


class SchemaConflictError(ExportError):
    """Raised when a table to be created already exists."""

    def __init__(self, table_name: str):
        self.table_name = table_name
        super().__init__(f"Table {table_name} already exists.")


@dataclass
class CollectionResult:
    """Outcome of one collection (or table) within a batch."""
    name: str
    operation: str
    success: bool
    value: Optional[int] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    details: Optional[List[Dict[str, Any]]] = None
    duration_ms: float = 0.0
    exception: Optional[BaseException] = field(default=None, repr=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "operation": self.operation,
            "success": self.success,
            "duration_ms": round(self.duration_ms, 2),
        }
        if self.value is not None:
            data["value"] = self.value
        if not self.success:
            data["error"] = self.error
            data["error_type"] = self.error_type
            if self.details:
                data["details"] = self.details
        return data


@dataclass
class BatchReport:
    """Results of a batch operation over several collections."""
    operation: str
    dataset_id: str
    results: List[CollectionResult] = field(default_factory=list)

    @property
    def succeeded(self) -> List[CollectionResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> List[CollectionResult]:
        return [r for r in self.results if not r.success]

    @property
    def count(self) -> int:
        """Number of units that succeeded (tables created, collections copied...)."""
        return len(self.succeeded)

    @property
    def ok(self) -> bool:
        return not self.failed

    def get(self, name: str) -> Optional[CollectionResult]:
        for result in self.results:
            if result.name == name:
                return result
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "dataset_id": self.dataset_id,
            "ok": self.ok,
            "count": self.count,
            "failed": [r.name for r in self.failed],
            "results": [r.to_dict() for r in self.results],
        }

    def raise_for_failures(self) -> "BatchReport":
        """
        Raise if any unit failed.

        Returns:
            The report itself, when every unit succeeded

        Raises:
            BatchError: Naming every failed unit
        """
        if self.failed:
            raise BatchError(self)
        return self


class BatchError(ExportError):
    """Raised by BatchReport.raise_for_failures."""

    def __init__(self, report: BatchReport):
        self.report = report
        failures = "; ".join(f"{r.name}: {r.error}" for r in report.failed)
        super().__init__(
            f"{report.operation} failed for {len(report.failed)} of "
            f"{len(report.results)} units in {report.dataset_id}: {failures}"
        )
