"""
Storage port for the residuals engine.

The engine only talks to a MerchantStore. TableStore implements every
operation on top of three row-level primitives so that a backend only has to
say how a table is read, appended to and updated.
"""
from abc import ABC, abstractmethod
from dataclasses import fields as dataclass_fields
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

from residuals_engine.schemas import (
    Merchant,
    MonthlyRevenueEntry,
    Assignment,
    AuditIssue,
    FileUpload,
    IssueStatus,
    UploadStatus,
)

T = TypeVar("T")

MERCHANTS = "merchants"
MONTHLY_DATA = "monthly_data"
ASSIGNMENTS = "assignments"
AUDIT_ISSUES = "audit_issues"
FILE_UPLOADS = "file_uploads"

TABLES = (MERCHANTS, MONTHLY_DATA, ASSIGNMENTS, AUDIT_ISSUES, FILE_UPLOADS)


def to_record(record_type: Type[T], row: Dict[str, Any]) -> T:
    """Build a dataclass from a stored row, ignoring unknown keys."""
    known = {f.name for f in dataclass_fields(record_type)}
    return record_type(**{k: v for k, v in row.items() if k in known})


class MerchantStore(ABC):
    """Operations the reconciliation engine and HTTP layer rely on."""

    # ==================== Merchants ====================

    @abstractmethod
    def get_merchant_by_mid(self, mid: str) -> Optional[Merchant]:
        pass

    @abstractmethod
    def create_merchant(self, fields: Dict[str, Any]) -> Merchant:
        pass

    @abstractmethod
    def update_merchant(self, merchant_id: int, fields: Dict[str, Any]) -> Merchant:
        pass

    @abstractmethod
    def get_merchants(self) -> List[Merchant]:
        pass

    # ==================== Monthly Revenue ====================

    @abstractmethod
    def get_monthly_data_by_merchant(self, merchant_id: int, month: str) -> List[MonthlyRevenueEntry]:
        pass

    @abstractmethod
    def get_monthly_data(self, month: str) -> List[MonthlyRevenueEntry]:
        pass

    @abstractmethod
    def create_monthly_data(self, fields: Dict[str, Any]) -> MonthlyRevenueEntry:
        pass

    @abstractmethod
    def update_monthly_data(self, entry_id: int, fields: Dict[str, Any]) -> MonthlyRevenueEntry:
        pass

    # ==================== Assignments ====================

    @abstractmethod
    def get_assignments(self, merchant_id: int, month: str) -> List[Assignment]:
        pass

    @abstractmethod
    def create_assignment(self, fields: Dict[str, Any]) -> Assignment:
        pass

    # ==================== Audit Issues ====================

    @abstractmethod
    def create_audit_issue(self, fields: Dict[str, Any]) -> AuditIssue:
        pass

    @abstractmethod
    def get_audit_issues(self, month: str, status: Optional[str] = None) -> List[AuditIssue]:
        pass

    @abstractmethod
    def update_audit_issue(self, issue_id: int, fields: Dict[str, Any]) -> AuditIssue:
        pass

    # ==================== File Uploads ====================

    @abstractmethod
    def create_file_upload(self, fields: Dict[str, Any]) -> FileUpload:
        pass

    @abstractmethod
    def update_file_upload(self, upload_id: int, fields: Dict[str, Any]) -> FileUpload:
        pass

    @abstractmethod
    def get_file_uploads(self, month: str) -> List[FileUpload]:
        pass


class TableStore(MerchantStore):
    """
    MerchantStore over named tables of dict rows with integer ids.

    Subclasses provide _rows, _insert and _update. Updates of unknown ids
    raise KeyError; duplicate unique keys raise PersistenceError.
    """

    @abstractmethod
    def _rows(self, table: str) -> List[Dict[str, Any]]:
        """Return a snapshot of every row in a table."""
        pass

    @abstractmethod
    def _insert(self, table: str, fields: Dict[str, Any], unique_on: Tuple[str, ...] = ()) -> Dict[str, Any]:
        """
        Append a row, assigning the next id, and return it.

        Raises PersistenceError if a row already has the same values for
        every key in unique_on. The check and the append are one atomic step.
        """
        pass

    @abstractmethod
    def _update(self, table: str, row_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Apply fields to the row with row_id and return the updated row."""
        pass

    def _find(self, table: str, **criteria) -> List[Dict[str, Any]]:
        return [
            row for row in self._rows(table)
            if all(row.get(k) == v for k, v in criteria.items())
        ]

    # ==================== Merchants ====================

    def get_merchant_by_mid(self, mid: str) -> Optional[Merchant]:
        rows = self._find(MERCHANTS, mid=mid)
        return to_record(Merchant, rows[0]) if rows else None

    def create_merchant(self, fields: Dict[str, Any]) -> Merchant:
        return to_record(Merchant, self._insert(MERCHANTS, fields, unique_on=("mid",)))

    def update_merchant(self, merchant_id: int, fields: Dict[str, Any]) -> Merchant:
        return to_record(Merchant, self._update(MERCHANTS, merchant_id, fields))

    def get_merchants(self) -> List[Merchant]:
        return [to_record(Merchant, row) for row in self._rows(MERCHANTS)]

    # ==================== Monthly Revenue ====================

    def get_monthly_data_by_merchant(self, merchant_id: int, month: str) -> List[MonthlyRevenueEntry]:
        return [
            to_record(MonthlyRevenueEntry, row)
            for row in self._find(MONTHLY_DATA, merchant_id=merchant_id, month=month)
        ]

    def get_monthly_data(self, month: str) -> List[MonthlyRevenueEntry]:
        return [to_record(MonthlyRevenueEntry, row) for row in self._find(MONTHLY_DATA, month=month)]

    def create_monthly_data(self, fields: Dict[str, Any]) -> MonthlyRevenueEntry:
        row = self._insert(MONTHLY_DATA, fields, unique_on=("merchant_id", "processor_id", "month"))
        return to_record(MonthlyRevenueEntry, row)

    def update_monthly_data(self, entry_id: int, fields: Dict[str, Any]) -> MonthlyRevenueEntry:
        return to_record(MonthlyRevenueEntry, self._update(MONTHLY_DATA, entry_id, fields))

    # ==================== Assignments ====================

    def get_assignments(self, merchant_id: int, month: str) -> List[Assignment]:
        return [
            to_record(Assignment, row)
            for row in self._find(ASSIGNMENTS, merchant_id=merchant_id, month=month)
        ]

    def create_assignment(self, fields: Dict[str, Any]) -> Assignment:
        return to_record(Assignment, self._insert(ASSIGNMENTS, fields))

    # ==================== Audit Issues ====================

    def create_audit_issue(self, fields: Dict[str, Any]) -> AuditIssue:
        row = {"status": IssueStatus.OPEN.value, **fields}
        return to_record(AuditIssue, self._insert(AUDIT_ISSUES, row))

    def get_audit_issues(self, month: str, status: Optional[str] = None) -> List[AuditIssue]:
        criteria = {"month": month}
        if status is not None:
            criteria["status"] = status
        return [to_record(AuditIssue, row) for row in self._find(AUDIT_ISSUES, **criteria)]

    def update_audit_issue(self, issue_id: int, fields: Dict[str, Any]) -> AuditIssue:
        return to_record(AuditIssue, self._update(AUDIT_ISSUES, issue_id, fields))

    # ==================== File Uploads ====================

    def create_file_upload(self, fields: Dict[str, Any]) -> FileUpload:
        row = {"status": UploadStatus.PROCESSING.value, "records_processed": 0, **fields}
        return to_record(FileUpload, self._insert(FILE_UPLOADS, row))

    def update_file_upload(self, upload_id: int, fields: Dict[str, Any]) -> FileUpload:
        return to_record(FileUpload, self._update(FILE_UPLOADS, upload_id, fields))

    def get_file_uploads(self, month: str) -> List[FileUpload]:
        return [to_record(FileUpload, row) for row in self._find(FILE_UPLOADS, month=month)]
