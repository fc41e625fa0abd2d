"""
Record types for the Merchant Residuals Audit engine.

Transient records (ProcessorRecord, LeadRecord) come out of the parser;
persisted records (Merchant, MonthlyRevenueEntry, Assignment, AuditIssue,
FileUpload) are owned by the storage layer. Batch outcomes (MatchResult,
AuditSummary) are immutable values handed back to the caller.
"""
from dataclasses import dataclass, field, asdict
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class IssueType(str, Enum):
    MISSING_ASSIGNMENT = "missing_assignment"
    SPLIT_ERROR = "split_error"
    UNMATCHED_MID = "unmatched_mid"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class IssueStatus(str, Enum):
    OPEN = "open"
    RESOLVED = "resolved"
    IGNORED = "ignored"


class UploadType(str, Enum):
    PROCESSOR = "processor"
    LEAD_SHEET = "lead_sheet"


class UploadStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


# ==================== Parsed Records ====================

@dataclass
class ProcessorRecord:
    """One row of a processor revenue extract."""
    mid_raw: str
    merchant_name: str
    transactions: int = 0
    sales_amount: str = "0"
    income: str = "0"
    expenses: str = "0"
    net: str = "0"
    bps: str = "0"
    percentage: str = "0"
    rep_net: str = "0"
    approval_date: Optional[date] = None
    group_code: Optional[str] = None

    @property
    def merchant_id(self) -> str:
        """The MID exactly as it appeared in the file (trimmed)."""
        return self.mid_raw


@dataclass
class LeadRecord:
    """One row of a broker lead sheet. Absent values are empty strings."""
    mid_raw: str
    legal_name: str = ""
    dba: str = ""
    branch_number: str = ""
    status: str = ""
    status_category: str = ""
    current_processor: str = ""
    partner_name: str = ""
    sales_reps: str = ""
    assigned_users: str = ""


# ==================== Persisted Records ====================

@dataclass
class Merchant:
    """Canonical merchant keyed by normalized MID."""
    id: int
    mid: str
    legal_name: Optional[str] = None
    dba: Optional[str] = None
    branch_number: Optional[str] = None
    status: Optional[str] = None
    status_category: Optional[str] = None
    current_processor: Optional[str] = None
    partner_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class MonthlyRevenueEntry:
    """Revenue for one (merchant, processor, month)."""
    id: int
    merchant_id: int
    processor_id: int
    month: str
    transactions: int = 0
    sales_amount: str = "0"
    income: str = "0"
    expenses: str = "0"
    net: str = "0"
    bps: str = "0"
    percentage: str = "0"
    rep_net: str = "0"
    approval_date: Optional[str] = None
    group_code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Assignment:
    """Share of a merchant's monthly net allocated to a role."""
    id: int
    merchant_id: int
    month: str
    role_id: int
    percentage: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AuditIssue:
    """An inconsistency flagged for human review."""
    id: int
    merchant_id: int
    month: str
    issue_type: str
    description: str
    priority: str
    status: str = IssueStatus.OPEN.value

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class FileUpload:
    """History entry for an uploaded file."""
    id: int
    filename: str
    month: str
    upload_type: str
    processor_id: Optional[int] = None
    records_processed: int = 0
    status: str = UploadStatus.PROCESSING.value
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ==================== Batch Outcomes ====================

@dataclass(frozen=True)
class MatchResult:
    """Outcome of reconciling one file's records."""
    matched: int = 0
    created: int = 0
    updated: int = 0
    errors: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def records_processed(self) -> int:
        return self.matched + self.created + self.updated

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matched": self.matched,
            "created": self.created,
            "updated": self.updated,
            "errors": list(self.errors),
        }


@dataclass(frozen=True)
class AuditSummary:
    """Aggregate counts from a full-audit sweep of one month."""
    split_errors: int = 0
    missing_assignments: int = 0
    unmatched_mids: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "splitErrors": self.split_errors,
            "missingAssignments": self.missing_assignments,
            "unmatchedMids": self.unmatched_mids,
        }
