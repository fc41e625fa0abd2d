"""
Residuals Engine - Core upload, reconciliation and audit modules.
"""
from .currency import normalize_currency
from .mid import normalize_mid, validate_mid
from .io import DataSourceLoader, ProcessorExtractLoader, LeadSheetLoader, locate_header_row
from .mappings import SourceMapping, PROCESSOR_MAPPING, LEAD_SHEET_MAPPING, apply_source_mapping
from .normalize import parse_processor_file, parse_lead_sheet
from .reconcile import ReconciliationEngine
from .rules import RuleContext, Rule, RuleRegistry, default_registry, check_merchant_month
from .metrics import calculate_monthly_stats
from .canonical_fields import CanonicalField
from .errors import FormatError, ValidationError, PersistenceError
from .schemas import (
    ProcessorRecord,
    LeadRecord,
    Merchant,
    MonthlyRevenueEntry,
    Assignment,
    AuditIssue,
    FileUpload,
    MatchResult,
    AuditSummary,
)

__all__ = [
    "normalize_currency",
    "normalize_mid",
    "validate_mid",
    "DataSourceLoader",
    "ProcessorExtractLoader",
    "LeadSheetLoader",
    "locate_header_row",
    "SourceMapping",
    "PROCESSOR_MAPPING",
    "LEAD_SHEET_MAPPING",
    "apply_source_mapping",
    "parse_processor_file",
    "parse_lead_sheet",
    "ReconciliationEngine",
    "RuleContext",
    "Rule",
    "RuleRegistry",
    "default_registry",
    "check_merchant_month",
    "calculate_monthly_stats",
    "CanonicalField",
    "FormatError",
    "ValidationError",
    "PersistenceError",
    "ProcessorRecord",
    "LeadRecord",
    "Merchant",
    "MonthlyRevenueEntry",
    "Assignment",
    "AuditIssue",
    "FileUpload",
    "MatchResult",
    "AuditSummary",
]
