"""
Source-to-canonical field mappings for the Merchant Residuals Audit engine.

This module is the ONLY place where raw source header spellings should appear.
All other modules use CanonicalField enums exclusively.

Mappings define how to transform raw source rows into canonical format:
1. Header resolution (accepted spellings -> canonical field), resolved once per column
2. Value transformations (currency cleanup, integer coercion, defaults)
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Callable, Optional, Any, Iterable
import re
import pandas as pd

from .canonical_fields import CanonicalField, MONEY_FIELDS, RAW_STRING_FIELDS
from .currency import normalize_currency


# ==================== Raw Source Header Spellings ====================
# These are the ONLY references to raw source header names in the entire codebase

class ProcessorSourceColumns:
    """Header spellings seen in processor revenue extracts."""
    MERCHANT_ID = "Merchant ID"
    MID = "MID"
    MERCHANT_ID_UNDERSCORE = "Merchant_ID"
    MERCHANT_ID_NO_SPACE = "MerchantID"
    MERCHANT = "Merchant"
    MERCHANT_NAME = "Merchant Name"
    DBA = "DBA"
    TRANSACTIONS = "Transactions"
    TOTAL_TRANSACTIONS = "Total Transactions"
    SALES_AMOUNT = "Sales Amount"
    INCOME = "Income"
    EXPENSES = "Expenses"
    NET = "Net"
    BPS = "BPS"
    PERCENTAGE = "%"
    AGENT_NET = "Agent Net"
    APPROVAL_DATE = "Approval Date"
    GROUP = "Group"
    GROUP_CODE = "Group Code"


class LeadSheetSourceColumns:
    """Header spellings used by broker lead-sheet exports."""
    EXISTING_MID = "Existing MID"
    MID = "MID"
    LEGAL_NAME = "Legal Name"
    DBA = "DBA"
    PARTNER_BRANCH_NUMBER = "Partner Branch Number"
    BRANCH_NUMBER = "Branch Number"
    STATUS = "Status"
    STATUS_CATEGORY = "Status Category"
    CURRENT_PROCESSOR = "Current Processor"
    PARTNER_NAME = "Partner Name"
    SALES_REPS = "Sales Reps"
    ASSIGNED_USERS = "Assigned Users"


# ==================== Value Transforms ====================

_LEADING_INT = re.compile(r"[+-]?\d+")


def parse_transaction_count(value: Any) -> int:
    """Integer transaction count; anything unparseable becomes 0."""
    if value is None:
        return 0
    match = _LEADING_INT.match(str(value).strip().replace(",", ""))
    return int(match.group()) if match else 0


def raw_or_zero(value: Any) -> str:
    """Keep the raw string, defaulting empty cells to "0"."""
    return value if value else "0"


def blank_to_none(value: Any) -> Optional[str]:
    return value if value else None


def parse_approval_date(value: Any) -> Optional[date]:
    """Parse an approval date; empty or unparseable values become None."""
    if not value:
        return None
    parsed = pd.to_datetime(value, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.date()


# ==================== Source Mapping Configuration ====================

@dataclass
class SourceMapping:
    """
    Complete mapping configuration for a delimited source.

    Defines:
    - Source name
    - Accepted header spellings per canonical field, in priority order
    - Per-field value transforms

    Example usage in normalize.py:
        >>> columns = PROCESSOR_MAPPING.resolve_columns(df.columns)
        >>> df_canonical = apply_source_mapping(df_raw, PROCESSOR_MAPPING)
    """

    name: str
    """Source name (e.g., 'processor_extract')"""

    synonyms: Dict[CanonicalField, List[str]]
    """Accepted header spellings for each canonical field, highest priority first"""

    transforms: Dict[CanonicalField, Callable[[Any], Any]] = field(default_factory=dict)
    """Optional per-value transform for a canonical field"""

    @property
    def fields(self) -> List[CanonicalField]:
        return list(self.synonyms.keys())

    def resolve_field(self, header: Any) -> Optional[CanonicalField]:
        """
        Map a single header name to its canonical field.

        Matching is exact and case-sensitive on the trimmed header.
        Returns None for headers this source does not know about.
        """
        name = str(header).strip()
        for canonical_field, spellings in self.synonyms.items():
            if name in spellings:
                return canonical_field
        return None

    def resolve_columns(self, headers: Iterable[Any]) -> Dict[CanonicalField, Any]:
        """
        Resolve a header row once, returning {canonical field: source column}.

        When several columns resolve to the same field, the column whose
        spelling comes first in the synonym list wins.
        """
        by_name = {}
        for header in headers:
            by_name.setdefault(str(header).strip(), header)

        resolved = {}
        for canonical_field, spellings in self.synonyms.items():
            for spelling in spellings:
                if spelling in by_name:
                    resolved[canonical_field] = by_name[spelling]
                    break
        return resolved


# ==================== Processor Extract Mapping ====================

PROCESSOR_MAPPING = SourceMapping(
    name="processor_extract",
    synonyms={
        CanonicalField.MERCHANT_ID: [
            ProcessorSourceColumns.MERCHANT_ID,
            ProcessorSourceColumns.MID,
            ProcessorSourceColumns.MERCHANT_ID_UNDERSCORE,
            ProcessorSourceColumns.MERCHANT_ID_NO_SPACE,
        ],
        CanonicalField.MERCHANT_NAME: [
            ProcessorSourceColumns.MERCHANT,
            ProcessorSourceColumns.MERCHANT_NAME,
            ProcessorSourceColumns.DBA,
        ],
        CanonicalField.TRANSACTIONS: [
            ProcessorSourceColumns.TRANSACTIONS,
            ProcessorSourceColumns.TOTAL_TRANSACTIONS,
        ],
        CanonicalField.SALES_AMOUNT: [ProcessorSourceColumns.SALES_AMOUNT],
        CanonicalField.INCOME: [ProcessorSourceColumns.INCOME],
        CanonicalField.EXPENSES: [ProcessorSourceColumns.EXPENSES],
        CanonicalField.NET: [ProcessorSourceColumns.NET],
        CanonicalField.BPS: [ProcessorSourceColumns.BPS],
        CanonicalField.PERCENTAGE: [ProcessorSourceColumns.PERCENTAGE],
        CanonicalField.REP_NET: [ProcessorSourceColumns.AGENT_NET],
        CanonicalField.APPROVAL_DATE: [ProcessorSourceColumns.APPROVAL_DATE],
        CanonicalField.GROUP_CODE: [
            ProcessorSourceColumns.GROUP,
            ProcessorSourceColumns.GROUP_CODE,
        ],
    },
    transforms={
        CanonicalField.TRANSACTIONS: parse_transaction_count,
        **{f: normalize_currency for f in MONEY_FIELDS},
        **{f: raw_or_zero for f in RAW_STRING_FIELDS},
        CanonicalField.APPROVAL_DATE: parse_approval_date,
        CanonicalField.GROUP_CODE: blank_to_none,
    }
)


# ==================== Lead Sheet Mapping ====================

LEAD_SHEET_MAPPING = SourceMapping(
    name="lead_sheet",
    synonyms={
        CanonicalField.MERCHANT_ID: [LeadSheetSourceColumns.EXISTING_MID, LeadSheetSourceColumns.MID],
        CanonicalField.LEGAL_NAME: [LeadSheetSourceColumns.LEGAL_NAME],
        CanonicalField.DBA: [LeadSheetSourceColumns.DBA],
        CanonicalField.BRANCH_NUMBER: [
            LeadSheetSourceColumns.PARTNER_BRANCH_NUMBER,
            LeadSheetSourceColumns.BRANCH_NUMBER,
        ],
        CanonicalField.STATUS: [LeadSheetSourceColumns.STATUS],
        CanonicalField.STATUS_CATEGORY: [LeadSheetSourceColumns.STATUS_CATEGORY],
        CanonicalField.CURRENT_PROCESSOR: [LeadSheetSourceColumns.CURRENT_PROCESSOR],
        CanonicalField.PARTNER_NAME: [LeadSheetSourceColumns.PARTNER_NAME],
        CanonicalField.SALES_REPS: [LeadSheetSourceColumns.SALES_REPS],
        CanonicalField.ASSIGNED_USERS: [LeadSheetSourceColumns.ASSIGNED_USERS],
    },
)


# Lowercase tokens that mark a processor header row
MERCHANT_ID_HEADER_TOKENS = tuple(
    s.lower() for s in PROCESSOR_MAPPING.synonyms[CanonicalField.MERCHANT_ID]
)
TRANSACTIONS_HEADER_TOKEN = ProcessorSourceColumns.TRANSACTIONS.lower()


# ==================== Mapping Application Utilities ====================

def apply_source_mapping(df: pd.DataFrame, mapping: SourceMapping) -> pd.DataFrame:
    """
    Apply a source mapping to transform raw rows to canonical format.

    Process:
    1. Resolve the header row once against the synonym table
    2. Take each canonical field's source column (empty strings if absent)
    3. Apply the field's value transform, if any

    Unknown columns are dropped.

    Args:
        df: Raw source DataFrame, all cells as stripped strings
        mapping: SourceMapping configuration

    Returns:
        DataFrame with one column per canonical field in the mapping
    """
    columns = mapping.resolve_columns(df.columns)

    result_data = {}
    for canonical_field in mapping.fields:
        source_column = columns.get(canonical_field)
        if source_column is None:
            series = pd.Series([""] * len(df), index=df.index, dtype=object)
        else:
            series = df[source_column]

        transform = mapping.transforms.get(canonical_field)
        if transform is not None:
            series = series.map(transform)

        result_data[canonical_field.value] = series

    return pd.DataFrame(result_data, index=df.index)
