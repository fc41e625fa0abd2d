"""
Normalization logic for uploaded files.
Converts raw delimited text into typed ProcessorRecord / LeadRecord lists,
and typed records into storage payloads.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional
import pandas as pd

from .canonical_fields import (
    CanonicalField,
    MERCHANT_PROFILE_FIELDS,
    MONEY_FIELDS,
    RAW_STRING_FIELDS,
    get_field_names,
)
from .io import ProcessorExtractLoader, LeadSheetLoader
from .mappings import PROCESSOR_MAPPING, LEAD_SHEET_MAPPING, apply_source_mapping
from .schemas import ProcessorRecord, LeadRecord

logger = logging.getLogger(__name__)


def _cell(row: Dict[str, Any], canonical_field: CanonicalField, default: Any = "") -> Any:
    value = row.get(canonical_field.value, default)
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return default
    return value


def parse_processor_file(text: str, processor_name: Optional[str] = None) -> List[ProcessorRecord]:
    """
    Parse a processor revenue extract into ProcessorRecords.

    Metadata lines above the header are skipped. Money columns are
    currency-normalized, BPS / % are kept verbatim, and an unparseable
    transaction count becomes 0. Malformed rows still produce a record.

    Raises:
        FormatError: If no header row can be found
    """
    raw = ProcessorExtractLoader().load(text)
    canonical = apply_source_mapping(raw, PROCESSOR_MAPPING)

    records = []
    for row in canonical.to_dict("records"):
        approval = row.get(CanonicalField.APPROVAL_DATE.value)
        records.append(ProcessorRecord(
            mid_raw=str(_cell(row, CanonicalField.MERCHANT_ID)).strip(),
            merchant_name=str(_cell(row, CanonicalField.MERCHANT_NAME)).strip(),
            transactions=int(_cell(row, CanonicalField.TRANSACTIONS, 0)),
            sales_amount=_cell(row, CanonicalField.SALES_AMOUNT, "0"),
            income=_cell(row, CanonicalField.INCOME, "0"),
            expenses=_cell(row, CanonicalField.EXPENSES, "0"),
            net=_cell(row, CanonicalField.NET, "0"),
            bps=_cell(row, CanonicalField.BPS, "0"),
            percentage=_cell(row, CanonicalField.PERCENTAGE, "0"),
            rep_net=_cell(row, CanonicalField.REP_NET, "0"),
            approval_date=approval if isinstance(approval, date) else None,
            group_code=_cell(row, CanonicalField.GROUP_CODE, None) or None,
        ))

    logger.info(
        f"[PARSER] Parsed {len(records)} processor rows"
        + (f" for '{processor_name}'" if processor_name else "")
    )
    return records


def parse_lead_sheet(text: str) -> List[LeadRecord]:
    """
    Parse a broker lead sheet into LeadRecords.

    The header must be on line 1. Missing columns produce empty strings.
    """
    raw = LeadSheetLoader().load(text)
    if raw.empty and len(raw.columns) == 0:
        return []

    canonical = apply_source_mapping(raw, LEAD_SHEET_MAPPING)

    records = [
        LeadRecord(
            mid_raw=str(_cell(row, CanonicalField.MERCHANT_ID)).strip(),
            legal_name=_cell(row, CanonicalField.LEGAL_NAME),
            dba=_cell(row, CanonicalField.DBA),
            branch_number=_cell(row, CanonicalField.BRANCH_NUMBER),
            status=_cell(row, CanonicalField.STATUS),
            status_category=_cell(row, CanonicalField.STATUS_CATEGORY),
            current_processor=_cell(row, CanonicalField.CURRENT_PROCESSOR),
            partner_name=_cell(row, CanonicalField.PARTNER_NAME),
            sales_reps=_cell(row, CanonicalField.SALES_REPS),
            assigned_users=_cell(row, CanonicalField.ASSIGNED_USERS),
        )
        for row in canonical.to_dict("records")
    ]

    logger.info(f"[PARSER] Parsed {len(records)} lead sheet rows")
    return records


def to_monthly_revenue_fields(
    record: ProcessorRecord,
    merchant_id: int,
    processor_id: int,
    month: str
) -> Dict[str, Any]:
    """Build the MonthlyRevenueEntry payload for a processor row."""
    return {
        "merchant_id": merchant_id,
        "processor_id": processor_id,
        "month": month,
        "transactions": record.transactions,
        **{name: getattr(record, name) for name in get_field_names(MONEY_FIELDS + RAW_STRING_FIELDS)},
        "approval_date": record.approval_date.isoformat() if record.approval_date else None,
        "group_code": record.group_code or None,
    }


def merchant_fields_from_lead(record: LeadRecord, mid: str) -> Dict[str, Any]:
    """Build a Merchant payload from a lead row; blank values become None."""
    fields = {"mid": mid}
    for canonical_field in MERCHANT_PROFILE_FIELDS:
        fields[canonical_field.value] = getattr(record, canonical_field.value) or None
    return fields


def merchant_fields_from_processor(record: ProcessorRecord, mid: str) -> Dict[str, Any]:
    """Minimal Merchant payload for a MID first seen in a processor extract."""
    fields = {canonical_field.value: None for canonical_field in MERCHANT_PROFILE_FIELDS}
    fields["mid"] = mid
    fields[CanonicalField.DBA.value] = record.merchant_name or None
    return fields

