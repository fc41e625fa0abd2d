"""
Reconciliation logic - match parsed file records against the merchant registry.

Processor extracts upsert MonthlyRevenueEntry rows keyed by
(merchant, processor, month); lead sheets upsert merchant profiles keyed by
normalized MID. Each batch is a fold over its records into an immutable
MatchResult: a bad record adds an error string and the fold moves on.
"""
import logging
from dataclasses import replace
from functools import reduce
from typing import Iterable

from .errors import ValidationError
from .merge import merge_merchant_fields
from .mid import normalize_mid, validate_mid
from .normalize import (
    to_monthly_revenue_fields,
    merchant_fields_from_lead,
    merchant_fields_from_processor,
)
from .rules import check_merchant_month, split_total, is_split_error
from .schemas import (
    AuditSummary,
    LeadRecord,
    MatchResult,
    Merchant,
    ProcessorRecord,
)

logger = logging.getLogger(__name__)


def _with_error(result: MatchResult, message: str) -> MatchResult:
    logger.warning(f"[RECONCILE] {message}")
    return replace(result, errors=result.errors + (message,))


class ReconciliationEngine:
    """
    Applies parsed records to a MerchantStore.

    There is no batch transaction: rows written before a failing record stay
    written, and re-uploading the same file converges to the same state.
    """

    def __init__(self, storage):
        self.storage = storage

    # ==================== Processor Extracts ====================

    def match_processor_records(
        self,
        records: Iterable[ProcessorRecord],
        processor_id: int,
        month: str
    ) -> MatchResult:
        """
        Upsert one month of processor revenue.

        Unknown MIDs create a minimal merchant (created), an existing
        (merchant, processor, month) row is overwritten (updated), and a new
        row counts as matched.

        Args:
            records: Parsed processor rows
            processor_id: Processor the file came from
            month: Month key, e.g. "2024-03"

        Returns:
            MatchResult with counts and one error string per failed record
        """
        def step(result: MatchResult, record: ProcessorRecord) -> MatchResult:
            try:
                return self._apply_processor_record(result, record, processor_id, month)
            except ValidationError as e:
                return _with_error(result, str(e))
            except Exception as e:
                return _with_error(result, f"Error processing MID {record.mid_raw}: {e}")

        result = reduce(step, records, MatchResult())
        logger.info(
            f"[RECONCILE] Processor {processor_id} {month}: matched={result.matched} "
            f"created={result.created} updated={result.updated} errors={len(result.errors)}"
        )
        return result

    def _apply_processor_record(
        self,
        result: MatchResult,
        record: ProcessorRecord,
        processor_id: int,
        month: str
    ) -> MatchResult:
        if not validate_mid(record.mid_raw):
            raise ValidationError(f"Invalid MID format: {record.mid_raw}")

        mid = normalize_mid(record.mid_raw)
        merchant = self.storage.get_merchant_by_mid(mid)
        if merchant is None:
            merchant = self.storage.create_merchant(merchant_fields_from_processor(record, mid))
            result = replace(result, created=result.created + 1)

        fields = to_monthly_revenue_fields(record, merchant.id, processor_id, month)
        existing = next(
            (
                entry for entry in self.storage.get_monthly_data_by_merchant(merchant.id, month)
                if entry.processor_id == processor_id
            ),
            None
        )
        if existing is not None:
            self.storage.update_monthly_data(existing.id, fields)
            result = replace(result, updated=result.updated + 1)
        else:
            self.storage.create_monthly_data(fields)
            result = replace(result, matched=result.matched + 1)

        self._check_quietly(merchant, month)
        return result

    def _check_quietly(self, merchant: Merchant, month: str):
        try:
            check_merchant_month(self.storage, merchant.id, month)
        except Exception as e:
            logger.error(
                f"[AUDIT] Check failed for merchant {merchant.id} {month}: {e}",
                exc_info=True
            )

    # ==================== Lead Sheets ====================

    def match_lead_records(self, records: Iterable[LeadRecord]) -> MatchResult:
        """
        Upsert merchant profiles from a broker lead sheet.

        Rows with an empty or invalid MID are skipped without an error.
        Existing merchants are merged field by field (blank cells keep the
        stored value). Every processed row also counts as matched.
        """
        def step(result: MatchResult, record: LeadRecord) -> MatchResult:
            if not record.mid_raw or not validate_mid(record.mid_raw):
                return result
            try:
                return self._apply_lead_record(result, record)
            except Exception as e:
                return _with_error(result, f"Error processing lead {record.mid_raw}: {e}")

        result = reduce(step, records, MatchResult())
        logger.info(
            f"[RECONCILE] Lead sheet: matched={result.matched} created={result.created} "
            f"updated={result.updated} errors={len(result.errors)}"
        )
        return result

    def _apply_lead_record(self, result: MatchResult, record: LeadRecord) -> MatchResult:
        mid = normalize_mid(record.mid_raw)
        incoming = merchant_fields_from_lead(record, mid)
        existing = self.storage.get_merchant_by_mid(mid)

        if existing is not None:
            self.storage.update_merchant(existing.id, merge_merchant_fields(incoming, existing.to_dict()))
            result = replace(result, updated=result.updated + 1)
        else:
            self.storage.create_merchant(incoming)
            result = replace(result, created=result.created + 1)

        return replace(result, matched=result.matched + 1)

    # ==================== Full Audit ====================

    def run_full_audit(self, month: str) -> AuditSummary:
        """
        Count issue conditions across every merchant for a month.

        Counts only; no AuditIssue rows are written.
          - missing_assignments: has revenue this month but no assignments
          - split_errors: has assignments whose total is off 100%
          - unmatched_mids: no revenue rows this month
        """
        with_revenue = {entry.merchant_id for entry in self.storage.get_monthly_data(month)}

        split_errors = missing_assignments = unmatched_mids = 0
        for merchant in self.storage.get_merchants():
            assignments = self.storage.get_assignments(merchant.id, month)
            has_revenue = merchant.id in with_revenue

            if has_revenue and not assignments:
                missing_assignments += 1
            if assignments and is_split_error(split_total(assignments)):
                split_errors += 1
            if not has_revenue:
                unmatched_mids += 1

        summary = AuditSummary(
            split_errors=split_errors,
            missing_assignments=missing_assignments,
            unmatched_mids=unmatched_mids,
        )
        logger.info(f"[AUDIT] Full audit {month}: {summary.to_dict()}")
        return summary
