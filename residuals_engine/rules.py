"""
Rule framework and rule implementations.
Extensible plugin-style architecture for merchant/month audit checks.
"""
from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional, Iterable
from dataclasses import dataclass, field
import logging
import pandas as pd

from config import config as app_config
from .findings import generate_issues, record_issues
from .schemas import Assignment, AuditIssue, IssueType, MonthlyRevenueEntry

logger = logging.getLogger(__name__)


def split_total(assignments: Iterable[Assignment]) -> float:
    """
    Sum of assignment percentages for one merchant/month.

    A blank or non-numeric percentage counts as 0, so the total comes out
    short and the split is flagged.
    """
    percentages = pd.to_numeric(
        pd.Series([str(a.percentage).strip() for a in assignments], dtype=object),
        errors="coerce"
    )
    return float(percentages.fillna(0).sum())


def is_split_error(total: float) -> bool:
    """True when a split total is off target by more than the tolerance."""
    return abs(total - app_config.audit.split_target) > app_config.audit.split_tolerance


@dataclass
class RuleContext:
    """
    State of one merchant for one month, as seen by the rules.

    Rules only read the context; persisting what they find is the caller's job.
    """
    merchant_id: int
    month: str
    assignments: List[Assignment] = field(default_factory=list)
    monthly_data: List[MonthlyRevenueEntry] = field(default_factory=list)

    @classmethod
    def load(cls, storage, merchant_id: int, month: str) -> "RuleContext":
        """Read assignments and revenue rows for merchant/month from storage."""
        return cls(
            merchant_id=merchant_id,
            month=month,
            assignments=storage.get_assignments(merchant_id, month),
            monthly_data=storage.get_monthly_data_by_merchant(merchant_id, month),
        )


class Rule(ABC):
    """
    Abstract base class for audit rules.

    Each rule flags one issue type. Rules are deterministic and return
    issue dicts with keys: merchant_id, month, issue_type, description.
    """

    @property
    @abstractmethod
    def issue_type(self) -> IssueType:
        """Issue type this rule raises."""
        pass

    @abstractmethod
    def evaluate(self, context: RuleContext) -> List[Dict[str, Any]]:
        pass

    def _issue(self, context: RuleContext, description: str) -> Dict[str, Any]:
        return {
            "merchant_id": context.merchant_id,
            "month": context.month,
            "issue_type": self.issue_type.value,
            "description": description,
        }


class MissingAssignmentRule(Rule):
    """No role assignments exist for the merchant this month."""

    @property
    def issue_type(self) -> IssueType:
        return IssueType.MISSING_ASSIGNMENT

    def evaluate(self, context: RuleContext) -> List[Dict[str, Any]]:
        if context.assignments:
            return []
        return [self._issue(context, "No role assignments configured")]


class SplitErrorRule(Rule):
    """Assignment percentages do not add up to 100%."""

    @property
    def issue_type(self) -> IssueType:
        return IssueType.SPLIT_ERROR

    def evaluate(self, context: RuleContext) -> List[Dict[str, Any]]:
        if not context.assignments:
            return []
        total = split_total(context.assignments)
        if not is_split_error(total):
            return []
        return [self._issue(context, f"Percentage splits total {total:.2f}% (should be 100%)")]


class UnmatchedMidRule(Rule):
    """
    Merchant has no revenue rows for the month.

    Right after a processor row is reconciled the revenue row exists, so in
    that path this rule never fires. It matters for merchants seen only in
    lead sheets.
    """

    @property
    def issue_type(self) -> IssueType:
        return IssueType.UNMATCHED_MID

    def evaluate(self, context: RuleContext) -> List[Dict[str, Any]]:
        if context.monthly_data:
            return []
        return [self._issue(context, "Merchant exists but has no revenue data for this month")]


class RuleRegistry:
    """
    Central registry for audit rules.

    Adding a new rule:
    1. Create a Rule subclass
    2. Register it here
    3. No other code changes needed
    """

    def __init__(self):
        self._rules: List[Rule] = []

    def register(self, rule: Rule):
        """Register a rule."""
        self._rules.append(rule)

    def get_all_rules(self) -> List[Rule]:
        """Get all registered rules."""
        return self._rules.copy()

    def get_rule(self, issue_type: str) -> Optional[Rule]:
        """Get rule by the issue type it raises."""
        for rule in self._rules:
            if rule.issue_type.value == issue_type:
                return rule
        return None

    def evaluate_all(self, context: RuleContext) -> List[Dict[str, Any]]:
        """Evaluate all registered rules and aggregate issues."""
        all_issues = []
        for rule in self._rules:
            all_issues.extend(rule.evaluate(context))
        return all_issues


# Create global registry and register rules
default_registry = RuleRegistry()
default_registry.register(MissingAssignmentRule())
default_registry.register(SplitErrorRule())
default_registry.register(UnmatchedMidRule())


def check_merchant_month(
    storage,
    merchant_id: int,
    month: str,
    registry: RuleRegistry = None
) -> List[AuditIssue]:
    """
    Run every rule for merchant/month and persist one AuditIssue per hit.

    Issues are not deduplicated: running the check twice records twice.
    """
    registry = registry or default_registry
    context = RuleContext.load(storage, merchant_id, month)
    issues = record_issues(storage, generate_issues(registry.evaluate_all(context)))
    if issues:
        logger.info(
            f"[AUDIT] Merchant {merchant_id} {month}: "
            f"{', '.join(i.issue_type for i in issues)}"
        )
    return issues
