"""
Canonical field definitions for the Merchant Residuals Audit engine.

This module is the single source of truth for field names used throughout
the parser, reconciliation, audit rules and metrics. Raw header spellings
from processor extracts and lead sheets should NEVER be referenced outside
of mappings.py.
"""
from enum import Enum
from typing import Tuple


class CanonicalField(str, Enum):
    """
    Canonical field names used throughout the engine.

    Inheriting from str makes these usable as dictionary keys and
    compatible with pandas DataFrame column operations.
    """

    # ==================== Merchant Identity ====================
    MERCHANT_ID = "merchant_id"
    """Raw merchant identifier (MID) as it appears in a source row"""

    MERCHANT_NAME = "merchant_name"
    """Merchant name / DBA from a processor extract"""

    LEGAL_NAME = "legal_name"
    """Registered legal name of the business"""

    DBA = "dba"
    """Doing-business-as name"""

    BRANCH_NUMBER = "branch_number"
    """Partner branch number"""

    STATUS = "status"
    """Lead / merchant status"""

    STATUS_CATEGORY = "status_category"
    """Grouping of the lead status"""

    CURRENT_PROCESSOR = "current_processor"
    """Processor currently servicing the merchant"""

    PARTNER_NAME = "partner_name"
    """Referring partner"""

    SALES_REPS = "sales_reps"
    """Sales reps listed on the lead sheet"""

    ASSIGNED_USERS = "assigned_users"
    """Users assigned to the lead"""

    # ==================== Volume & Revenue ====================
    TRANSACTIONS = "transactions"
    """Transaction count for the month"""

    SALES_AMOUNT = "sales_amount"
    """Processed sales volume"""

    INCOME = "income"
    """Gross residual income"""

    EXPENSES = "expenses"
    """Processing expenses"""

    NET = "net"
    """Net residual (income - expenses)"""

    BPS = "bps"
    """Basis points, kept as the raw source string"""

    PERCENTAGE = "percentage"
    """Percentage column, kept as the raw source string"""

    REP_NET = "rep_net"
    """Rep / agent share of net ("Agent Net" in processor extracts)"""

    # ==================== Metadata ====================
    APPROVAL_DATE = "approval_date"
    """Merchant approval date"""

    GROUP_CODE = "group_code"
    """Processor group code"""


# ==================== Field Groups ====================

# Monetary fields routed through the currency normalizer
MONEY_FIELDS: Tuple[CanonicalField, ...] = (
    CanonicalField.SALES_AMOUNT,
    CanonicalField.INCOME,
    CanonicalField.EXPENSES,
    CanonicalField.NET,
    CanonicalField.REP_NET,
)
"""Fields containing monetary amounts"""

# Numeric-looking fields that are kept verbatim
RAW_STRING_FIELDS: Tuple[CanonicalField, ...] = (
    CanonicalField.BPS,
    CanonicalField.PERCENTAGE,
)
"""Fields copied from the source without currency normalization"""

# Fields a lead sheet may update on an existing merchant
MERCHANT_PROFILE_FIELDS: Tuple[CanonicalField, ...] = (
    CanonicalField.LEGAL_NAME,
    CanonicalField.DBA,
    CanonicalField.BRANCH_NUMBER,
    CanonicalField.STATUS,
    CanonicalField.STATUS_CATEGORY,
    CanonicalField.CURRENT_PROCESSOR,
    CanonicalField.PARTNER_NAME,
)
"""Merchant registry fields merged from lead sheets"""

def get_field_names(fields) -> Tuple[str, ...]:
    """
    Convert a collection of CanonicalField enums to a tuple of string names.

    Example:
        >>> get_field_names(MONEY_FIELDS)
        ('sales_amount', 'income', 'expenses', 'net', 'rep_net')
    """
    return tuple(f.value for f in fields)
