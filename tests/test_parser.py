from datetime import date

import pytest

from residuals_engine.canonical_fields import CanonicalField
from residuals_engine.errors import FormatError
from residuals_engine.io import locate_header_row, is_processor_header
from residuals_engine.mappings import PROCESSOR_MAPPING, LEAD_SHEET_MAPPING
from residuals_engine.normalize import (
    parse_processor_file,
    parse_lead_sheet,
    to_monthly_revenue_fields,
)

from conftest import PROCESSOR_CSV


def test_end_to_end_row():
    records = parse_processor_file(PROCESSOR_CSV)

    assert len(records) == 1
    record = records[0]
    assert record.merchant_id == "123456789"
    assert record.merchant_name == "Test Merchant"
    assert record.transactions == 100
    assert record.sales_amount == "5000.00"
    assert record.income == "250.00"
    assert record.expenses == "-50.00"
    assert record.net == "-200.00"
    assert record.bps == "50"
    assert record.percentage == "2.5"
    assert record.rep_net == "125.00"


def test_metadata_lines_before_header_are_skipped():
    text = (
        "Report Generated: 2024-03-01\n"
        "Processor: Acme Payments\n"
        "Total Merchants: 1\n"
        + PROCESSOR_CSV
    )

    assert locate_header_row(text) == 3
    records = parse_processor_file(text)
    assert len(records) == 1
    assert records[0].merchant_id == "123456789"


@pytest.mark.parametrize("text", [
    "Merchant ID,Merchant Name,Sales Amount\n12345678,Foo,$1.00\n",
    "Merchant Name,Transactions,Net\nFoo,5,$1.00\n",
    "",
])
def test_missing_header_tokens_raise_format_error(text):
    with pytest.raises(FormatError, match="Could not find header row"):
        parse_processor_file(text)


@pytest.mark.parametrize("mid_header", ["MID", "Merchant_ID", "MerchantID", "Merchant ID"])
def test_merchant_id_header_spellings(mid_header):
    text = f"{mid_header},Merchant,Transactions\n123456789,Foo,7\n"

    assert PROCESSOR_MAPPING.resolve_field(mid_header) is CanonicalField.MERCHANT_ID
    records = parse_processor_file(text)
    assert [r.merchant_id for r in records] == ["123456789"]
    assert records[0].transactions == 7


def test_mid_must_be_a_whole_cell():
    assert is_processor_header("MID,Transactions")
    assert not is_processor_header("Midwest Region,Transactions")


def test_total_transactions_header():
    records = parse_processor_file("MID,Merchant,Total Transactions\n12345678,Foo,12\n")
    assert records[0].transactions == 12


def test_unknown_headers_resolve_to_none():
    assert PROCESSOR_MAPPING.resolve_field("Mystery Column") is None
    assert PROCESSOR_MAPPING.resolve_field("mid") is None


def test_whitespace_around_headers_and_cells():
    text = "  MID , Merchant Name , Transactions , Net\n 12345678 , Foo Bar , 5 , ($3.50) \n"

    record = parse_processor_file(text)[0]
    assert record.merchant_id == "12345678"
    assert record.merchant_name == "Foo Bar"
    assert record.transactions == 5
    assert record.net == "-3.50"


def test_mixed_negative_notations_in_one_file():
    text = (
        "MID,Merchant,Transactions,Net\n"
        "11111111,A,1,(10.00)\n"
        "22222222,B,1,-$20.00\n"
        "33333333,C,1,$30.00\n"
    )
    assert [r.net for r in parse_processor_file(text)] == ["-10.00", "-20.00", "30.00"]


def test_unparseable_values_default_silently():
    text = (
        "MID,Merchant,Transactions,Sales Amount,BPS\n"
        "12345678,Foo,lots,,\n"
    )
    record = parse_processor_file(text)[0]
    assert record.transactions == 0
    assert record.sales_amount == "0"
    assert record.bps == "0"
    assert record.income == "0"


def test_quoted_transaction_count_with_thousands_separator():
    text = 'MID,Merchant,Transactions\n12345678,Foo,"1,234"\n'
    assert parse_processor_file(text)[0].transactions == 1234


def test_short_and_long_rows_still_produce_records():
    text = (
        "MID,Merchant,Transactions,Net\n"
        "12345678,Short\n"
        "87654321,Long,3,$1.00,extra,cells\n"
    )
    short, long_ = parse_processor_file(text)
    assert short.merchant_name == "Short"
    assert short.transactions == 0
    assert short.net == "0"
    assert long_.transactions == 3
    assert long_.net == "1.00"


def test_blank_lines_are_ignored():
    text = "MID,Merchant,Transactions\n\n12345678,Foo,1\n\n"
    assert len(parse_processor_file(text)) == 1


def test_optional_columns_and_revenue_payload():
    text = (
        "MID,Merchant,Transactions,Agent Net,Approval Date,Group\n"
        "12345678,Foo,1,$9.99,2024-01-15,G7\n"
        "87654321,Bar,1,,,\n"
    )
    first, second = parse_processor_file(text)

    assert first.approval_date == date(2024, 1, 15)
    assert first.group_code == "G7"
    assert second.approval_date is None
    assert second.group_code is None

    fields = to_monthly_revenue_fields(first, merchant_id=1, processor_id=2, month="2024-03")
    assert fields["rep_net"] == "9.99"
    assert fields["approval_date"] == "2024-01-15"
    assert fields["processor_id"] == 2
    assert fields["month"] == "2024-03"


def test_lead_sheet_parsing():
    text = (
        "Existing MID,Legal Name,DBA,Partner Branch Number,Status\n"
        "1234-5678,Acme LLC,,B-12,Active\n"
    )
    records = parse_lead_sheet(text)

    assert len(records) == 1
    lead = records[0]
    assert lead.mid_raw == "1234-5678"
    assert lead.legal_name == "Acme LLC"
    assert lead.dba == ""
    assert lead.branch_number == "B-12"
    assert lead.status == "Active"
    assert lead.partner_name == ""


def test_lead_sheet_mid_fallback_column():
    assert LEAD_SHEET_MAPPING.resolve_field("MID") is CanonicalField.MERCHANT_ID
    records = parse_lead_sheet("MID,Legal Name\n12345678,Foo Inc\n")
    assert records[0].mid_raw == "12345678"


def test_empty_lead_sheet():
    assert parse_lead_sheet("") == []
    assert parse_lead_sheet("Existing MID,Legal Name\n") == []


def test_unbalanced_quote_only_affects_its_own_row():
    text = (
        "MID,Merchant,Transactions,Net\n"
        "11111111,Joe's \"Best Pizza,1,$1.00\n"
        "22222222,\"Unclosed,2,$2.00\n"
        "33333333,Ok,3,$3.00\n"
    )
    records = parse_processor_file(text)

    assert [(r.merchant_id, r.transactions, r.net) for r in records] == [
        ("11111111", 1, "1.00"),
        ("22222222", 2, "2.00"),
        ("33333333", 3, "3.00"),
    ]
    assert records[0].merchant_name == 'Joe\'s "Best Pizza'
    assert records[1].merchant_name == '"Unclosed'


def test_lead_sheet_with_unbalanced_quote_keeps_every_row():
    records = parse_lead_sheet('Existing MID,Legal Name\n12345678,"Acme\n87654321,Bar\n')

    assert [(r.mid_raw, r.legal_name) for r in records] == [
        ("12345678", '"Acme'),
        ("87654321", "Bar"),
    ]


def test_repeated_header_names_keep_the_first_column():
    records = parse_processor_file("MID,Merchant,Transactions,Net,Net\n12345678,Foo,1,$5.00,$9.00\n")
    assert records[0].net == "5.00"


def test_lead_sheet_has_no_preamble_tolerance(engine, storage):
    text = (
        "Report Generated: 2024-01-15\n"
        "Existing MID,Legal Name\n"
        "12345678,Acme LLC\n"
    )
    records = parse_lead_sheet(text)

    # the report line is taken as the header, so no column resolves to the MID
    assert len(records) == 2
    assert all(r.mid_raw == "" for r in records)

    result = engine.match_lead_records(records)
    assert (result.matched, result.created, result.updated, result.errors) == (0, 0, 0, ())
    assert storage.get_merchants() == []
