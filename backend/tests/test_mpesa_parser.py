"""Tests for M-Pesa message classification."""

import pytest
from datetime import datetime
from decimal import Decimal

from pesaledger.errors import ExtractionError
from pesaledger.models.transaction import TransactionKind, TransactionStatus
from pesaledger.parsers.mpesa_parser import (
    BUSINESS_ACCOUNT,
    CASH_ACCOUNT,
    EQUITY_BANK_ACCOUNT,
    MPESA_ACCOUNT,
    RULES,
    SAVINGS_ACCOUNT,
    SC_BANK_ACCOUNT,
    MpesaParser,
    extract_date,
    extract_fee,
    normalize_wallet_name,
)

import sms_samples as sms


@pytest.fixture
def parser():
    return MpesaParser()


class TestSenderGate:

    def test_provider_sender(self, parser):
        assert parser.can_parse("MPESA")

    def test_sender_match_is_case_insensitive_substring(self, parser):
        assert parser.can_parse("m-pesa mpesa alerts")
        assert parser.can_parse("Mpesa")

    def test_other_sender_rejected(self, parser):
        assert not parser.can_parse("SAFARICOM")
        assert not parser.can_parse("")

    def test_custom_sender_pattern(self):
        assert MpesaParser("KCB").can_parse("KCB-ALERTS")


class TestRuleSelection:
    """Each sample body resolves to exactly the rule it describes."""

    @pytest.mark.parametrize("body,rule", [
        (sms.BANK_OUT_STANDARD_CHARTERED, "bank_out_standard_chartered"),
        (sms.BANK_OUT_EQUITY, "bank_out_equity"),
        (sms.BANK_IN_STANDARD_CHARTERED, "bank_in_standard_chartered"),
        (sms.BANK_IN_EQUITY, "bank_in_equity"),
        (sms.DATA_BUNDLES, "data_bundles"),
        (sms.AIRTIME_BUSINESS, "airtime_business"),
        (sms.AIRTIME_MPESA, "airtime_mpesa"),
        (sms.MOVE_TO_BUSINESS, "move_mpesa_to_business"),
        (sms.MOVE_TO_MPESA, "move_business_to_mpesa"),
        (sms.SAVINGS_TO_MPESA, "savings_to_mpesa"),
        (sms.MPESA_TO_SAVINGS, "mpesa_to_savings"),
        (sms.WITHDRAW, "withdraw"),
        (sms.PAID_BUSINESS, "paid_business"),
        (sms.PAID_MPESA, "paid_mpesa"),
        (sms.SENT_BUSINESS, "sent_business"),
        (sms.SENT_MPESA, "sent_mpesa"),
        (sms.RECEIVED_BUSINESS, "received_business"),
        (sms.RECEIVED_MPESA, "received_mpesa"),
    ])
    def test_rule_matched(self, parser, body, rule):
        assert parser.match_rule(body).name == rule

    def test_every_rule_has_a_unique_name(self):
        names = [rule.name for rule in RULES]
        assert len(names) == len(set(names))

    def test_specific_rules_precede_generic_sent(self):
        names = [rule.name for rule in RULES]
        assert names.index("bank_out_equity") < names.index("sent_mpesa")
        assert names.index("data_bundles") < names.index("sent_mpesa")

    def test_unknown_shape_returns_none(self, parser):
        assert parser.match_rule(sms.PROMOTION) is None
        assert parser.parse(sms.PROMOTION) is None

    def test_matching_ignores_case(self, parser):
        assert parser.match_rule(sms.SENT_MPESA.upper()).name == "sent_mpesa"


class TestExtraction:

    def test_received(self, parser):
        parsed = parser.parse(sms.RECEIVED_MPESA)
        assert parsed.kind == TransactionKind.CREDIT
        assert parsed.account_name == MPESA_ACCOUNT
        assert parsed.amount == Decimal("1500.00")
        assert parsed.fee == Decimal("0.00")
        assert parsed.date == datetime(2024, 3, 5, 14, 15)
        assert parsed.description == "Received to M-Pesa"
        assert parsed.status == TransactionStatus.UNCATEGORIZED
        assert [(d.account_name, d.amount) for d in parsed.deltas] == [(MPESA_ACCOUNT, Decimal("1500.00"))]

    def test_sent_charges_fee_to_source(self, parser):
        parsed = parser.parse(sms.SENT_MPESA)
        assert parsed.kind == TransactionKind.DEBIT
        assert parsed.amount == Decimal("500.00")
        assert parsed.fee == Decimal("13.00")
        assert parsed.date == datetime(2024, 3, 6, 9, 5)
        assert parsed.description == "Sent from M-Pesa"
        assert [(d.account_name, d.amount) for d in parsed.deltas] == [(MPESA_ACCOUNT, Decimal("-513.00"))]

    def test_paid_at_noon(self, parser):
        parsed = parser.parse(sms.PAID_MPESA)
        assert parsed.amount == Decimal("250.00")
        assert parsed.date == datetime(2024, 3, 7, 12, 30)
        assert parsed.description == "Paid from M-Pesa"

    def test_airtime_carries_category_item(self, parser):
        parsed = parser.parse(sms.AIRTIME_MPESA)
        assert parsed.kind == TransactionKind.DEBIT
        assert parsed.amount == Decimal("100.00")
        assert parsed.category_item_name == "Airtime"
        assert parsed.description == "Airtime purchase"

    def test_airtime_from_business(self, parser):
        parsed = parser.parse(sms.AIRTIME_BUSINESS)
        assert parsed.account_name == BUSINESS_ACCOUNT
        assert parsed.amount == Decimal("50.00")

    def test_data_bundles(self, parser):
        parsed = parser.parse(sms.DATA_BUNDLES)
        assert parsed.kind == TransactionKind.DEBIT
        assert parsed.amount == Decimal("99.00")
        assert parsed.category_item_name == "Data Bundles"

    def test_withdraw_moves_amount_to_cash(self, parser):
        parsed = parser.parse(sms.WITHDRAW)
        assert parsed.kind == TransactionKind.WITHDRAW
        assert parsed.amount == Decimal("2000.00")
        assert parsed.fee == Decimal("29.00")
        assert parsed.date == datetime(2024, 3, 9, 18, 10)
        assert parsed.destination_account_name == CASH_ACCOUNT
        deltas = {d.account_name: d.amount for d in parsed.deltas}
        assert deltas == {MPESA_ACCOUNT: Decimal("-2029.00"), CASH_ACCOUNT: Decimal("2000.00")}
        cash = [d for d in parsed.deltas if d.account_name == CASH_ACCOUNT][0]
        assert cash.sender_pattern == "CASH"

    def test_move_between_own_wallets_has_no_fee(self, parser):
        parsed = parser.parse(sms.MOVE_TO_BUSINESS)
        assert parsed.kind == TransactionKind.TRANSFER
        assert parsed.fee == Decimal("0.00")
        assert parsed.description == "M-Pesa to Pochi"
        deltas = {d.account_name: d.amount for d in parsed.deltas}
        assert deltas == {MPESA_ACCOUNT: Decimal("-300.00"), BUSINESS_ACCOUNT: Decimal("300.00")}

    def test_move_back_to_mpesa(self, parser):
        parsed = parser.parse(sms.MOVE_TO_MPESA)
        assert parsed.account_name == BUSINESS_ACCOUNT
        assert parsed.destination_account_name == MPESA_ACCOUNT
        assert parsed.description == "Pochi to M-Pesa"

    def test_savings_round_trip_accounts(self, parser):
        out = parser.parse(sms.MPESA_TO_SAVINGS)
        assert out.account_name == MPESA_ACCOUNT
        assert out.destination_account_name == SAVINGS_ACCOUNT
        assert out.amount == Decimal("1000.00")
        back = parser.parse(sms.SAVINGS_TO_MPESA)
        assert back.account_name == SAVINGS_ACCOUNT
        assert back.destination_account_name == MPESA_ACCOUNT

    def test_bank_transfers_are_categorized(self, parser):
        parsed = parser.parse(sms.BANK_OUT_EQUITY)
        assert parsed.kind == TransactionKind.TRANSFER
        assert parsed.status == TransactionStatus.CATEGORIZED
        deltas = {d.account_name: d.amount for d in parsed.deltas}
        assert deltas == {MPESA_ACCOUNT: Decimal("-5057.00"), EQUITY_BANK_ACCOUNT: Decimal("5000.00")}

    def test_bank_deposit_credits_mpesa(self, parser):
        parsed = parser.parse(sms.BANK_IN_STANDARD_CHARTERED)
        assert parsed.account_name == SC_BANK_ACCOUNT
        assert parsed.amount == Decimal("10000.00")
        deltas = {d.account_name: d.amount for d in parsed.deltas}
        assert deltas == {SC_BANK_ACCOUNT: Decimal("-10000.00"), MPESA_ACCOUNT: Decimal("10000.00")}

    def test_business_credit(self, parser):
        parsed = parser.parse(sms.RECEIVED_BUSINESS)
        assert parsed.kind == TransactionKind.CREDIT
        assert parsed.account_name == BUSINESS_ACCOUNT
        assert parsed.amount == Decimal("450.00")


class TestExtractionFailures:

    def test_missing_amount_raises(self, parser):
        with pytest.raises(ExtractionError) as exc_info:
            parser.parse(sms.RECEIVED_WITHOUT_AMOUNT)
        assert exc_info.value.rule == "received_mpesa"
        assert exc_info.value.field == "amount"

    def test_impossible_date_raises(self, parser):
        with pytest.raises(ExtractionError) as exc_info:
            parser.parse(sms.SENT_WITH_BAD_DATE)
        assert exc_info.value.field == "date"


class TestFieldHelpers:

    def test_fee_defaults_to_zero(self):
        assert extract_fee("no cost mentioned here") == Decimal("0.00")

    def test_fee_with_dotted_currency(self):
        assert extract_fee("Transaction cost Ksh.23.00") == Decimal("23.00")

    def test_fee_with_thousands_separator(self):
        assert extract_fee("Transaction cost, Ksh1,050.00.") == Decimal("1050.00")

    @pytest.mark.parametrize("text,expected", [
        ("on 1/1/24 at 12:05 AM", datetime(2024, 1, 1, 0, 5)),
        ("on 1/1/24 at 12:05 PM", datetime(2024, 1, 1, 12, 5)),
        ("on 31/12/23 at 11:59 PM", datetime(2023, 12, 31, 23, 59)),
        ("on 9/3/24 at 6:10PM", datetime(2024, 3, 9, 18, 10)),
    ])
    def test_date_meridiem(self, text, expected):
        assert extract_date(text) == expected

    def test_date_absent(self):
        assert extract_date("no date here") is None

    def test_date_with_impossible_hour(self):
        assert extract_date("on 1/1/24 at 13:00 PM") is None

    def test_wallet_display_name(self):
        assert normalize_wallet_name(BUSINESS_ACCOUNT) == "Pochi"
        assert normalize_wallet_name(MPESA_ACCOUNT) == MPESA_ACCOUNT
