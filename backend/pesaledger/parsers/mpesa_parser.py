"""
M-Pesa SMS parser.

Classification is an ordered tuple of MessageRule records evaluated against
the lower-cased body; the first rule whose predicate holds wins. Rules that
share vocabulary with a broader rule (bank and bundle payments are also
"sent to", business payments also mention "paid to") must come first.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, List, Optional, Pattern, Tuple

from pesaledger.errors import ExtractionError
from pesaledger.models.transaction import TransactionKind, TransactionStatus
from pesaledger.parsers.base import BaseMessageParser, BalanceDelta, ParsedTransaction

MPESA_ACCOUNT = "M-Pesa"
BUSINESS_ACCOUNT = "Pochi La Biashara"
SAVINGS_ACCOUNT = "M-Shwari"
CASH_ACCOUNT = "Cash"
SC_BANK_ACCOUNT = "SC BANK"
EQUITY_BANK_ACCOUNT = "EQUITY BANK"

PROVIDER_SENDER = "MPESA"
CASH_SENDER = "CASH"

AIRTIME_ITEM = "Airtime"
DATA_BUNDLES_ITEM = "Data Bundles"

MPESA_BALANCE = "new m-pesa balance is"
BUSINESS_BALANCE = "new business balance is"

_CURRENCY = r"ksh\.?\s?"
_AMOUNT = r"([\d,]+(?:\.\d+)?)"

FEE_PATTERN = re.compile(r"transaction cost[,.:\s]*" + _CURRENCY + _AMOUNT)
DATE_PATTERN = re.compile(r"on (\d{1,2})/(\d{1,2})/(\d{2}) at (\d{1,2}):(\d{2})\s?(am|pm)")


def _amount_before(phrase: str) -> Pattern:
    return re.compile(_CURRENCY + _AMOUNT + r"\s+" + phrase)


RECEIVED_AMOUNT = _amount_before(r"(?:received\s+)?from")
SENT_AMOUNT = _amount_before("sent")
PAID_AMOUNT = _amount_before("paid")
MOVED_AMOUNT = _amount_before("has been moved")
TRANSFERRED_AMOUNT = _amount_before("transferred")
AIRTIME_AMOUNT = _amount_before("of airtime")
WITHDRAW_AMOUNT = re.compile(r"withdraw\s*" + _CURRENCY + _AMOUNT)


def normalize_wallet_name(name: str) -> str:
    """Short display form used in transfer descriptions."""
    return "Pochi" if name == BUSINESS_ACCOUNT else name


def _to_decimal(raw: str) -> Optional[Decimal]:
    try:
        return Decimal(raw.replace(",", "")).quantize(Decimal("0.01"))
    except InvalidOperation:
        return None


def extract_amount(body: str, pattern: Pattern) -> Optional[Decimal]:
    """Pull the amount anchored to the phrase that triggered the rule."""
    match = pattern.search(body.lower())
    if not match:
        return None
    return _to_decimal(match.group(1))


def extract_fee(body: str) -> Decimal:
    """Transaction cost; messages without one cost nothing."""
    match = FEE_PATTERN.search(body.lower())
    if not match:
        return Decimal("0.00")
    return _to_decimal(match.group(1)) or Decimal("0.00")


def extract_date(body: str) -> Optional[datetime]:
    """
    Effective date in the provider's d/m/yy h:mm AM|PM form.

    Returns None when the date is absent or not a real calendar date.
    """
    match = DATE_PATTERN.search(body.lower())
    if not match:
        return None

    day, month, year, hour, minute, meridiem = match.groups()
    hour = int(hour)
    if hour < 1 or hour > 12:
        return None
    if meridiem == "pm" and hour != 12:
        hour += 12
    elif meridiem == "am" and hour == 12:
        hour = 0

    try:
        return datetime(2000 + int(year), int(month), int(day), hour, int(minute))
    except ValueError:
        return None


def _all(*phrases: str) -> Callable[[str], bool]:
    return lambda body: all(phrase in body for phrase in phrases)


def _received(balance_phrase: str) -> Callable[[str], bool]:
    return lambda body: (
        ("you have received" in body or "received from" in body) and balance_phrase in body
    )


@dataclass(frozen=True)
class MessageRule:
    """
    One classification rule.

    Debits charge amount plus fee to the source account. Transfers and
    withdrawals also credit the bare amount to the destination account.
    """
    name: str
    kind: TransactionKind
    predicate: Callable[[str], bool]
    amount_pattern: Pattern
    source: str
    description: str
    destination: Optional[str] = None
    charges_fee: bool = True
    status: TransactionStatus = TransactionStatus.UNCATEGORIZED
    category_item: Optional[str] = None

    def matches(self, body: str) -> bool:
        return self.predicate(body.lower())

    def extract(self, body: str) -> ParsedTransaction:
        amount = extract_amount(body, self.amount_pattern)
        if amount is None:
            raise ExtractionError(self.name, "amount")
        date = extract_date(body)
        if date is None:
            raise ExtractionError(self.name, "date")
        fee = extract_fee(body) if self.charges_fee else Decimal("0.00")

        return ParsedTransaction(
            rule=self.name,
            kind=self.kind,
            account_name=self.source,
            account_sender_pattern=_sender_for(self.source),
            amount=amount,
            fee=fee,
            date=date,
            description=self.description,
            status=self.status,
            destination_account_name=self.destination,
            category_item_name=self.category_item,
            deltas=self.balance_deltas(amount, fee),
        )

    def balance_deltas(self, amount: Decimal, fee: Decimal) -> List[BalanceDelta]:
        if self.kind == TransactionKind.CREDIT:
            return [BalanceDelta(self.source, amount, _sender_for(self.source))]

        deltas = [BalanceDelta(self.source, -(amount + fee), _sender_for(self.source))]
        if self.destination:
            deltas.append(BalanceDelta(self.destination, amount, _sender_for(self.destination)))
        return deltas


def _sender_for(account_name: str) -> str:
    return CASH_SENDER if account_name == CASH_ACCOUNT else PROVIDER_SENDER


def _transfer(name: str, predicate, pattern, source: str, destination: str, **kwargs) -> MessageRule:
    return MessageRule(
        name=name,
        kind=TransactionKind.TRANSFER,
        predicate=predicate,
        amount_pattern=pattern,
        source=source,
        destination=destination,
        description=f"{normalize_wallet_name(source)} to {normalize_wallet_name(destination)}",
        **kwargs,
    )


RULES: Tuple[MessageRule, ...] = (
    # Bank transfers are own-account movements and need no category.
    _transfer(
        "bank_out_standard_chartered", _all("sent to c2b standard chartered bank"), SENT_AMOUNT,
        MPESA_ACCOUNT, SC_BANK_ACCOUNT, status=TransactionStatus.CATEGORIZED,
    ),
    _transfer(
        "bank_out_equity", _all("sent to", "equity"), SENT_AMOUNT,
        MPESA_ACCOUNT, EQUITY_BANK_ACCOUNT, status=TransactionStatus.CATEGORIZED,
    ),
    _transfer(
        "bank_in_standard_chartered", _all("from standard chartered bank"), RECEIVED_AMOUNT,
        SC_BANK_ACCOUNT, MPESA_ACCOUNT, charges_fee=False, status=TransactionStatus.CATEGORIZED,
    ),
    _transfer(
        "bank_in_equity", _all("from equity bulk account"), RECEIVED_AMOUNT,
        EQUITY_BANK_ACCOUNT, MPESA_ACCOUNT, charges_fee=False, status=TransactionStatus.CATEGORIZED,
    ),
    MessageRule(
        name="data_bundles",
        kind=TransactionKind.DEBIT,
        predicate=_all("sent to safaricom data bundles", MPESA_BALANCE),
        amount_pattern=SENT_AMOUNT,
        source=MPESA_ACCOUNT,
        description="Data Bundles purchase",
        category_item=DATA_BUNDLES_ITEM,
    ),
    MessageRule(
        name="airtime_business",
        kind=TransactionKind.DEBIT,
        predicate=_all("you bought", "of airtime", BUSINESS_BALANCE),
        amount_pattern=AIRTIME_AMOUNT,
        source=BUSINESS_ACCOUNT,
        description="Airtime purchase",
        category_item=AIRTIME_ITEM,
    ),
    MessageRule(
        name="airtime_mpesa",
        kind=TransactionKind.DEBIT,
        predicate=_all("you bought", "of airtime", MPESA_BALANCE),
        amount_pattern=AIRTIME_AMOUNT,
        source=MPESA_ACCOUNT,
        description="Airtime purchase",
        category_item=AIRTIME_ITEM,
    ),
    _transfer(
        "move_mpesa_to_business", _all("moved from your m-pesa account to your business account"),
        MOVED_AMOUNT, MPESA_ACCOUNT, BUSINESS_ACCOUNT, charges_fee=False,
    ),
    _transfer(
        "move_business_to_mpesa", _all("moved from your business account to your m-pesa account"),
        MOVED_AMOUNT, BUSINESS_ACCOUNT, MPESA_ACCOUNT, charges_fee=False,
    ),
    _transfer(
        "savings_to_mpesa", _all("transferred from m-shwari"), TRANSFERRED_AMOUNT,
        SAVINGS_ACCOUNT, MPESA_ACCOUNT,
    ),
    _transfer(
        "mpesa_to_savings", _all("transferred to m-shwari"), TRANSFERRED_AMOUNT,
        MPESA_ACCOUNT, SAVINGS_ACCOUNT,
    ),
    MessageRule(
        name="withdraw",
        kind=TransactionKind.WITHDRAW,
        predicate=_all("withdraw", "from"),
        amount_pattern=WITHDRAW_AMOUNT,
        source=MPESA_ACCOUNT,
        destination=CASH_ACCOUNT,
        description="Withdrawn from M-Pesa",
    ),
    MessageRule(
        name="paid_business",
        kind=TransactionKind.DEBIT,
        predicate=_all("paid to", BUSINESS_BALANCE),
        amount_pattern=PAID_AMOUNT,
        source=BUSINESS_ACCOUNT,
        description=f"Paid from {BUSINESS_ACCOUNT}",
    ),
    MessageRule(
        name="paid_mpesa",
        kind=TransactionKind.DEBIT,
        predicate=_all("paid to", MPESA_BALANCE),
        amount_pattern=PAID_AMOUNT,
        source=MPESA_ACCOUNT,
        description=f"Paid from {MPESA_ACCOUNT}",
    ),
    MessageRule(
        name="sent_business",
        kind=TransactionKind.DEBIT,
        predicate=_all("sent to", BUSINESS_BALANCE),
        amount_pattern=SENT_AMOUNT,
        source=BUSINESS_ACCOUNT,
        description=f"Sent from {BUSINESS_ACCOUNT}",
    ),
    MessageRule(
        name="sent_mpesa",
        kind=TransactionKind.DEBIT,
        predicate=_all("sent to", MPESA_BALANCE),
        amount_pattern=SENT_AMOUNT,
        source=MPESA_ACCOUNT,
        description=f"Sent from {MPESA_ACCOUNT}",
    ),
    MessageRule(
        name="received_business",
        kind=TransactionKind.CREDIT,
        predicate=_received(BUSINESS_BALANCE),
        amount_pattern=RECEIVED_AMOUNT,
        source=BUSINESS_ACCOUNT,
        description=f"Received to {BUSINESS_ACCOUNT}",
        charges_fee=False,
    ),
    MessageRule(
        name="received_mpesa",
        kind=TransactionKind.CREDIT,
        predicate=_received(MPESA_BALANCE),
        amount_pattern=RECEIVED_AMOUNT,
        source=MPESA_ACCOUNT,
        description=f"Received to {MPESA_ACCOUNT}",
        charges_fee=False,
    ),
)


class MpesaParser(BaseMessageParser):
    """Parser for M-Pesa confirmation messages"""

    def __init__(self, sender_pattern: str = PROVIDER_SENDER, rules: Tuple[MessageRule, ...] = RULES):
        self.sender_pattern = sender_pattern.upper()
        self.rules = rules

    def can_parse(self, sender: str) -> bool:
        return self.sender_pattern in (sender or "").upper()

    def match_rule(self, body: str) -> Optional[MessageRule]:
        for rule in self.rules:
            if rule.matches(body):
                return rule
        return None

    def parse(self, body: str) -> Optional[ParsedTransaction]:
        rule = self.match_rule(body)
        if rule is None:
            return None
        return rule.extract(body)
