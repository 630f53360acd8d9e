"""Sample provider messages used across the test suite."""

from datetime import datetime, timedelta, timezone

from pesaledger.services.ingestion import InboundMessage, MessageSource

SENDER = "MPESA"
EAT = timezone(timedelta(hours=3))


def eat_ms(year, month, day, hour=0, minute=0):
    """Epoch milliseconds for a provider wall-clock time."""
    return int(datetime(year, month, day, hour, minute, tzinfo=EAT).timestamp() * 1000)


def message(body, timestamp, sender=SENDER, source=MessageSource.FOREGROUND):
    return InboundMessage(sender=sender, body=body, timestamp=timestamp, source=source)


RECEIVED_MPESA = (
    "QGH7XK2L1P Confirmed.You have received Ksh1,500.00 from JOHN DOE 0712345678 "
    "on 5/3/24 at 2:15 PM New M-PESA balance is Ksh3,250.00. "
    "Separate personal and business funds through Pochi la Biashara on *334#."
)
RECEIVED_MPESA_AT = eat_ms(2024, 3, 5, 14, 15)

SENT_MPESA = (
    "QGH7XK2L1Q Confirmed. Ksh500.00 sent to JANE DOE 0722000111 on 6/3/24 at 9:05 AM. "
    "New M-PESA balance is Ksh2,737.00. Transaction cost, Ksh13.00. "
    "Amount you can transact within the day is 299,500.00."
)
SENT_MPESA_AT = eat_ms(2024, 3, 6, 9, 5)

PAID_MPESA = (
    "QGH7XK2L1R Confirmed. Ksh250.00 paid to JAVA HOUSE. on 7/3/24 at 12:30 PM."
    "New M-PESA balance is Ksh2,487.00. Transaction cost, Ksh0.00."
)
PAID_MPESA_AT = eat_ms(2024, 3, 7, 12, 30)

AIRTIME_MPESA = (
    "QGH7XK2L1S confirmed.You bought Ksh100.00 of airtime on 8/3/24 at 7:45 AM."
    "New M-PESA balance is Ksh2,387.00. Transaction cost, Ksh0.00."
)
AIRTIME_MPESA_AT = eat_ms(2024, 3, 8, 7, 45)

WITHDRAW = (
    "QGH7XK2L1T Confirmed.on 9/3/24 at 6:10 PMWithdraw Ksh2,000.00 from 123456 - SHOP AGENT "
    "New M-PESA balance is Ksh358.00. Transaction cost, Ksh29.00."
)
WITHDRAW_AT = eat_ms(2024, 3, 9, 18, 10)

MPESA_TO_SAVINGS = (
    "QGH7XK2L1U Confirmed. Ksh1,000.00 transferred to M-Shwari account on 10/3/24 at 8:00 PM. "
    "M-PESA balance is Ksh1,000.00 .New M-Shwari saving account balance is Ksh5,000.00. "
    "Transaction cost Ksh.0.00"
)
SAVINGS_TO_MPESA = (
    "QGH7XK2L2A Confirmed. Ksh800.00 transferred from M-Shwari account on 16/3/24 at 8:30 AM. "
    "M-Shwari balance is Ksh4,200.00 .M-PESA balance is Ksh1,800.00 .Transaction cost Ksh.0.00"
)

MOVE_TO_BUSINESS = (
    "QGH7XK2L1V Confirmed. Ksh300.00 has been moved from your M-PESA account to your business account "
    "on 11/3/24 at 10:20 AM. New M-PESA balance is Ksh700.00. New business balance is Ksh300.00."
)
MOVE_TO_MPESA = (
    "QGH7XK2L2B Confirmed. Ksh120.00 has been moved from your business account to your M-PESA account "
    "on 17/3/24 at 1:00 PM. New business balance is Ksh180.00. New M-PESA balance is Ksh820.00."
)

RECEIVED_BUSINESS = (
    "QGH7XK2L1W Confirmed. You have received Ksh450.00 from MARY WANJIKU 0733000222 "
    "on 12/3/24 at 3:00 PM. New business balance is Ksh750.00."
)
PAID_BUSINESS = (
    "QGH7XK2L2C Confirmed. Ksh60.00 paid to MAMA MBOGA. on 18/3/24 at 5:40 PM."
    "New business balance is Ksh690.00. Transaction cost, Ksh0.00."
)
SENT_BUSINESS = (
    "QGH7XK2L2D Confirmed. Ksh200.00 sent to PETER OTIENO 0700111222 on 18/3/24 at 6:00 PM. "
    "New business balance is Ksh490.00. Transaction cost, Ksh7.00."
)
AIRTIME_BUSINESS = (
    "QGH7XK2L2E confirmed.You bought Ksh50.00 of airtime on 19/3/24 at 8:15 AM."
    "New business balance is Ksh440.00. Transaction cost, Ksh0.00."
)

BANK_OUT_EQUITY = (
    "QGH7XK2L1X Confirmed. Ksh5,000.00 sent to Equity Paybill Account for account 123456 "
    "on 13/3/24 at 9:00 AM New M-PESA balance is Ksh1,000.00. Transaction cost, Ksh57.00."
)
BANK_OUT_STANDARD_CHARTERED = (
    "QGH7XK2L2F Confirmed. Ksh3,000.00 sent to C2B Standard Chartered Bank for account 0100200300 "
    "on 20/3/24 at 10:00 AM New M-PESA balance is Ksh2,000.00. Transaction cost, Ksh34.00."
)
BANK_IN_STANDARD_CHARTERED = (
    "QGH7XK2L1Y Confirmed. You have received Ksh10,000.00 from STANDARD CHARTERED BANK "
    "on 14/3/24 at 11:00 AM New M-PESA balance is Ksh11,000.00."
)
BANK_IN_EQUITY = (
    "QGH7XK2L2G Confirmed. You have received Ksh7,500.00 from EQUITY BULK ACCOUNT 300600 "
    "on 21/3/24 at 4:45 PM New M-PESA balance is Ksh9,500.00."
)

DATA_BUNDLES = (
    "QGH7XK2L1Z Confirmed. Ksh99.00 sent to SAFARICOM DATA BUNDLES for account SAFARICOM DATA BUNDLES "
    "on 15/3/24 at 7:00 PM. New M-PESA balance is Ksh901.00. Transaction cost, Ksh0.00."
)

PROMOTION = "Dear customer, M-PESA services will be unavailable tonight from 11 PM for maintenance."

RECEIVED_WITHOUT_AMOUNT = (
    "QGH7XK2L3A Confirmed.You have received money from JOHN DOE on 5/3/24 at 2:15 PM "
    "New M-PESA balance is Ksh3,250.00."
)
SENT_WITH_BAD_DATE = (
    "QGH7XK2L3B Confirmed. Ksh500.00 sent to JANE DOE 0722000111 on 31/2/24 at 9:05 AM. "
    "New M-PESA balance is Ksh2,737.00. Transaction cost, Ksh13.00."
)
