"""
Inbound SMS endpoints.

Live deliveries (foreground or background), dry-run parsing and historical
catch-up all go through the same classifier as the on-device listener.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from pesaledger.container import AppContainer
from pesaledger.dependencies import get_container, get_db
from pesaledger.errors import ExtractionError
from pesaledger.schemas.sms import (
    BalanceDeltaResponse,
    CatchupRequest,
    CatchupResponse,
    InboundSms,
    ParsePreview,
    ProcessResponse,
)
from pesaledger.services.catchup_service import run_catchup
from pesaledger.services.ingestion import InMemoryInbox, MessageSource, normalize_message

router = APIRouter(prefix="/sms", tags=["sms"])


@router.post("/inbound", response_model=ProcessResponse)
def receive_sms(
    sms: InboundSms,
    db: Session = Depends(get_db),
    container: AppContainer = Depends(get_container),
):
    """Classify one delivered message; duplicates and unknown shapes are no-ops."""
    try:
        message = normalize_message(sms.model_dump(), sms.source)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    result = container.classifier.process_message(db, message)
    return ProcessResponse(
        outcome=result.outcome.value,
        fingerprint=result.fingerprint,
        transaction_id=result.transaction_id,
        rule=result.rule,
    )


@router.post("/parse", response_model=ParsePreview)
def parse_sms(sms: InboundSms, container: AppContainer = Depends(get_container)):
    """Show how a message would be classified without writing anything."""
    message = normalize_message(sms.model_dump(), sms.source)
    try:
        parsed = container.classifier.preview(message)
    except ExtractionError as e:
        return ParsePreview(recognized=True, error=str(e), rule=e.rule)

    if parsed is None:
        return ParsePreview(recognized=False)

    return ParsePreview(
        recognized=True,
        rule=parsed.rule,
        kind=parsed.kind,
        account_name=parsed.account_name,
        destination_account_name=parsed.destination_account_name,
        amount=parsed.amount,
        fee=parsed.fee,
        date=parsed.date,
        description=parsed.description,
        status=parsed.status,
        category_item_name=parsed.category_item_name,
        deltas=[BalanceDeltaResponse(account_name=d.account_name, amount=d.amount) for d in parsed.deltas],
    )


@router.post("/catchup", response_model=CatchupResponse)
def catchup(
    request: CatchupRequest,
    db: Session = Depends(get_db),
    container: AppContainer = Depends(get_container),
):
    """Replay exported inbox history newer than the ledger watermark."""
    inbox = InMemoryInbox([sms.model_dump() for sms in request.messages])
    report = run_catchup(db, container.classifier, inbox, container.settings)
    return CatchupResponse(
        watermark=report.watermark,
        scanned=report.scanned,
        created=report.created,
        failed=report.failed,
        outcomes=report.outcomes,
    )
