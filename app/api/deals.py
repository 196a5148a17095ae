"""Deal pipeline API routes."""

from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_current_actor, http_error
from app.db.session import get_db
from app.models.enums import DealStage
from app.schemas.deal import (
    DealCreate,
    DealList,
    DealMove,
    DealRead,
    DealTransitionRead,
    DealUpdate,
    PipelineResponse,
    PipelineStage,
)
from app.services.context import ActorContext
from app.services.errors import ServiceError
from app.services.pipeline.deals import (
    create_deal,
    delete_deal,
    get_deal,
    get_pipeline,
    list_deals,
    list_transitions,
    move_deal,
    update_deal,
)

router = APIRouter()


@router.get("", response_model=DealList)
def api_list_deals(
    stage: DealStage | None = Query(None),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> DealList:
    deals = list_deals(db, actor, stage=stage.value if stage else None)
    return DealList(items=[DealRead.model_validate(d) for d in deals], total=len(deals))


@router.post("", response_model=DealRead, status_code=201)
def api_create_deal(
    data: DealCreate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> DealRead:
    """Create a deal; without a position it goes to the end of its stage."""
    try:
        deal = create_deal(db, actor, data)
    except ServiceError as exc:
        raise http_error(exc) from exc
    return DealRead.model_validate(deal)


@router.get("/pipeline", response_model=PipelineResponse)
def api_pipeline(
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> PipelineResponse:
    """Board view grouped by stage."""
    board = get_pipeline(db, actor)
    stages = [
        PipelineStage(
            stage=stage,
            deals=[DealRead.model_validate(d) for d in deals],
            total_value=sum((d.value or Decimal("0") for d in deals), Decimal("0")),
        )
        for stage, deals in board.items()
    ]
    return PipelineResponse(stages=stages)


@router.get("/{deal_id}", response_model=DealRead)
def api_get_deal(
    deal_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> DealRead:
    try:
        deal = get_deal(db, actor, deal_id)
    except ServiceError as exc:
        raise http_error(exc) from exc
    return DealRead.model_validate(deal)


@router.put("/{deal_id}", response_model=DealRead)
def api_update_deal(
    deal_id: int,
    data: DealUpdate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> DealRead:
    try:
        deal = update_deal(db, actor, deal_id, data)
    except ServiceError as exc:
        raise http_error(exc) from exc
    return DealRead.model_validate(deal)


@router.delete("/{deal_id}", status_code=204)
def api_delete_deal(
    deal_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> None:
    try:
        delete_deal(db, actor, deal_id)
    except ServiceError as exc:
        raise http_error(exc) from exc


@router.post("/{deal_id}/move", response_model=DealRead)
def api_move_deal(
    deal_id: int,
    data: DealMove,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> DealRead:
    """Drag-and-drop: set stage and position in one write.

    On an error response the client should drop its optimistic board state
    and re-fetch ``/api/deals/pipeline``.
    """
    try:
        deal = move_deal(db, actor, deal_id, data)
    except ServiceError as exc:
        raise http_error(exc) from exc
    return DealRead.model_validate(deal)


@router.get("/{deal_id}/transitions", response_model=list[DealTransitionRead])
def api_deal_transitions(
    deal_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> list[DealTransitionRead]:
    try:
        transitions = list_transitions(db, actor, deal_id)
    except ServiceError as exc:
        raise http_error(exc) from exc
    return [DealTransitionRead.model_validate(t) for t in transitions]
