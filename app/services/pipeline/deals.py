"""Deals service: create, move, update and audit deals on the pipeline board.

Every mutation of stage, position, value or probability appends a
DealTransition. Creation writes the deal and its first transition in one
transaction.

Moves are computed against the stage as read at request time and written
without re-validating neighbours; two concurrent drags can produce equal or
crossed positions. Callers that see a write error discard their optimistic
board state and re-fetch.
"""

from __future__ import annotations

import logging
import math
import uuid

from sqlalchemy import case
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models import Company, Contact, Deal, DealTransition, UserWorkspace
from app.models.enums import STAGE_ORDER, DealStage
from app.schemas.deal import DealCreate, DealMove, DealUpdate
from app.services.context import ActorContext
from app.services.errors import NotFoundError
from app.services.pipeline.ordering import (
    DEFAULT_STAGE_PROBABILITY,
    append_position,
    drop_position,
    sort_stage,
)

logger = logging.getLogger(__name__)

_STAGE_RANK = {stage: rank for rank, stage in enumerate(STAGE_ORDER)}
_AUDITED_FIELDS = ("stage", "position", "value", "probability")


def _step() -> int:
    return get_settings().pipeline_position_step


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _get_deal_or_404(db: Session, actor: ActorContext, deal_id: int) -> Deal:
    deal = (
        db.query(Deal)
        .filter(Deal.id == deal_id, Deal.workspace_id == actor.workspace_id)
        .first()
    )
    if deal is None:
        raise NotFoundError("Deal not found")
    return deal


def _stage_deals(db: Session, workspace_id: uuid.UUID, stage: str) -> list[Deal]:
    rows = (
        db.query(Deal)
        .filter(Deal.workspace_id == workspace_id, Deal.stage == stage)
        .order_by(Deal.position.asc(), Deal.id.asc())
        .all()
    )
    return rows


def _check_references(
    db: Session,
    actor: ActorContext,
    company_id: int | None = None,
    contact_id: int | None = None,
    assigned_to_id: int | None = None,
) -> None:
    """Referenced company, contact and assignee must belong to the actor's workspace."""
    if company_id is not None:
        found = (
            db.query(Company.id)
            .filter(Company.id == company_id, Company.workspace_id == actor.workspace_id)
            .first()
        )
        if found is None:
            raise NotFoundError("Company not found")
    if contact_id is not None:
        found = (
            db.query(Contact.id)
            .filter(Contact.id == contact_id, Contact.workspace_id == actor.workspace_id)
            .first()
        )
        if found is None:
            raise NotFoundError("Contact not found")
    if assigned_to_id is not None:
        found = (
            db.query(UserWorkspace.id)
            .filter(
                UserWorkspace.user_id == assigned_to_id,
                UserWorkspace.workspace_id == actor.workspace_id,
                UserWorkspace.removed_at.is_(None),
            )
            .first()
        )
        if found is None:
            raise NotFoundError("Assignee is not a member of this workspace")


def _record_transition(
    db: Session,
    deal: Deal,
    actor: ActorContext,
    from_stage: str | None,
    from_position: int | None,
) -> DealTransition:
    transition = DealTransition(
        deal_id=deal.id,
        from_stage=from_stage,
        to_stage=deal.stage,
        from_position=from_position,
        to_position=deal.position,
        value=deal.value,
        probability=deal.probability,
        changed_by_id=actor.user_id,
    )
    db.add(transition)
    return transition


def create_deal(db: Session, actor: ActorContext, data: DealCreate) -> Deal:
    """Create a deal at the end of its stage (unless a position is given).

    The deal and its initial transition commit together or not at all.
    """
    _check_references(
        db,
        actor,
        company_id=data.company_id,
        contact_id=data.contact_id,
        assigned_to_id=data.assigned_to_id,
    )
    stage = data.stage.value
    position = data.position
    if position is None:
        position = append_position(_stage_deals(db, actor.workspace_id, stage), step=_step())
    probability = data.probability
    if probability is None:
        probability = DEFAULT_STAGE_PROBABILITY.get(stage)

    deal = Deal(
        workspace_id=actor.workspace_id,
        name=data.name,
        value=data.value,
        stage=stage,
        position=position,
        probability=probability,
        close_date=data.close_date,
        owner_id=actor.user_id,
        assigned_to_id=data.assigned_to_id,
        company_id=data.company_id,
        contact_id=data.contact_id,
        notes=data.notes,
    )
    try:
        db.add(deal)
        db.flush()
        _record_transition(db, deal, actor, from_stage=None, from_position=None)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(deal)
    logger.info("Deal %s created in stage %s at position %s", deal.id, stage, position)
    return deal


def move_deal(db: Session, actor: ActorContext, deal_id: int, move: DealMove) -> Deal:
    """Combined stage + position change from a drag-and-drop.

    A client-computed ``position`` is stored as sent (rounded to an integer).
    Otherwise the position is derived from the target stage as it is now.
    """
    deal = _get_deal_or_404(db, actor, deal_id)
    from_stage, from_position = deal.stage, deal.position
    stage = move.stage.value

    if move.position is not None:
        position = _round_half_up(move.position)
    else:
        others = [d for d in _stage_deals(db, actor.workspace_id, stage) if d.id != deal.id]
        position = drop_position(others, move.target_id, move.edge, step=_step())

    deal.stage = stage
    deal.position = position
    if deal.probability is None:
        deal.probability = DEFAULT_STAGE_PROBABILITY.get(stage)
    _record_transition(db, deal, actor, from_stage=from_stage, from_position=from_position)
    db.commit()
    db.refresh(deal)
    logger.info(
        "Deal %s moved %s@%s -> %s@%s by user %s",
        deal.id,
        from_stage,
        from_position,
        stage,
        position,
        actor.user_id,
    )
    return deal


def update_deal(db: Session, actor: ActorContext, deal_id: int, data: DealUpdate) -> Deal:
    """Update sent fields. Changing stage without a position appends to the new stage."""
    deal = _get_deal_or_404(db, actor, deal_id)
    changes = data.model_dump(exclude_unset=True)
    # Non-nullable columns: an explicit null means "leave as is"
    for key in ("name", "stage", "position"):
        if key in changes and changes[key] is None:
            del changes[key]
    if "stage" in changes:
        changes["stage"] = DealStage(changes["stage"]).value

    _check_references(
        db,
        actor,
        company_id=changes.get("company_id"),
        contact_id=changes.get("contact_id"),
        assigned_to_id=changes.get("assigned_to_id"),
    )

    if "stage" in changes and changes["stage"] != deal.stage and "position" not in changes:
        others = [
            d for d in _stage_deals(db, actor.workspace_id, changes["stage"]) if d.id != deal.id
        ]
        changes["position"] = append_position(others, step=_step())

    before = {field: getattr(deal, field) for field in _AUDITED_FIELDS}
    for key, value in changes.items():
        setattr(deal, key, value)

    if any(getattr(deal, field) != before[field] for field in _AUDITED_FIELDS):
        _record_transition(
            db, deal, actor, from_stage=before["stage"], from_position=before["position"]
        )
    db.commit()
    db.refresh(deal)
    return deal


def get_deal(db: Session, actor: ActorContext, deal_id: int) -> Deal:
    return _get_deal_or_404(db, actor, deal_id)


def list_deals(db: Session, actor: ActorContext, stage: str | None = None) -> list[Deal]:
    """Deals in board order: stage order, then position, then id."""
    query = db.query(Deal).filter(Deal.workspace_id == actor.workspace_id)
    if stage is not None:
        query = query.filter(Deal.stage == stage)
    stage_rank = case(_STAGE_RANK, value=Deal.stage, else_=len(_STAGE_RANK))
    return query.order_by(stage_rank, Deal.position.asc(), Deal.id.asc()).all()


def get_pipeline(db: Session, actor: ActorContext) -> dict[str, list[Deal]]:
    """Every stage (empty ones included) mapped to its deals in position order."""
    board: dict[str, list[Deal]] = {stage: [] for stage in STAGE_ORDER}
    for deal in list_deals(db, actor):
        board.setdefault(deal.stage, []).append(deal)
    return {stage: sort_stage(deals) for stage, deals in board.items()}


def list_transitions(db: Session, actor: ActorContext, deal_id: int) -> list[DealTransition]:
    """Audit trail for a deal, oldest first."""
    deal = _get_deal_or_404(db, actor, deal_id)
    return (
        db.query(DealTransition)
        .filter(DealTransition.deal_id == deal.id)
        .order_by(DealTransition.id.asc())
        .all()
    )


def delete_deal(db: Session, actor: ActorContext, deal_id: int) -> None:
    """Delete a deal; its transitions go with it."""
    deal = _get_deal_or_404(db, actor, deal_id)
    db.delete(deal)
    db.commit()
    logger.info("Deal %s deleted by user %s", deal_id, actor.user_id)
