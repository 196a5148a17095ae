"""Pipeline ordering: position keys for deals within a stage.

Positions are sparse integers. Appending leaves a gap of ``step`` (100 by
default) after the current maximum; dropping next to a card takes the floor
midpoint between that card and its neighbour on the drop side. Nothing is
renumbered, so roughly six or seven successive drops into the same gap
exhaust it and the midpoint lands on an existing position. There is no
rebalancing pass; ties then sort by id.

All functions are pure and operate on anything with ``id`` and ``position``
attributes. The moving deal must not be part of ``stage_deals``.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from enum import Enum
from typing import Protocol, TypeVar

from app.models.enums import DealStage
from app.services.errors import NotFoundError

DEFAULT_STEP = 100

# Applied when a deal enters a stage without an explicit probability
DEFAULT_STAGE_PROBABILITY: dict[str, int] = {
    DealStage.lead.value: 10,
    DealStage.qualified.value: 30,
    DealStage.demo.value: 50,
    DealStage.trial.value: 60,
    DealStage.negotiation.value: 70,
    DealStage.closed_won.value: 100,
    DealStage.closed_lost.value: 0,
}


class DropEdge(str, Enum):
    """Which half of the target card the drop landed on."""

    before = "before"
    after = "after"


class Positioned(Protocol):
    id: int
    position: int | None


P = TypeVar("P", bound=Positioned)


def _pos(item: Positioned) -> int:
    return item.position or 0


def sort_stage(deals: Iterable[P]) -> list[P]:
    """Board order within a stage: position, then id for ties."""
    return sorted(deals, key=lambda d: (_pos(d), d.id))


def append_position(stage_deals: Sequence[Positioned], step: int = DEFAULT_STEP) -> int:
    """Position that sorts after every deal in the stage (0 for an empty stage)."""
    if not stage_deals:
        return 0
    return max(_pos(d) for d in stage_deals) + step


def insert_position(
    stage_deals: Sequence[Positioned],
    target_id: int,
    edge: DropEdge,
    step: int = DEFAULT_STEP,
) -> int:
    """Position for a deal dropped before or after ``target_id``.

    Raises NotFoundError if the target is not in the stage.
    """
    ordered = sort_stage(stage_deals)
    index = next((i for i, d in enumerate(ordered) if d.id == target_id), None)
    if index is None:
        raise NotFoundError(f"Deal {target_id} is not in the target stage")

    target = _pos(ordered[index])
    if DropEdge(edge) is DropEdge.before:
        if index == 0:
            return target - step
        return (_pos(ordered[index - 1]) + target) // 2

    if index == len(ordered) - 1:
        return target + step
    return (target + _pos(ordered[index + 1])) // 2


def drop_position(
    stage_deals: Sequence[Positioned],
    target_id: int | None = None,
    edge: DropEdge | None = None,
    step: int = DEFAULT_STEP,
) -> int:
    """Append when dropped on the column, insert when dropped on a card."""
    if target_id is None:
        return append_position(stage_deals, step=step)
    if edge is None:
        raise ValueError("edge is required when target_id is given")
    return insert_position(stage_deals, target_id, edge, step=step)
