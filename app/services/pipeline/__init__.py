"""Deal pipeline: ordering engine and deal mutations with audit trail."""

from app.services.pipeline.ordering import (
    DEFAULT_STAGE_PROBABILITY,
    DropEdge,
    append_position,
    drop_position,
    insert_position,
    sort_stage,
)

__all__ = [
    "DEFAULT_STAGE_PROBABILITY",
    "DropEdge",
    "append_position",
    "drop_position",
    "insert_position",
    "sort_stage",
]
