"""Models package."""
from app.models.turn import (
    Animation,
    FacialExpression,
    Fragment,
    MediaOutputs,
    PipelineFailure,
    Turn,
    TurnOutcome,
)
