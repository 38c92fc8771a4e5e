"""Recommendation mutation.

Routes:
  PATCH /api/recommendations/{id}  → mark completed
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from barprep.db.session import get_db
from barprep.schemas import RecommendationRead, RecommendationUpdate
from barprep.services import recommendations as recommendation_service

router = APIRouter()


@router.patch("/{recommendation_id}", response_model=RecommendationRead)
def complete_recommendation(
    recommendation_id: uuid.UUID,
    body: RecommendationUpdate,
    db: Session = Depends(get_db),
):
    """Mark a recommendation completed; completion cannot be undone."""
    if not body.completed:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Recommendations can only be marked completed",
        )
    return recommendation_service.complete(db, recommendation_id)
