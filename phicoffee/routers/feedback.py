# phicoffee/routers/feedback.py
from fastapi import APIRouter, Depends, HTTPException, status

from phicoffee.core.exceptions import OrderValidationError, UpstreamError
from phicoffee.database import get_feedback_service
from phicoffee.schemas.feedback import FeedbackCreate, FeedbackResult
from phicoffee.services.feedback_service import FeedbackService

router = APIRouter(prefix="/feedback", tags=["Feedback"])


@router.post("", response_model=FeedbackResult)
def submit_feedback(
    payload: FeedbackCreate,
    service: FeedbackService = Depends(get_feedback_service),
):
    """
    Record a 1..5 rating (and optional comment) for an order.

    Out-of-range ratings are rejected by validation (422) before any append.
    """
    try:
        service.submit_feedback(payload)
    except OrderValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.message,
        )
    except UpstreamError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=e.message,
        )
    return FeedbackResult(success=True)
