"""
Dream interpretation, history and insights endpoints.
"""

from fastapi import APIRouter, status

from luna.ai.interpreter import InterpretationError
from luna.api.deps import CurrentIdentity, Directory, Dreams, Interpreter, OptionalIdentity
from luna.api.errors import ApiError
from luna.dreams.insights import compute_insights
from luna.kernel.models.dream import Dream
from luna.logging_config import get_logger
from luna.schemas.dream import (
    MAX_DREAM_LENGTH,
    MIN_DREAM_LENGTH,
    DreamDetailResponse,
    DreamListResponse,
    DreamResponse,
    EmptyInsightsData,
    InsightsData,
    InsightsResponse,
    InterpretData,
    InterpretRequest,
    InterpretResponse,
)

logger = get_logger(__name__)

router = APIRouter()


@router.post("/interpret", response_model=InterpretResponse)
async def interpret(
    data: InterpretRequest,
    identity: OptionalIdentity,
    interpreter: Interpreter,
    dreams: Dreams,
    directory: Directory,
):
    """
    Interpret a dream.

    The result is saved to the caller's history only when the request is
    authenticated.
    """
    text = data.dream_text
    if not text or not (MIN_DREAM_LENGTH <= len(text) <= MAX_DREAM_LENGTH):
        raise ApiError(
            status.HTTP_400_BAD_REQUEST,
            f"Dream text must be a string between {MIN_DREAM_LENGTH} and {MAX_DREAM_LENGTH} characters",
            "INVALID_DREAM_TEXT",
        )

    try:
        interpretation = await interpreter.interpret(text)
    except InterpretationError as e:
        logger.error("Interpretation failed: %s", e)
        raise ApiError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to interpret dream",
            "INTERPRETATION_FAILED",
        )

    dream_id = None
    if identity is not None:
        dream = Dream(
            user_id=identity.user_id,
            dream_text=text,
            interpretation=interpretation,
            tags=data.tags,
            sentiment=data.sentiment,
            themes=data.themes,
            symbols=data.symbols,
            mood=data.mood,
            clarity=data.clarity,
        )
        dream_id = await dreams.save_dream(dream)
        await directory.increment_dream_count(identity.user_id)
        logger.info("Dream saved", extra={"dream_id": dream_id, "user_id": identity.user_id})

    return InterpretResponse(data=InterpretData(interpretation=interpretation, dream_id=dream_id))


@router.get("/history", response_model=DreamListResponse)
async def history(identity: CurrentIdentity, dreams: Dreams):
    """The caller's saved dreams, oldest first."""
    items = await dreams.get_history_by_user_id(identity.user_id)
    return DreamListResponse(data=[DreamResponse.model_validate(d) for d in items])


@router.get("/insights", response_model=InsightsResponse)
async def insights(identity: CurrentIdentity, dreams: Dreams):
    """Aggregate statistics over the caller's saved dreams."""
    items = await dreams.get_history_by_user_id(identity.user_id)
    if not items:
        return InsightsResponse(data=EmptyInsightsData())

    return InsightsResponse(
        data=InsightsData.model_validate(compute_insights(items)),
        dreams=[DreamResponse.model_validate(d) for d in items],
    )


@router.get("/{dream_id}", response_model=DreamDetailResponse)
async def get_dream(dream_id: str, identity: CurrentIdentity, dreams: Dreams):
    """A single saved dream; other users' dreams read as missing."""
    dream = await dreams.get_dream_by_id(dream_id)
    if not dream or dream.user_id != identity.user_id:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Dream not found", "DREAM_NOT_FOUND")
    return DreamDetailResponse(data=DreamResponse.model_validate(dream))
