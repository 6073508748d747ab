"""Rating endpoints.

POST   /v1/ratings                  - Submit or re-submit a rating (role "user")
GET    /v1/ratings/mine             - Caller's ratings (role "user")
GET    /v1/ratings/store/{store_id} - Store plus the caller's rating (role "user")
PUT    /v1/ratings/{rating_id}      - Change own rating
DELETE /v1/ratings/{rating_id}      - Delete own rating (admins: any)
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, Path, Response, status

from store_ratings.routes.deps import get_acting_user, get_gateway, require_role
from store_ratings.schemas import (
    RatingListResponse,
    RatingOut,
    StoreWithUserRating,
    StoreWithUserRatingResponse,
    SubmitRatingRequest,
    SubmitRatingResponse,
    UpdateRatingRequest,
)
from store_ratings.services.authorization import ActingUser, Role
from store_ratings.services.ratings import (
    RatingResult,
    delete_rating,
    get_store_with_user_rating,
    list_user_ratings,
    submit_or_update_rating,
    update_rating,
)
from store_ratings.stores.gateway import PersistenceGateway

router = APIRouter()


def _rating_out(result: RatingResult) -> RatingOut:
    return RatingOut(
        id=result.id,
        user_id=result.user_id,
        store_id=result.store_id,
        rating=result.rating,
    )


@router.post("", response_model=SubmitRatingResponse)
async def submit_rating(
    request: SubmitRatingRequest,
    acting_user: ActingUser = Depends(require_role(Role.USER)),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> SubmitRatingResponse:
    """Rate a store; a repeat submission overwrites the previous rating."""
    result = await submit_or_update_rating(gateway, acting_user.id, request.store_id, request.rating)
    return SubmitRatingResponse(
        message="Rating submitted successfully",
        created=result.created,
        rating=_rating_out(result),
    )


@router.get("/mine", response_model=RatingListResponse)
async def my_ratings(
    acting_user: ActingUser = Depends(require_role(Role.USER)),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> RatingListResponse:
    """The caller's ratings, newest first."""
    ratings = await list_user_ratings(gateway, acting_user.id)
    return RatingListResponse(ratings=[RatingOut.model_validate(r) for r in ratings])


@router.get("/store/{store_id}", response_model=StoreWithUserRatingResponse)
async def store_with_my_rating(
    store_id: int = Path(ge=1),
    acting_user: ActingUser = Depends(require_role(Role.USER)),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> StoreWithUserRatingResponse:
    """A store with the caller's own rating (null when not rated yet)."""
    store, user_rating = await get_store_with_user_rating(gateway, store_id, acting_user.id)
    return StoreWithUserRatingResponse(
        store=StoreWithUserRating.model_validate({**asdict(store), "user_rating": user_rating})
    )


@router.put("/{rating_id}", response_model=SubmitRatingResponse)
async def change_rating(
    request: UpdateRatingRequest,
    rating_id: int = Path(ge=1),
    acting_user: ActingUser = Depends(get_acting_user),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> SubmitRatingResponse:
    """Change the value of one of the caller's ratings."""
    result = await update_rating(gateway, rating_id, request.rating, acting_user)
    return SubmitRatingResponse(
        message="Rating updated successfully",
        created=False,
        rating=_rating_out(result),
    )


@router.delete("/{rating_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_rating(
    rating_id: int = Path(ge=1),
    acting_user: ActingUser = Depends(get_acting_user),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> Response:
    """Delete a rating."""
    await delete_rating(gateway, rating_id, acting_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
