"""
api/routes/v1/reviews.py -- Review routes for the CineReview REST API.

Routes:
  POST /reviews             -- create a review as the authenticated user
  GET  /reviews[?movieId=]  -- list reviews, optionally for one movie
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from api.models import ReviewCreate, ReviewEnvelope, ReviewResponse
from auth.dependencies import TokenCheckedRoute, get_current_principal
from auth.models import Principal
from catalog.service import ReviewWriter

router = APIRouter(route_class=TokenCheckedRoute)


@router.post("/reviews", response_model=ReviewEnvelope, status_code=201)
def create_review(
    request: Request,
    body: ReviewCreate,
    principal: Principal = Depends(get_current_principal),
) -> ReviewEnvelope:
    """Create a review. The author is the token's username, never the body's."""
    writer: ReviewWriter = request.app.state.review_writer
    review = writer.create_review(principal, body.movie_id, body.review, body.rating)
    return ReviewEnvelope(message="Review created!", review=ReviewResponse.from_review(review))


@router.get("/reviews", response_model=list[ReviewResponse], dependencies=[Depends(get_current_principal)])
def list_reviews(
    request: Request,
    movie_id: Optional[str] = Query(default=None, alias="movieId"),
) -> list[ReviewResponse]:
    writer: ReviewWriter = request.app.state.review_writer
    return [ReviewResponse.from_review(r) for r in writer.list_reviews(movie_id)]
