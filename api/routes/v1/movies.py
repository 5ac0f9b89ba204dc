"""
api/routes/v1/movies.py -- Movie catalog routes for the CineReview REST API.

Routes:
  GET    /movies                 -- list all movies
  POST   /movies                 -- create a movie
  GET    /movies/{key}           -- one movie, key is an id or a title
  GET    /movies/{key}?reviews=true -- the same movie joined with its reviews
  PUT    /movies/{title}         -- update any subset of fields
  DELETE /movies/{title}         -- delete (cascades per review_integrity)

Every route requires a token, including the joined detail view.
"""

from fastapi import APIRouter, Depends, Query, Request

from api.models import MessageResponse, MovieCreate, MovieEnvelope, MovieResponse, MovieUpdate
from auth.dependencies import TokenCheckedRoute, get_current_principal
from catalog.service import MovieCatalog, MovieReviewAggregator

# Router-level dependency applies to every route registered on this router,
# so individual handlers don't each need to repeat Depends(get_current_principal).
# TokenCheckedRoute runs the same check ahead of body parsing.
router = APIRouter(route_class=TokenCheckedRoute, dependencies=[Depends(get_current_principal)])


@router.get("/movies", response_model=list[MovieResponse], response_model_exclude_none=True)
def list_movies(request: Request) -> list[MovieResponse]:
    catalog: MovieCatalog = request.app.state.movie_catalog
    return [MovieResponse.from_movie(m) for m in catalog.list_movies()]


@router.post("/movies", response_model=MovieEnvelope, response_model_exclude_none=True, status_code=201)
def create_movie(request: Request, body: MovieCreate) -> MovieEnvelope:
    catalog: MovieCatalog = request.app.state.movie_catalog
    movie = catalog.create_movie(
        title=body.title,
        release_date=body.release_date,
        genre=body.genre.value,
        actors=[a.to_domain() for a in body.actors],
    )
    return MovieEnvelope(message="Movie created!", movie=MovieResponse.from_movie(movie))


@router.get("/movies/{key}", response_model=MovieResponse, response_model_exclude_none=True)
def get_movie(
    request: Request,
    key: str,
    reviews: bool = Query(default=False, description="Attach every review that references this movie."),
) -> MovieResponse:
    """Return one movie by id or title, optionally with its reviews."""
    aggregator: MovieReviewAggregator = request.app.state.aggregator
    view = aggregator.find_movie(key, include_reviews=reviews)
    return MovieResponse.from_movie(view.movie, view.reviews)


@router.put("/movies/{title}", response_model=MovieEnvelope, response_model_exclude_none=True)
def update_movie(request: Request, title: str, body: MovieUpdate) -> MovieEnvelope:
    catalog: MovieCatalog = request.app.state.movie_catalog
    movie = catalog.update_movie(
        title,
        new_title=body.title,
        release_date=body.release_date,
        genre=body.genre.value if body.genre is not None else None,
        actors=[a.to_domain() for a in body.actors] if body.actors is not None else None,
    )
    return MovieEnvelope(message="Movie updated!", movie=MovieResponse.from_movie(movie))


@router.delete("/movies/{title}", response_model=MessageResponse)
def delete_movie(request: Request, title: str) -> MessageResponse:
    catalog: MovieCatalog = request.app.state.movie_catalog
    catalog.delete_movie(title)
    return MessageResponse(message="Movie deleted!")
