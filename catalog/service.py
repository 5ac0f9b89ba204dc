"""
catalog/service.py -- Movie management, the movie/review aggregator, and review creation.

All three services are constructed once at startup around a shared
CatalogStore and reached by route handlers through app.state.

Every constraint is checked here before the store is called, so a rejected
request never leaves a partial write behind. Routes already validate shapes
through Pydantic; these checks make the services safe to call directly.

Referential integrity between reviews and movies is a policy, chosen by
Settings.review_integrity:
  none    -- reviews may reference any id; deleting a movie orphans its reviews
  enforce -- creating a review for an absent movie raises NotFoundError
  cascade -- enforce, and deleting a movie also deletes its reviews
"""

from __future__ import annotations

import logging
from typing import Optional

from auth.models import Principal
from catalog.models import (
    GENRES,
    RATING_MAX,
    RATING_MIN,
    RELEASE_YEAR_MAX,
    RELEASE_YEAR_MIN,
    Actor,
    Movie,
    MovieView,
    Review,
)
from catalog.store import CatalogStore
from core.errors import AlreadyExistsError, FieldValidationError, MissingFieldsError, NotFoundError

logger = logging.getLogger("cinereview.catalog")

INTEGRITY_MODES = ("none", "enforce", "cascade")


# ---------------------------------------------------------------------------
# Field checks
# ---------------------------------------------------------------------------


def _check_release_date(release_date: int) -> None:
    if not RELEASE_YEAR_MIN <= release_date <= RELEASE_YEAR_MAX:
        raise FieldValidationError(f"releaseDate must be between {RELEASE_YEAR_MIN} and {RELEASE_YEAR_MAX}.")


def _check_genre(genre: str) -> None:
    if genre not in GENRES:
        raise FieldValidationError(f"genre must be one of: {', '.join(GENRES)}.")


def _check_actors(actors: list[Actor]) -> None:
    if not actors:
        raise FieldValidationError("Please provide at least one actor.")
    for actor in actors:
        if not actor.actor_name or not actor.character_name:
            raise FieldValidationError("Each actor must have actorName and characterName.")


# ---------------------------------------------------------------------------
# Movie management
# ---------------------------------------------------------------------------


class MovieCatalog:
    """Create, update, delete, and list movies. Titles are unique by convention."""

    def __init__(self, store: CatalogStore, integrity: str = "none") -> None:
        if integrity not in INTEGRITY_MODES:
            raise ValueError(f"Unknown review integrity mode: {integrity!r}")
        self.store = store
        self.integrity = integrity

    def list_movies(self) -> list[Movie]:
        return self.store.list_movies()

    def get_by_title(self, title: str) -> Movie:
        movie = self.store.get_movie_by_title(title)
        if movie is None:
            raise NotFoundError("Movie not found.")
        return movie

    def create_movie(
        self,
        title: Optional[str],
        release_date: Optional[int],
        genre: Optional[str],
        actors: Optional[list[Actor]],
    ) -> Movie:
        if not title or release_date is None or not genre:
            raise MissingFieldsError("Please provide title, releaseDate, and genre.")
        if actors is None:
            raise MissingFieldsError("Please provide at least one actor.")
        _check_release_date(release_date)
        _check_genre(genre)
        _check_actors(actors)

        # Check-then-insert: title uniqueness is an application convention,
        # not a store constraint.
        if self.store.get_movie_by_title(title) is not None:
            raise AlreadyExistsError("Movie already exists.")
        movie = self.store.create_movie(Movie(title=title, release_date=release_date, genre=genre, actors=actors))
        logger.info("Movie created: %s (%s)", movie.title, movie.id)
        return movie

    def update_movie(
        self,
        title: str,
        new_title: Optional[str] = None,
        release_date: Optional[int] = None,
        genre: Optional[str] = None,
        actors: Optional[list[Actor]] = None,
    ) -> Movie:
        """Apply any subset of field changes to the movie with this title."""
        movie = self.store.get_movie_by_title(title)
        if movie is None:
            raise NotFoundError("Movie not found.")

        fields: dict = {}
        if new_title:
            if new_title != title and self.store.get_movie_by_title(new_title) is not None:
                raise AlreadyExistsError("Movie already exists.")
            fields["title"] = new_title
        if release_date is not None:
            _check_release_date(release_date)
            fields["release_date"] = release_date
        if genre:
            _check_genre(genre)
            fields["genre"] = genre
        if actors is not None:
            _check_actors(actors)
            fields["actors"] = actors

        if not self.store.update_movie(movie.id, **fields):
            # Deleted between the lookup and the update.
            raise NotFoundError("Movie not found.")
        return self.store.get_movie(movie.id)

    def delete_movie(self, title: str) -> None:
        movie = self.store.get_movie_by_title(title)
        if movie is None:
            raise NotFoundError("Movie not found.")
        cascade = self.integrity == "cascade"
        if not self.store.delete_movie(movie.id, cascade=cascade):
            raise NotFoundError("Movie not found.")
        logger.info("Movie deleted: %s (%s, cascade=%s)", movie.title, movie.id, cascade)


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


class MovieReviewAggregator:
    """Return a movie, optionally joined with the reviews that reference it."""

    def __init__(self, store: CatalogStore) -> None:
        self.store = store

    def get_movie(self, movie_id: str, include_reviews: bool = False) -> MovieView:
        """Look up a movie by id.

        With include_reviews the result carries a list (empty when the movie
        has no reviews). A missing movie is NotFoundError in both modes, even
        if reviews with that movie_id exist.
        """
        if include_reviews:
            view = self.store.get_movie_with_reviews(movie_id)
            if view is None:
                raise NotFoundError("Movie not found.")
            return view
        movie = self.store.get_movie(movie_id)
        if movie is None:
            raise NotFoundError("Movie not found.")
        return MovieView(movie=movie)

    def find_movie(self, key: str, include_reviews: bool = False) -> MovieView:
        """Resolve key as a movie id, falling back to an exact title match."""
        if self.store.get_movie(key) is None:
            movie = self.store.get_movie_by_title(key)
            if movie is not None:
                key = movie.id
        return self.get_movie(key, include_reviews)


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------


class ReviewWriter:
    """Create reviews on behalf of the authenticated principal."""

    def __init__(self, store: CatalogStore, integrity: str = "none") -> None:
        if integrity not in INTEGRITY_MODES:
            raise ValueError(f"Unknown review integrity mode: {integrity!r}")
        self.store = store
        self.integrity = integrity

    def create_review(
        self,
        principal: Principal,
        movie_id: Optional[str],
        review: Optional[str],
        rating: Optional[float],
    ) -> Review:
        """Persist a review bound to principal.username.

        rating=0 is a valid rating; only None counts as missing.
        """
        if not movie_id or not review or rating is None:
            raise MissingFieldsError("Missing required fields.")
        if not RATING_MIN <= rating <= RATING_MAX:
            raise FieldValidationError(f"rating must be between {RATING_MIN} and {RATING_MAX}.")
        if self.integrity != "none" and self.store.get_movie(movie_id) is None:
            raise NotFoundError("Movie not found.")

        created = self.store.create_review(
            Review(movie_id=movie_id, username=principal.username, review=review, rating=rating)
        )
        logger.info("Review %s created by %s for movie %s", created.id, principal.username, movie_id)
        return created

    def list_reviews(self, movie_id: Optional[str] = None) -> list[Review]:
        return self.store.list_reviews(movie_id)
