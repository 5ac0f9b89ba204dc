"""
catalog/models.py -- Domain dataclasses for the movie catalog.

These are pure data containers with zero logic. Constraint checks live in
catalog/service.py; persistence lives in catalog/store.py.

The constants below are the single source for domain limits -- api/models.py
builds its request validators from them.
"""

from dataclasses import dataclass, field
from typing import Optional

GENRES: tuple[str, ...] = (
    "Action",
    "Adventure",
    "Comedy",
    "Drama",
    "Fantasy",
    "Horror",
    "Mystery",
    "Thriller",
    "Western",
    "Science Fiction",
)

RELEASE_YEAR_MIN = 1900
RELEASE_YEAR_MAX = 2100

RATING_MIN = 0
RATING_MAX = 5


@dataclass
class Actor:
    actor_name: str
    character_name: str


@dataclass
class Movie:
    """A catalog entry.

    title is indexed and kept unique by MovieCatalog, not by a database
    constraint. id is None before the record is written to the database.
    """

    title: str
    release_date: int
    genre: str
    actors: list[Actor] = field(default_factory=list)
    id: Optional[str] = None


@dataclass
class Review:
    """A rating left by a user.

    movie_id is a plain reference: whether it must point at an existing
    movie depends on Settings.review_integrity. username is always taken
    from the authenticated principal.
    """

    movie_id: str
    username: str
    review: str
    rating: float
    id: Optional[str] = None


@dataclass
class MovieView:
    """A movie as returned by the aggregator.

    reviews is None for a bare lookup and a (possibly empty) list when the
    caller asked for the join.
    """

    movie: Movie
    reviews: Optional[list[Review]] = None
