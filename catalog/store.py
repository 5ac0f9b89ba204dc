"""
catalog/store.py -- SQLAlchemy-backed persistence layer for movies and reviews.

Uses SQLAlchemy Core (not ORM) so the domain dataclasses in catalog/models.py
remain the authoritative domain representation. Swapping SQLite for
PostgreSQL is a connection string change, not a rewrite.

Pattern: Repository + Data Mapper. CatalogStore is the repository (one clean
interface per entity). The _row_to_* functions are the mappers.

Consistency notes:
  Every method is a single statement, except delete_movie(cascade=True) which
  deletes reviews and the movie inside one engine.begin() transaction.

  get_movie_with_reviews() is a single LEFT OUTER JOIN anchored on the movie
  row. If the movie does not exist the query returns no rows at all, so
  orphaned reviews for that id can never produce a result on their own.

  reviews.movie_id has no FOREIGN KEY: the reference is checked (or not) by
  catalog/service.py according to Settings.review_integrity.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = CatalogStore("sqlite:///:memory:")
    movie = store.create_movie(Movie(title="X", release_date=2020, genre="Drama", actors=[...]))
    store.create_review(Review(movie_id=movie.id, username="alice", review="Great", rating=5))
    view = store.get_movie_with_reviews(movie.id)
    store.close()
"""

import json
import uuid
from typing import Optional

from sqlalchemy import Column, Float, Integer, MetaData, String, Table, Text, create_engine, event, select
from sqlalchemy.engine import Engine

from catalog.models import Actor, Movie, MovieView, Review
from core.config import get_settings

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_movies = Table(
    "movies",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("title", String(255), nullable=False, index=True),
    Column("release_date", Integer, nullable=False),
    Column("genre", String(50), nullable=False),
    Column("actors", Text, nullable=False),  # JSON array of {actor_name, character_name}
)

_reviews = Table(
    "reviews",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("movie_id", String(32), nullable=False, index=True),
    Column("username", String(255), nullable=False),
    Column("review", Text, nullable=False),
    Column("rating", Float, nullable=False),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _new_id() -> str:
    return uuid.uuid4().hex


def _dump_actors(actors: list[Actor]) -> str:
    return json.dumps([{"actor_name": a.actor_name, "character_name": a.character_name} for a in actors])


def _load_actors(raw: Optional[str]) -> list[Actor]:
    if not raw:
        return []
    return [Actor(actor_name=a["actor_name"], character_name=a["character_name"]) for a in json.loads(raw)]


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class CatalogStore:
    def __init__(self, db_url: Optional[str] = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            # SQLite requires check_same_thread=False because FastAPI runs
            # sync handlers on a thread pool.
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Movies
    # ------------------------------------------------------------------

    def create_movie(self, movie: Movie) -> Movie:
        """Insert a new movie and return it with its assigned id."""
        movie_id = _new_id()
        with self.engine.connect() as conn:
            conn.execute(
                _movies.insert().values(
                    id=movie_id,
                    title=movie.title,
                    release_date=movie.release_date,
                    genre=movie.genre,
                    actors=_dump_actors(movie.actors),
                )
            )
            conn.commit()
        return Movie(
            id=movie_id,
            title=movie.title,
            release_date=movie.release_date,
            genre=movie.genre,
            actors=list(movie.actors),
        )

    def get_movie(self, movie_id: str) -> Optional[Movie]:
        """Fetch a single movie by id. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_movies.select().where(_movies.c.id == movie_id)).fetchone()
        return _row_to_movie(row) if row is not None else None

    def get_movie_by_title(self, title: str) -> Optional[Movie]:
        """Look up a movie by exact title. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_movies.select().where(_movies.c.title == title)).fetchone()
        return _row_to_movie(row) if row is not None else None

    def list_movies(self) -> list[Movie]:
        """Return all movies ordered by title."""
        with self.engine.connect() as conn:
            rows = conn.execute(_movies.select().order_by(_movies.c.title)).fetchall()
        return [_row_to_movie(r) for r in rows]

    def update_movie(self, movie_id: str, **fields) -> bool:
        """Update mutable fields on an existing movie.

        Accepts any subset of: title, release_date, genre, actors. actors must
        be passed as list[Actor]; this method serializes it before writing.

        Returns True if a row was updated, False if movie_id was not found.
        """
        if "actors" in fields:
            fields["actors"] = _dump_actors(fields["actors"])
        if not fields:
            return self.get_movie(movie_id) is not None
        with self.engine.connect() as conn:
            result = conn.execute(_movies.update().where(_movies.c.id == movie_id).values(**fields))
            conn.commit()
        return result.rowcount > 0

    def delete_movie(self, movie_id: str, cascade: bool = False) -> bool:
        """Delete a movie. With cascade=True its reviews go in the same transaction.

        Returns True if the movie was deleted, False if not found.
        """
        with self.engine.begin() as conn:
            if cascade:
                conn.execute(_reviews.delete().where(_reviews.c.movie_id == movie_id))
            result = conn.execute(_movies.delete().where(_movies.c.id == movie_id))
        return result.rowcount > 0

    def get_movie_with_reviews(self, movie_id: str) -> Optional[MovieView]:
        """Return the movie joined with every review that references it.

        Returns None when the movie does not exist, regardless of orphaned
        reviews. A movie without reviews comes back with reviews == [].
        Review order is whatever the database returns.
        """
        query = (
            select(
                _movies,
                _reviews.c.id.label("review_id"),
                _reviews.c.username.label("review_username"),
                _reviews.c.review.label("review_text"),
                _reviews.c.rating.label("review_rating"),
            )
            .select_from(_movies.outerjoin(_reviews, _reviews.c.movie_id == _movies.c.id))
            .where(_movies.c.id == movie_id)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        if not rows:
            return None
        reviews = [
            Review(
                id=r.review_id,
                movie_id=r.id,
                username=r.review_username,
                review=r.review_text,
                rating=r.review_rating,
            )
            for r in rows
            if r.review_id is not None
        ]
        return MovieView(movie=_row_to_movie(rows[0]), reviews=reviews)

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    def create_review(self, review: Review) -> Review:
        """Insert a review and return it with its assigned id.

        No check is made here that movie_id exists -- that is a service policy.
        """
        review_id = _new_id()
        with self.engine.connect() as conn:
            conn.execute(
                _reviews.insert().values(
                    id=review_id,
                    movie_id=review.movie_id,
                    username=review.username,
                    review=review.review,
                    rating=review.rating,
                )
            )
            conn.commit()
        return Review(
            id=review_id,
            movie_id=review.movie_id,
            username=review.username,
            review=review.review,
            rating=review.rating,
        )

    def list_reviews(self, movie_id: Optional[str] = None) -> list[Review]:
        """Return all reviews, or only those for one movie id."""
        query = _reviews.select()
        if movie_id is not None:
            query = query.where(_reviews.c.movie_id == movie_id)
        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_row_to_review(r) for r in rows]

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            conn.execute(_movies.select().limit(1)).fetchall()
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_movie(row) -> Movie:
    return Movie(
        id=row.id,
        title=row.title,
        release_date=row.release_date,
        genre=row.genre,
        actors=_load_actors(row.actors),
    )


def _row_to_review(row) -> Review:
    return Review(
        id=row.id,
        movie_id=row.movie_id,
        username=row.username,
        review=row.review,
        rating=row.rating,
    )
