"""
API request and response models for CineReview REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in catalog/models.py and
auth/models.py, which own the internal domain representation. Route handlers
map between the two.

Wire names are camelCase (releaseDate, movieId, actorName); Python attributes
are snake_case. The alias generator maps between them, and FastAPI serializes
response models by alias.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from auth.models import PASSWORD_MAX_BYTES
from catalog.models import (
    RATING_MAX,
    RATING_MIN,
    RELEASE_YEAR_MAX,
    RELEASE_YEAR_MIN,
    Actor,
    Movie,
    Review,
)

_REQUEST_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)
_RESPONSE_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)
# Credentials are taken byte-for-byte: no whitespace stripping.
_AUTH_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class GenreEnum(str, Enum):
    action = "Action"
    adventure = "Adventure"
    comedy = "Comedy"
    drama = "Drama"
    fantasy = "Fantasy"
    horror = "Horror"
    mystery = "Mystery"
    thriller = "Thriller"
    western = "Western"
    science_fiction = "Science Fiction"


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Error envelope returned on every 4xx/5xx response."""

    model_config = ConfigDict(frozen=True)

    success: bool = False
    code: str
    message: str
    detail: Optional[str] = None


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: str


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


def _password_within_bcrypt_limit(value: str) -> str:
    if len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError(f"must be at most {PASSWORD_MAX_BYTES} bytes when UTF-8 encoded")
    return value


class SignUpRequest(BaseModel):
    """Request body for POST /signup.

    Empty strings pass Pydantic but are rejected by AuthService as missing.
    Passwords are capped at bcrypt's 72-byte input limit, counted in UTF-8
    bytes rather than characters.
    """

    model_config = _AUTH_CONFIG

    name: Optional[str] = Field(default=None, max_length=255)
    username: str = Field(max_length=255)
    password: str

    @field_validator("password")
    @classmethod
    def password_within_limit(cls, value: str) -> str:
        return _password_within_bcrypt_limit(value)


class SignInRequest(BaseModel):
    model_config = _AUTH_CONFIG

    username: str = Field(max_length=255)
    password: str

    @field_validator("password")
    @classmethod
    def password_within_limit(cls, value: str) -> str:
        return _password_within_bcrypt_limit(value)


class SignInResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    token: str


# ---------------------------------------------------------------------------
# Movies
# ---------------------------------------------------------------------------


class ActorModel(BaseModel):
    model_config = _REQUEST_CONFIG

    actor_name: str = Field(min_length=1, max_length=255)
    character_name: str = Field(min_length=1, max_length=255)

    def to_domain(self) -> Actor:
        return Actor(actor_name=self.actor_name, character_name=self.character_name)


class MovieCreate(BaseModel):
    """Request body for POST /movies."""

    model_config = _REQUEST_CONFIG

    title: str = Field(min_length=1, max_length=255)
    release_date: int = Field(ge=RELEASE_YEAR_MIN, le=RELEASE_YEAR_MAX)
    genre: GenreEnum
    actors: list[ActorModel] = Field(min_length=1)


class MovieUpdate(BaseModel):
    """Request body for PUT /movies/{title}. Every field is optional."""

    model_config = _REQUEST_CONFIG

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    release_date: Optional[int] = Field(default=None, ge=RELEASE_YEAR_MIN, le=RELEASE_YEAR_MAX)
    genre: Optional[GenreEnum] = None
    actors: Optional[list[ActorModel]] = Field(default=None, min_length=1)


class ReviewResponse(BaseModel):
    model_config = _RESPONSE_CONFIG

    id: str
    movie_id: str
    username: str
    review: str
    rating: float

    @classmethod
    def from_review(cls, review: Review) -> "ReviewResponse":
        return cls(
            id=review.id,
            movie_id=review.movie_id,
            username=review.username,
            review=review.review,
            rating=review.rating,
        )


class ActorResponse(BaseModel):
    model_config = _RESPONSE_CONFIG

    actor_name: str
    character_name: str


class MovieResponse(BaseModel):
    """A movie, with reviews only when the caller asked for the join.

    Routes that return this model set response_model_exclude_none=True so a
    bare lookup carries no reviews key at all.
    """

    model_config = _RESPONSE_CONFIG

    id: str
    title: str
    release_date: int
    genre: str
    actors: list[ActorResponse]
    reviews: Optional[list[ReviewResponse]] = None

    @classmethod
    def from_movie(cls, movie: Movie, reviews: Optional[list[Review]] = None) -> "MovieResponse":
        """Factory Method: the dataclass -> transport mapping lives beside the model."""
        return cls(
            id=movie.id,
            title=movie.title,
            release_date=movie.release_date,
            genre=movie.genre,
            actors=[ActorResponse(actor_name=a.actor_name, character_name=a.character_name) for a in movie.actors],
            reviews=[ReviewResponse.from_review(r) for r in reviews] if reviews is not None else None,
        )


class MovieEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: str
    movie: MovieResponse


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------


class ReviewCreate(BaseModel):
    """Request body for POST /reviews.

    Any username in the body is ignored (extra fields are dropped); the
    author is always the authenticated principal. rating=0 is valid.
    """

    model_config = _REQUEST_CONFIG

    movie_id: str = Field(min_length=1, max_length=64)
    review: str = Field(min_length=1, max_length=5000)
    rating: float = Field(ge=RATING_MIN, le=RATING_MAX)


class ReviewEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: str
    review: ReviewResponse
