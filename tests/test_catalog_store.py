"""Unit tests for catalog/store.py -- movie/review persistence and the join.

Covers:
- movie create/get/get_by_title/list/update/delete
- get_movie_with_reviews(): reviews attached, empty list when none,
  None for an absent movie even when orphaned reviews exist
- delete_movie(cascade=True) removes the movie's reviews, cascade=False orphans them
"""

from catalog.models import Actor, Movie, Review
from catalog.store import CatalogStore


def _movie(title: str = "X") -> Movie:
    return Movie(
        title=title,
        release_date=2020,
        genre="Drama",
        actors=[Actor(actor_name="A", character_name="B"), Actor(actor_name="C", character_name="D")],
    )


class TestMovies:
    def test_create_and_fetch(self, catalog_store: CatalogStore) -> None:
        created = catalog_store.create_movie(_movie())
        assert created.id

        fetched = catalog_store.get_movie(created.id)
        assert fetched == created
        assert catalog_store.get_movie_by_title("X") == created
        # Actor order is preserved through the JSON column.
        assert [a.actor_name for a in fetched.actors] == ["A", "C"]

    def test_missing(self, catalog_store: CatalogStore) -> None:
        assert catalog_store.get_movie("nope") is None
        assert catalog_store.get_movie_by_title("nope") is None

    def test_list_ordered_by_title(self, catalog_store: CatalogStore) -> None:
        catalog_store.create_movie(_movie("Zulu"))
        catalog_store.create_movie(_movie("Alpha"))
        assert [m.title for m in catalog_store.list_movies()] == ["Alpha", "Zulu"]

    def test_update(self, catalog_store: CatalogStore) -> None:
        created = catalog_store.create_movie(_movie())
        assert catalog_store.update_movie(
            created.id, genre="Comedy", actors=[Actor(actor_name="E", character_name="F")]
        )
        updated = catalog_store.get_movie(created.id)
        assert updated.genre == "Comedy"
        assert updated.actors == [Actor(actor_name="E", character_name="F")]
        assert updated.release_date == 2020

    def test_update_missing(self, catalog_store: CatalogStore) -> None:
        assert catalog_store.update_movie("nope", genre="Comedy") is False

    def test_delete(self, catalog_store: CatalogStore) -> None:
        created = catalog_store.create_movie(_movie())
        assert catalog_store.delete_movie(created.id) is True
        assert catalog_store.get_movie(created.id) is None
        assert catalog_store.delete_movie(created.id) is False


class TestJoin:
    def test_reviews_attached(self, catalog_store: CatalogStore) -> None:
        movie = catalog_store.create_movie(_movie())
        other = catalog_store.create_movie(_movie("Other"))
        catalog_store.create_review(Review(movie_id=movie.id, username="alice", review="Great", rating=5))
        catalog_store.create_review(Review(movie_id=movie.id, username="bob", review="Meh", rating=2.5))
        catalog_store.create_review(Review(movie_id=other.id, username="carol", review="Fine", rating=3))

        view = catalog_store.get_movie_with_reviews(movie.id)
        assert view.movie == movie
        assert sorted(r.username for r in view.reviews) == ["alice", "bob"]
        assert all(r.movie_id == movie.id for r in view.reviews)

    def test_no_reviews_is_empty_list(self, catalog_store: CatalogStore) -> None:
        movie = catalog_store.create_movie(_movie())
        view = catalog_store.get_movie_with_reviews(movie.id)
        assert view is not None
        assert view.reviews == []

    def test_orphans_do_not_fabricate_a_movie(self, catalog_store: CatalogStore) -> None:
        catalog_store.create_review(Review(movie_id="ghost", username="alice", review="?", rating=1))
        assert catalog_store.get_movie_with_reviews("ghost") is None
        assert len(catalog_store.list_reviews("ghost")) == 1


class TestDeleteCascade:
    def test_cascade_removes_reviews(self, catalog_store: CatalogStore) -> None:
        movie = catalog_store.create_movie(_movie())
        catalog_store.create_review(Review(movie_id=movie.id, username="alice", review="Great", rating=5))
        assert catalog_store.delete_movie(movie.id, cascade=True)
        assert catalog_store.list_reviews(movie.id) == []

    def test_plain_delete_orphans_reviews(self, catalog_store: CatalogStore) -> None:
        movie = catalog_store.create_movie(_movie())
        catalog_store.create_review(Review(movie_id=movie.id, username="alice", review="Great", rating=5))
        assert catalog_store.delete_movie(movie.id)
        assert len(catalog_store.list_reviews(movie.id)) == 1
