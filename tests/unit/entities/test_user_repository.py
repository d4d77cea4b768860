"""User repository tests on a real in-memory SQLite database."""

import pytest
from sqlalchemy.exc import IntegrityError

from src.userstore.core.errors import ConflictError
from src.userstore.core.validation import normalize_user
from src.userstore.entities.user import Page, User, UserFilters, UserRepository, UserTable


@pytest.fixture
def make_user(user_repo: UserRepository, session, user_payload):
    def _make(**overrides) -> User:
        user = user_repo.create(normalize_user(user_payload(**overrides)))
        session.commit()
        return user

    return _make


class TestPointLookups:
    def test_create_assigns_id_and_timestamps(self, user_repo, make_user):
        user = make_user()

        assert len(user.id) == 36
        assert user.created_at == user.updated_at
        assert user_repo.get(user.id) == user

    def test_get_missing_returns_none(self, user_repo):
        assert user_repo.get("missing") is None

    def test_get_by_email(self, user_repo, make_user):
        user = make_user(email="Find@Me.com")

        assert user_repo.get_by_email("find@me.com") == user
        assert user_repo.get_by_email("nobody@me.com") is None


class TestWrites:
    def test_update_returns_new_state(self, user_repo, make_user, user_payload):
        user = make_user()

        updated = user_repo.update(user.id, normalize_user(user_payload(city="Lyon")))

        assert updated.city == "Lyon"
        assert updated.updated_at > user.updated_at

    def test_update_missing_returns_none(self, user_repo, user_payload):
        assert user_repo.update("missing", normalize_user(user_payload())) is None

    def test_delete(self, user_repo, make_user):
        user = make_user()

        assert user_repo.delete(user.id) is True
        assert user_repo.delete(user.id) is False
        assert user_repo.get(user.id) is None

    def test_unique_violation_maps_to_conflict(self, user_repo, make_user, user_payload):
        make_user(email="dup@example.com")

        with pytest.raises(ConflictError):
            user_repo.create(normalize_user(user_payload(email="dup@example.com")))

    def test_update_unique_violation_maps_to_conflict(
        self, user_repo, make_user, user_payload
    ):
        make_user(email="taken@example.com")
        other = make_user(email="free@example.com")

        with pytest.raises(ConflictError):
            user_repo.update(other.id, normalize_user(user_payload(email="taken@example.com")))

    def test_table_rejects_duplicate_email_directly(self, session, make_user):
        make_user(email="dup@example.com")
        session.add(
            UserTable(
                name="X",
                email="dup@example.com",
                phone="1",
                city="Y",
                gender="male",
                age=1,
            )
        )
        with pytest.raises(IntegrityError):
            session.flush()


class TestListing:
    @pytest.fixture
    def people(self, make_user):
        return [
            make_user(name="P1", email="p1@example.com", city="Paris", gender="male"),
            make_user(name="R1", email="r1@example.com", city="Rome", gender="female"),
            make_user(name="P2", email="p2@example.com", city="Paris", gender="female"),
            make_user(name="P3", email="p3@example.com", city="Paris", gender="male"),
            make_user(name="P4", email="p4@example.com", city="Paris", gender="other"),
        ]

    def test_newest_first(self, user_repo, people):
        assert [u.name for u in user_repo.list()] == ["P4", "P3", "P2", "R1", "P1"]

    def test_city_filter(self, user_repo, people):
        users = user_repo.list(UserFilters(city="Paris"))
        assert [u.name for u in users] == ["P4", "P3", "P2", "P1"]

    def test_limit_and_offset_select_second_and_third(self, user_repo, people):
        users = user_repo.list(UserFilters(city="Paris"), Page(limit=2, offset=1))
        assert [u.name for u in users] == ["P3", "P2"]

    def test_offset_without_limit(self, user_repo, people):
        users = user_repo.list(UserFilters(city="Paris"), Page(offset=3))
        assert [u.name for u in users] == ["P1"]

    def test_combined_filters(self, user_repo, people):
        users = user_repo.list(UserFilters(city="Paris", gender="male"))
        assert [u.name for u in users] == ["P3", "P1"]

    def test_count_ignores_search(self, user_repo, people):
        assert user_repo.count() == 5
        assert user_repo.count(UserFilters(city="Paris")) == 4
        assert user_repo.count(UserFilters(city="Paris", search="zzz")) == 4
        assert user_repo.count(UserFilters(gender="female")) == 2


class TestSearch:
    def test_matches_name_or_email_case_insensitively(self, user_repo, make_user):
        make_user(name="John Doe", email="jd@example.com")
        make_user(name="Alice", email="a-john@x.com")
        make_user(name="Bob", email="bob@example.com", city="Johnstown")

        assert {u.name for u in user_repo.search("john")} == {"John Doe", "Alice"}
        assert {u.name for u in user_repo.search("JOHN")} == {"John Doe", "Alice"}

    def test_like_wildcards_are_literal(self, user_repo, make_user):
        make_user(name="100% Real", email="real@example.com")
        make_user(name="Plain", email="plain@example.com")

        assert [u.name for u in user_repo.search("%")] == ["100% Real"]
        assert user_repo.search("_x_") == []

    def test_case_folding_covers_non_ascii_letters(self, user_repo, make_user):
        make_user(name="JOSÉ Álvarez", email="jose@example.com")
        make_user(name="Jose Alvarez", email="plain@example.com")

        assert [u.name for u in user_repo.search("josé")] == ["JOSÉ Álvarez"]
        assert [u.name for u in user_repo.search("ÁLV")] == ["JOSÉ Álvarez"]


class TestStats:
    def test_empty_table(self, user_repo):
        stats = user_repo.stats()

        assert stats.total_users == 0
        assert stats.city_counts == []
        assert stats.gender_counts == []
        assert stats.age.average is None

    def test_aggregates(self, user_repo, make_user):
        make_user(email="a@example.com", city="Paris", gender="male", age=20)
        make_user(email="b@example.com", city="Rome", gender="female", age=30)
        make_user(email="c@example.com", city="Paris", gender="female", age=40)

        stats = user_repo.stats()

        assert stats.total_users == 3
        assert [(c.city, c.count) for c in stats.city_counts] == [("Paris", 2), ("Rome", 1)]
        assert [(g.gender, g.count) for g in stats.gender_counts] == [
            ("female", 2),
            ("male", 1),
        ]
        assert stats.age.average == 30.0
        assert stats.age.minimum == 20
        assert stats.age.maximum == 40
        assert stats.storage_size_bytes is not None
        assert stats.storage_size_bytes > 0
