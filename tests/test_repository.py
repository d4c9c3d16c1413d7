from gsdsync.models.items import InboxItem
from gsdsync.repository import Repository
from conftest import make_action


class TestRepository:
    def test_upsert_inserts_unseen_id(self):
        repo = Repository()
        repo.upsert(make_action("a", 1))
        assert len(repo) == 1
        assert repo.find("a").position == 1

    def test_upsert_overwrites_in_place(self):
        repo = Repository([make_action("a", 1), make_action("b", 2), make_action("c", 3)])
        repo.upsert(make_action("b", 0.5, action="renamed"))
        assert [item.id for item in repo.all()] == ["a", "b", "c"]
        assert repo.find("b").action == "renamed"
        assert len(repo) == 3

    def test_remove(self):
        repo = Repository([make_action("a", 1)])
        removed = repo.remove("a")
        assert removed.id == "a"
        assert repo.find("a") is None
        assert repo.remove("a") is None

    def test_find_unknown(self):
        assert Repository().find("nope") is None

    def test_replace_all_collapses_duplicates(self):
        repo = Repository([make_action("old", 1)])
        repo.replace_all([make_action("a", 1), make_action("a", 2), make_action("b", 3)])
        assert [item.id for item in repo.all()] == ["a", "b"]
        assert repo.find("a").position == 2
        assert "old" not in repo

    def test_all_returns_a_copy(self):
        repo = Repository([make_action("a", 1)])
        repo.all().clear()
        assert len(repo) == 1

    def test_max_position(self):
        assert Repository().max_position() == 0.0
        assert Repository([make_action("a", 1), make_action("b", 7.5)]).max_position() == 7.5

    def test_unpositioned_records(self):
        repo = Repository([InboxItem(id="i1", description="x", created_at="2025-01-01T00:00:00Z")])
        assert repo.max_position() == 0.0
        assert "i1" in repo
