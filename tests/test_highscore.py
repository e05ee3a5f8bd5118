import pytest

from highscore import (
    LeaderboardSubmitter,
    LocalBestStore,
    Player,
    ScoreEntry,
    ScoreStore,
    first_non_empty,
)


@pytest.fixture
def store(tmp_path):
    return ScoreStore(str(tmp_path / "leaderboard.csv"))


def test_scores_are_ranked_ascending(store):
    for user, seconds in (("a", 50), ("b", 12), ("c", 31)):
        assert store.submit_score(user, user.upper(), "", seconds, "easy").ok

    top = store.fetch_top_scores("easy")
    assert [e.user_id for e in top] == ["b", "c", "a"]
    assert [e.seconds for e in top] == [12, 31, 50]
    assert store.fetch_top_scores("hard") == []


def test_only_top_ten_are_kept(store):
    for i in range(15):
        store.submit_score(f"user{i}", "", "", 100 - i, "normal")

    top = store.fetch_top_scores("normal")
    assert len(top) == 10
    assert top[0].seconds == 86
    assert top[-1].seconds == 95


def test_one_entry_per_user_keeps_best_time(store):
    store.submit_score("u1", "Ann", "", 40, "hard")
    store.submit_score("u1", "Ann", "", 55, "hard")
    assert [e.seconds for e in store.fetch_top_scores("hard")] == [40]

    store.submit_score("u1", "Ann", "", 22, "hard")
    assert [e.seconds for e in store.fetch_top_scores("hard")] == [22]


def test_difficulties_are_ranked_separately(store):
    store.submit_score("u1", "", "", 10, "easy")
    store.submit_score("u1", "", "", 90, "hard")

    everything = store.fetch_all_top_scores()
    assert set(everything) == {"easy", "normal", "hard"}
    assert [e.seconds for e in everything["easy"]] == [10]
    assert everything["normal"] == []
    assert [e.seconds for e in everything["hard"]] == [90]


def test_invalid_submissions_are_rejected(store):
    assert store.submit_score("u1", "", "", 10, "custom").error == "Invalid difficulty"
    assert store.submit_score("u1", "", "", -1, "easy").error == "Invalid payload"
    assert store.submit_score("u1", "", "", float("nan"), "easy").error == "Invalid payload"
    assert store.submit_score("u1", "", "", "12", "easy").error == "Invalid payload"
    assert store.fetch_top_scores("easy") == []


def test_fractional_seconds_are_floored(store):
    store.submit_score("u1", "", "", 12.9, "easy")
    assert store.fetch_top_scores("easy")[0].seconds == 12


def test_storage_failure_is_reported_not_raised(tmp_path):
    broken = tmp_path / "scores"
    broken.mkdir()
    result = ScoreStore(str(broken)).submit_score("u1", "", "", 10, "easy")
    assert not result.ok
    assert result.error


def test_store_in_missing_directory_still_constructs(tmp_path):
    path = tmp_path / "missing_dir" / "leaderboard.csv"
    store = ScoreStore(str(path))

    assert store.fetch_top_scores("easy") == []
    assert store.fetch_all_top_scores() == {"easy": [], "normal": [], "hard": []}

    result = store.submit_score("u1", "Ada", "", 10, "easy")
    assert not result.ok
    assert "Could not save score" in result.error
    assert not path.exists()


def test_store_file_is_created_on_first_submission(tmp_path):
    path = tmp_path / "leaderboard.csv"
    store = ScoreStore(str(path))
    assert not path.exists()

    assert store.submit_score("u1", "", "", 10, "easy").ok
    assert path.exists()


def test_first_non_empty_skips_blank_markers():
    assert first_non_empty(None, "  ", "null", "Undefined", " ada ") == "ada"
    assert first_non_empty(None, default="unknown") == "unknown"


def test_player_identity_fallbacks():
    assert Player.from_profile(name="Ada").user_id == "Ada"
    player = Player.from_profile(user_id="", name="Ada", email="ada@example.com")
    assert player.user_id == "ada@example.com"
    assert player.display_name == "Ada"
    assert Player.from_profile().user_id == "unknown"


def test_entry_label_fallbacks():
    assert ScoreEntry("id", "Ada", "a@x", 1, "easy").label == "Ada"
    assert ScoreEntry("id", "", "a@x", 1, "easy").label == "a@x"
    assert ScoreEntry("abcdefgh", "", "", 1, "easy").label == "abcdef…"
    assert ScoreEntry("", "", "", 1, "easy").label == "Unknown"


def test_local_best_only_improves(tmp_path):
    bests = LocalBestStore(str(tmp_path / "best.json"))
    assert bests.best("easy") is None

    assert bests.record("easy", "Ada", 30)
    assert not bests.record("easy", "Bob", 45)
    assert not bests.record("easy", "Bob", 30)
    assert bests.record("easy", "", 20)

    best = bests.best("easy")
    assert best["seconds"] == 20
    assert best["name"] == "Player"


def test_submitter_runs_in_background(store):
    submitter = LeaderboardSubmitter(store)
    try:
        result = submitter.submit(Player.from_profile(name="Ada"), 33, "normal").result(timeout=5)
        assert result.ok
        entries = submitter.fetch_all().result(timeout=5)
        assert [e.label for e in entries["normal"]] == ["Ada"]
    finally:
        submitter.shutdown(wait=True)


def test_submitter_turns_crashes_into_errors():
    class ExplodingStore:
        def submit_score(self, *args):
            raise RuntimeError("store offline")

    submitter = LeaderboardSubmitter(ExplodingStore())
    try:
        result = submitter.submit(Player("u1"), 10, "easy").result(timeout=5)
    finally:
        submitter.shutdown(wait=True)
    assert not result.ok
    assert "store offline" in result.error
