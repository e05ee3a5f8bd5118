"""Best-time leaderboard storage, local bests and background submission."""

import csv
import json
import logging
import math
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime

from settings import LEADERBOARD_SIZE, RANKED_DIFFICULTIES

logger = logging.getLogger(__name__)

FIELDNAMES = [
    "user_id",
    "display_name",
    "email",
    "seconds",
    "difficulty",
    "created_at",
]

BLANK_MARKERS = ("undefined", "null")


class LeaderboardError(Exception):
    pass


def first_non_empty(*values, default=""):
    for value in values:
        if isinstance(value, str):
            text = value.strip()
            if text and text.lower() not in BLANK_MARKERS:
                return text
    return default


@dataclass(frozen=True)
class Player:
    user_id: str
    display_name: str = ""
    email: str = ""

    @classmethod
    def from_profile(cls, user_id=None, name=None, email=None):
        return cls(
            user_id=first_non_empty(user_id, email, name, default="unknown"),
            display_name=first_non_empty(name),
            email=first_non_empty(email),
        )


@dataclass(frozen=True)
class ScoreEntry:
    user_id: str
    display_name: str
    email: str
    seconds: int
    difficulty: str
    created_at: str = ""

    @property
    def label(self) -> str:
        if self.display_name or self.email:
            return self.display_name or self.email
        if self.user_id:
            return self.user_id[:6] + "…"
        return "Unknown"


@dataclass(frozen=True)
class SubmitResult:
    ok: bool
    error: str = ""


def normalise_seconds(value):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return int(math.floor(value))


class ScoreStore:
    """Top-N best times per difficulty, one entry per user, kept in a CSV file."""

    def __init__(self, path: str, top_n: int = LEADERBOARD_SIZE):
        self.path = path
        self.top_n = top_n
        self._lock = threading.Lock()

    def submit_score(self, user_id, display_name, email, elapsed_seconds, difficulty) -> SubmitResult:
        seconds = normalise_seconds(elapsed_seconds)
        if seconds is None:
            return SubmitResult(False, "Invalid payload")
        if difficulty not in RANKED_DIFFICULTIES:
            return SubmitResult(False, "Invalid difficulty")

        entry = ScoreEntry(
            user_id=first_non_empty(user_id, email, display_name, default="unknown"),
            display_name=first_non_empty(display_name),
            email=first_non_empty(email),
            seconds=seconds,
            difficulty=difficulty,
            created_at=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        )
        try:
            with self._lock:
                self._record(entry)
        except LeaderboardError as exc:
            logger.warning("Score submission failed: %s", exc)
            return SubmitResult(False, str(exc))
        logger.info("Recorded %ss for %s on %s", seconds, entry.user_id, difficulty)
        return SubmitResult(True)

    def fetch_top_scores(self, difficulty):
        if difficulty not in RANKED_DIFFICULTIES:
            return []
        with self._lock:
            entries = self._load()
        return self._ranked([e for e in entries if e.difficulty == difficulty])

    def fetch_all_top_scores(self):
        with self._lock:
            entries = self._load()
        return {
            difficulty: self._ranked([e for e in entries if e.difficulty == difficulty])
            for difficulty in RANKED_DIFFICULTIES
        }

    def _record(self, entry: ScoreEntry):
        entries = self._load()
        previous = next(
            (e for e in entries if e.user_id == entry.user_id and e.difficulty == entry.difficulty),
            None,
        )
        if previous is not None and previous.seconds <= entry.seconds:
            return
        entries = [e for e in entries if e is not previous]
        entries.append(entry)

        kept = []
        for difficulty in RANKED_DIFFICULTIES:
            kept.extend(self._ranked([e for e in entries if e.difficulty == difficulty]))
        try:
            self._write_rows(kept)
        except OSError as exc:
            raise LeaderboardError(f"Could not save score: {exc}") from exc

    def _ranked(self, entries):
        entries = sorted(entries, key=lambda e: (e.seconds, e.created_at, e.user_id))
        return entries[: self.top_n]

    def _load(self):
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, newline="", encoding="utf-8") as csvfile:
                reader = csv.DictReader(csvfile)
                return [entry for entry in (self.normalise(row) for row in reader if row) if entry]
        except OSError as exc:
            raise LeaderboardError(f"Could not read leaderboard: {exc}") from exc

    def _write_rows(self, entries):
        with open(self.path, "w", newline="", encoding="utf-8") as csvfile:
            writer = csv.DictWriter(csvfile, fieldnames=FIELDNAMES)
            writer.writeheader()
            for e in entries:
                writer.writerow({
                    "user_id": e.user_id,
                    "display_name": e.display_name,
                    "email": e.email,
                    "seconds": e.seconds,
                    "difficulty": e.difficulty,
                    "created_at": e.created_at,
                })

    @staticmethod
    def normalise(row):
        try:
            seconds = int(row.get("seconds"))
        except (TypeError, ValueError):
            return None
        if row.get("difficulty") not in RANKED_DIFFICULTIES:
            return None
        return ScoreEntry(
            user_id=row.get("user_id") or "",
            display_name=row.get("display_name") or "",
            email=row.get("email") or "",
            seconds=seconds,
            difficulty=row["difficulty"],
            created_at=row.get("created_at") or "",
        )


class LocalBestStore:
    """Personal best time per difficulty, saved as JSON."""

    def __init__(self, path: str):
        self.path = path

    def load(self):
        try:
            with open(self.path, encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable local bests %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def best(self, difficulty):
        entry = self.load().get(difficulty)
        if isinstance(entry, dict) and isinstance(entry.get("seconds"), int):
            return entry
        return None

    def record(self, difficulty, name, seconds) -> bool:
        """Store ``seconds`` if it beats the saved best; return True when it did."""
        seconds = normalise_seconds(seconds)
        if seconds is None:
            return False
        bests = self.load()
        previous = bests.get(difficulty)
        if isinstance(previous, dict) and isinstance(previous.get("seconds"), int) and previous["seconds"] <= seconds:
            return False
        bests[difficulty] = {
            "name": first_non_empty(name, default="Player"),
            "seconds": seconds,
            "updated_at": datetime.now().isoformat(timespec="seconds"),
        }
        try:
            with open(self.path, "w", encoding="utf-8") as fh:
                json.dump(bests, fh, indent=2)
        except OSError as exc:
            logger.warning("Could not save local best to %s: %s", self.path, exc)
            return False
        return True


class LeaderboardSubmitter:
    """Runs leaderboard calls on a worker thread so play never waits on them."""

    def __init__(self, store: ScoreStore, max_workers: int = 1):
        self.store = store
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="leaderboard")

    def submit(self, player: Player, elapsed_seconds, difficulty):
        return self.executor.submit(self._submit, player, elapsed_seconds, difficulty)

    def fetch_all(self):
        return self.executor.submit(self.store.fetch_all_top_scores)

    def _submit(self, player, elapsed_seconds, difficulty) -> SubmitResult:
        try:
            return self.store.submit_score(
                player.user_id, player.display_name, player.email, elapsed_seconds, difficulty
            )
        except Exception as exc:
            logger.exception("Leaderboard submission crashed")
            return SubmitResult(False, str(exc))

    def shutdown(self, wait=False):
        self.executor.shutdown(wait=wait)
