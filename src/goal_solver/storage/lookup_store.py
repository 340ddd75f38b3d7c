"""
Persistent store for solved-game lookup tables.

The search engine sees the store only as a key-value sink/source keyed by
position hash: bulk-flush a whole table (replacing what was stored for the
same score limit), and point-query one hash. Tables for different score
limits live side by side in one `plays` table, namespaced by
`points_to_win`.

Schema (one row per solved position):
    points_to_win, hash (signed 64-bit), src_row, src_col, dst_row, dst_col,
    team, score; primary key (points_to_win, hash)

`score` is stored from the perspective of `team`, the side whose move it is,
so a record reads the same whichever team built the table.
"""

import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from tqdm import tqdm

from goal_solver.exceptions import StorageUnavailableError
from goal_solver.game.game import Move

logger = logging.getLogger(__name__)

SCHEMA = """
    CREATE TABLE IF NOT EXISTS plays (
        points_to_win INTEGER NOT NULL,
        hash INTEGER NOT NULL,
        src_row INTEGER NOT NULL,
        src_col INTEGER NOT NULL,
        dst_row INTEGER NOT NULL,
        dst_col INTEGER NOT NULL,
        team INTEGER NOT NULL,
        score INTEGER NOT NULL,
        PRIMARY KEY (points_to_win, hash)
    )
"""

BATCH_SIZE = 1000


def to_signed64(value: int) -> int:
    """Map an unsigned 64-bit hash onto SQLite's signed INTEGER range."""
    return value - (1 << 64) if value >= (1 << 63) else value


def to_unsigned64(value: int) -> int:
    return value + (1 << 64) if value < 0 else value


@dataclass(frozen=True)
class StoredPlay:
    """A persisted lookup record: best move and its score for the mover."""
    zobrist_hash: int
    move: Move
    score: int

    def to_row(self, points_to_win: int) -> tuple:
        m = self.move
        return (points_to_win, to_signed64(self.zobrist_hash),
                m.old_row, m.old_col, m.new_row, m.new_col, m.team, int(self.score))

    @classmethod
    def from_row(cls, row) -> "StoredPlay":
        zobrist_hash, src_row, src_col, dst_row, dst_col, team, score = row
        return cls(to_unsigned64(zobrist_hash), Move(src_row, src_col, dst_row, dst_col, team), score)


class LookupStore:
    """
    SQLite-backed lookup table store.

    The connection is opened lazily and kept until close(). Every failure to
    open, read or write surfaces as StorageUnavailableError; nothing the
    caller holds in memory is touched on failure.
    """

    def __init__(self, db_path: str):
        self.db_path = str(db_path)
        self._conn: Optional[sqlite3.Connection] = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _connection(self) -> sqlite3.Connection:
        if self._conn is not None:
            return self._conn
        conn = None
        try:
            if self.db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path)
            conn.execute(SCHEMA)
            conn.commit()
        except (sqlite3.Error, OSError) as e:
            if conn is not None:
                conn.close()
            raise StorageUnavailableError(f"Cannot open lookup store {self.db_path}: {e}") from e
        self._conn = conn
        return conn

    def close(self):
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def flush(self, points_to_win: int, plays: Iterable[StoredPlay], show_progress: bool = False) -> int:
        """
        Replace the stored table for `points_to_win` with `plays`.

        Runs in a single transaction: on failure the previous contents stay.

        Returns:
            Number of rows written
        """
        conn = self._connection()
        rows = [play.to_row(points_to_win) for play in plays]
        try:
            with conn:
                conn.execute("DELETE FROM plays WHERE points_to_win = ?", (points_to_win,))
                for start in tqdm(range(0, len(rows), BATCH_SIZE), desc="Flushing lookup table",
                                  unit="batch", disable=not show_progress, leave=False):
                    conn.executemany(
                        "INSERT INTO plays VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                        rows[start:start + BATCH_SIZE],
                    )
        except sqlite3.Error as e:
            raise StorageUnavailableError(f"Writing lookup table failed: {e}") from e
        logger.info("Stored %d plays for points_to_win=%d in %s", len(rows), points_to_win, self.db_path)
        return len(rows)

    def query(self, points_to_win: int, zobrist_hash: int) -> Optional[StoredPlay]:
        """
        Point query.

        Returns:
            The stored play, or None if the hash is not in the table
        """
        conn = self._connection()
        try:
            row = conn.execute(
                "SELECT hash, src_row, src_col, dst_row, dst_col, team, score FROM plays "
                "WHERE points_to_win = ? AND hash = ?",
                (points_to_win, to_signed64(zobrist_hash)),
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageUnavailableError(f"Reading lookup table failed: {e}") from e
        return StoredPlay.from_row(row) if row is not None else None

    def count(self, points_to_win: int) -> int:
        conn = self._connection()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM plays WHERE points_to_win = ?",
                                (points_to_win,)).fetchone()
        except sqlite3.Error as e:
            raise StorageUnavailableError(f"Reading lookup table failed: {e}") from e
        return n

    def load(self, points_to_win: int) -> dict[int, StoredPlay]:
        """All stored plays for `points_to_win`, keyed by hash."""
        conn = self._connection()
        try:
            rows = conn.execute(
                "SELECT hash, src_row, src_col, dst_row, dst_col, team, score FROM plays "
                "WHERE points_to_win = ? ORDER BY hash",
                (points_to_win,),
            ).fetchall()
        except sqlite3.Error as e:
            raise StorageUnavailableError(f"Reading lookup table failed: {e}") from e
        plays = (StoredPlay.from_row(row) for row in rows)
        return {play.zobrist_hash: play for play in plays}
