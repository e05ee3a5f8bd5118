"""Gameplay event tracking and statistics over generated boards."""

import csv
import logging
import os
import random
from datetime import datetime

import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns

from board import generate_board
from grid_utils import neighbors

logger = logging.getLogger(__name__)

EVENT_FIELDNAMES = ["created_at", "event", "params"]
REPORT_FIELDNAMES = [
    "created_at",
    "boards",
    "rows",
    "cols",
    "mines",
    "pdf_path",
]

_event_log_path = None


def set_event_log(path):
    global _event_log_path
    _event_log_path = path


def track(event: str, **params):
    """Record a gameplay event; tracking problems never reach the game."""
    logger.info("event %s %s", event, params)
    if not _event_log_path:
        return
    needs_header = not os.path.exists(_event_log_path) or os.path.getsize(_event_log_path) == 0
    row = {
        "created_at": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        "event": event,
        "params": ";".join(f"{k}={v}" for k, v in sorted(params.items())),
    }
    try:
        with open(_event_log_path, "a", newline="", encoding="utf-8") as csvfile:
            writer = csv.DictWriter(csvfile, fieldnames=EVENT_FIELDNAMES)
            if needs_header:
                writer.writeheader()
            writer.writerow(row)
    except OSError as exc:
        logger.warning("Could not log event %s: %s", event, exc)


def board_arrays(board):
    """Return (mine mask, neighbour counts) of a board as numpy arrays."""
    mine_mask = np.array([[cell.is_mine for cell in row] for row in board.grid], dtype=bool)
    numbers = np.array([[cell.neighbor_mines for cell in row] for row in board.grid], dtype=np.int8)
    return mine_mask, numbers


def count_mine_clusters(mine_mask: np.ndarray) -> int:
    rows, cols = mine_mask.shape
    visited = np.zeros_like(mine_mask, dtype=bool)
    clusters = 0

    for r in range(rows):
        for c in range(cols):
            if not mine_mask[r, c] or visited[r, c]:
                continue
            clusters += 1
            visited[r, c] = True
            stack = [(r, c)]
            while stack:
                cr, cc = stack.pop()
                for nr, nc in neighbors(rows, cols, cr, cc):
                    if mine_mask[nr, nc] and not visited[nr, nc]:
                        visited[nr, nc] = True
                        stack.append((nr, nc))
    return clusters


def mines_in_local_region(mine_mask: np.ndarray) -> np.ndarray:
    padded = np.pad(mine_mask.astype(np.int8), 1)
    rows, cols = mine_mask.shape
    heat = np.zeros((rows, cols), dtype=np.int8)
    for dr in range(3):
        for dc in range(3):
            heat += padded[dr:dr + rows, dc:dc + cols]
    return heat


def collect_stats(rows: int, cols: int, mines: int, boards: int, seed=42):
    """Generate ``boards`` boards with a safe click in the centre and aggregate their shape."""
    rng = random.Random(seed)
    first_r, first_c = rows // 2, cols // 2
    zero_cells = []
    clusters = []
    value_counts = np.zeros(9, dtype=np.int64)
    mine_freq = np.zeros((rows, cols), dtype=np.float64)
    heat_accum = np.zeros((rows, cols), dtype=np.float64)

    for _ in range(boards):
        mine_mask, numbers = board_arrays(generate_board(rows, cols, mines, first_r, first_c, rng))
        safe_values = numbers[~mine_mask].ravel()
        zero_cells.append(int((safe_values == 0).sum()))
        value_counts += np.bincount(safe_values, minlength=9)[:9]
        clusters.append(count_mine_clusters(mine_mask))
        mine_freq += mine_mask
        heat_accum += mines_in_local_region(mine_mask)

    return {
        "zero_cells": zero_cells,
        "clusters": clusters,
        "value_counts": value_counts,
        "mine_frequency": mine_freq / float(boards),
        "heat": heat_accum / float(boards),
    }


def generate_report(rows: int, cols: int, mines: int, boards: int, output_path: str, seed=42):
    if boards <= 0:
        raise ValueError("boards must be positive")
    stats = collect_stats(rows, cols, mines, boards, seed)

    sns.set(style="whitegrid")
    fig = plt.figure(figsize=(12, 9))
    axes = fig.subplots(2, 2)

    axes[0, 0].hist(stats["zero_cells"], bins="auto", color="#4C78A8", edgecolor="black")
    axes[0, 0].set_title("Empty (zero) Cells per Board")
    axes[0, 0].set_xlabel("Zero-count safe cells")
    axes[0, 0].set_ylabel("Boards")

    xs = np.arange(9)
    axes[0, 1].bar(xs, stats["value_counts"], color="#F58518", edgecolor="black")
    axes[0, 1].set_title("Distribution of Neighbour Counts (safe cells)")
    axes[0, 1].set_xlabel("Number shown (0-8)")
    axes[0, 1].set_xticks(xs)
    axes[0, 1].set_ylabel("Cells")

    axes[1, 0].hist(stats["clusters"], bins="auto", color="#54A24B", edgecolor="black")
    axes[1, 0].set_title("Mine Clusters per Board (8-connected)")
    axes[1, 0].set_xlabel("Clusters")
    axes[1, 0].set_ylabel("Boards")

    sns.heatmap(
        stats["mine_frequency"],
        ax=axes[1, 1],
        cmap="magma",
        square=True,
        cbar_kws={"label": "Share of boards with a mine"},
    )
    axes[1, 1].set_title(f"Mine Frequency, first click at ({rows // 2}, {cols // 2})")
    axes[1, 1].set_xlabel("Column")
    axes[1, 1].set_ylabel("Row")

    fig.tight_layout()
    fig.savefig(output_path)
    plt.close(fig)
    logger.info("Wrote generator report for %d %dx%d boards to %s", boards, rows, cols, output_path)
    return stats


class AnalyticsLog:
    def __init__(self, path: str):
        self.path = path

    def append(self, record: dict):
        """Add one report row; the header is written the first time the file is created."""
        needs_header = not os.path.exists(self.path) or os.path.getsize(self.path) == 0
        with open(self.path, "a", newline="", encoding="utf-8") as csvfile:
            writer = csv.DictWriter(csvfile, fieldnames=REPORT_FIELDNAMES)
            if needs_header:
                writer.writeheader()
            writer.writerow(record)

    def read_all(self):
        if not os.path.exists(self.path):
            return []
        rows = []
        with open(self.path, newline="", encoding="utf-8") as csvfile:
            for row in csv.DictReader(csvfile):
                for key in ("boards", "rows", "cols", "mines"):
                    row[key] = self.to_int(row.get(key))
                rows.append(row)
        rows.sort(key=lambda r: r.get("created_at", ""), reverse=True)
        return rows

    @staticmethod
    def to_int(value):
        try:
            return int(value)
        except (TypeError, ValueError):
            return 0
