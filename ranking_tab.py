"""Leaderboard tab: top ten best times for each ranked difficulty."""

import logging
import tkinter as tk
from tkinter import ttk

import analytics
from highscore import LeaderboardSubmitter, LocalBestStore
from settings import RANKED_DIFFICULTIES, format_seconds

logger = logging.getLogger(__name__)

POLL_MS = 100


class RankingTab:
    def __init__(self, parent, panel_bg, ui_font, submitter: LeaderboardSubmitter, local_best: LocalBestStore):
        self.submitter = submitter
        self.local_best = local_best
        self.panel_bg = panel_bg
        self.ui_font = ui_font
        self.frame = tk.Frame(parent, bg=self.panel_bg)
        self.trees = {}
        self.best_labels = {}
        self.status_var = tk.StringVar(value="")
        self.highlight_user = None
        self._pending = None
        self.build_widgets()

    def build_widgets(self):
        tk.Label(
            self.frame,
            text="🏆 Top 10",
            bg=self.panel_bg,
            fg="#111827",
            font=("Segoe UI", 14, "bold"),
        ).pack(fill=tk.X, padx=12, pady=(12, 6))

        for difficulty in RANKED_DIFFICULTIES:
            section = tk.Frame(self.frame, bg=self.panel_bg)
            section.pack(fill=tk.BOTH, expand=True, padx=12, pady=(0, 6))
            tk.Label(
                section,
                text=difficulty.capitalize(),
                bg=self.panel_bg,
                fg="#111827",
                font=("Segoe UI", 11, "bold"),
                anchor="w",
            ).pack(fill=tk.X)

            tree = ttk.Treeview(section, columns=("rank", "name", "time"), show="headings", height=5)
            tree.heading("rank", text="#")
            tree.heading("name", text="Name")
            tree.heading("time", text="Time")
            tree.column("rank", width=40, anchor=tk.E)
            tree.column("name", width=260, anchor=tk.W)
            tree.column("time", width=90, anchor=tk.CENTER)
            tree.tag_configure("highlight", background="#FEF3C7")
            tree.pack(fill=tk.BOTH, expand=True)
            self.trees[difficulty] = tree

            best = tk.Label(section, text="", bg=self.panel_bg, fg="#6B7280", font=("Segoe UI", 9), anchor="w")
            best.pack(fill=tk.X)
            self.best_labels[difficulty] = best

        tk.Label(
            self.frame,
            textvariable=self.status_var,
            bg=self.panel_bg,
            fg="#6B7280",
            font=("Segoe UI", 10),
            anchor="w",
        ).pack(fill=tk.X, padx=12, pady=(0, 6))

    def refresh(self, highlight_user=None):
        analytics.track("open_ranking")
        self.highlight_user = highlight_user
        self.status_var.set("Loading…")
        self._pending = self.submitter.fetch_all()
        self.frame.after(POLL_MS, self._poll, self._pending)

    def _poll(self, future):
        if future is not self._pending:
            return
        if not future.done():
            self.frame.after(POLL_MS, self._poll, future)
            return
        self._pending = None
        try:
            entries = future.result()
        except Exception as exc:
            logger.warning("Could not load leaderboard: %s", exc)
            self.status_var.set(f"Failed to load: {exc}")
            return
        self.status_var.set("")
        self.show(entries)

    def show(self, entries):
        for difficulty, tree in self.trees.items():
            tree.delete(*tree.get_children())
            ranked = entries.get(difficulty) or []
            if not ranked:
                tree.insert("", "end", values=("", "No results yet.", ""))
            for idx, entry in enumerate(ranked, start=1):
                tags = ("highlight",) if entry.user_id == self.highlight_user else ()
                tree.insert("", "end", values=(f"{idx}.", entry.label, format_seconds(entry.seconds)), tags=tags)

            best = self.local_best.best(difficulty)
            if best:
                text = f"Your best: {format_seconds(best['seconds'])} ({best.get('name', 'Player')})"
            else:
                text = "Your best: –"
            self.best_labels[difficulty].config(text=text)
