import logging
import os
import re
from datetime import datetime
import tkinter as tk
from tkinter import messagebox, simpledialog, ttk

import analytics
import settings
from analytics import AnalyticsLog, generate_report
from analytics_tab import AnalyticsTab
from game_logic import Clock, GameSession, SessionState
from highscore import LeaderboardSubmitter, LocalBestStore, Player, ScoreStore
from ranking_tab import RankingTab
from settings import ConfigError, Preferences

logger = logging.getLogger(__name__)

TICK_MS = 1000


class TkClock(Clock):
    """Clock backed by ``Tk.after``; ``on_tick`` runs after every tick to redraw."""

    def __init__(self, root, on_tick=None):
        self.root = root
        self.on_tick = on_tick
        self._job = None
        self._callback = None

    def start(self, callback):
        if self._job is not None:
            return
        self._callback = callback
        self._job = self.root.after(TICK_MS, self._tick)

    def _tick(self):
        self._job = self.root.after(TICK_MS, self._tick)
        self._callback()
        if self.on_tick is not None:
            self.on_tick()

    def stop(self):
        if self._job is None:
            return
        self.root.after_cancel(self._job)
        self._job = None
        self._callback = None

    @property
    def running(self) -> bool:
        return self._job is not None


class Minesweeper:
    NUMBER_COLORS = {1: "blue", 2: "green", 3: "red", 4: "purple", 5: "brown", 6: "teal", 7: "black", 8: "gray"}
    FACES = {"playing": "😊", "won": "😎", "lost": "😵"}

    CELL_BG = "#E5E7EB"
    CELL_BG_HOVER = "#D1D5DB"
    REVEALED_BG = "#F3F4F6"
    MINE_BG = "#FCA5A5"
    BOARD_BG = "#F8FAFC"
    PANEL_BG = "#FFFFFF"
    BOARD_MAX_WIDTH = 920
    BOARD_MAX_HEIGHT = 640

    def __init__(self, root):
        self.root = root
        self.preferences = Preferences(settings.PREFERENCES_PATH)
        self.score_store = ScoreStore(settings.SCORES_PATH)
        self.local_best = LocalBestStore(settings.LOCAL_BEST_PATH)
        self.submitter = LeaderboardSubmitter(self.score_store)
        self.analytics_log = AnalyticsLog(settings.ANALYTICS_LOG_PATH)
        analytics.set_event_log(settings.EVENTS_PATH)

        rows, cols = settings.fit_board_size(self.BOARD_MAX_WIDTH, self.BOARD_MAX_HEIGHT + settings.HEADER_HEIGHT)
        difficulty = self.preferences.difficulty
        self.session = GameSession(
            settings.config_for_difficulty(rows, cols, difficulty),
            difficulty,
            clock=TkClock(root, on_tick=self._update_counters),
        )
        self.session.add_listener(self._on_outcome)
        self._outcome = None

        self.buttons = {}
        self.tool = "reveal"
        self.cell_font = ("Segoe UI", 10, "bold")
        self.counter_font = ("Consolas", 14, "bold")
        self.ui_font = ("Segoe UI", 11)

        self.rows_var = tk.StringVar(value=str(rows))
        self.cols_var = tk.StringVar(value=str(cols))
        self.mines_var = tk.StringVar(value=str(self.session.config.mines))
        self.analytics_boards_var = tk.StringVar(value="100")

        self._build_ui()
        self._create_board()
        self.root.protocol("WM_DELETE_WINDOW", self.close)

    def _build_ui(self):
        self.root.configure(bg=self.BOARD_BG)
        self.root.geometry("1240x760")
        self.root.resizable(False, False)

        main = tk.Frame(self.root, bg=self.BOARD_BG)
        main.pack(fill=tk.BOTH, expand=True, padx=10, pady=10)

        self.side_panel = tk.Frame(main, bg=self.PANEL_BG, bd=1, relief=tk.SOLID, width=260)
        self.side_panel.pack(side=tk.LEFT, fill=tk.Y)
        self.side_panel.pack_propagate(False)

        tk.Label(
            self.side_panel, text="Minesweeper", bg=self.PANEL_BG, fg="#111827",
            font=("Segoe UI", 14, "bold")
        ).pack(fill=tk.X, padx=10, pady=(10, 6))

        self.mines_label = tk.Label(self.side_panel, text="Mines: 000", font=self.counter_font, bg=self.PANEL_BG, fg="#EF4444")
        self.mines_label.pack(fill=tk.X, padx=10, anchor="w")
        self.timer_label = tk.Label(self.side_panel, text="Time: 000", font=self.counter_font, bg=self.PANEL_BG, fg="#111827")
        self.timer_label.pack(fill=tk.X, padx=10, pady=(0, 8), anchor="w")

        controls = tk.Frame(self.side_panel, bg=self.PANEL_BG)
        controls.pack(fill=tk.X, padx=10, pady=(0, 8))
        self.smiley_btn = tk.Button(controls, text=self.FACES["playing"], font=("Segoe UI Emoji", 16), width=3, command=self.reset)
        self.smiley_btn.pack(side=tk.LEFT)
        self.tool_btn = tk.Button(controls, text="⛏️", font=("Segoe UI Emoji", 16), width=3, command=self.toggle_tool)
        self.tool_btn.pack(side=tk.LEFT, padx=(8, 0))

        self.difficulty_var = tk.StringVar(value=self.session.difficulty.capitalize())
        names = [d.capitalize() for d in settings.RANKED_DIFFICULTIES] + [settings.CUSTOM.capitalize()]
        menu = tk.OptionMenu(self.side_panel, self.difficulty_var, *names, command=self._on_change_difficulty)
        menu.config(font=("Segoe UI Emoji", 12), width=10)
        menu.pack(fill=tk.X, padx=10, pady=(0, 8))

        size_frame = tk.LabelFrame(self.side_panel, text="Board", bg=self.PANEL_BG, font=self.ui_font, padx=8, pady=4)
        inputs = tk.Frame(size_frame, bg=self.PANEL_BG)
        inputs.pack(fill=tk.X)
        for label, var in (("Rows", self.rows_var), ("Columns", self.cols_var), ("Mines", self.mines_var)):
            wrapper = tk.Frame(inputs, bg=self.PANEL_BG)
            tk.Label(wrapper, text=label, bg=self.PANEL_BG, font=("Segoe UI", 10)).pack(anchor="w")
            tk.Entry(wrapper, textvariable=var, width=6, justify="center").pack(anchor="w")
            wrapper.pack(side=tk.LEFT, padx=(0, 8))
        tk.Button(size_frame, text="Apply", command=self.apply_board_settings, font=self.ui_font).pack(fill=tk.X, pady=(6, 0))
        size_frame.pack(fill=tk.X, padx=10, pady=(0, 8))

        report_frame = tk.LabelFrame(self.side_panel, text="Generator report", bg=self.PANEL_BG, font=self.ui_font, padx=8, pady=4)
        tk.Label(report_frame, text="Boards", bg=self.PANEL_BG, font=("Segoe UI", 10)).pack(side=tk.LEFT)
        tk.Entry(report_frame, textvariable=self.analytics_boards_var, width=6, justify="center").pack(side=tk.LEFT, padx=6)
        tk.Button(report_frame, text="Run", command=self.run_analytics_report, font=self.ui_font).pack(side=tk.LEFT)
        report_frame.pack(fill=tk.X, padx=10, pady=(0, 8))

        self.notebook = ttk.Notebook(main)
        self.notebook.pack(side=tk.LEFT, padx=(10, 0), fill=tk.BOTH, expand=True)

        self.game_tab = tk.Frame(self.notebook, bg=self.BOARD_BG)
        self.notebook.add(self.game_tab, text="Game")
        self.board_frame = tk.Frame(self.game_tab, bg=self.PANEL_BG, bd=1, relief=tk.SOLID)
        self.board_frame.pack()

        self.ranking_tab = RankingTab(self.notebook, self.PANEL_BG, self.ui_font, self.submitter, self.local_best)
        self.notebook.add(self.ranking_tab.frame, text="Leaderboard")
        self.analytics_tab = AnalyticsTab(self.notebook, self.PANEL_BG, self.ui_font, self.analytics_log)
        self.notebook.add(self.analytics_tab.frame, text="Reports")
        self.notebook.bind("<<NotebookTabChanged>>", self._on_tab_changed)

        self.status = tk.Label(
            self.root,
            text="Left-click to reveal, right-click to flag, double-click a number to chord. Press R to reset.",
            bg=self.BOARD_BG, fg="#374151", font=self.ui_font,
        )
        self.status.pack(padx=10, pady=(0, 6), anchor="w")
        self.root.bind("<r>", lambda e: self.reset())
        self.root.bind("<R>", lambda e: self.reset())

    def _create_board(self):
        for w in self.board_frame.winfo_children():
            w.destroy()
        self.buttons.clear()
        rows, cols = self.session.config.rows, self.session.config.cols

        width_limit = self.BOARD_MAX_WIDTH // cols
        height_limit = self.BOARD_MAX_HEIGHT // rows
        self.cell_px = max(18, min(settings.CELL_SIZE, width_limit, height_limit))
        self.board_frame.config(width=self.cell_px * cols, height=self.cell_px * rows)
        self.board_frame.grid_propagate(False)
        for r in range(rows):
            self.board_frame.grid_rowconfigure(r, weight=1, uniform="row", minsize=self.cell_px)
        for c in range(cols):
            self.board_frame.grid_columnconfigure(c, weight=1, uniform="col", minsize=self.cell_px)

        font_size = max(8, int(self.cell_px * 0.45))
        for r in range(rows):
            for c in range(cols):
                b = tk.Button(
                    self.board_frame,
                    text="",
                    bg=self.CELL_BG,
                    activebackground=self.CELL_BG_HOVER,
                    font=("Segoe UI", font_size, "bold"),
                    relief=tk.RAISED,
                )
                b.bind("<ButtonRelease-1>", lambda e, r=r, c=c: self.on_primary(r, c))
                b.bind("<Double-1>", lambda e, r=r, c=c: self.chord(r, c))
                b.bind("<Button-3>", lambda e, r=r, c=c: self.on_secondary(r, c))  # Windows/Linux
                b.bind("<Button-2>", lambda e, r=r, c=c: self.on_secondary(r, c))  # macOS
                b.bind("<Enter>", lambda e, r=r, c=c: self._hover(r, c, True))
                b.bind("<Leave>", lambda e, r=r, c=c: self._hover(r, c, False))
                b.grid(row=r, column=c, sticky="nsew")
                self.buttons[(r, c)] = b
        self._refresh_ui()

    def on_primary(self, r, c):
        cell = self.session.board.cell(r, c)
        if cell.is_revealed and cell.neighbor_mines > 0:
            self.chord(r, c)
        elif self.tool == "flag":
            self.toggle_flag(r, c)
        else:
            self.reveal_cell(r, c)

    def on_secondary(self, r, c):
        if self.tool == "flag":
            self.reveal_cell(r, c)
        else:
            self.toggle_flag(r, c)

    def reveal_cell(self, r, c):
        was_first = self.session.is_first_click
        self.session.on_reveal(r, c)
        if was_first and not self.session.is_first_click:
            config = self.session.config
            analytics.track("game_start", rows=config.rows, cols=config.cols,
                            mines=config.mines, difficulty=self.session.difficulty)
        self._after_intent()

    def chord(self, r, c):
        self.session.on_chord(r, c)
        self._after_intent()

    def toggle_flag(self, r, c):
        self.session.on_toggle_flag(r, c)
        self._after_intent()

    def toggle_tool(self):
        self.tool = "reveal" if self.tool == "flag" else "flag"
        self.tool_btn.config(text="🚩" if self.tool == "flag" else "⛏️")
        analytics.track(f"tool_{self.tool}")

    def _after_intent(self):
        self._refresh_ui()
        outcome, self._outcome = self._outcome, None
        if outcome is not None:
            self.game_over(outcome)

    def _on_outcome(self, outcome):
        self._outcome = outcome

    def _refresh_ui(self):
        snapshot = self.session.snapshot()
        for r in range(snapshot.rows):
            for c in range(snapshot.cols):
                cell = snapshot.cell(r, c)
                btn = self.buttons[(r, c)]
                if cell.is_revealed and cell.is_mine:
                    btn.config(text="💣", bg=self.MINE_BG, relief=tk.SUNKEN)
                elif cell.is_flagged:
                    btn.config(text="🚩", fg="#EF4444", bg=self.CELL_BG, relief=tk.RAISED)
                elif cell.is_revealed:
                    text = str(cell.neighbor_mines) if cell.neighbor_mines > 0 else ""
                    fg = self.NUMBER_COLORS.get(cell.neighbor_mines, "#111827")
                    btn.config(text=text, fg=fg, bg=self.REVEALED_BG, relief=tk.SUNKEN)
                else:
                    btn.config(text="", bg=self.CELL_BG, relief=tk.RAISED)

        face = "playing"
        if snapshot.game_over:
            face = "won" if snapshot.is_win else "lost"
        self.smiley_btn.config(text=self.FACES[face])
        self._update_counters()

    def _update_counters(self):
        remaining = min(999, max(0, self.session.flags_remaining))
        self.mines_label.config(text=f"Mines: {remaining:03d}")
        self.timer_label.config(text=f"Time: {min(999, self.session.elapsed_seconds):03d}")

    def _hover(self, r, c, is_enter):
        cell = self.session.board.cell(r, c)
        if cell.is_revealed or cell.is_flagged:
            return
        self.buttons[(r, c)].config(bg=self.CELL_BG_HOVER if is_enter else self.CELL_BG)

    def game_over(self, outcome):
        config = outcome.config
        analytics.track("win" if outcome.won else "loss", seconds=outcome.elapsed_seconds,
                        rows=config.rows, cols=config.cols, mines=config.mines,
                        difficulty=outcome.difficulty)
        message = "You Win! 🎉" if outcome.won else "Boom! 😵"
        messagebox.showinfo("Game Over", message)
        if not outcome.won:
            return

        player = self._player()
        if outcome.difficulty in settings.RANKED_DIFFICULTIES:
            if self.local_best.record(outcome.difficulty, player.display_name, outcome.elapsed_seconds):
                analytics.track("local_best_updated", difficulty=outcome.difficulty,
                                seconds=outcome.elapsed_seconds)
            future = self.submitter.submit(player, outcome.elapsed_seconds, outcome.difficulty)
            self.root.after(100, self._poll_submission, future, player)

    def _poll_submission(self, future, player):
        if not future.done():
            self.root.after(100, self._poll_submission, future, player)
            return
        result = future.result()
        if not result.ok:
            self.status.config(text=f"Ranking not saved: {result.error}")
            return
        self.ranking_tab.refresh(highlight_user=player.user_id)
        self.notebook.select(self.ranking_tab.frame)

    def _player(self):
        name = self.preferences.player_name
        if not name:
            name = self._prompt_for_name()
            if name:
                self.preferences.player_name = name
                self.preferences.save()
        return Player.from_profile(name=name or "Player")

    def _prompt_for_name(self):
        name = simpledialog.askstring(
            "Leaderboard Entry",
            "Enter your name to save your best score:",
            parent=self.root,
        )
        if name is None:
            return None
        return name.strip()[:40] or None

    def _on_tab_changed(self, _event):
        if self.notebook.select() == str(self.ranking_tab.frame):
            self.ranking_tab.refresh()

    def _read_int(self, var, label):
        try:
            return int(var.get())
        except ValueError:
            raise ConfigError(f"{label} must be an integer.") from None

    def apply_board_settings(self):
        try:
            rows = self._read_int(self.rows_var, "Rows")
            cols = self._read_int(self.cols_var, "Columns")
            difficulty = self.session.difficulty
            if difficulty == settings.CUSTOM:
                self.session.on_reset(settings.custom_config(rows, cols, self._read_int(self.mines_var, "Mines")))
            elif self.session.state is SessionState.IN_PROGRESS:
                self.session.on_resize(rows, cols)
            else:
                self.session.on_reset(settings.config_for_difficulty(rows, cols, difficulty))
        except ConfigError as exc:
            messagebox.showwarning("Board", str(exc))
            return
        self.mines_var.set(str(self.session.config.mines))
        self._create_board()

    def _on_change_difficulty(self, *_):
        difficulty = self.difficulty_var.get().lower()
        analytics.track(f"difficulty_{difficulty}")
        if difficulty == settings.CUSTOM:
            self.session.on_reset(difficulty=difficulty)
            self._create_board()
            return
        rows, cols = self.session.config.rows, self.session.config.cols
        try:
            config = settings.config_for_difficulty(rows, cols, difficulty)
        except ConfigError as exc:
            messagebox.showwarning("Board", str(exc))
            self.difficulty_var.set(self.session.difficulty.capitalize())
            return
        self.preferences.difficulty = difficulty
        self.preferences.save()
        self.session.on_reset(config, difficulty)
        self.mines_var.set(str(self.session.config.mines))
        self._create_board()

    def run_analytics_report(self):
        config = self.session.config
        try:
            boards = self._read_int(self.analytics_boards_var, "Boards")
            if boards <= 0:
                raise ConfigError("Boards must be positive.")
        except ConfigError as exc:
            messagebox.showwarning("Reports", str(exc))
            return
        now = datetime.now()
        safe_name = re.sub(r"[^A-Za-z0-9_-]+", "_", self.preferences.player_name or "Player").strip("_") or "Player"
        pdf_path = os.path.join(settings.ANALYTICS_REPORTS_DIR, f"{safe_name}_{int(now.timestamp())}.pdf")
        try:
            os.makedirs(settings.ANALYTICS_REPORTS_DIR, exist_ok=True)
            generate_report(config.rows, config.cols, config.mines, boards, pdf_path)
        except (OSError, ValueError) as exc:
            logger.exception("Report generation failed")
            messagebox.showwarning("Reports", f"Failed to build report:\n{exc}")
            return
        record = {
            "created_at": now.strftime("%Y-%m-%d %H:%M:%S"),
            "boards": boards,
            "rows": config.rows,
            "cols": config.cols,
            "mines": config.mines,
            "pdf_path": pdf_path,
        }
        try:
            self.analytics_log.append(record)
        except OSError as exc:
            messagebox.showwarning("Reports", f"Could not store report record:\n{exc}")
        self.analytics_tab.add_record(record)
        self.notebook.select(self.analytics_tab.frame)

    def reset(self):
        self.session.on_reset()
        self.tool = "reveal"
        self.tool_btn.config(text="⛏️")
        self.notebook.select(self.game_tab)
        self._refresh_ui()

    def close(self):
        self.session.clock.stop()
        self.submitter.shutdown()
        self.root.destroy()


def main():
    settings.configure_logging()
    root = tk.Tk()
    root.title("Minesweeper")
    Minesweeper(root)
    root.mainloop()


if __name__ == "__main__":
    main()
