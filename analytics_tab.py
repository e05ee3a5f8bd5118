"""Tab listing generated board statistics reports."""

import os
import sys
import tkinter as tk
import webbrowser
from tkinter import messagebox, ttk

from analytics import AnalyticsLog

HEADINGS = {"created_at": "Generated", "sample": "Sample", "pdf": "Report"}


def report_row(record: dict):
    """Treeview values for one logged report: timestamp, sample summary, file name."""
    sample = f"{record['boards']} x {record['rows']}x{record['cols']}, {record['mines']} mines"
    return record.get("created_at", ""), sample, os.path.basename(record.get("pdf_path") or "")


def pdf_target(pdf_path: str, platform: str = sys.platform) -> str:
    if platform == "darwin":
        return f"file://{os.path.abspath(pdf_path)}"
    return pdf_path


class AnalyticsTab:
    def __init__(self, parent, panel_bg, ui_font, analytics_log: AnalyticsLog):
        self.log = analytics_log
        self.frame = tk.Frame(parent, bg=panel_bg)
        self.box = ttk.LabelFrame(self.frame, text="Generator reports")
        self.box.pack(fill=tk.BOTH, expand=True, padx=12, pady=12)

        self.tree = ttk.Treeview(self.box, columns=tuple(HEADINGS), show="headings", height=12)
        for key, heading in HEADINGS.items():
            self.tree.heading(key, text=heading, anchor=tk.W)
        self.tree.column("sample", width=220)
        self.tree.column("pdf", width=300)
        self.tree.pack(fill=tk.BOTH, expand=True, padx=6, pady=6)
        # double-click or Enter opens the PDF
        self.tree.bind("<Double-1>", lambda e: self.open_selected())
        self.tree.bind("<Return>", lambda e: self.open_selected())
        self._paths = {}
        self.refresh()

    def refresh(self):
        self._paths.clear()
        self.tree.delete(*self.tree.get_children())
        try:
            records = self.log.read_all()
        except OSError as exc:
            self.box.configure(text=f"Generator reports (unreadable: {exc})")
            return
        for record in records:
            item = self.tree.insert("", "end", values=report_row(record))
            self._paths[item] = record.get("pdf_path") or ""
        self.box.configure(text=f"Generator reports ({len(records)})")

    def add_record(self, record: dict):
        self.refresh()
        self.highlight_pdf(record.get("pdf_path", ""))

    def highlight_pdf(self, pdf_path: str):
        target = os.path.abspath(pdf_path) if pdf_path else None
        item = next((i for i, p in self._paths.items() if p and os.path.abspath(p) == target), None)
        if item is not None:
            self.tree.selection_set(item)
            self.tree.see(item)

    def open_selected(self):
        selected = self.tree.selection()
        pdf_path = self._paths.get(selected[0], "") if selected else ""
        if not pdf_path or not os.path.exists(pdf_path):
            messagebox.showwarning("Reports", f"File not found:\n{pdf_path or '(nothing selected)'}")
            return
        try:
            webbrowser.open_new(pdf_target(pdf_path))
        except webbrowser.Error as exc:
            messagebox.showwarning("Reports", f"Could not open file:\n{exc}")
