import os

from analytics_tab import pdf_target, report_row


def test_report_row_summarises_sample():
    record = {"created_at": "2024-01-01 10:00:00", "boards": 200, "rows": 9, "cols": 12, "mines": 10,
              "pdf_path": os.path.join("reports", "run.pdf")}
    assert report_row(record) == ("2024-01-01 10:00:00", "200 x 9x12, 10 mines", "run.pdf")


def test_report_row_without_pdf():
    record = {"boards": 0, "rows": 0, "cols": 0, "mines": 0, "pdf_path": ""}
    assert report_row(record)[2] == ""


def test_pdf_target_uses_file_url_on_macos():
    assert pdf_target("run.pdf", "darwin") == "file://" + os.path.abspath("run.pdf")
    assert pdf_target("run.pdf", "linux") == "run.pdf"
