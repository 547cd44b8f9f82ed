"""CSV statement of one bill period, one row per bill plus a GESAMT row, and per-bill PDF files."""

from __future__ import annotations

import csv
import io
import logging
import re
from collections.abc import Iterable
from datetime import UTC, date, datetime
from pathlib import Path

from tresen.constants import STATUS_LABELS
from tresen.models.bill import Bill, BillPeriod
from tresen.pdf.invoice import InvoicePDF
from tresen.settings import settings

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = ["Rechnungsbetrag", "Alte Rechnung", "Gebühren", "Zu zahlender Betrag", "Status"]


def _amount(cents: int) -> str:
    return f"{cents / 100:.2f}"


def export_filename(period: BillPeriod, today: date | None = None) -> str:
    today = today or datetime.now(UTC).date()
    return f"Rechnung_{period.bill_number}_{today.isoformat()}.csv"


def drink_columns(drink_names: Iterable[str], bills: list[Bill]) -> list[str]:
    """Catalogue names sorted, followed by names only found on the bills."""
    columns = sorted(set(drink_names))
    for bill in bills:
        for item in bill.line_items:
            if item.drink_name not in columns:
                columns.append(item.drink_name)
    return columns


def render_period_csv(
    bills: list[Bill],
    drink_names: Iterable[str],
    delimiter: str | None = None,
    include_event_bills: bool = False,
) -> str:
    selected = [b for b in bills if include_event_bills or not b.is_event_bill]
    selected.sort(key=lambda b: b.subject.name.lower())
    columns = drink_columns(drink_names, selected)

    buf = io.StringIO()
    writer = csv.writer(buf, delimiter=delimiter or settings.csv_delimiter, lineterminator="\n")
    writer.writerow(["Name", *columns, *SUMMARY_COLUMNS])

    column_totals = dict.fromkeys(columns, 0)
    for bill in selected:
        per_drink = dict.fromkeys(columns, 0)
        for item in bill.line_items:
            per_drink[item.drink_name] += item.total_price
            column_totals[item.drink_name] += item.total_price
        writer.writerow(
            [
                bill.subject.name,
                *(_amount(per_drink[c]) for c in columns),
                _amount(bill.drinks_total),
                _amount(bill.old_balance),
                _amount(bill.fees),
                _amount(bill.total),
                STATUS_LABELS[bill.status],
            ]
        )

    writer.writerow(
        [
            "GESAMT",
            *(_amount(column_totals[c]) for c in columns),
            _amount(sum(b.drinks_total for b in selected)),
            _amount(sum(b.old_balance for b in selected)),
            _amount(sum(b.fees for b in selected)),
            _amount(sum(b.total for b in selected)),
            "",
        ]
    )
    return buf.getvalue()


def write_period_csv(
    period: BillPeriod,
    bills: list[Bill],
    drink_names: Iterable[str],
    directory: str | None = None,
    include_event_bills: bool = False,
) -> Path:
    base_dir = Path(directory or settings.export_path)
    base_dir.mkdir(parents=True, exist_ok=True)
    path = base_dir / export_filename(period)
    content = render_period_csv(bills, drink_names, include_event_bills=include_event_bills)
    path.write_text(content, encoding="utf-8")
    resolved = path.resolve()
    logger.info("Exported bill period %s (%d bills) to %s", period.bill_number, len(bills), resolved)
    return resolved


def pdf_filename(bill: Bill) -> str:
    name = re.sub(r"[^A-Za-z0-9]", "_", bill.subject.name)
    return f"Rechnung_{bill.bill_number}_{name}.pdf"


def write_bill_pdf(bill: Bill, directory: str | None = None) -> Path:
    base_dir = Path(directory or settings.export_path)
    base_dir.mkdir(parents=True, exist_ok=True)
    path = base_dir / pdf_filename(bill)
    path.write_bytes(InvoicePDF().generate(bill))
    resolved = path.resolve()
    logger.info("Exported bill %s (%s) to %s", bill.id, bill.subject.name, resolved)
    return resolved
