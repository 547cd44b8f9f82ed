from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from fpdf import FPDF
from pydantic import BaseModel

from tresen.constants import STATUS_LABELS
from tresen.models import format_eur
from tresen.models.bill import Bill, BillStatus
from tresen.settings import settings

logger = logging.getLogger(__name__)

FONT = "Helvetica"
LINE_H = 7
STATUS_COLORS = {
    BillStatus.PAID: (0, 128, 0),
    BillStatus.DEFERRED: (255, 165, 0),
}


class InvoiceSender(BaseModel):
    name: str = ""
    street: str = ""
    city: str = ""
    location: str = ""
    iban: str = ""
    account_holder: str = ""
    paypal_url: str = ""
    payment_due_days: int = 14
    late_fee_percent: int = 20
    late_fee_min_amount: int = 500  # cents

    @classmethod
    def from_settings(cls) -> InvoiceSender:
        return cls(
            name=settings.invoice_sender_name,
            street=settings.invoice_sender_street,
            city=settings.invoice_sender_city,
            location=settings.invoice_location,
            iban=settings.invoice_iban,
            account_holder=settings.invoice_account_holder,
            paypal_url=settings.invoice_paypal_url,
            payment_due_days=settings.payment_due_days,
            late_fee_percent=settings.late_fee_percent,
            late_fee_min_amount=settings.late_fee_min_amount,
        )


def _money(cents: int) -> str:
    # Core fonts are latin-1 only, the euro sign is not part of it.
    return format_eur(cents).replace("€", "EUR")


def format_short_date(value: datetime) -> str:
    return value.strftime("%d.%m.%y")


def paypal_amount(cents: int) -> str:
    """PayPal.me amount with a comma and at least three integer digits: 8128 -> '081,28'."""
    euros, rest = divmod(abs(cents), 100)
    sign = "-" if cents < 0 else ""
    return f"{sign}{euros:03d},{rest:02d}"


def paypal_link(sender: InvoiceSender, cents: int) -> str:
    if not sender.paypal_url:
        return ""
    return f"{sender.paypal_url}{paypal_amount(cents)}"


class InvoicePDF:
    """Two pages per bill: a cover letter with payment terms, then the itemised statement."""

    def generate(self, bill: Bill, issued_at: datetime | None = None, sender: InvoiceSender | None = None) -> bytes:
        self._sender = sender or InvoiceSender.from_settings()
        issued_at = issued_at or datetime.now(UTC)

        pdf = FPDF(orientation="P", unit="mm", format="A4")
        pdf.set_margins(20, 20, 20)
        pdf.set_auto_page_break(auto=True, margin=30)
        page_w = pdf.w - pdf.l_margin - pdf.r_margin

        pdf.add_page()
        self._draw_letter(pdf, page_w, bill, issued_at)
        self._draw_payment_details(pdf, page_w, bill.total, align="L")

        pdf.add_page()
        self._draw_items(pdf, page_w, bill)
        self._draw_summary(pdf, page_w, bill)
        self._draw_status(pdf, bill)
        self._draw_payment_details(pdf, page_w, bill.total, align="C")

        output = pdf.output()
        logger.debug(
            "PDF generated: bill=%s subject=%s items=%d size=%d bytes",
            bill.id,
            bill.subject.name,
            len(bill.line_items),
            len(output),
        )
        return bytes(output)

    def _draw_letter(self, pdf: FPDF, page_w: float, bill: Bill, issued_at: datetime) -> None:
        s = self._sender
        pdf.set_font(FONT, "", 12)
        for line in (s.name, s.street, s.city):
            if line:
                pdf.cell(page_w, LINE_H, line, new_x="LMARGIN", new_y="NEXT")

        pdf.ln(10)
        place = f"{s.location} den " if s.location else ""
        pdf.cell(page_w, LINE_H, f"{place}{format_short_date(issued_at)}", new_x="LMARGIN", new_y="NEXT")
        pdf.ln(12)

        if bill.is_event_bill:
            greeting = f"Hallo {bill.subject.booked_by or bill.subject.name},"
            intro = f"auf der nächsten Seite findest du die Getränkerechnung für {bill.subject.name} aufgeschlüsselt,"
        else:
            greeting = f"Hallo {bill.subject.name},"
            intro = "auf der nächsten Seite findest du deine Getränkerechnung aufgeschlüsselt,"
        pdf.cell(page_w, LINE_H, greeting, new_x="LMARGIN", new_y="NEXT")
        pdf.ln(6)
        pdf.multi_cell(page_w, LINE_H, intro, new_x="LMARGIN", new_y="NEXT")
        pdf.cell(page_w, LINE_H, f"in Höhe von: {_money(bill.total)}", new_x="LMARGIN", new_y="NEXT")
        pdf.ln(5)

        due = issued_at + timedelta(days=s.payment_due_days)
        terms = (
            f"Bitte überweise den Betrag mit dem PayPal-Link oder auf das genannte Konto innerhalb von "
            f"{s.payment_due_days} Tagen, spätestens bis zum {format_short_date(due)}. Ansonsten gibt es, ab "
            f"{_money(s.late_fee_min_amount)} Rechnungsbetrag, eine Mahnung in Höhe von "
            f"{s.late_fee_percent}% auf die nächste Rechnung."
        )
        pdf.multi_cell(page_w, LINE_H, terms, new_x="LMARGIN", new_y="NEXT")
        pdf.ln(10)
        pdf.cell(page_w, LINE_H, "Mit freundlichen Grüßen,", new_x="LMARGIN", new_y="NEXT")
        if s.account_holder:
            pdf.ln(3)
            pdf.cell(page_w, LINE_H, s.account_holder, new_x="LMARGIN", new_y="NEXT")

    def _draw_items(self, pdf: FPDF, page_w: float, bill: Bill) -> None:
        col_name = page_w * 0.40
        col_amount = page_w * 0.15
        col_price = page_w * 0.22
        col_total = page_w - col_name - col_amount - col_price

        pdf.set_font(FONT, "B", 12)
        pdf.cell(col_name, LINE_H, "Getränk")
        pdf.cell(col_amount, LINE_H, "Menge", align="R")
        pdf.cell(col_price, LINE_H, "Preis/Stück", align="R")
        pdf.cell(col_total, LINE_H, "Gesamt", align="R", new_x="LMARGIN", new_y="NEXT")
        y = pdf.get_y() + 1
        pdf.line(pdf.l_margin, y, pdf.l_margin + page_w, y)
        pdf.ln(3)

        pdf.set_font(FONT, "", 11)
        for item in sorted(bill.line_items, key=lambda i: (i.drink_name, i.sort_order)):
            pdf.cell(col_name, LINE_H, item.drink_name)
            pdf.cell(col_amount, LINE_H, str(item.amount), align="R")
            pdf.cell(col_price, LINE_H, _money(item.price_per_drink), align="R")
            pdf.cell(col_total, LINE_H, _money(item.total_price), align="R", new_x="LMARGIN", new_y="NEXT")

        pdf.ln(6)
        y = pdf.get_y()
        pdf.line(pdf.l_margin, y, pdf.l_margin + page_w, y)
        pdf.ln(4)

    def _draw_summary(self, pdf: FPDF, page_w: float, bill: Bill) -> None:
        col_label = page_w * 0.6
        col_value = page_w - col_label
        rows = [
            ("Rechnungsbetrag:", bill.drinks_total, "B"),
            ("Alte Rechnung:", bill.old_balance, ""),
            ("Gebühren:", bill.fees, ""),
        ]
        for label, cents, style in rows:
            pdf.set_font(FONT, style, 12)
            pdf.cell(col_label, LINE_H, label)
            pdf.cell(col_value, LINE_H, _money(cents), align="R", new_x="LMARGIN", new_y="NEXT")

        y = pdf.get_y() + 1
        pdf.line(pdf.l_margin, y, pdf.l_margin + page_w, y)
        pdf.ln(4)
        pdf.set_font(FONT, "B", 14)
        pdf.cell(col_label, LINE_H + 1, "Gesamtbetrag:")
        pdf.cell(col_value, LINE_H + 1, _money(bill.total), align="R", new_x="LMARGIN", new_y="NEXT")

        if bill.notes:
            pdf.ln(6)
            pdf.set_font(FONT, "", 10)
            pdf.multi_cell(page_w, 6, bill.notes, new_x="LMARGIN", new_y="NEXT")

    def _draw_status(self, pdf: FPDF, bill: Bill) -> None:
        color = STATUS_COLORS.get(bill.status)
        if color is None:
            return
        pdf.ln(8)
        pdf.set_font(FONT, "B", 12)
        pdf.set_text_color(*color)
        label = STATUS_LABELS[bill.status].upper()
        if bill.status == BillStatus.PAID and bill.paid_at:
            label = f"{label} am {format_short_date(bill.paid_at)}"
        pdf.cell(0, LINE_H, label, new_x="LMARGIN", new_y="NEXT")
        pdf.set_text_color(0, 0, 0)

    def _draw_payment_details(self, pdf: FPDF, page_w: float, total: int, align: str) -> None:
        s = self._sender
        lines = [line for line in (paypal_link(s, total), s.iban, s.account_holder) if line]
        if not lines:
            return
        pdf.set_auto_page_break(auto=False)
        pdf.set_y(-20 - LINE_H * len(lines))
        pdf.set_font(FONT, "", 11)
        for line in lines:
            pdf.cell(page_w, LINE_H, line, align=align, new_x="LMARGIN", new_y="NEXT")
        pdf.set_auto_page_break(auto=True, margin=30)
