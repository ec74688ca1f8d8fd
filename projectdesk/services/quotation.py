"""
Quotation generation: team composition → itemized cost → printable HTML.

Everything here is pure. Rates come from settings (INR); USD figures are the
INR figures scaled by a fixed factor, not a live exchange rate.
"""

from dataclasses import dataclass
from datetime import date
from html import escape
from typing import Optional, Tuple

from projectdesk.core.config import settings
from projectdesk.schemas.quotation import Currency, QuotationBreakdown, QuotationLineItem
from projectdesk.schemas.wizard import ProjectFormData


CURRENCY_SYMBOLS = {
    Currency.INR: "₹",
    Currency.USD: "$",
}

OVERVIEW_WORD_LIMIT = 20


@dataclass(frozen=True)
class RateTable:
    senior: int
    junior: int
    designer: int
    management_fee: int
    usd_factor: float

    @classmethod
    def from_settings(cls) -> "RateTable":
        return cls(
            senior=settings.QUOTATION_SENIOR_RATE,
            junior=settings.QUOTATION_JUNIOR_RATE,
            designer=settings.QUOTATION_DESIGNER_RATE,
            management_fee=settings.QUOTATION_MANAGEMENT_FEE,
            usd_factor=settings.QUOTATION_USD_FACTOR,
        )

    def convert(self, amount: int, currency: Currency) -> int:
        if currency == Currency.USD:
            return round(amount * self.usd_factor)
        return amount


def calculate_quotation(
    senior_developers: int,
    junior_developers: int,
    ui_ux_designers: int,
    currency: Currency = Currency.INR,
    rates: Optional[RateTable] = None,
) -> QuotationBreakdown:
    """Per-role subtotals plus the flat management fee"""
    rates = rates or RateTable.from_settings()

    roles = [
        ("Senior Developer", senior_developers, rates.senior),
        ("Junior Developer", junior_developers, rates.junior),
        ("UI/UX Designer", ui_ux_designers, rates.designer),
    ]
    line_items = []
    for label, count, base_rate in roles:
        rate = rates.convert(base_rate, currency)
        line_items.append(QuotationLineItem(label=label, count=count, rate=rate, subtotal=rate * count))

    management_fee = rates.convert(rates.management_fee, currency)
    total = sum(item.subtotal for item in line_items) + management_fee

    return QuotationBreakdown(
        currency=currency,
        line_items=line_items,
        management_fee=management_fee,
        total=total,
    )


def _group_indian(digits: str) -> str:
    # 1234567 -> 12,34,567
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups) + "," + tail


def format_amount(amount: float, currency: Currency) -> str:
    """Symbol plus locale-style grouping (en-IN for INR, en-US for USD)"""
    negative = amount < 0
    whole = str(int(round(abs(amount))))
    grouped = _group_indian(whole) if currency == Currency.INR else f"{int(whole):,}"
    return f"{'-' if negative else ''}{CURRENCY_SYMBOLS[currency]}{grouped}"


def truncate_words(text: str, limit: int = OVERVIEW_WORD_LIMIT) -> str:
    words = (text or "").split()
    if len(words) <= limit:
        return " ".join(words)
    return " ".join(words[:limit]) + "..."


def render_quotation_html(
    form: ProjectFormData,
    breakdown: QuotationBreakdown,
    issued_on: Optional[date] = None,
) -> str:
    """Self-contained, inline-styled quotation document"""
    issued_on = issued_on or date.today()
    currency = breakdown.currency

    rows = []
    for item in breakdown.line_items:
        if item.count <= 0:
            continue
        rows.append(
            "<tr>"
            f"<td style=\"padding:8px;border-bottom:1px solid #e5e7eb;\">{escape(item.label)} (x{item.count})</td>"
            f"<td style=\"padding:8px;border-bottom:1px solid #e5e7eb;text-align:right;\">{format_amount(item.rate, currency)}</td>"
            f"<td style=\"padding:8px;border-bottom:1px solid #e5e7eb;text-align:right;\">{format_amount(item.subtotal, currency)}</td>"
            "</tr>"
        )
    rows.append(
        "<tr>"
        "<td style=\"padding:8px;border-bottom:1px solid #e5e7eb;\">Project Management</td>"
        "<td style=\"padding:8px;border-bottom:1px solid #e5e7eb;text-align:right;\">-</td>"
        f"<td style=\"padding:8px;border-bottom:1px solid #e5e7eb;text-align:right;\">{format_amount(breakdown.management_fee, currency)}</td>"
        "</tr>"
    )

    return f"""<div style="font-family:Arial,sans-serif;max-width:800px;margin:0 auto;padding:24px;color:#111827;">
  <div style="text-align:center;border-bottom:2px solid #1e40af;padding-bottom:12px;margin-bottom:20px;">
    <h1 style="color:#1e40af;margin:0;">{escape(settings.QUOTATION_COMPANY_NAME)}</h1>
    <p style="margin:4px 0 0 0;color:#6b7280;">{escape(settings.QUOTATION_COMPANY_TAGLINE)}</p>
  </div>
  <h2 style="margin:0 0 8px 0;">Project Quotation</h2>
  <p style="margin:0 0 16px 0;">Date: {issued_on.strftime("%d/%m/%Y")}</p>
  <h3>Client Details</h3>
  <p>Name: {escape(form.client_name)}</p>
  <p>Email: {escape(form.client_email)}</p>
  <p>Phone: {escape(form.client_phone_number)}</p>
  <h3>Project Details</h3>
  <p>Project Name: {escape(form.project_name)}</p>
  <p>Overview: {escape(truncate_words(form.project_overview))}</p>
  <h3>Cost Breakdown</h3>
  <table style="width:100%;border-collapse:collapse;">
    <thead>
      <tr>
        <th style="padding:8px;text-align:left;background:#f3f4f6;">Item</th>
        <th style="padding:8px;text-align:right;background:#f3f4f6;">Rate</th>
        <th style="padding:8px;text-align:right;background:#f3f4f6;">Amount</th>
      </tr>
    </thead>
    <tbody>
      {"".join(rows)}
    </tbody>
  </table>
  <p style="text-align:right;font-size:18px;font-weight:bold;margin-top:16px;">Total: {format_amount(breakdown.total, currency)}</p>
  <p style="margin-top:32px;font-size:12px;color:#6b7280;">This quotation is valid for {settings.QUOTATION_VALIDITY_DAYS} days from the date of issue. Prices are subject to change based on final requirements.</p>
</div>"""


def generate_quotation(
    form: ProjectFormData,
    issued_on: Optional[date] = None,
    rates: Optional[RateTable] = None,
) -> Tuple[str, QuotationBreakdown]:
    """Breakdown for the form's team and currency, rendered to HTML"""
    breakdown = calculate_quotation(
        form.senior_developers,
        form.junior_developers,
        form.ui_ux_designers,
        currency=form.currency,
        rates=rates,
    )
    return render_quotation_html(form, breakdown, issued_on=issued_on), breakdown
