"""
Printable event report: members, expense history, balances and who
pays whom, rendered to PDF with xhtml2pdf.
"""
from __future__ import annotations

import io
import logging
from datetime import date

from xhtml2pdf import pisa

from analytics import summarize_expenses
from errors import ReportError
from splitter import as_records
from utils import format_currency, format_date
from validation import sanitize_html

logger = logging.getLogger(__name__)

STYLE = """
    body { font-family: Arial, sans-serif; padding: 20px; color: #333; }
    h1 { color: #667eea; border-bottom: 2px solid #667eea; padding-bottom: 10px; }
    h2 { color: #444; margin-top: 25px; }
    table { width: 100%; border-collapse: collapse; margin: 15px 0; }
    th, td { border: 1px solid #ddd; padding: 10px; text-align: left; }
    th { background: #667eea; color: white; }
    .highlight { background: #e8f5e9; padding: 15px; margin: 15px 0; }
    .footer { margin-top: 30px; text-align: center; color: #888; font-size: 12px; }
"""


def build_report_html(event: dict, expenses, members: dict, currency: str = "USD") -> str:
    metadata = event.get("metadata") or {}
    title = sanitize_html(metadata.get("name") or "Event Report")
    members = members or {}

    def name_of(member_id):
        member = members.get(member_id) or {}
        return sanitize_html(member.get("name") or str(member_id))

    def money(amount):
        return format_currency(amount, currency)

    summary = summarize_expenses(expenses, members)

    expense_rows = "".join(
        f"<tr><td>{sanitize_html(e.get('name') or '')}</td>"
        f"<td>{sanitize_html(e.get('category') or 'other')}</td>"
        f"<td>{money(e.get('amount'))}</td>"
        f"<td>{sanitize_html(e.get('paid_by') or '')}</td>"
        f"<td>{format_date(e.get('date'))}</td></tr>"
        for e in as_records(expenses)
    ) or '<tr><td colspan="5">No expenses recorded</td></tr>'

    category_rows = "".join(
        f"<li>{sanitize_html(str(category)).title()}: {money(bucket['total'])}</li>"
        for category, bucket in summary["by_category"].items()
    ) or "<li>No expenses yet</li>"

    balance_rows = "".join(
        f"<tr><td>{name_of(member_id)}</td><td>{money(round(balance, 2))}</td></tr>"
        for member_id, balance in summary["balances"].items()
    ) or '<tr><td colspan="2">No members</td></tr>'

    transfers = "<br>".join(
        f"<strong>{name_of(s['from'])}</strong> pays <strong>{name_of(s['to'])}</strong> {money(s['amount'])}"
        for s in summary["settlements"]
    ) or "<p>No settlements needed</p>"

    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="UTF-8">
        <style>{STYLE}</style>
    </head>
    <body>
        <h1>{title}</h1>
        <p><strong>Generated:</strong> {date.today().strftime('%B %d, %Y')}</p>
        <p><strong>Dates:</strong> {sanitize_html(str(metadata.get('dates') or ''))}
           &nbsp; <strong>Location:</strong> {sanitize_html(metadata.get('location') or '')}</p>

        <h2>Members</h2>
        <p>{', '.join(name_of(m) for m in members) or 'No members'}</p>

        <h2>Spending</h2>
        <div class="highlight">
            <p><strong>Total:</strong> {money(summary['total'])}</p>
            <ul>{category_rows}</ul>
        </div>

        <h2>Expense History</h2>
        <table>
            <tr><th>Expense</th><th>Category</th><th>Amount</th><th>Paid By</th><th>Date</th></tr>
            {expense_rows}
        </table>

        <h2>Balances</h2>
        <table>
            <tr><th>Member</th><th>Net</th></tr>
            {balance_rows}
        </table>

        <h2>Who Pays Whom</h2>
        {transfers}

        <div class="footer">
            <p>Generated by Event Planner</p>
        </div>
    </body>
    </html>
    """


def render_event_report(event: dict, expenses, members: dict, currency: str = "USD") -> bytes:
    html_content = build_report_html(event, expenses, members, currency)

    pdf_buffer = io.BytesIO()
    status = pisa.CreatePDF(io.StringIO(html_content), dest=pdf_buffer)
    if status.err:
        logger.error("PDF rendering failed for event %s with %s errors", event.get("id"), status.err)
        raise ReportError("Failed to render event report")

    return pdf_buffer.getvalue()
