"""
CSV export of the ticket collection.
"""

import re
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional

from quicket.tickets.domain import Ticket
from quicket.shared.clock import utc_now

EXPORT_COLUMNS = [
    "id", "title", "description", "name", "contactType", "contactValue",
    "category", "team", "status", "priority", "createdAt", "updatedAt",
]
SEPARATOR = ","
SEPARATOR_SUBSTITUTE = ";"
LINE_BREAKS = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True)
class CsvExport:
    """Rendered export: the download filename and its text."""
    filename: str
    content: str
    media_type: str = "text/csv;charset=utf-8"


def _sanitize(value: object) -> str:
    # Separators and line breaks inside values would shift the columns or rows
    text = LINE_BREAKS.sub(" ", str(value))
    return text.replace(SEPARATOR, SEPARATOR_SUBSTITUTE)


def export_csv(tickets: Iterable[Ticket], today: Optional[date] = None) -> CsvExport:
    """
    Render tickets as a comma separated table, one row per ticket.

    Notes are not exported. The filename embeds the export date.
    """
    today = today or utc_now().date()
    rows: List[str] = [SEPARATOR.join(EXPORT_COLUMNS)]
    for ticket in tickets:
        record = ticket.to_record()
        rows.append(SEPARATOR.join(_sanitize(record.get(column, "")) for column in EXPORT_COLUMNS))
    return CsvExport(filename=f"tickets_{today.isoformat()}.csv", content="\n".join(rows))
