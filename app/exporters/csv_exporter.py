"""
CSV export helper.

``to_csv`` serialises a header row plus data rows with minimal quoting:
fields containing a comma, a double quote or a line break are wrapped in
double quotes with inner quotes doubled; ``None`` renders as an empty field.
"""

from __future__ import annotations

import csv
import io
from typing import Any, Iterable, Sequence


def to_csv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    """Return CSV text with ``\\n`` line endings.

    Args:
        headers: Literal column titles.
        rows: Data rows; each must match ``headers`` in length.

    Returns:
        The CSV document, terminated by a newline.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow(["" if value is None else value for value in row])
    return buffer.getvalue()
