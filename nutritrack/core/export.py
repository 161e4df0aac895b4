"""Export Formatter - Serialize record history to CSV or JSON bytes.

All functions are pure: same input always produces same output, no side effects.
"""

from enum import Enum
from typing import Iterable

from pydantic import TypeAdapter

from .errors import EncodingError
from .models import AnalysisRecord, AnalyticsData


CSV_HEADER = "Date,Food Name,Calories,Protein,Fat,Carbs,Health Score,Coach Comment"
CSV_DATE_FORMAT = "%Y-%m-%d %H:%M"

_records_adapter = TypeAdapter(list[AnalysisRecord])


class ExportFormat(str, Enum):
    """Supported export payloads."""

    CSV = "csv"
    JSON = "json"

    @property
    def media_type(self) -> str:
        return "text/csv" if self == ExportFormat.CSV else "application/json"

    @property
    def file_extension(self) -> str:
        return self.value


def _csv_text(value: str) -> str:
    """Make free text safe for an unquoted CSV cell.

    Commas become semicolons and line breaks become spaces, so every record
    stays on one line. No quoting is applied.
    """
    return (
        value.replace(",", ";")
        .replace("\r\n", " ")
        .replace("\n", " ")
        .replace("\r", " ")
    )


def _csv_row(record: AnalysisRecord) -> str:
    return ",".join([
        record.timestamp.strftime(CSV_DATE_FORMAT),
        _csv_text(record.item_name),
        str(record.calories),
        str(record.protein),
        str(record.fat),
        str(record.carbs),
        _csv_text(record.health_score),
        _csv_text(record.coach_comment),
    ])


def to_csv(records: Iterable[AnalysisRecord]) -> bytes:
    """Render records as UTF-8 CSV: a header plus one line per record.

    Raises:
        EncodingError: If the text cannot be encoded
    """
    lines = [CSV_HEADER] + [_csv_row(r) for r in records]
    try:
        return "\n".join(lines).encode("utf-8")
    except UnicodeEncodeError as e:
        raise EncodingError(f"Failed to encode CSV export: {e}") from e


def to_json(records: Iterable[AnalysisRecord]) -> bytes:
    """Render records as a JSON array with ISO-8601 timestamps.

    Raises:
        EncodingError: If serialization fails
    """
    try:
        return _records_adapter.dump_json(list(records), indent=2)
    except (ValueError, UnicodeEncodeError) as e:
        raise EncodingError(f"Failed to encode JSON export: {e}") from e


def analytics_to_json(analytics: AnalyticsData) -> bytes:
    """Render an analytics summary as JSON."""
    try:
        return analytics.model_dump_json(indent=2).encode("utf-8")
    except (ValueError, UnicodeEncodeError) as e:
        raise EncodingError(f"Failed to encode analytics export: {e}") from e


def export_records(records: Iterable[AnalysisRecord], fmt: ExportFormat) -> bytes:
    """Serialize records in the requested format."""
    if fmt == ExportFormat.CSV:
        return to_csv(records)
    return to_json(records)
