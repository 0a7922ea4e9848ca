"""
Feedback ledger for user corrections.

Entries live in memory for the current session only, newest first. Export
writes the ledger as CSV in display order.
"""

import csv
import io
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from desishield.schemas.analysis_schemas import AnalysisResult, FeedbackEntry, Label
from desishield.utils.logging_config import StructuredLogger, metrics

logger = StructuredLogger(__name__)


CSV_HEADER = "Timestamp,Message,Predicted,UserLabel,Language,Score"
TIMESTAMP_FORMAT = "%d/%m/%Y, %H:%M:%S"


def format_timestamp(moment: datetime) -> str:
    return moment.strftime(TIMESTAMP_FORMAT)


def build_feedback_entry(
    message: str,
    result: AnalysisResult,
    user_label: Label,
    moment: Optional[datetime] = None,
) -> FeedbackEntry:
    """Copy the fields of an analysis into a standalone ledger entry."""
    return FeedbackEntry(
        timestamp=format_timestamp(moment or datetime.now()),
        message=message,
        predicted_label=result.label,
        user_label=Label(user_label),
        language=result.language,
        score=result.score,
    )


def entries_to_csv(entries: List[FeedbackEntry]) -> str:
    """
    Serialize entries as CSV.

    Text fields are always double-quoted with embedded quotes doubled; the
    score is written bare. Rows are separated by a single newline and there is
    no trailing newline.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    for entry in entries:
        writer.writerow(entry.csv_row())
    rows = buffer.getvalue()
    if rows.endswith("\n"):
        rows = rows[:-1]
    return CSV_HEADER + "\n" + rows


def export_filename(moment: Optional[datetime] = None) -> str:
    moment = moment or datetime.now()
    return f"desishield_feedback_{int(moment.timestamp() * 1000)}.csv"


class FeedbackLedger:
    """Append-only, most-recent-first log of feedback entries."""

    def __init__(self):
        self._entries: List[FeedbackEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> Tuple[FeedbackEntry, ...]:
        return tuple(self._entries)

    def record(self, entry: FeedbackEntry) -> FeedbackEntry:
        self._entries.insert(0, entry)
        metrics.increment("feedback.total")
        logger.info(
            "Feedback recorded",
            predicted=entry.predicted_label.value,
            user_label=entry.user_label.value,
            score=entry.score,
            ledger_size=len(self._entries),
        )
        return entry

    def export_csv(self) -> Optional[str]:
        """CSV text for the whole ledger, or None when it is empty."""
        if not self._entries:
            return None
        return entries_to_csv(self._entries)

    def record_export(self, filename: str) -> None:
        metrics.increment("feedback.exports")
        logger.info("Ledger exported", rows=len(self._entries), filename=filename)

    def get_stats(self) -> Dict[str, Any]:
        """Agreement statistics between predictions and user labels."""
        total = len(self._entries)
        if total == 0:
            return {
                "total_feedback": 0,
                "by_user_label": {},
                "agreements": 0,
                "agreement_rate": 0.0,
            }

        by_user_label: Dict[str, int] = {}
        for entry in self._entries:
            key = entry.user_label.value
            by_user_label[key] = by_user_label.get(key, 0) + 1

        agreements = sum(1 for entry in self._entries if entry.agrees)
        return {
            "total_feedback": total,
            "by_user_label": by_user_label,
            "agreements": agreements,
            "agreement_rate": round(agreements / total, 4),
        }
