"""CSV output for collected samples."""

import csv
import io
import logging
import sys
from dataclasses import dataclass, field, fields
from typing import Any, Iterable, List, Optional, TextIO

logger = logging.getLogger(__name__)


@dataclass
class EmitResult:
    """Outcome of writing one batch of records."""

    rows: List[Any] = field(default_factory=list)
    ok: bool = True
    header_written: bool = False
    closed: bool = False


def column_names(record: Any) -> List[str]:
    """CSV column names of a sample dataclass, in field order."""
    return [f.metadata.get("column", f.name) for f in fields(record)]


def row_values(record: Any) -> List[Any]:
    """Cell values of a sample; absent values become empty cells."""
    values = []
    for f in fields(record):
        value = getattr(record, f.name)
        values.append("" if value is None else value)
    return values


def format_row(values: Iterable[Any]) -> str:
    """Render one CSV line, quoting only where needed."""
    buf = io.StringIO()
    csv.writer(buf, lineterminator="\n").writerow(values)
    return buf.getvalue()


class CsvEmitter:
    """Writes samples as CSV lines to a text stream (stdout by default)."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream if stream is not None else sys.stdout

    def write(self, records: Iterable[Any], has_headers: bool) -> EmitResult:
        """
        Write a batch of records, then flush.

        The header line is written just before the first record when
        ``has_headers`` is set, so an empty batch writes nothing. A record
        that fails to serialize is logged and skipped; the rest of the
        batch is still written.

        Args:
            records: Sample dataclasses, all of the same type
            has_headers: Whether to start the batch with a header line

        Returns:
            EmitResult describing what reached the stream
        """
        result = EmitResult()

        for record in records:
            try:
                line = format_row(row_values(record))
                if has_headers and not result.header_written:
                    line = format_row(column_names(record)) + line
                self.stream.write(line)
            except BrokenPipeError:
                result.ok = False
                result.closed = True
                return result
            except (csv.Error, UnicodeError, OSError) as e:
                logger.error(f"Error serializing {type(record).__name__}: {e}")
                result.ok = False
                continue

            if has_headers:
                result.header_written = True
            result.rows.append(record)

        try:
            self.stream.flush()
        except BrokenPipeError:
            result.ok = False
            result.closed = True
        except OSError as e:
            logger.error(f"Error flushing output: {e}")
            result.ok = False

        return result
