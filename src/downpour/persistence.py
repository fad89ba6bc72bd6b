import csv
import gzip
import logging
import os
from datetime import datetime

from .errors import ReportError
from .models import ReportRecord

logger = logging.getLogger(__name__)

REPORT_HEADER = ["RunID", "RequestID", "Status", "Error", "Duration(ms)", "Retries"]


class ReportWriter:
    """CSV report of every completed request, optionally gzip-compressed."""

    def __init__(self, report_dir: str = "reports", compress: bool = False, timestamp: datetime | None = None):
        self.report_dir = report_dir
        self.compress = compress
        ts = (timestamp or datetime.now()).strftime("%Y%m%d_%H%M%S")
        self.path = os.path.join(report_dir, f"results_{ts}.csv")
        if compress:
            self.path += ".gz"
        self._fh = None
        self._writer = None
        self.rows = 0

    def open(self) -> "ReportWriter":
        try:
            os.makedirs(self.report_dir, exist_ok=True)
            if self.compress:
                self._fh = gzip.open(self.path, "wt", newline="", encoding="utf-8")
            else:
                self._fh = open(self.path, "w", newline="", encoding="utf-8")
        except OSError as e:
            raise ReportError(f"cannot create report {self.path}: {e}") from e
        self._writer = csv.writer(self._fh)
        self._writer.writerow(REPORT_HEADER)
        logger.info(f"Writing report to {self.path}")
        return self

    def write(self, record: ReportRecord) -> None:
        if self._writer is None:
            raise ReportError("report is not open")
        try:
            self._writer.writerow(record.as_row())
        except OSError as e:
            raise ReportError(f"cannot write report {self.path}: {e}") from e
        self.rows += 1

    def flush(self) -> None:
        if self._fh is not None:
            self._fh.flush()

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None
            self._writer = None
            logger.debug(f"Report closed after {self.rows} rows")

    def __enter__(self) -> "ReportWriter":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
