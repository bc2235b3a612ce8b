"""Append-only log files for contact form submissions, newsletter signups and errors."""

import os
import json
import logging
import logging.handlers
from datetime import datetime, timedelta
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional

from src.shared.contact.config import ContactSettings
from src.shared.contact.schemas import Submission

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
ERROR_LOGGER_NAME = "src.shared.contact"


class SubmissionLog:
    """Writes timestamp-prefixed lines to the submission and newsletter logs."""

    def __init__(self, settings: ContactSettings):
        self.settings = settings
        self._lock = Lock()
        self._error_handler: Optional[logging.Handler] = None

    def ensure_log_dir(self) -> None:
        self.settings.log_dir.mkdir(parents=True, exist_ok=True)

    def _append(self, path: Path, line: str) -> None:
        self.ensure_log_dir()
        with self._lock:
            with open(path, "a", encoding="utf-8") as f:
                f.write(line + "\n")

    def log_submission(self, submission: Submission, client_ip: str, user_agent: str,
                       now: datetime) -> Optional[Dict[str, Any]]:
        """
        Append one line describing the submission (without the message body).

        Returns:
            The record written, or None when logging is disabled
        """
        if not self.settings.enable_logging:
            return None
        record = submission.log_record(client_ip, user_agent)
        self._append(
            self.settings.contact_log_file,
            f"{now.strftime(TIMESTAMP_FORMAT)} - {json.dumps(record)}",
        )
        return record

    def log_newsletter_signup(self, submission: Submission, now: datetime) -> bool:
        if not self.settings.enable_logging:
            return False
        self._append(
            self.settings.newsletter_log_file,
            f"{now.strftime(TIMESTAMP_FORMAT)} - {submission.email} - {submission.full_name}",
        )
        return True

    def configure_error_log(self) -> Optional[logging.Handler]:
        """
        Route WARNING and above from the contact package to errors.log.
        Safe to call more than once.
        """
        if not self.settings.enable_logging or self._error_handler is not None:
            return self._error_handler

        self.ensure_log_dir()
        # Reopens the file after rotate_old_logs() moves it aside
        handler = logging.handlers.WatchedFileHandler(self.settings.error_log_file, encoding="utf-8")
        handler.setLevel(logging.WARNING)
        handler.setFormatter(logging.Formatter("[%(asctime)s] %(message)s", datefmt=TIMESTAMP_FORMAT))

        package_logger = logging.getLogger(ERROR_LOGGER_NAME)
        package_logger.addHandler(handler)
        self._error_handler = handler
        return handler

    def close(self) -> None:
        if self._error_handler is not None:
            logging.getLogger(ERROR_LOGGER_NAME).removeHandler(self._error_handler)
            self._error_handler.close()
            self._error_handler = None

    def rotate_old_logs(self, now: datetime) -> List[Path]:
        """
        Move aside log files that have not been written for log_retention_days.

        Each stale file is renamed to <name>.backup.<YYYY-mm-dd> and an empty
        file takes its place.

        Returns:
            Paths of the backups created
        """
        cutoff = (now - timedelta(days=self.settings.log_retention_days)).timestamp()
        rotated = []
        log_files = [
            self.settings.contact_log_file,
            self.settings.newsletter_log_file,
            self.settings.error_log_file,
        ]
        for log_file in log_files:
            if not log_file.exists() or os.path.getmtime(log_file) >= cutoff:
                continue
            backup = log_file.with_name(f"{log_file.name}.backup.{now.strftime('%Y-%m-%d')}")
            with self._lock:
                os.replace(log_file, backup)
                log_file.touch()
            logger.info(f"Rotated stale log file {log_file} to {backup}")
            rotated.append(backup)
        return rotated
