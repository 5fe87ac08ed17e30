"""
Local persistence for analysis history.

History is kept newest-first and written as a whole JSON snapshot on every append.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Tuple, Union

from models import AnalysisResult

logger = logging.getLogger(__name__)


class ResultStore:
    """Owns the analysis history and is its only writer on disk."""

    STORAGE_KEY = "aquascan_history"

    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir).expanduser()
        self.path = self.data_dir / f"{self.STORAGE_KEY}.json"
        self._history: List[AnalysisResult] = []

    @property
    def history(self) -> Tuple[AnalysisResult, ...]:
        return tuple(self._history)

    def load_all(self) -> Tuple[AnalysisResult, ...]:
        """
        Restore history from disk.

        A missing file means no history yet. Unreadable or malformed content is
        logged and treated the same way.
        """
        if not self.path.exists():
            self._history = []
            return self.history

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(raw, list):
                raise ValueError(f"expected a list, got {type(raw).__name__}")
            self._history = [AnalysisResult.from_dict(item) for item in raw]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Failed to load history from {self.path}, starting empty: {str(e)}")
            self._history = []
            return self.history

        logger.info(f"Loaded {len(self._history)} saved analyses from {self.path}")
        return self.history

    def append(self, result: AnalysisResult) -> Tuple[AnalysisResult, ...]:
        """Prepend a result and persist the full updated history."""
        updated = [result] + self._history
        self._write(updated)
        self._history = updated
        return self.history

    def _write(self, history: List[AnalysisResult]) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        payload = json.dumps([item.to_dict() for item in history], ensure_ascii=False)

        fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, prefix=f".{self.STORAGE_KEY}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_path, self.path)
        except OSError:
            logger.error(f"Failed to persist history to {self.path}", exc_info=True)
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
