"""Local analysis cache — one JSON file per user under the cache directory.

Storage layout:
    <cache_dir>/analysis_<sha256(user_id)>.json

Hashing keeps file names safe and distinct for every user id.

Best-effort by contract: every failure is logged and swallowed, a missing or
corrupt entry reads as "no cache".
"""

import hashlib
import json
import logging
from pathlib import Path

from app.application.interfaces import AnalysisCache
from app.domain.entities import AnalysisArtifact
from app.domain.exceptions import CacheReadFailure

logger = logging.getLogger(__name__)


def _file_name(user_id: str) -> str:
    digest = hashlib.sha256(user_id.encode("utf-8")).hexdigest()
    return f"analysis_{digest}.json"


class FileAnalysisCache(AnalysisCache):
    """Infrastructure adapter for the local analysis cache."""

    def __init__(self, cache_dir: str):
        self._cache_dir = Path(cache_dir)

    def _file_for(self, user_id: str) -> Path:
        return self._cache_dir / _file_name(user_id)

    def get(self, user_id: str) -> AnalysisArtifact | None:
        path = self._file_for(user_id)
        if not path.exists():
            return None
        try:
            return self._read(path, self.key_for(user_id))
        except CacheReadFailure as exc:
            logger.warning("%s — ignoring cached analysis", exc)
            return None

    @staticmethod
    def _read(path: Path, key: str) -> AnalysisArtifact:
        try:
            data = json.loads(path.read_text("utf-8"))
        except (OSError, ValueError) as exc:
            raise CacheReadFailure(key, str(exc)) from exc
        if not isinstance(data, dict):
            raise CacheReadFailure(key, "entry is not a JSON object")
        return AnalysisArtifact.from_document(data)

    def set(self, user_id: str, artifact: AnalysisArtifact) -> None:
        path = self._file_for(user_id)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self._cache_dir.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(artifact.to_document()), encoding="utf-8")
            tmp_path.replace(path)
        except OSError as exc:
            logger.warning("Could not write cache entry %s: %s", path.name, exc)

    def clear(self, user_id: str) -> None:
        try:
            self._file_for(user_id).unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not clear cache entry for user %s: %s", user_id, exc)
