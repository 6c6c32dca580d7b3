"""On-disk cache of collected datasets, keyed by HEAD commit."""

import gzip
import os
import zlib
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from ..exceptions import CacheError
from ..logging import get_logger
from ..models import AggregateDataset

logger = get_logger(__name__)

CACHE_SUFFIX = ".json.gz"


class CacheStore:
    """Persists one gzip-compressed dataset per distinct HEAD commit.

    Entries live under ``<repo>/<cache_dir>/<sha>.json.gz``. A new HEAD
    produces a new key; old entries are never evicted.
    """

    def __init__(self, repo_path: str, cache_dir: str = ".inquisitor/cache"):
        self.repo_path = Path(repo_path)
        self.cache_dir = self.repo_path / cache_dir
        self.cache_stats = {
            "hits": 0,
            "misses": 0,
            "stores": 0,
            "rejected": 0,
            "errors": 0
        }

    def path_for(self, sha: str) -> Path:
        """Cache file location for a commit SHA."""
        return self.cache_dir / f"{sha}{CACHE_SUFFIX}"

    def exists(self, sha: str) -> bool:
        return self.path_for(sha).is_file()

    def load(self, sha: str) -> Optional[AggregateDataset]:
        """Load the dataset cached for sha.

        Returns None on a miss. Unreadable, undecodable or incomplete
        entries are logged and also reported as a miss.
        """
        cache_file = self.path_for(sha)
        if not cache_file.is_file():
            self.cache_stats["misses"] += 1
            logger.debug("Cache miss", sha=sha, path=str(cache_file))
            return None

        try:
            with gzip.open(cache_file, "rb") as fh:
                payload = fh.read()
            dataset = AggregateDataset.model_validate_json(payload)
        except (OSError, EOFError, zlib.error, ValidationError, ValueError) as e:
            self.cache_stats["rejected"] += 1
            logger.warning("Cache entry unreadable, ignoring it", path=str(cache_file), error=str(e))
            return None

        problem = self.validate(dataset, sha)
        if problem:
            self.cache_stats["rejected"] += 1
            logger.warning("Cache entry incomplete, ignoring it", path=str(cache_file), reason=problem)
            return None

        self.cache_stats["hits"] += 1
        logger.info("Cache hit", sha=sha, path=str(cache_file))
        return dataset

    @staticmethod
    def validate(dataset: AggregateDataset, sha: str) -> Optional[str]:
        """Return why a loaded dataset cannot be trusted, or None if it can."""
        cached_sha = dataset.metadata.repo.commit.sha
        if not cached_sha:
            return "missing commit sha"
        if cached_sha != sha:
            return f"commit sha {cached_sha} does not match {sha}"
        if not dataset.metadata.collector.inquisitor_version:
            return "missing collector version"
        return None

    def save(self, dataset: AggregateDataset) -> Path:
        """Write the dataset under its snapshot SHA, replacing any previous entry."""
        sha = dataset.metadata.repo.commit.sha
        if not sha:
            raise CacheError("Refusing to cache a dataset without a commit sha")

        cache_file = self.path_for(sha)
        tmp_file = cache_file.with_name(cache_file.name + ".tmp")
        try:
            cache_file.parent.mkdir(parents=True, exist_ok=True)
            with gzip.open(tmp_file, "wb") as fh:
                fh.write(dataset.model_dump_json().encode("utf-8"))
            os.replace(tmp_file, cache_file)
        except OSError as e:
            self.cache_stats["errors"] += 1
            raise CacheError.from_exception(f"Failed to write cache file {cache_file}", e)

        self.cache_stats["stores"] += 1
        logger.info("Data cached", path=str(cache_file))
        return cache_file

    def clear(self, sha: str) -> bool:
        """Remove the entry for sha; returns whether one existed."""
        cache_file = self.path_for(sha)
        try:
            cache_file.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise CacheError.from_exception(f"Failed to remove cache file {cache_file}", e)

        logger.info("Cache entry removed", path=str(cache_file))
        return True
