"""Repository snapshot collection: cache lookup, history walk, blame, reduction."""

import getpass
import platform
import socket
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional

from .. import __version__
from ..caching.cache_store import CacheStore
from ..config import AppConfig, config as default_config
from ..exceptions import CacheError, CollectionError, RepositoryError
from ..git.repository import GitRepository, GitRepositoryError
from ..logging import get_logger
from ..models import (
    AggregateDataset,
    CollectorMetadata,
    CommitSnapshot,
    ContributorProfile,
    FileSummary,
    Metadata,
)
from .blame import BlameAggregator
from .history import HistoryWalker

logger = get_logger(__name__)


class CollectorState(str, Enum):
    """Phases of a collection run."""
    UNINITIALIZED = "uninitialized"
    SNAPSHOT_RESOLVED = "snapshot_resolved"
    CACHE_HIT = "cache_hit"
    WALKING = "walking"
    BLAMING = "blaming"
    REDUCING = "reducing"
    CACHED = "cached"
    DONE = "done"
    FAILED = "failed"


def compute_active_lines(
    contributors: Dict[str, ContributorProfile],
    files: Dict[str, FileSummary]
) -> None:
    """Set each contributor's active_lines to its line total across all files."""
    for name in sorted(contributors):
        contributors[name].active_lines = sum(
            summary.lines_by_contributor.get(name, 0) for summary in files.values()
        )


class GitDataCollector:
    """Collects history, blame and contributor statistics for one HEAD snapshot.

    The repository is opened and HEAD resolved on construction; failures
    there raise RepositoryError. Everything after that is recoverable:
    per-commit and per-file failures are logged and skipped, a bad cache
    entry triggers recollection, and a failed cache write still returns
    the collected data.
    """

    def __init__(
        self,
        repo_path: str,
        app_config: Optional[AppConfig] = None,
        cache_store: Optional[CacheStore] = None,
        progress_callback: Optional[Callable[[str, int, int], None]] = None
    ):
        self.state = CollectorState.UNINITIALIZED
        self.repo_path = Path(repo_path).resolve()
        self.app_config = app_config or default_config.app
        self.progress_callback = progress_callback

        try:
            self.repository = GitRepository(str(self.repo_path))
            self.head = self.repository.head_commit()
        except GitRepositoryError as e:
            self.state = CollectorState.FAILED
            raise RepositoryError.from_exception(f"Cannot open repository at {self.repo_path}", e)

        self.cache_store = cache_store or CacheStore(str(self.repo_path), self.app_config.cache_dir)
        self.snapshot = self._resolve_snapshot()
        self.data: Optional[AggregateDataset] = None
        self.cache_saved = False
        self.from_cache = False
        self.state = CollectorState.SNAPSHOT_RESOLVED

    @property
    def head_sha(self) -> str:
        return self.head.hexsha

    @property
    def cache_path(self) -> Path:
        return self.cache_store.path_for(self.head_sha)

    def cache_exists(self) -> bool:
        return self.cache_store.exists(self.head_sha)

    def clear_cache(self) -> bool:
        """Remove the cache entry for the current HEAD."""
        return self.cache_store.clear(self.head_sha)

    def load_cache(self) -> Optional[AggregateDataset]:
        """Load and adopt the cached dataset for HEAD, if a valid one exists."""
        dataset = self.cache_store.load(self.head_sha)
        if dataset is not None:
            self.data = dataset
        return dataset

    def save_cache(self) -> Path:
        if self.data is None:
            raise CacheError("Nothing collected yet")
        return self.cache_store.save(self.data)

    def collect(self, use_cache: bool = True) -> AggregateDataset:
        """Return the dataset for HEAD, from cache when possible."""
        self.from_cache = False
        self.cache_saved = False
        if use_cache and self.load_cache() is not None:
            self.state = CollectorState.CACHE_HIT
            self.from_cache = True
            logger.info("Loaded data from cache", sha=self.head_sha)
            self.state = CollectorState.DONE
            return self.data

        logger.info("Collecting data from repository", repo=str(self.repo_path), sha=self.head_sha)
        dataset = AggregateDataset(metadata=self._collect_metadata())

        try:
            self.state = CollectorState.WALKING
            walker = HistoryWalker(self.repository, progress_callback=self._phase_progress("history"))
            dataset.history, dataset.contributors = walker.walk(self.head)

            self.state = CollectorState.BLAMING
            dataset.files = self._collect_blame()
        except GitRepositoryError as e:
            self.state = CollectorState.FAILED
            raise CollectionError.from_exception(f"Failed to collect data for {self.repo_path}", e)

        self.state = CollectorState.REDUCING
        compute_active_lines(dataset.contributors, dataset.files)
        self.data = dataset

        self.state = CollectorState.CACHED
        try:
            self.save_cache()
            self.cache_saved = True
        except CacheError as e:
            self.cache_saved = False
            logger.error("Failed to save data to cache", error=str(e))

        self.state = CollectorState.DONE
        logger.info(
            "Data collection complete",
            commits=len(dataset.history),
            files=len(dataset.files),
            contributors=len(dataset.contributors),
        )
        return dataset

    def _collect_blame(self) -> Dict[str, FileSummary]:
        paths = self.repository.list_files(self.head)
        aggregator = BlameAggregator(
            str(self.repo_path),
            max_workers=self.app_config.max_workers,
            timeout=self.app_config.blame_timeout_seconds,
            progress_callback=self._blame_progress,
        )
        return aggregator.aggregate(self.head_sha, paths)

    def _resolve_snapshot(self) -> CommitSnapshot:
        try:
            url = self.repository.remote_url()
        except Exception as e:
            logger.warning("Could not determine remote URL", error=str(e))
            url = "unknown"

        try:
            branch = self.repository.branch_label(self.head)
        except Exception as e:
            logger.warning("Could not determine branch", error=str(e))
            branch = f"{self.head_sha} (error determining branch)"

        return CommitSnapshot(
            url=url,
            branch=branch,
            commit=self.repository.commit_details(self.head),
        )

    def _collect_metadata(self) -> Metadata:
        try:
            user = getpass.getuser()
        except (KeyError, OSError):
            user = "unknown"

        return Metadata(
            collector=CollectorMetadata(
                inquisitor_version=__version__,
                date_collected=datetime.now(timezone.utc),
                user=user,
                hostname=socket.gethostname(),
                platform=f"{platform.system()}/{platform.machine()}",
                python_version=platform.python_version(),
                git_version=self.repository.git_version(),
            ),
            repo=self.snapshot,
        )

    def _phase_progress(self, phase: str) -> Optional[Callable[[int, int], None]]:
        if self.progress_callback is None:
            return None

        def report(completed: int, total: int) -> None:
            self.progress_callback(phase, completed, total)

        return report

    def _blame_progress(self, completed: int, total: int, path: str) -> None:
        if self.progress_callback is not None:
            self.progress_callback("blame", completed, total)
