"""Concurrent per-file blame aggregation."""

import os
import queue
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Callable, Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from ..git.repository import BlameLine, GitRepository, contributor_name
from ..logging import get_logger
from ..models import FileSummary

logger = get_logger(__name__)

# Placed on the result queue once every worker has returned
_DONE = object()


class BlameResult(NamedTuple):
    """Outcome of blaming one path."""
    path: str
    summary: Optional[FileSummary]
    error: Optional[Exception]


def pick_top_contributor(lines_by_contributor: Dict[str, int]) -> Tuple[str, int]:
    """Contributor with the most lines; ties go to the lexicographically smallest name."""
    return min(lines_by_contributor.items(), key=lambda item: (-item[1], item[0]))


def summarize_blame(lines: Iterable[BlameLine]) -> Optional[FileSummary]:
    """Reduce blamed lines to a FileSummary, or None if nothing is attributable.

    ``date_introduced`` is the latest authored timestamp among the blamed
    lines and ``original_author`` is whoever owns the first attributable line.
    """
    lines_by_contributor: Dict[str, int] = {}
    commits = set()
    total_lines = 0
    original_author = ""
    latest = None

    for line in lines:
        if line.sha:
            commits.add(line.sha)

        name = contributor_name(line.author)
        if not name:
            continue

        lines_by_contributor[name] = lines_by_contributor.get(name, 0) + 1
        total_lines += 1

        if total_lines == 1:
            original_author = name
            latest = line.date
        elif line.date > latest:
            latest = line.date

    if total_lines == 0:
        return None

    top_name, top_lines = pick_top_contributor(lines_by_contributor)
    percentage = top_lines / total_lines * 100

    return FileSummary(
        date_introduced=latest,
        original_author=original_author,
        total_commits=len(commits),
        total_lines=total_lines,
        top_contributor=f"{top_name} ({percentage:.2f}%)",
        lines_by_contributor=lines_by_contributor,
    )


class BlameAggregator:
    """Blames every path of a snapshot in parallel and collects FileSummaries.

    Workers share a work queue of paths and a result queue. A supervisor
    thread waits for all of them and then closes the result stream, so the
    coordinating thread is the only consumer. A path that fails to blame is
    logged and omitted.
    """

    def __init__(
        self,
        repo_path: str,
        max_workers: Optional[int] = None,
        timeout: Optional[float] = None,
        progress_callback: Optional[Callable[[int, int, str], None]] = None,
        repository_factory: Callable[[str], GitRepository] = GitRepository,
    ):
        self.repo_path = Path(repo_path)
        self.max_workers = max_workers
        self.timeout = timeout
        self.progress_callback = progress_callback
        self.repository_factory = repository_factory
        self.failed: List[str] = []

    def worker_count(self, file_count: int) -> int:
        """Pool size: available parallelism, bounded by the number of files."""
        available = self.max_workers or os.cpu_count() or 1
        return max(1, min(available, file_count))

    def aggregate(self, rev: str, paths: Sequence[str]) -> Dict[str, FileSummary]:
        """Blame every path at rev; returns summaries keyed and ordered by path."""
        self.failed = []
        total = len(paths)
        if total == 0:
            return {}

        work: "queue.Queue[str]" = queue.Queue(maxsize=total)
        for path in paths:
            work.put_nowait(path)
        results: "queue.Queue" = queue.Queue()

        num_workers = self.worker_count(total)
        logger.info("Blaming files", files=total, workers=num_workers, rev=rev)

        summaries: Dict[str, FileSummary] = {}
        with ThreadPoolExecutor(max_workers=num_workers, thread_name_prefix="blame") as executor:
            futures = [
                executor.submit(self._worker, rev, work, results)
                for _ in range(num_workers)
            ]
            supervisor = threading.Thread(
                target=self._supervise, args=(futures, results), name="blame-supervisor", daemon=True
            )
            supervisor.start()

            processed = 0
            while True:
                result = results.get()
                if result is _DONE:
                    break

                processed += 1
                if self.progress_callback:
                    self.progress_callback(processed, total, result.path)

                if result.error is not None:
                    self.failed.append(result.path)
                    logger.warning("Could not blame file", path=result.path, error=str(result.error))
                    continue
                if result.summary is not None and result.summary.total_lines > 0:
                    summaries[result.path] = result.summary

            supervisor.join()

        for future in futures:
            error = future.exception()
            if error is not None:
                logger.error("Blame worker failed", error=str(error))

        unprocessed = total - processed
        if unprocessed:
            logger.warning("Files left unblamed", count=unprocessed)

        return dict(sorted(summaries.items()))

    def blame_file(self, repository: GitRepository, rev: str, path: str) -> Optional[FileSummary]:
        """Blame a single path and reduce it to a FileSummary."""
        return summarize_blame(repository.blame(rev, path, timeout=self.timeout))

    def _worker(self, rev: str, work: "queue.Queue[str]", results: "queue.Queue") -> None:
        # Each worker drives its own Repo; GitPython's persistent git
        # processes must not be shared between threads
        with self.repository_factory(str(self.repo_path)) as repository:
            while True:
                try:
                    path = work.get_nowait()
                except queue.Empty:
                    return
                try:
                    summary = self.blame_file(repository, rev, path)
                except Exception as e:
                    results.put(BlameResult(path, None, e))
                else:
                    results.put(BlameResult(path, summary, None))

    @staticmethod
    def _supervise(futures: List[Future], results: "queue.Queue") -> None:
        wait(futures)
        results.put(_DONE)
