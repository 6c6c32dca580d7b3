"""Commit history walk: per-commit diff stats and contributor totals."""

from typing import Callable, Dict, List, Optional, Tuple

from git.objects import Commit

from ..git.repository import GitRepository, contributor_name, format_contributor
from ..logging import get_logger
from ..models import CommitRecord, ContributorProfile

logger = get_logger(__name__)


class HistoryWalker:
    """Walks commits oldest to newest, accumulating contributor counters."""

    def __init__(
        self,
        repository: GitRepository,
        progress_callback: Optional[Callable[[int, int], None]] = None
    ):
        self.repository = repository
        self.progress_callback = progress_callback
        self.skipped: List[str] = []

    def walk(self, start: Commit) -> Tuple[List[CommitRecord], Dict[str, ContributorProfile]]:
        """Build the history log and commit-derived contributor profiles.

        A commit that cannot be processed is logged and left out of both
        the history and the contributor totals.
        """
        history: List[CommitRecord] = []
        contributors: Dict[str, ContributorProfile] = {}
        self.skipped = []

        commits = self.repository.log_from(start)
        total = len(commits)
        logger.info("Walking commit history", commits=total, head=start.hexsha)

        for index, commit in enumerate(commits, start=1):
            try:
                record = self.process_commit(commit, contributors)
            except Exception as e:
                self.skipped.append(commit.hexsha)
                logger.warning("Skipping commit", commit=commit.hexsha, error=str(e))
            else:
                history.append(record)

            if self.progress_callback:
                self.progress_callback(index, total)

        return history, contributors

    def process_commit(self, commit: Commit, contributors: Dict[str, ContributorProfile]) -> CommitRecord:
        """Turn one commit into a CommitRecord and credit its committer."""
        insertions, deletions, files = self.repository.commit_stats(commit)

        committer = commit.committer

        record = CommitRecord(
            commit=commit.hexsha,
            parents=[parent.hexsha for parent in commit.parents],
            tree=commit.tree.hexsha,
            contributor=format_contributor(committer.name, committer.email),
            date=commit.committed_datetime,
            message=commit.message,
            insertions=insertions,
            deletions=deletions,
            files=files,
        )

        name = contributor_name(committer.name or "")
        profile = contributors.setdefault(name, ContributorProfile())
        if committer.email:
            profile.add_identity(committer.email)
        profile.commit_count += 1
        profile.insertions += insertions
        profile.deletions += deletions

        return record
