"""Git repository access for analysis."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional, Tuple
import logging

from git import Repo, InvalidGitRepositoryError, NoSuchPathError, GitCommandError
from git.objects import Commit

from ..exceptions import InquisitorError
from ..models import CommitDetails, FileCommitStats


logger = logging.getLogger(__name__)

# git treats a blob as binary when a NUL byte shows up in its first 8000 bytes
BINARY_SNIFF_BYTES = 8000
SUBMODULE_MODE = 0o160000


class GitRepositoryError(InquisitorError):
    """Git repository related errors."""
    pass


class BlameLine(NamedTuple):
    """One blamed line of a file."""
    author: str
    email: str
    date: datetime
    sha: str


def contributor_name(raw: str) -> str:
    """Strip an email-bracket suffix from a raw identity string."""
    return raw.split("<")[0].strip()


def format_contributor(name: str, email: str) -> str:
    return f"{name} ({email})"


def is_binary(data: Optional[bytes]) -> bool:
    """Return True if the content looks binary."""
    if not data:
        return False
    return b"\0" in data[:BINARY_SNIFF_BYTES]


def count_lines(data: Optional[bytes]) -> int:
    """Count lines the way blame does: a trailing partial line counts."""
    if not data:
        return 0
    lines = data.count(b"\n")
    if not data.endswith(b"\n"):
        lines += 1
    return lines


class GitRepository:
    """Read-only access to a single git repository."""

    def __init__(self, repo_path: str):
        """Initialize with path to existing git repository."""
        self.repo_path = Path(repo_path)
        try:
            self.repo = Repo(repo_path)
        except (InvalidGitRepositoryError, NoSuchPathError):
            raise GitRepositoryError(f"Invalid git repository: {repo_path}")

    def __enter__(self) -> "GitRepository":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        """Release the git subprocesses held by the underlying repo."""
        self.repo.close()

    @property
    def name(self) -> str:
        """Get repository name from path."""
        return self.repo_path.name

    def head_commit(self) -> Commit:
        """Resolve HEAD to a commit."""
        try:
            return self.repo.head.commit
        except (ValueError, GitCommandError) as e:
            raise GitRepositoryError.from_exception(
                f"Failed to resolve HEAD in {self.repo_path}", e
            )

    @property
    def current_commit(self) -> str:
        """Get current HEAD commit SHA."""
        return self.head_commit().hexsha

    def remote_url(self) -> str:
        """URL of the origin remote, falling back to the first remote."""
        remotes = self.repo.remotes
        if not remotes:
            raise GitRepositoryError("Repository has no remotes")
        try:
            remote = remotes.origin
        except (AttributeError, IndexError):
            remote = remotes[0]

        urls = list(remote.urls)
        if not urls:
            raise GitRepositoryError(f"Remote '{remote.name}' has no URL")
        return urls[0]

    def branch_label(self, commit: Commit) -> str:
        """Current branch name, or the commit SHA when HEAD is detached."""
        if self.repo.head.is_detached:
            return f"{commit.hexsha} (detached)"
        return self.repo.active_branch.name

    def git_version(self) -> str:
        """Version string of the git executable GitPython drives."""
        try:
            return self.repo.git.version()
        except GitCommandError as e:
            logger.warning(f"Could not determine git version: {e}")
            return "unknown"

    def commit_details(self, commit: Commit) -> CommitDetails:
        """Summarize a commit for snapshot metadata."""
        return CommitDetails(
            sha=commit.hexsha,
            date=commit.committed_datetime,
            tree=commit.tree.hexsha,
            contributor=format_contributor(commit.committer.name, commit.committer.email),
            message=commit.message.split("\n")[0],
        )

    def log_from(self, commit: Commit) -> List[Commit]:
        """All ancestors of commit (inclusive), oldest first by commit time."""
        try:
            commits = list(self.repo.iter_commits(commit.hexsha))
        except GitCommandError as e:
            raise GitRepositoryError.from_exception(
                f"Failed to get commit history from {commit.hexsha}", e
            )
        # rev-list yields newest first; reverse before the stable sort so
        # commits sharing a timestamp stay in ancestry order
        commits.reverse()
        commits.sort(key=lambda c: c.committed_date)
        return commits

    def list_files(self, commit: Commit) -> List[str]:
        """Paths of all non-binary blobs in the commit's tree."""
        files = []
        for item in commit.tree.traverse():
            if item.type != "blob":
                continue
            if is_binary(self._blob_bytes(item)):
                continue
            files.append(item.path)
        return files

    def commit_stats(self, commit: Commit) -> Tuple[int, int, Dict[str, FileCommitStats]]:
        """Insertions, deletions and per-file stats of a commit.

        Root commits count every non-binary line in their tree as inserted.
        Other commits are diffed against their first parent only, so lines
        introduced while resolving a merge are not counted.
        """
        if not commit.parents:
            return self._root_commit_stats(commit)

        parent = commit.parents[0]
        files: Dict[str, FileCommitStats] = {}
        insertions = 0
        deletions = 0

        for diff in parent.diff(commit, create_patch=True):
            path = diff.b_path or diff.a_path
            if not path:
                continue

            before_blob = self._diff_side(diff.a_blob, parent.tree, diff.a_path, diff.new_file)
            after_blob = self._diff_side(diff.b_blob, commit.tree, diff.b_path, diff.deleted_file)
            if self._is_submodule(before_blob) or self._is_submodule(after_blob):
                continue
            before = self._blob_bytes(before_blob)
            after = self._blob_bytes(after_blob)
            if is_binary(before) or is_binary(after):
                continue

            file_insertions, file_deletions = self._count_patch_lines(diff.diff)
            files[path] = FileCommitStats(
                insertions=file_insertions,
                deletions=file_deletions,
                lines=count_lines(after) if not diff.deleted_file else 0,
            )
            insertions += file_insertions
            deletions += file_deletions

        return insertions, deletions, files

    def blame(self, rev: str, path: str, timeout: Optional[float] = None) -> List[BlameLine]:
        """Line-by-line attribution of path as of rev."""
        kwargs = {}
        if timeout:
            kwargs["kill_after_timeout"] = timeout

        try:
            entries = self.repo.blame(rev, path, **kwargs)
        except GitCommandError as e:
            raise GitRepositoryError.from_exception(f"Failed to blame {path} at {rev}", e)

        blamed = []
        for commit, lines in entries or []:
            author = commit.author
            date = datetime.fromtimestamp(commit.authored_date, tz=timezone.utc)
            for _ in lines:
                blamed.append(BlameLine(author.name or "", author.email or "", date, commit.hexsha))
        return blamed

    def _root_commit_stats(self, commit: Commit) -> Tuple[int, int, Dict[str, FileCommitStats]]:
        files: Dict[str, FileCommitStats] = {}
        total = 0
        for item in commit.tree.traverse():
            if item.type != "blob":
                continue
            data = self._blob_bytes(item)
            if is_binary(data):
                continue
            lines = count_lines(data)
            files[item.path] = FileCommitStats(insertions=lines, deletions=0, lines=lines)
            total += lines
        return total, 0, files

    @staticmethod
    def _count_patch_lines(patch) -> Tuple[int, int]:
        if not patch:
            return 0, 0
        if isinstance(patch, str):
            patch = patch.encode("utf-8", errors="ignore")
        insertions = 0
        deletions = 0
        # GitPython strips the ---/+++ headers, so every +/- line is content
        for line in patch.split(b"\n"):
            if line.startswith(b"+"):
                insertions += 1
            elif line.startswith(b"-"):
                deletions += 1
        return insertions, deletions

    @staticmethod
    def _diff_side(blob, tree, path: Optional[str], absent: bool):
        # Pure renames and mode-only changes have no index line, so the
        # diff carries no blob; read the content from the tree instead
        if blob is not None or absent or not path:
            return blob
        try:
            return tree / path
        except KeyError:
            return None

    @staticmethod
    def _is_submodule(blob) -> bool:
        return blob is not None and blob.mode == SUBMODULE_MODE

    def _blob_bytes(self, blob) -> Optional[bytes]:
        if blob is None or self._is_submodule(blob):
            return None
        return blob.data_stream.read()


__all__ = [
    "BlameLine",
    "GitRepository",
    "GitRepositoryError",
    "contributor_name",
    "count_lines",
    "format_contributor",
    "is_binary",
]
