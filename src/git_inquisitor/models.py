"""Data models for collected repository statistics."""

from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class CommitDetails(BaseModel):
    """Summary of a single commit, typically HEAD."""
    model_config = ConfigDict(frozen=True)

    sha: str
    date: datetime
    tree: str
    contributor: str  # "Name (email)"
    message: str  # First line only


class CommitSnapshot(BaseModel):
    """The exact repository state a collection run is computed against."""
    model_config = ConfigDict(frozen=True)

    url: str
    branch: str
    commit: CommitDetails

    @property
    def sha(self) -> str:
        return self.commit.sha


class CollectorMetadata(BaseModel):
    """Details about the environment that produced a dataset."""
    inquisitor_version: str
    date_collected: datetime
    user: str
    hostname: str
    platform: str
    python_version: str
    git_version: str


class Metadata(BaseModel):
    """Collection and repository metadata."""
    collector: CollectorMetadata
    repo: CommitSnapshot


class FileCommitStats(BaseModel):
    """Per-file change counts within one commit."""
    insertions: int = 0
    deletions: int = 0
    lines: int = 0  # Line count of the file after the commit


class CommitRecord(BaseModel):
    """One commit in the repository history."""
    model_config = ConfigDict(frozen=True)

    commit: str
    parents: List[str] = Field(default_factory=list)
    tree: str
    contributor: str  # "Name (email)"
    date: datetime
    message: str
    insertions: int = 0
    deletions: int = 0
    files: Dict[str, FileCommitStats] = Field(default_factory=dict)


class FileSummary(BaseModel):
    """Blame-derived statistics for one tracked file."""
    model_config = ConfigDict(frozen=True)

    date_introduced: Optional[datetime] = None
    original_author: str = ""
    total_commits: int = 0
    total_lines: int = 0
    top_contributor: str = ""  # "Name (XX.XX%)"
    lines_by_contributor: Dict[str, int] = Field(default_factory=dict)


class ContributorProfile(BaseModel):
    """Cumulative statistics for one contributor display name."""
    identities: List[str] = Field(default_factory=list)  # emails
    commit_count: int = 0
    insertions: int = 0
    deletions: int = 0
    active_lines: int = 0

    def add_identity(self, email: str) -> None:
        if email and email not in self.identities:
            self.identities.append(email)


class AggregateDataset(BaseModel):
    """Everything collected for one repository snapshot."""
    metadata: Metadata
    contributors: Dict[str, ContributorProfile] = Field(default_factory=dict)
    files: Dict[str, FileSummary] = Field(default_factory=dict)
    history: List[CommitRecord] = Field(default_factory=list)
