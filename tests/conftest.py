"""Pytest configuration and fixtures."""

import pytest
from datetime import datetime, timezone

import git

from git_inquisitor.config import AppConfig
from git_inquisitor.models import (
    AggregateDataset,
    CollectorMetadata,
    CommitDetails,
    CommitRecord,
    CommitSnapshot,
    ContributorProfile,
    FileCommitStats,
    FileSummary,
    Metadata,
)

from repo_builders import (
    ALICE,
    ALICE_WORK,
    BOB,
    CALCULATOR_V1,
    CALCULATOR_V2,
    LOGO_V1,
    LOGO_V2,
    NOTES,
    README_V1,
    README_V2,
    commit_files,
)


@pytest.fixture
def temp_dir(tmp_path):
    """Temporary directory for tests."""
    return tmp_path


@pytest.fixture
def sample_git_repo(temp_dir):
    """Three-commit repository with one binary file.

    1. Alice adds calculator.py (6 lines), README.md (2 lines), logo.png
    2. Bob appends 4 lines to calculator.py, adds notes.txt (3 lines), changes logo.png
    3. Alice (work email) rewrites the second line of README.md
    """
    repo_path = temp_dir / "sample_repo"
    repo_path.mkdir()
    repo = git.Repo.init(repo_path)

    commit_files(
        repo,
        {"calculator.py": CALCULATOR_V1, "README.md": README_V1, "logo.png": LOGO_V1},
        "Initial commit",
        ALICE,
        0,
    )
    commit_files(
        repo,
        {"calculator.py": CALCULATOR_V2, "notes.txt": NOTES, "logo.png": LOGO_V2},
        "Add multiplication and notes",
        BOB,
        1000,
    )
    commit_files(repo, {"README.md": README_V2}, "Polish README\n\nLonger body.", ALICE_WORK, 2000)

    repo.close()
    return repo_path


@pytest.fixture
def merge_git_repo(temp_dir):
    """Repository whose history contains a merge.

    main:    c1 (t=0) -- c2 (t=200) -- merge (t=300)
    feature:   \\-- f1 (t=100) --------/
    """
    repo_path = temp_dir / "merge_repo"
    repo_path.mkdir()
    repo = git.Repo.init(repo_path)

    c1 = commit_files(repo, {"base.txt": "base\n"}, "Base", ALICE, 0)
    f1 = commit_files(repo, {"feature.txt": "f1\nf2\n"}, "Feature", BOB, 100, parents=[c1], head=False)
    repo.index.remove(["feature.txt"], working_tree=True, f=True)
    c2 = commit_files(repo, {"main.txt": "m1\n"}, "Main work", ALICE, 200, parents=[c1])
    commit_files(repo, {"feature.txt": "f1\nf2\n"}, "Merge feature", ALICE, 300, parents=[c2, f1])

    repo.close()
    return repo_path


@pytest.fixture
def app_config():
    """Configuration with a small, fixed worker pool."""
    return AppConfig(max_workers=2)


@pytest.fixture
def sample_dataset():
    """Hand-built dataset for report and cache tests."""
    when = datetime(2020, 9, 13, 12, 26, 40, tzinfo=timezone.utc)
    return AggregateDataset(
        metadata=Metadata(
            collector=CollectorMetadata(
                inquisitor_version="0.1.0",
                date_collected=when,
                user="tester",
                hostname="localhost",
                platform="Linux/x86_64",
                python_version="3.12.0",
                git_version="git version 2.43.0",
            ),
            repo=CommitSnapshot(
                url="https://example.com/sample.git",
                branch="main",
                commit=CommitDetails(
                    sha="a" * 40,
                    date=when,
                    tree="b" * 40,
                    contributor="Alice Smith (alice@example.com)",
                    message="Polish README",
                ),
            ),
        ),
        contributors={
            "Alice Smith": ContributorProfile(
                identities=["alice@example.com"], commit_count=2, insertions=9, deletions=1, active_lines=8
            ),
            "Bob Jones": ContributorProfile(
                identities=["bob@example.com"], commit_count=1, insertions=7, deletions=0, active_lines=3
            ),
        },
        files={
            "docs/R&D.md": FileSummary(
                date_introduced=when,
                original_author="Alice Smith",
                total_commits=2,
                total_lines=8,
                top_contributor="Alice Smith (100.00%)",
                lines_by_contributor={"Alice Smith": 8},
            ),
            "notes.txt": FileSummary(
                date_introduced=when,
                original_author="Bob Jones",
                total_commits=1,
                total_lines=3,
                top_contributor="Bob Jones (100.00%)",
                lines_by_contributor={"Bob Jones": 3},
            ),
        },
        history=[
            CommitRecord(
                commit="c" * 40,
                parents=[],
                tree="d" * 40,
                contributor="Alice Smith (alice@example.com)",
                date=when,
                message="Initial commit",
                insertions=8,
                deletions=0,
                files={"docs/R&D.md": FileCommitStats(insertions=8, deletions=0, lines=8)},
            ),
            CommitRecord(
                commit="e" * 40,
                parents=["c" * 40],
                tree="f" * 40,
                contributor="Bob Jones (bob@example.com)",
                date=when.replace(hour=13),
                message="Add notes </script>",
                insertions=3,
                deletions=0,
                files={"notes.txt": FileCommitStats(insertions=3, deletions=0, lines=3)},
            ),
        ],
    )
