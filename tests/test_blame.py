"""Tests for concurrent blame aggregation."""

import threading
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from git_inquisitor.collector.blame import BlameAggregator, pick_top_contributor, summarize_blame
from git_inquisitor.git.repository import BlameLine, GitRepository, GitRepositoryError

from repo_builders import BASE_TIME


T0 = datetime(2021, 1, 1, tzinfo=timezone.utc)


def line(author, offset=0, sha="1" * 40):
    return BlameLine(author, "", T0 + timedelta(days=offset), sha)


class FakeRepository:
    """Stands in for GitRepository, serving canned blame output."""

    opened = 0
    lock = threading.Lock()

    def __init__(self, repo_path, blames=None, fail=()):
        self.blames = blames or {}
        self.fail = set(fail)
        self.timeouts = []
        with FakeRepository.lock:
            FakeRepository.opened += 1

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        pass

    def blame(self, rev, path, timeout=None):
        self.timeouts.append(timeout)
        if path in self.fail:
            raise GitRepositoryError(f"Failed to blame {path}")
        return self.blames.get(path, [])


class TestSummarizeBlame:
    """Test reduction of blamed lines into a FileSummary."""

    def test_counts_and_top_contributor(self):
        summary = summarize_blame([
            line("Alice <alice@example.com>", 0, "a" * 40),
            line("Bob", 2, "b" * 40),
            line("Alice", 1, "a" * 40),
        ])

        assert summary.total_lines == 3
        assert summary.lines_by_contributor == {"Alice": 2, "Bob": 1}
        assert summary.top_contributor == "Alice (66.67%)"
        assert summary.total_commits == 2
        assert sum(summary.lines_by_contributor.values()) == summary.total_lines

    def test_original_author_is_first_line(self):
        summary = summarize_blame([line("Bob", 5), line("Alice", 0), line("Alice", 1)])

        assert summary.original_author == "Bob"

    def test_date_introduced_is_latest_timestamp(self):
        summary = summarize_blame([line("Alice", 3), line("Bob", 9), line("Alice", 1)])

        assert summary.date_introduced == T0 + timedelta(days=9)

    def test_tie_breaks_on_name(self):
        assert pick_top_contributor({"Zed": 2, "Amy": 2, "Bob": 1}) == ("Amy", 2)

        summary = summarize_blame([line("Zed"), line("Amy"), line("Zed"), line("Amy")])
        assert summary.top_contributor == "Amy (50.00%)"

    def test_lines_without_author_are_skipped(self):
        summary = summarize_blame([line(""), line("Alice")])

        assert summary.total_lines == 1
        assert summary.original_author == "Alice"

    def test_summary_is_immutable(self):
        summary = summarize_blame([line("Alice")])

        with pytest.raises(ValidationError):
            summary.total_lines = 5

    def test_nothing_attributable(self):
        assert summarize_blame([]) is None
        assert summarize_blame([line("")]) is None


class TestBlameAggregator:
    """Test BlameAggregator class."""

    def test_worker_count(self):
        assert BlameAggregator("/repo", max_workers=8).worker_count(3) == 3
        assert BlameAggregator("/repo", max_workers=2).worker_count(10) == 2
        assert BlameAggregator("/repo").worker_count(1) == 1

    def test_aggregate_real_repository(self, sample_git_repo):
        repository = GitRepository(str(sample_git_repo))
        aggregator = BlameAggregator(str(sample_git_repo), max_workers=2)

        files = aggregator.aggregate(repository.current_commit, repository.list_files(repository.head_commit()))

        assert list(files) == ["README.md", "calculator.py", "notes.txt"]

        calculator = files["calculator.py"]
        assert calculator.total_lines == 10
        assert calculator.lines_by_contributor == {"Alice Smith": 6, "Bob Jones": 4}
        assert calculator.top_contributor == "Alice Smith (60.00%)"
        assert calculator.original_author == "Alice Smith"
        assert calculator.total_commits == 2
        assert calculator.date_introduced.timestamp() == BASE_TIME + 1000

        readme = files["README.md"]
        assert readme.lines_by_contributor == {"Alice Smith": 2}
        assert readme.total_commits == 2

        for summary in files.values():
            assert sum(summary.lines_by_contributor.values()) == summary.total_lines

    def test_unblamable_path_is_omitted(self, sample_git_repo):
        repository = GitRepository(str(sample_git_repo))
        aggregator = BlameAggregator(str(sample_git_repo), max_workers=3)

        files = aggregator.aggregate(
            repository.current_commit,
            ["calculator.py", "gone/deleted.py", "notes.txt"],
        )

        assert set(files) == {"calculator.py", "notes.txt"}
        assert aggregator.failed == ["gone/deleted.py"]

    def test_failures_do_not_stop_other_workers(self):
        paths = [f"file{i}.txt" for i in range(20)]
        blames = {path: [line("Alice"), line("Bob")] for path in paths}
        failing = {"file3.txt", "file11.txt"}
        aggregator = BlameAggregator(
            "/repo",
            max_workers=4,
            repository_factory=lambda path: FakeRepository(path, blames, failing),
        )

        files = aggregator.aggregate("HEAD", paths)

        assert set(files) == set(paths) - failing
        assert sorted(aggregator.failed) == sorted(failing)
        assert list(files) == sorted(files)

    def test_files_without_lines_are_omitted(self):
        aggregator = BlameAggregator(
            "/repo",
            max_workers=2,
            repository_factory=lambda path: FakeRepository(path, {"full.txt": [line("Alice")]}),
        )

        files = aggregator.aggregate("HEAD", ["full.txt", "empty.txt"])

        assert list(files) == ["full.txt"]
        assert aggregator.failed == []

    def test_each_worker_opens_its_own_repository(self):
        FakeRepository.opened = 0
        aggregator = BlameAggregator(
            "/repo",
            max_workers=3,
            repository_factory=lambda path: FakeRepository(path),
        )

        aggregator.aggregate("HEAD", [f"f{i}" for i in range(10)])

        assert FakeRepository.opened == 3

    def test_timeout_is_passed_to_blame(self):
        created = []

        def factory(path):
            repo = FakeRepository(path, {"a.txt": [line("Alice")]})
            created.append(repo)
            return repo

        BlameAggregator("/repo", max_workers=1, timeout=7.5, repository_factory=factory).aggregate(
            "HEAD", ["a.txt"]
        )

        assert created[0].timeouts == [7.5]

    def test_progress_callback(self):
        calls = []
        aggregator = BlameAggregator(
            "/repo",
            max_workers=2,
            progress_callback=lambda done, total, path: calls.append((done, total, path)),
            repository_factory=lambda path: FakeRepository(path),
        )

        aggregator.aggregate("HEAD", ["a", "b", "c"])

        assert [done for done, _, _ in calls] == [1, 2, 3]
        assert {total for _, total, _ in calls} == {3}
        assert sorted(path for _, _, path in calls) == ["a", "b", "c"]

    def test_empty_file_list(self):
        aggregator = BlameAggregator("/repo", repository_factory=lambda path: pytest.fail("no workers expected"))

        assert aggregator.aggregate("HEAD", []) == {}
