"""Helpers for building small git repositories in tests."""

from pathlib import Path

from git import Actor


BASE_TIME = 1600000000

ALICE = Actor("Alice Smith", "alice@example.com")
ALICE_WORK = Actor("Alice Smith", "alice@work.example.com")
BOB = Actor("Bob Jones", "bob@example.com")

CALCULATOR_V1 = "def add(a, b):\n    return a + b\n\n\ndef sub(a, b):\n    return a - b\n"
CALCULATOR_V2 = CALCULATOR_V1 + "\n\ndef mul(a, b):\n    return a * b\n"
README_V1 = "# Sample\nFirst draft.\n"
README_V2 = "# Sample\nFinal text.\n"
NOTES = "one\ntwo\nthree\n"
LOGO_V1 = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR" + bytes(range(256))
LOGO_V2 = LOGO_V1 + b"\x00\x01\x02"


def git_date(offset: int) -> str:
    """Raw git date BASE_TIME + offset seconds, UTC."""
    return f"{BASE_TIME + offset} +0000"


def commit_files(repo, files, message, actor, offset, parents=None, head=True):
    """Write files into the working tree, stage them and commit."""
    root = Path(repo.working_tree_dir)
    for name, content in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content)
    if files:
        repo.index.add(list(files))
    return repo.index.commit(
        message,
        parent_commits=parents,
        head=head,
        author=actor,
        committer=actor,
        author_date=git_date(offset),
        commit_date=git_date(offset),
    )
