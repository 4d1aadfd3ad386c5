"""Tests for the fire-and-forget persistence queue."""

from pathlib import Path

import pytest

from fzctl.domain.moves import RenameRequest
from fzctl.infrastructure.persistence import PersistenceQueue
from tests.conftest import write_notes


def rename(path: Path, old: str, new: str) -> RenameRequest:
    return RenameRequest(node_id=f"x-{old}", file=path, old_name=old, new_name=new)


@pytest.fixture
def queue():
    q = PersistenceQueue(sync=True)
    yield q
    q.shutdown()


class TestSync:
    def test_rename(self, tmp_path: Path, queue: PersistenceQueue) -> None:
        (path,) = write_notes(tmp_path, ["22 - Idea"])
        queue.submit_rename(rename(path, "22 - Idea", "21.1 - Idea"))
        assert (tmp_path / "21.1 - Idea.md").is_file()
        assert queue.completed == 1
        assert queue.drain() == []

    def test_failure_collected_not_raised(self, tmp_path: Path, queue: PersistenceQueue) -> None:
        path = tmp_path / "22 - Idea.md"
        queue.submit_rename(rename(path, "22 - Idea", "21.1 - Idea"))
        (failure,) = queue.drain()
        assert failure.operation == "rename"
        assert "21.1 - Idea" in str(failure.destination)
        assert queue.drain() == []

    def test_missing_handle(self, queue: PersistenceQueue) -> None:
        queue.submit_rename(RenameRequest("x", None, "22 - Idea", "21.1 - Idea"))
        (failure,) = queue.drain()
        assert failure.error == "no file handle"

    def test_failure_logged(self, tmp_path: Path, queue: PersistenceQueue, caplog) -> None:
        with caplog.at_level("WARNING", logger="fzctl.infrastructure.persistence"):
            queue.submit_rename(rename(tmp_path / "ghost.md", "ghost", "other"))
        assert "rename failed" in caplog.text

    def test_delete(self, tmp_path: Path, queue: PersistenceQueue) -> None:
        (path,) = write_notes(tmp_path, ["22 - Idea"])
        queue.submit_delete(path)
        assert not path.exists()

    def test_disabled_skips(self, tmp_path: Path) -> None:
        (path,) = write_notes(tmp_path, ["22 - Idea"])
        q = PersistenceQueue(sync=True, enabled=False)
        q.submit_rename(rename(path, "22 - Idea", "21.1 - Idea"))
        assert path.is_file()
        assert q.completed == 0


class TestAsync:
    def test_chained_renames_run_in_order(self, tmp_path: Path) -> None:
        (path,) = write_notes(tmp_path, ["22 - Idea"])
        q = PersistenceQueue()
        try:
            q.submit_rename(rename(path, "22 - Idea", "21.1 - Idea"))
            q.submit_rename(rename(path, "21.1 - Idea", "23.1 - Idea"))
            assert q.drain() == []
        finally:
            q.shutdown()
        assert [p.name for p in tmp_path.iterdir()] == ["23.1 - Idea.md"]
        assert q.completed == 2

    def test_shutdown_waits(self, tmp_path: Path) -> None:
        (path,) = write_notes(tmp_path, ["22 - Idea"])
        q = PersistenceQueue()
        q.submit_rename(rename(path, "22 - Idea", "21.1 - Idea"))
        q.shutdown()
        assert (tmp_path / "21.1 - Idea.md").is_file()
