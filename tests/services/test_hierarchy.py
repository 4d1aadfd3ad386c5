"""Tests for HierarchyService - queries, moves and undo/redo over a real vault."""

from pathlib import Path

import pytest

from fzctl.config.settings import FzSettings
from fzctl.infrastructure.vault import Vault
from fzctl.services.hierarchy import HierarchyService
from tests.conftest import ok_data, write_notes


def names(root: Path) -> list[str]:
    return sorted(p.stem for p in root.glob("*.md"))


@pytest.fixture
def service(vault: Vault) -> HierarchyService:
    return HierarchyService(vault)


class TestQueries:
    def test_tree(self, service: HierarchyService) -> None:
        data = ok_data(service.tree())
        assert data["count"] == 5
        assert [r["identifier"] for r in data["roots"]] == ["21", "22"]
        intro = data["roots"][0]
        assert intro["title"] == "Intro"
        assert [c["identifier"] for c in intro["children"]] == ["21a", "21.1"]

    def test_tree_reports_collisions(self, vault_root: Path, service: HierarchyService) -> None:
        write_notes(vault_root, ["21 - Twin"])
        result = service.tree()
        assert result.ok
        assert result.warnings == ["Identifier 21 appears in 2 files"]

    def test_show_by_identifier(self, service: HierarchyService) -> None:
        data = ok_data(service.show("21.1"))
        assert data["id"] == "21.1-21.1 - Detail"
        assert data["title"] == "Detail"
        assert data["is_root"] is False
        assert data["parent"]["identifier"] == "21"
        assert [s["identifier"] for s in data["siblings"]] == ["21a"]
        assert data["children"] == []

    def test_show_by_node_id(self, service: HierarchyService) -> None:
        data = ok_data(service.show("22-22 - Idea"))
        assert data["is_root"] is True
        assert data["parent"] is None
        assert [c["identifier"] for c in data["children"]] == ["22.1"]

    def test_show_not_found(self, service: HierarchyService) -> None:
        result = service.show("99")
        assert not result.ok
        assert result.error.code == "NOT_FOUND"

    def test_show_ambiguous(self, vault_root: Path, service: HierarchyService) -> None:
        write_notes(vault_root, ["21 - Twin"])
        result = service.show("21")
        assert not result.ok
        assert result.error.code == "AMBIGUOUS"
        assert sorted(result.error.detail["candidates"]) == ["21-21 - Intro", "21-21 - Twin"]

    def test_stats(self, service: HierarchyService) -> None:
        data = ok_data(service.stats())
        assert data["total"] == 5
        assert data["branch"] == 1
        assert data["roots"] == 2
        assert data["max_depth"] == 1

    def test_check(self, service: HierarchyService) -> None:
        data = ok_data(service.check())
        assert data["valid"] is True
        assert data["issues"] == []
        assert data["collisions"] == []

    def test_next_sequence(self, service: HierarchyService) -> None:
        data = ok_data(service.next_id("21"))
        assert data == {"from": "21", "identifier": "23", "type": "sequence"}

    def test_next_branch(self, service: HierarchyService) -> None:
        data = ok_data(service.next_id("21", branch=True))
        assert data["identifier"] == "21b"
        assert data["type"] == "branch"


class TestMove:
    def test_move_renames_files(self, vault_root: Path, service: HierarchyService) -> None:
        result = service.move("22", "21")

        data = ok_data(result)
        assert data["identifier"] == "21.1"
        assert data["parent_id"] == "21-21 - Intro"
        assert data["dry_run"] is False
        assert [c["new"] for c in data["changes"]] == ["21.1", "21.1.1"]
        assert {"old": "22 - Idea", "new": "21.1 - Idea"} in data["renames"]
        assert names(vault_root) == [
            "21 - Intro",
            "21.1 - Detail",
            "21.1 - Idea",
            "21.1.1 - Support",
            "21a - Aside",
        ]

    def test_move_warns_on_identifier_in_use(self, service: HierarchyService) -> None:
        result = service.move("22", "21")
        assert any("already in use: 21.1" in w for w in result.warnings)

    def test_move_records_history(self, vault: Vault, service: HierarchyService) -> None:
        service.move("22", "21")
        assert len(vault.history) == 1
        assert vault.history.can_undo()

    def test_dry_run(self, vault_root: Path, vault: Vault, service: HierarchyService) -> None:
        before = names(vault_root)
        data = ok_data(service.move("22", "21", dry_run=True))
        assert data["dry_run"] is True
        assert data["identifier"] == "21.1"
        assert data["conflicts"] == ["21.1"]
        assert names(vault_root) == before
        assert len(vault.history) == 0

    @pytest.mark.parametrize(
        ("source", "target", "code"),
        [
            ("22", "22", "SELF_MOVE"),
            ("22", "22.1", "CYCLIC_MOVE"),
            ("22.1", "22", "CYCLIC_MOVE"),
            ("22", "21a", "INVALID_TARGET"),
            ("99", "21", "NOT_FOUND"),
            ("22", "99", "NOT_FOUND"),
        ],
    )
    def test_rejected(
        self, vault_root: Path, service: HierarchyService, source: str, target: str, code: str
    ) -> None:
        before = names(vault_root)
        result = service.move(source, target)
        assert not result.ok
        assert result.error.code == code
        assert names(vault_root) == before

    def test_rename_failure_is_warning(self, vault_root: Path, service: HierarchyService) -> None:
        (vault_root / "21.1 - Idea.md").mkdir()
        result = service.move("22", "21")
        assert result.ok
        assert any("rename failed" in w for w in result.warnings)
        assert "22 - Idea" in names(vault_root)

    def test_renames_disabled(self, vault_root: Path) -> None:
        (vault_root / "fzctl.toml").write_text("[rename]\nenabled = false\n")
        v = Vault(FzSettings.from_cli(vault_root=vault_root, sync=True))
        try:
            before = names(vault_root)
            data = ok_data(HierarchyService(v).move("22", "21"))
            assert data["identifier"] == "21.1"
            assert names(vault_root) == before
        finally:
            v.close()


class TestUndoRedo:
    def test_nothing_to_undo(self, service: HierarchyService) -> None:
        result = service.undo()
        assert not result.ok
        assert result.error.code == "NOTHING_TO_UNDO"

    def test_nothing_to_redo(self, service: HierarchyService) -> None:
        result = service.redo()
        assert not result.ok
        assert result.error.code == "NOTHING_TO_REDO"

    def test_undo_restores_files(self, vault_root: Path, service: HierarchyService) -> None:
        before = names(vault_root)
        service.move("22", "21")
        data = ok_data(service.undo())
        assert data["identifier"] == "22"
        assert data["parent_id"] is None
        assert names(vault_root) == before

    def test_redo_reapplies(self, vault_root: Path, service: HierarchyService) -> None:
        service.move("22", "21")
        after = names(vault_root)
        service.undo()
        data = ok_data(service.redo())
        assert data["identifier"] == "21.1"
        assert names(vault_root) == after

    def test_refresh_after_moves_matches_memory(
        self, vault: Vault, service: HierarchyService
    ) -> None:
        service.move("22", "21")
        assert service.move("21a", "21.1.1").ok
        remembered = sorted(n.number for n in vault.graph.nodes.values())
        vault.refresh()
        assert sorted(n.number for n in vault.graph.nodes.values()) == remembered

    def test_history(self, service: HierarchyService) -> None:
        service.move("22", "21")
        service.undo()
        data = ok_data(service.history())
        assert data["count"] == 1
        assert data["cursor"] == -1
        assert data["capacity"] == 50
        assert data["can_redo"] is True
        (item,) = data["items"]
        assert item["node_id"] == "22-22 - Idea"
        assert item["applied"] is False
