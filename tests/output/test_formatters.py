"""Tests for output mode dispatch."""

import json

from fzctl.output.formatters import OutputSettings, format_result
from fzctl.services.result import ServiceResult


def moved() -> ServiceResult:
    return ServiceResult(
        ok=True,
        op="move",
        data={"id": "22-22 - Idea", "identifier": "21.1", "parent_id": "21-21 - Intro"},
    )


class TestFormatResult:
    def test_default_is_human(self) -> None:
        output = format_result(moved())
        assert "OK" in output
        assert "21.1" in output

    def test_json(self) -> None:
        output = format_result(moved(), settings=OutputSettings(json_output=True))
        parsed = json.loads(output)
        assert parsed["ok"] is True
        assert parsed["data"]["identifier"] == "21.1"

    def test_json_wins_over_quiet(self) -> None:
        output = format_result(moved(), settings=OutputSettings(json_output=True, quiet=True))
        assert json.loads(output)["op"] == "move"

    def test_quiet_prints_identifier(self) -> None:
        assert format_result(moved(), settings=OutputSettings(quiet=True)) == "21.1"

    def test_quiet_without_identifier(self) -> None:
        result = ServiceResult(ok=True, op="check", data={"valid": True})
        assert format_result(result, settings=OutputSettings(quiet=True)) == "OK: check"

    def test_quiet_error(self) -> None:
        result = ServiceResult.fail("move", "SELF_MOVE", "Cannot move a node under itself")
        output = format_result(result, settings=OutputSettings(quiet=True))
        assert output.startswith("ERROR: move")
        assert "Cannot move a node under itself" in output
