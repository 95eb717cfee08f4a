"""
Unit tests for issue comment command parsing.
"""

import pytest

from gatehouse.commands import parse_issue_command
from gatehouse.contracts.defaults import DEFAULT_COMMANDS


class TestParseIssueCommand:
    """Parsing /gatehouse commands out of comment bodies."""

    def test_command_only(self) -> None:
        parsed = parse_issue_command("/gatehouse explain", DEFAULT_COMMANDS)
        assert parsed.valid is True
        assert parsed.command == "explain"
        assert parsed.target is None
        assert parsed.reason == "valid command parsed"

    def test_command_with_target(self) -> None:
        parsed = parse_issue_command("  /gatehouse refactor src/app.py  main loop\n", DEFAULT_COMMANDS)
        assert parsed.command == "refactor"
        assert parsed.target == "src/app.py main loop"
        assert parsed.raw_body == "/gatehouse refactor src/app.py  main loop"

    def test_only_first_line_used(self) -> None:
        parsed = parse_issue_command("/gatehouse test tests/\nplease hurry", DEFAULT_COMMANDS)
        assert parsed.target == "tests/"

    def test_command_case_insensitive(self) -> None:
        parsed = parse_issue_command("/gatehouse DIAGRAM", DEFAULT_COMMANDS)
        assert parsed.valid is True
        assert parsed.command == "diagram"

    @pytest.mark.parametrize("body", ["", "   ", "\n\t"])
    def test_empty_body(self, body: str) -> None:
        parsed = parse_issue_command(body, DEFAULT_COMMANDS)
        assert parsed.valid is False
        assert parsed.reason == "empty comment body"

    @pytest.mark.parametrize("body", ["please /gatehouse explain", "explain", "/gatehousexplain"])
    def test_prefix_required(self, body: str) -> None:
        parsed = parse_issue_command(body, DEFAULT_COMMANDS)
        assert parsed.valid is False
        assert parsed.reason == "comment does not start with /gatehouse"

    def test_prefix_without_command(self) -> None:
        parsed = parse_issue_command("/gatehouse   ", DEFAULT_COMMANDS)
        assert parsed.valid is False
        assert parsed.reason == "no command specified after prefix"

    def test_unknown_command(self) -> None:
        parsed = parse_issue_command("/gatehouse deploy prod", DEFAULT_COMMANDS)
        assert parsed.valid is False
        assert parsed.command is None
        assert parsed.reason == 'unknown command "deploy", allowed: explain, refactor, test, diagram'

    def test_no_allowed_commands(self) -> None:
        parsed = parse_issue_command("/gatehouse explain", [])
        assert parsed.valid is False
        assert parsed.reason.endswith("allowed: none")

    def test_custom_prefix(self) -> None:
        parsed = parse_issue_command("/agent explain README.md", ["explain"], prefix="/agent")
        assert parsed.valid is True
        assert parsed.target == "README.md"
