"""
Issue comment command parsing for Gatehouse.

Only comments that start with the command prefix trigger an agent, so a
stray mention never starts a run. Expected format:

    /gatehouse <command> [target...]

The command word must be one of the commands the active command policy
allows; the rest of the first line becomes the optional target.
"""

import re
from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from gatehouse.config import DEFAULT_COMMAND_PREFIX


class ParsedCommand(BaseModel):
    """
    Result of parsing an issue comment.

    Attributes:
        valid: Whether a permitted command was found
        command: The command word (lower-cased) when valid
        target: Remaining words of the first line, if any
        raw_body: The trimmed comment body
        reason: Why the comment was accepted or rejected
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    valid: bool
    command: str | None = None
    target: str | None = None
    raw_body: str = ""
    reason: str = Field(..., min_length=1)


def parse_issue_command(
    body: str,
    allowed_commands: Iterable[str],
    prefix: str = DEFAULT_COMMAND_PREFIX,
) -> ParsedCommand:
    """
    Parse a command from an issue comment body.

    Args:
        body: Raw comment text
        allowed_commands: Commands the caller accepts (usually allowedCommands
            from the command policy)
        prefix: Marker the comment must start with

    Returns:
        ParsedCommand describing the outcome
    """
    allowed = [command.lower() for command in allowed_commands]
    trimmed = body.strip()

    if not trimmed:
        return ParsedCommand(valid=False, raw_body=trimmed, reason="empty comment body")

    if not trimmed.startswith(prefix):
        return ParsedCommand(
            valid=False,
            raw_body=trimmed,
            reason=f"comment does not start with {prefix}",
        )

    after_prefix = trimmed[len(prefix):]
    # "/gatehousefoo" is not the prefix followed by a command
    if after_prefix and not after_prefix[0].isspace():
        return ParsedCommand(
            valid=False,
            raw_body=trimmed,
            reason=f"comment does not start with {prefix}",
        )

    first_line = after_prefix.strip().split("\n", 1)[0]
    words = re.split(r"\s+", first_line.strip()) if first_line.strip() else []
    if not words:
        return ParsedCommand(
            valid=False, raw_body=trimmed, reason="no command specified after prefix"
        )

    candidate = words[0].lower()
    if candidate not in allowed:
        return ParsedCommand(
            valid=False,
            raw_body=trimmed,
            reason=f'unknown command "{candidate}", allowed: {", ".join(allowed) or "none"}',
        )

    target = " ".join(words[1:]) or None
    return ParsedCommand(
        valid=True,
        command=candidate,
        target=target,
        raw_body=trimmed,
        reason="valid command parsed",
    )
