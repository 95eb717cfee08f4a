"""
Configuration for Gatehouse.

The configuration only says WHERE the contract documents live. It never
carries policy itself: trust levels, adapters and allowlists always come
from the contract documents so they can be reviewed like any other change.

Example gatehouse.yaml:
    runtime_dir: .github/gatehouse/runtime
    command_policy_file: command-policy.json
    command_prefix: /gatehouse
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from gatehouse.errors import ConfigError


DEFAULT_RUNTIME_DIR = ".gatehouse/runtime"
DEFAULT_COMMAND_PREFIX = "/gatehouse"


class GatehouseConfig(BaseModel):
    """
    Location of the contract documents and CLI conventions.

    Attributes:
        runtime_dir: Directory (relative to the repo root) holding the contracts
        trust_levels_file: File name of the trust-levels document
        adapter_contracts_file: File name of the adapter-contracts document
        command_policy_file: File name of the command-policy document
        skill_allowlist_file: File name of the trusted-skills allowlist
        trusted_command_gate_file: File name of the trusted-command-gate document
        provenance_schema_file: File name of the provenance JSON Schema
        command_prefix: Prefix that marks an issue comment as a command
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    runtime_dir: str = Field(default=DEFAULT_RUNTIME_DIR, min_length=1)
    trust_levels_file: str = Field(default="trust-levels.json", min_length=1)
    adapter_contracts_file: str = Field(default="adapter-contracts.json", min_length=1)
    command_policy_file: str = Field(default="command-policy.json", min_length=1)
    skill_allowlist_file: str = Field(default="trusted-skills-allowlist.json", min_length=1)
    trusted_command_gate_file: str = Field(default="trusted-command-gate.json", min_length=1)
    provenance_schema_file: str = Field(
        default="provenance-metadata.schema.json", min_length=1
    )
    command_prefix: str = Field(default=DEFAULT_COMMAND_PREFIX, min_length=1)


def load_config(path: Path | str) -> GatehouseConfig:
    """
    Load configuration from a YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        Validated GatehouseConfig

    Raises:
        ConfigError: If the file is missing, unparsable or has unknown keys
    """
    path = Path(path)
    try:
        with path.open() as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(message=f"Cannot read configuration {path}: {e}", path=str(path)) from e

    return _parse_config(content, str(path))


def load_config_from_string(content: str) -> GatehouseConfig:
    """Load configuration from a YAML string."""
    return _parse_config(content, "<string>")


def _parse_config(content: str, source: str) -> GatehouseConfig:
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(message=f"Invalid YAML in {source}: {e}", path=source) from e

    # An empty file means "all defaults"
    if data is None:
        data = {}

    try:
        return GatehouseConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(message=f"Invalid configuration in {source}: {e}", path=source) from e
