"""Declarative policy documents for the FlowGuard combinators.

Lets an application keep its retry, batch and race settings in a YAML or
JSON file instead of hard-coding :class:`RetryConfig`, :class:`BatchConfig`
and :class:`RaceConfig` values.

Example YAML document:
```yaml
name: nightly-sync

retry:
  max_attempts: 3
  delay_seconds: 0.5

batch:
  max_batch_size: 10
  delay_seconds: 1.0
  response_mode: ALL_SPLIT

race:
  timeout_seconds: 2.5
  timeout_message: upstream too slow
  response_mode: ONLY_WINNERS
```

Usage:
    from flowguard.policies import PolicyParser

    policies = PolicyParser().parse_file("policies.yaml")
    leftovers = await retry_rejected(tasks, policies.retry)
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from flowguard.patterns.batch import BATCH_MODES, BatchConfig
from flowguard.patterns.race import RACE_MODES, RaceConfig
from flowguard.patterns.response import ResponseMode, coerce_mode
from flowguard.patterns.retry import RetryConfig

logger = logging.getLogger(__name__)


class RetrySection(BaseModel):
    """Schema for the ``retry`` section."""

    model_config = ConfigDict(extra="forbid")

    max_attempts: int = Field(default=0, ge=0)
    delay_seconds: float = Field(default=1.0, ge=0)


class BatchSection(BaseModel):
    """Schema for the ``batch`` section."""

    model_config = ConfigDict(extra="forbid")

    max_batch_size: int = Field(default=2, ge=1)
    delay_seconds: float = Field(default=1.0, ge=0)
    response_mode: ResponseMode = ResponseMode.ALL

    @field_validator("response_mode")
    @classmethod
    def _batch_mode(cls, value: ResponseMode) -> ResponseMode:
        return coerce_mode(value, BATCH_MODES)


class RaceSection(BaseModel):
    """Schema for the ``race`` section."""

    model_config = ConfigDict(extra="forbid")

    timeout_seconds: float = Field(default=1.0, ge=0)
    timeout_message: str = "Task timed out"
    response_mode: ResponseMode = ResponseMode.ALL

    @field_validator("response_mode")
    @classmethod
    def _race_mode(cls, value: ResponseMode) -> ResponseMode:
        return coerce_mode(value, RACE_MODES)


class PolicyDocument(BaseModel):
    """Schema for a whole policy document."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(default="default", min_length=1)
    retry: RetrySection = Field(default_factory=RetrySection)
    batch: BatchSection = Field(default_factory=BatchSection)
    race: RaceSection = Field(default_factory=RaceSection)


@dataclass(frozen=True)
class PolicySet:
    """Ready-to-use combinator configs loaded from one document."""

    name: str = "default"
    retry: RetryConfig = field(default_factory=RetryConfig)
    batch: BatchConfig = field(default_factory=BatchConfig)
    race: RaceConfig = field(default_factory=RaceConfig)


class PolicyParser:
    """Parse policy documents from YAML or JSON."""

    def parse_file(self, filepath: str | Path) -> PolicySet:
        """Parse a policy document from a ``.yaml``, ``.yml`` or ``.json`` file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the format is unsupported or the document is invalid
        """
        path = Path(filepath)

        if not path.exists():
            raise FileNotFoundError(f"Policy file not found: {filepath}")

        content = path.read_text()

        if path.suffix in [".yaml", ".yml"]:
            return self.parse_yaml(content)
        elif path.suffix == ".json":
            return self.parse_json(content)
        else:
            raise ValueError(f"Unsupported file format: {path.suffix}. Use .yaml, .yml, or .json")

    def parse_yaml(self, yaml_content: str) -> PolicySet:
        try:
            import yaml
        except ImportError as exc:
            raise ImportError("PyYAML not installed. Install with: pip install pyyaml") from exc

        try:
            data = yaml.safe_load(yaml_content)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML: {exc}") from exc

        return self.parse_dict(data)

    def parse_json(self, json_content: str) -> PolicySet:
        try:
            data = json.loads(json_content)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON: {exc}") from exc

        return self.parse_dict(data)

    def parse_dict(self, data: Any) -> PolicySet:
        """Validate an already-decoded document.

        An empty document yields the default policies.
        """
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError("Policy document must be a mapping")

        try:
            document = PolicyDocument.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Invalid policy document: {exc}") from exc

        logger.debug("Loaded policy document: %s", document.name)
        return PolicySet(
            name=document.name,
            retry=RetryConfig(**document.retry.model_dump()),
            batch=BatchConfig(**document.batch.model_dump()),
            race=RaceConfig(**document.race.model_dump()),
        )
