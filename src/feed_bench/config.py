"""
Benchmark configuration.

Settings come from four layers, later layers winning:

1. Defaults declared on `BenchmarkConfig`.
2. A YAML file (`--config`).
3. Command-line flags that were explicitly given.
4. Environment variables, for node URLs and stamps only.

The merged mapping is validated once, so every source gets the same checks.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Annotated, Any, Final

import yaml
from pydantic import Field, field_validator, model_validator

from feed_bench.benchmark.config import (
    DEFAULT_GRACE_PERIOD,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_ROUND_WAIT,
    SYNC_POLLING_TRIALS,
)
from feed_bench.feeds.crypto import load_private_key
from feed_bench.feeds.identity import TEST_PRIVATE_KEY
from feed_bench.types import Bytes32, StrictBaseModel

ZERO_STAMP: Final = "0" * 64
"""Placeholder postage batch id accepted by gateway nodes."""

DEFAULT_WRITERS: Final = (
    "https://bee-7.gateway.ethswarm.org",
    "https://bee-8.gateway.ethswarm.org",
    "https://bee-9.gateway.ethswarm.org",
)
"""Writer nodes used when none are configured."""

DEFAULT_READERS: Final = (
    "https://bee-4.gateway.ethswarm.org",
    "https://bee-5.gateway.ethswarm.org",
    "https://bee-6.gateway.ethswarm.org",
)
"""Reader nodes used when none are configured."""

ENV_WRITERS: Final = "BEE_API_URLS"
"""Comma-separated writer node URLs."""

ENV_READERS: Final = "BEE_PEER_API_URL"
"""Comma-separated reader node URLs."""

ENV_STAMPS: Final = "BEE_STAMP"
"""Comma-separated postage stamps, one per writer."""


class BenchmarkConfig(StrictBaseModel):
    """
    Everything a benchmark run needs to know.

    Node lists, stamps and timings are explicit fields instead of a loose
    option bag, so a run can be reproduced from its YAML file alone.
    """

    writers: list[str] = Field(default_factory=lambda: list(DEFAULT_WRITERS), min_length=1)
    """Base URLs of the nodes updates are published through."""

    readers: list[str] = Field(default_factory=lambda: list(DEFAULT_READERS), min_length=1)
    """Base URLs of the nodes that are polled for the update."""

    stamps: list[str]
    """Postage stamp per writer, same order as `writers`."""

    updates: int = Field(default=2, ge=1)
    """Number of publish rounds."""

    topic: Bytes32 | None = None
    """Explicit feed topic; overrides `topic_seed`."""

    topic_seed: int | None = None
    """Seed for a reproducible topic; random when neither is set."""

    download_iteration: int = Field(default=1, ge=1)
    """Verify every N-th round. The last round is always verified."""

    grace_period: float = Field(default=DEFAULT_GRACE_PERIOD, ge=0)
    """Seconds to wait for replication before reading."""

    round_wait: float = Field(default=DEFAULT_ROUND_WAIT, ge=0)
    """Seconds between rounds."""

    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, ge=0)
    """Seconds between reader polls while they disagree."""

    convergence_timeout: Annotated[float, Field(gt=0)] | None = None
    """Bound on the polling loop; None polls until convergence."""

    sync_tags: bool = False
    """Attach sync tags to uploads and wait until they are synced."""

    sync_trials: int = Field(default=SYNC_POLLING_TRIALS, ge=1)
    """Sync-tag polls without progress before timing out."""

    private_key: str = TEST_PRIVATE_KEY
    """Hex-encoded secp256k1 key of the feed owner."""

    report_path: Path = Path("report.csv")
    """CSV file verified rounds are appended to."""

    request_timeout: float = Field(default=60.0, gt=0)
    """Per-request HTTP timeout in seconds."""

    @model_validator(mode="before")
    @classmethod
    def default_stamps(cls, data: Any) -> Any:
        """Give every writer the placeholder stamp when none are configured."""
        if isinstance(data, Mapping) and data.get("stamps") is None:
            writers = data.get("writers") or DEFAULT_WRITERS
            return {**data, "stamps": [ZERO_STAMP] * len(writers)}
        return data

    @field_validator("topic", mode="before")
    @classmethod
    def parse_topic(cls, v: Any) -> Any:
        """
        Accept the topic as a hex string, the form used in files and flags.

        YAML parsers may interpret 0x-prefixed values as integers; those are
        converted back to 32 big-endian bytes.
        """
        if isinstance(v, str):
            return Bytes32(v)
        if isinstance(v, int) and not isinstance(v, bool):
            return Bytes32(v.to_bytes(32, "big"))
        return v

    @field_validator("report_path", mode="before")
    @classmethod
    def parse_path(cls, v: Any) -> Any:
        """Accept the report path as a string."""
        if isinstance(v, str):
            return Path(v)
        return v

    @field_validator("private_key")
    @classmethod
    def check_private_key(cls, v: str) -> str:
        """The key must be a usable secp256k1 scalar written as 64 hex characters."""
        key = v.removeprefix("0x")
        if len(key) != 64:
            raise ValueError(f"private key must be 64 hex characters, got {len(key)}")
        load_private_key(bytes.fromhex(key))
        return key

    @model_validator(mode="after")
    def check_consistency(self) -> BenchmarkConfig:
        """Cross-field checks that single fields cannot express."""
        if len(self.stamps) != len(self.writers):
            raise ValueError(
                f"Got different amount of bee writers {len(self.writers)} "
                f"than stamps {len(self.stamps)}"
            )
        if self.download_iteration > self.updates:
            raise ValueError(
                f"Download iteration {self.download_iteration} is higher than "
                f"the feed update count: {self.updates}"
            )
        return self

    @classmethod
    def load(
        cls,
        path: Path | str | None = None,
        overrides: Mapping[str, Any] | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> BenchmarkConfig:
        """
        Merge every configuration layer and validate the result.

        Args:
            path: Optional YAML file.
            overrides: Explicitly given settings, e.g. from the command line.
                Entries whose value is None are ignored.
            environ: Environment to read node and stamp overrides from;
                defaults to `os.environ`.

        Raises:
            FileNotFoundError: If the file does not exist.
            yaml.YAMLError: If the file is not valid YAML.
            pydantic.ValidationError: If the merged settings are invalid.
        """
        data: dict[str, Any] = {}
        if path is not None:
            with Path(path).open(encoding="utf-8") as f:
                data.update(yaml.safe_load(f) or {})

        if overrides:
            data.update({key: value for key, value in overrides.items() if value is not None})

        data.update(environment_overrides(os.environ if environ is None else environ))
        return cls.model_validate(data)

    @classmethod
    def from_yaml(cls, content: str) -> BenchmarkConfig:
        """
        Load configuration from a YAML string.

        Useful for testing or programmatic config generation.
        """
        return cls.model_validate(yaml.safe_load(content) or {})


def environment_overrides(environ: Mapping[str, str]) -> dict[str, list[str]]:
    """Read comma-separated node and stamp lists from the environment."""
    overrides: dict[str, list[str]] = {}
    for variable, key in ((ENV_WRITERS, "writers"), (ENV_READERS, "readers"), (ENV_STAMPS, "stamps")):
        value = environ.get(variable)
        if value:
            overrides[key] = [item.strip() for item in value.split(",") if item.strip()]
    return overrides
