"""Tests for benchmark configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from feed_bench.config import (
    DEFAULT_READERS,
    DEFAULT_WRITERS,
    ZERO_STAMP,
    BenchmarkConfig,
    environment_overrides,
)
from feed_bench.feeds.identity import TEST_PRIVATE_KEY
from feed_bench.types import Bytes32

NO_ENV: dict[str, str] = {}


class TestDefaults:
    """Values used when nothing is configured."""

    def test_defaults(self) -> None:
        config = BenchmarkConfig.load(environ=NO_ENV)

        assert config.writers == list(DEFAULT_WRITERS)
        assert config.readers == list(DEFAULT_READERS)
        assert config.stamps == [ZERO_STAMP] * len(DEFAULT_WRITERS)
        assert config.updates == 2
        assert config.download_iteration == 1
        assert config.grace_period == 40.0
        assert config.round_wait == 3.0
        assert config.poll_interval == 3.0
        assert config.convergence_timeout is None
        assert config.sync_tags is False
        assert config.sync_trials == 15
        assert config.private_key == TEST_PRIVATE_KEY
        assert config.report_path == Path("report.csv")
        assert config.topic is None

    def test_stamp_per_configured_writer(self) -> None:
        config = BenchmarkConfig.model_validate({"writers": ["http://a"]})
        assert config.stamps == [ZERO_STAMP]


class TestYaml:
    """YAML sources."""

    def test_from_yaml(self) -> None:
        config = BenchmarkConfig.from_yaml(
            """
            writers: [http://w1, http://w2]
            readers: [http://r1]
            stamps: [aa, bb]
            updates: 10
            download_iteration: 5
            grace_period: 20
            convergence_timeout: 120
            topic: "0x0000000000000000000000000000000000000000000000000000000000000001"
            report_path: out/bench.csv
            """
        )

        assert config.writers == ["http://w1", "http://w2"]
        assert config.updates == 10
        assert config.grace_period == 20.0
        assert config.convergence_timeout == 120.0
        assert config.topic == Bytes32(b"\x00" * 31 + b"\x01")
        assert config.report_path == Path("out/bench.csv")

    def test_camel_case_keys(self) -> None:
        config = BenchmarkConfig.from_yaml("downloadIteration: 2\ntopicSeed: 7\n")
        assert config.download_iteration == 2
        assert config.topic_seed == 7

    def test_unquoted_hex_topic(self) -> None:
        config = BenchmarkConfig.from_yaml("topic: 0x10\n")
        assert config.topic == Bytes32(b"\x00" * 31 + b"\x10")

    def test_empty_document(self) -> None:
        assert BenchmarkConfig.from_yaml("").updates == 2

    def test_load_file_with_overrides(self, tmp_path: Path) -> None:
        path = tmp_path / "bench.yaml"
        path.write_text("updates: 4\nround_wait: 1\n", encoding="utf-8")

        config = BenchmarkConfig.load(path, {"updates": 6, "grace_period": None}, environ=NO_ENV)

        assert config.updates == 6
        assert config.round_wait == 1.0
        assert config.grace_period == 40.0

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            BenchmarkConfig.load(tmp_path / "missing.yaml", environ=NO_ENV)


class TestEnvironment:
    """Environment overrides for nodes and stamps."""

    def test_parse_lists(self) -> None:
        overrides = environment_overrides(
            {"BEE_API_URLS": "http://w1, http://w2", "BEE_PEER_API_URL": "http://r1", "BEE_STAMP": "aa,bb"}
        )
        assert overrides == {
            "writers": ["http://w1", "http://w2"],
            "readers": ["http://r1"],
            "stamps": ["aa", "bb"],
        }

    def test_empty_values_ignored(self) -> None:
        assert environment_overrides({"BEE_API_URLS": ""}) == {}

    def test_environment_beats_flags(self) -> None:
        config = BenchmarkConfig.load(
            overrides={"writers": ["http://flag"], "readers": ["http://flag-reader"]},
            environ={"BEE_API_URLS": "http://env"},
        )
        assert config.writers == ["http://env"]
        assert config.readers == ["http://flag-reader"]
        assert config.stamps == [ZERO_STAMP]


class TestValidation:
    """Invalid settings are rejected at load time."""

    def test_stamp_count_mismatch(self) -> None:
        with pytest.raises(ValidationError, match="different amount of bee writers"):
            BenchmarkConfig.model_validate({"writers": ["http://a", "http://b"], "stamps": ["aa"]})

    def test_download_iteration_above_updates(self) -> None:
        with pytest.raises(ValidationError, match="Download iteration"):
            BenchmarkConfig.model_validate({"updates": 2, "download_iteration": 3})

    @pytest.mark.parametrize("field", ["writers", "readers"])
    def test_empty_node_list(self, field: str) -> None:
        with pytest.raises(ValidationError):
            BenchmarkConfig.model_validate({field: [], "stamps": []})

    @pytest.mark.parametrize("key", ["abcd", "zz" * 32, "00" * 32, "ff" * 32])
    def test_bad_private_key(self, key: str) -> None:
        with pytest.raises(ValidationError):
            BenchmarkConfig.model_validate({"private_key": key})

    def test_private_key_prefix_stripped(self) -> None:
        config = BenchmarkConfig.model_validate({"private_key": "0x" + TEST_PRIVATE_KEY})
        assert config.private_key == TEST_PRIVATE_KEY

    @pytest.mark.parametrize("timeout", [0, -1.5])
    def test_non_positive_timeout(self, timeout: float) -> None:
        with pytest.raises(ValidationError):
            BenchmarkConfig.model_validate({"convergence_timeout": timeout})

    def test_unknown_field(self) -> None:
        with pytest.raises(ValidationError):
            BenchmarkConfig.model_validate({"update": 3})

    def test_frozen(self) -> None:
        config = BenchmarkConfig.load(environ=NO_ENV)
        with pytest.raises(ValidationError):
            config.updates = 5  # type: ignore[misc]
