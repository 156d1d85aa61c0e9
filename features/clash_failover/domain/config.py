from __future__ import annotations

import re

from pydantic import BaseModel, field_validator


DEFAULT_SELECT_NODE = "🔰 节点选择"
DEFAULT_TEST_URL = "http://www.gstatic.com/generate_204"


class ControllerConfig(BaseModel):
    api_endpoint: str
    api_key: str = ""
    include_regex: str = ""
    exclude_regex: str = ""
    test_url: str = DEFAULT_TEST_URL
    retrieve_interval: int = 600
    best_interval: int = 300
    current_interval: int = 30
    test_times: int = 3
    select_node: str = DEFAULT_SELECT_NODE
    latency_threshold: int = 300
    probe_timeout_ms: int = 5000
    request_timeout: float = 10.0
    trial_delay: float = 1.0
    retry_backoff: float = 10.0
    max_probe_workers: int = 20
    log_level: str = "INFO"

    @field_validator("api_endpoint")
    @classmethod
    def _strip_endpoint(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value:
            raise ValueError("api_endpoint must not be empty")
        return value

    @field_validator(
        "retrieve_interval",
        "best_interval",
        "current_interval",
        "test_times",
        "latency_threshold",
        "probe_timeout_ms",
        "max_probe_workers",
    )
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value

    @field_validator("request_timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value

    @field_validator("trial_delay", "retry_backoff")
    @classmethod
    def _non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("must not be negative")
        return value

    @field_validator("include_regex", "exclude_regex")
    @classmethod
    def _compilable(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"invalid regular expression: {exc}") from exc
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"

    @property
    def escalation_ceiling(self) -> int:
        return self.latency_threshold * 2
