"""Tests for the AWS client factory."""

from __future__ import annotations

from typing import Any

import pytest

from contracts.services import ServicesFactory, build_services
from infra.aws_config import build_sdk_config
from infra.config import AWSConfig


class _RecordingSession:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def client(self, service: str, **kwargs: Any) -> Any:
        self.calls.append((service, kwargs))
        return f"{service}-client"


def test_for_region_builds_ec2_and_cloudwatch_clients() -> None:
    session = _RecordingSession()
    factory = ServicesFactory(session=session, sdk_config=None)  # type: ignore[arg-type]

    svcs = factory.for_region("eu-west-1")

    assert (svcs.ec2, svcs.cloudwatch, svcs.region) == ("ec2-client", "cloudwatch-client", "eu-west-1")
    assert [c[0] for c in session.calls] == ["ec2", "cloudwatch"]
    assert all(c[1] == {"region_name": "eu-west-1"} for c in session.calls)


def test_for_region_rejects_blank_region() -> None:
    factory = ServicesFactory(session=_RecordingSession())  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        factory.for_region("  ")


def test_from_config_passes_static_keys(monkeypatch: Any) -> None:
    seen: dict[str, Any] = {}

    def _fake_session(**kwargs: Any) -> _RecordingSession:
        seen.update(kwargs)
        return _RecordingSession()

    monkeypatch.setattr("contracts.services.boto3.Session", _fake_session)
    cfg = AWSConfig(region="ap-east-1", access_key_id="AKID", secret_access_key="SECRET")

    svcs = build_services(cfg)

    assert seen == {
        "region_name": "ap-east-1",
        "aws_access_key_id": "AKID",
        "aws_secret_access_key": "SECRET",
    }
    assert svcs.region == "ap-east-1"


def test_from_config_without_keys_uses_default_chain(monkeypatch: Any) -> None:
    seen: dict[str, Any] = {}

    def _fake_session(**kwargs: Any) -> _RecordingSession:
        seen.update(kwargs)
        return _RecordingSession()

    monkeypatch.setattr("contracts.services.boto3.Session", _fake_session)
    ServicesFactory.from_config(AWSConfig(region="us-west-2"))

    assert seen == {"region_name": "us-west-2"}


def test_sdk_config_uses_aws_settings() -> None:
    config = build_sdk_config(AWSConfig(region="us-east-2", max_retries=4, timeout=12, connect_timeout=3))

    assert config.region_name == "us-east-2"
    assert config.retries == {"max_attempts": 4, "mode": "standard"}
    assert config.read_timeout == 12
    assert config.connect_timeout == 3
    assert "ec2trafficreport/" in (config.user_agent_extra or "")
