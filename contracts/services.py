"""
contracts/services.py

Services container + factory (DI-friendly).

Goals:
- One boto3.Session carries the static credentials; both clients share it.
- Report code never constructs clients itself, so tests can inject fakes:
    Services(ec2=FakeEc2(), cloudwatch=FakeCloudWatch())
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import boto3
from botocore.config import Config

from infra.aws_config import build_sdk_config
from infra.config import AWSConfig


@dataclass(frozen=True)
class Services:
    """
    Bag of SDK clients used by one report run.

    `region` is informational and shows up in logs.
    """
    ec2: Any
    cloudwatch: Any
    region: str = ""


class ServicesFactory:
    """
    Creates AWS SDK clients from one shared session.

    Usage:
      factory = ServicesFactory.from_config(settings.aws)
      svcs = factory.for_region(settings.aws.region)
    """

    def __init__(self, *, session: boto3.Session, sdk_config: Config | None = None) -> None:
        self._session = session
        self._sdk_config = sdk_config

    @classmethod
    def from_config(cls, aws_cfg: AWSConfig) -> ServicesFactory:
        """Build a factory whose session uses the configured static keys.

        When no keys are configured the default boto3 credential chain applies.
        """
        session_kwargs: dict[str, Any] = {"region_name": aws_cfg.region}
        if aws_cfg.access_key_id and aws_cfg.secret_access_key:
            session_kwargs["aws_access_key_id"] = aws_cfg.access_key_id
            session_kwargs["aws_secret_access_key"] = aws_cfg.secret_access_key
        return cls(session=boto3.Session(**session_kwargs), sdk_config=build_sdk_config(aws_cfg))

    def _client(self, service: str, *, region: str | None) -> Any:
        kwargs: dict[str, Any] = {}
        if region:
            kwargs["region_name"] = region
        if self._sdk_config is not None:
            kwargs["config"] = self._sdk_config
        return self._session.client(service, **kwargs)

    def for_region(self, region: str) -> Services:
        """Return EC2 and CloudWatch clients bound to `region`."""
        reg = str(region or "").strip()
        if not reg:
            raise ValueError("region must be a non-empty string")
        return Services(
            ec2=self._client("ec2", region=reg),
            cloudwatch=self._client("cloudwatch", region=reg),
            region=reg,
        )


def build_services(aws_cfg: AWSConfig) -> Services:
    """Return the clients for the configured region."""
    return ServicesFactory.from_config(aws_cfg).for_region(aws_cfg.region)
