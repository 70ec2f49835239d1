"""AWS SDK configuration for the report.

The services factory imports from this module to keep AWS/client tuning in one
place. Retries stay with botocore: the report adds none of its own.
"""

from botocore.config import Config

from infra.config import AWSConfig
from version import ENGINE_NAME, ENGINE_VERSION


def build_sdk_config(aws_cfg: AWSConfig) -> Config:
    """Return the botocore client config for the given AWS settings."""
    return Config(
        region_name=aws_cfg.region,
        retries={"max_attempts": int(aws_cfg.max_retries), "mode": "standard"},
        user_agent_extra=f"{ENGINE_NAME}/{ENGINE_VERSION}",
        connect_timeout=int(aws_cfg.connect_timeout),
        read_timeout=int(aws_cfg.timeout),
    )
