"""Thin boto3 wrapper for EC2 instance lookups."""

from __future__ import annotations

from typing import Any

import boto3
from botocore.exceptions import ClientError

from bluegreen.core.exceptions import ExternalServiceError


class Ec2Client:
    """Production IEc2Client."""

    def __init__(self, region: str = "us-east-1", endpoint_url: str | None = None,
                 client: Any = None) -> None:
        kwargs: dict = {"region_name": region}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._client = client or boto3.client("ec2", **kwargs)

    def describe_instance_by_private_ip(self, private_ip: str) -> dict[str, Any]:
        """Return the single EC2 instance whose private ip is ``private_ip``."""
        try:
            resp = self._client.describe_instances(
                Filters=[{"Name": "private-ip-address", "Values": [private_ip]}],
            )
        except ClientError as exc:
            raise ExternalServiceError(f"EC2 describe by private ip {private_ip!r} failed: {exc}") from exc
        instances = [i for r in resp.get("Reservations", []) for i in r.get("Instances", [])]
        if len(instances) != 1:
            raise ExternalServiceError(
                f"Expected one EC2 instance with private ip '{private_ip}', found {len(instances)}"
            )
        return instances[0]
