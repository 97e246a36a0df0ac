"""Thin boto3 wrapper for classic Elastic Load Balancing."""

from __future__ import annotations

from typing import Any

import boto3
from botocore.exceptions import ClientError

from bluegreen.core.exceptions import ExternalServiceError


class ElbClient:
    """Production IElbClient for classic (non-ALB) load balancers."""

    def __init__(self, region: str = "us-east-1", endpoint_url: str | None = None,
                 client: Any = None) -> None:
        kwargs: dict = {"region_name": region}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._client = client or boto3.client("elb", **kwargs)

    def describe_load_balancer(self, elb_name: str) -> dict[str, Any]:
        try:
            resp = self._client.describe_load_balancers(LoadBalancerNames=[elb_name])
        except ClientError as exc:
            raise ExternalServiceError(f"ELB describe {elb_name!r} failed: {exc}") from exc
        descriptions = resp.get("LoadBalancerDescriptions") or []
        if len(descriptions) != 1:
            raise ExternalServiceError(
                f"Expected to find one ELB named '{elb_name}', found {len(descriptions)}"
            )
        return descriptions[0]

    def describe_instance_health(self, elb_name: str, ec2_instance_id: str) -> dict[str, Any]:
        try:
            resp = self._client.describe_instance_health(
                LoadBalancerName=elb_name, Instances=[{"InstanceId": ec2_instance_id}],
            )
        except ClientError as exc:
            raise ExternalServiceError(
                f"ELB instance health for {ec2_instance_id!r} on {elb_name!r} failed: {exc}"
            ) from exc
        states = resp.get("InstanceStates") or []
        if len(states) != 1:
            raise ExternalServiceError(
                f"Expected one instance state from ELB '{elb_name}', found {len(states)}"
            )
        return states[0]

    def register_instance(self, elb_name: str, ec2_instance_id: str) -> list[dict[str, Any]]:
        try:
            resp = self._client.register_instances_with_load_balancer(
                LoadBalancerName=elb_name, Instances=[{"InstanceId": ec2_instance_id}],
            )
        except ClientError as exc:
            raise ExternalServiceError(
                f"ELB register {ec2_instance_id!r} with {elb_name!r} failed: {exc}"
            ) from exc
        return resp.get("Instances") or []

    def deregister_instance(self, elb_name: str, ec2_instance_id: str) -> list[dict[str, Any]]:
        try:
            resp = self._client.deregister_instances_from_load_balancer(
                LoadBalancerName=elb_name, Instances=[{"InstanceId": ec2_instance_id}],
            )
        except ClientError as exc:
            raise ExternalServiceError(
                f"ELB deregister {ec2_instance_id!r} from {elb_name!r} failed: {exc}"
            ) from exc
        return resp.get("Instances") or []
