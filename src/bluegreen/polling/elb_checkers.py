"""Progress checkers for classic load balancer registration and removal."""

from __future__ import annotations

import logging
from typing import Any

from bluegreen.core.exceptions import IdentityMismatchError, UnexpectedStatusError
from bluegreen.core.protocols import IElbClient
from bluegreen.models.aws_status import ElbInstanceState
from bluegreen.polling.base import ProgressCheckerBase, Verdict, classify

logger = logging.getLogger(__name__)


class ElbInstanceHealthProgressChecker(ProgressCheckerBase[dict[str, Any]]):
    """Waits for a newly registered EC2 instance to report InService."""

    def __init__(self, elb_name: str, ec2_instance_id: str, log_context: str,
                 elb_client: IElbClient) -> None:
        super().__init__(log_context)
        self._elb_name = elb_name
        self._ec2_instance_id = ec2_instance_id
        self._elb_client = elb_client

    @property
    def description(self) -> str:
        return f"ELB Instance Health for '{self._ec2_instance_id}' on ELB '{self._elb_name}'"

    def initial_check(self) -> None:
        state = self._elb_client.describe_instance_health(self._elb_name, self._ec2_instance_id)
        logger.debug("Initial %s: %s", self.description, state.get("State"))
        self._check_state(state)

    def followup_check(self, wait_num: int) -> None:
        state = self._elb_client.describe_instance_health(self._elb_name, self._ec2_instance_id)
        logger.debug("%s after wait#%d: %s", self.description, wait_num, state.get("State"))
        self._check_state(state)

    def _check_state(self, instance_state: dict[str, Any]) -> None:
        replied = instance_state.get("InstanceId")
        if replied != self._ec2_instance_id:
            raise IdentityMismatchError(self._log_context, self._ec2_instance_id, str(replied),
                                        noun="instance id")
        raw_state = instance_state.get("State")
        verdict = classify(ElbInstanceState.parse(raw_state),
                           {ElbInstanceState.OUT_OF_SERVICE, ElbInstanceState.UNKNOWN},
                           ElbInstanceState.IN_SERVICE)
        if verdict == Verdict.DONE:
            self._succeed(instance_state)
        elif verdict == Verdict.UNEXPECTED:
            self._fail(f"Unexpected instance state '{raw_state}'")


class ElbInstanceGoneProgressChecker(ProgressCheckerBase[bool]):
    """Waits for a deregistered EC2 instance to drop off the load balancer's instance list."""

    def __init__(self, elb_name: str, ec2_instance_id: str, log_context: str,
                 elb_client: IElbClient) -> None:
        super().__init__(log_context)
        self._elb_name = elb_name
        self._ec2_instance_id = ec2_instance_id
        self._elb_client = elb_client

    @property
    def description(self) -> str:
        return f"ELB Instance Removal of '{self._ec2_instance_id}' from ELB '{self._elb_name}'"

    def initial_check(self) -> None:
        self._check_load_balancer(self._elb_client.describe_load_balancer(self._elb_name), 0)

    def followup_check(self, wait_num: int) -> None:
        self._check_load_balancer(self._elb_client.describe_load_balancer(self._elb_name), wait_num)

    def _check_load_balancer(self, load_balancer: dict[str, Any], wait_num: int) -> None:
        replied = load_balancer.get("LoadBalancerName")
        if replied != self._elb_name:
            raise IdentityMismatchError(self._log_context, self._elb_name, str(replied), noun="ELB name")
        instance_ids = [i.get("InstanceId") for i in load_balancer.get("Instances") or []]
        logger.debug("%s after wait#%d: ELB instances %s", self.description, wait_num, instance_ids)
        if not instance_ids:
            # the new instance was registered first, so an empty balancer means something else went wrong
            raise UnexpectedStatusError(
                f"{self._log_context}ELB '{self._elb_name}' has no instances at all"
            )
        if self._ec2_instance_id not in instance_ids:
            self._succeed(True)
