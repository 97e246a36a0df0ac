"""Point a fixed classic load balancer at the new live environment's vm."""

from __future__ import annotations

import logging

from bluegreen.core.config import WaiterParameters
from bluegreen.core.exceptions import ConfigurationError
from bluegreen.core.protocols import IEc2Client, IElbClient, IEnvironmentStore, ISleeper
from bluegreen.models.history import TaskStatus
from bluegreen.polling.elb_checkers import ElbInstanceGoneProgressChecker, ElbInstanceHealthProgressChecker
from bluegreen.polling.waiter import Waiter, wait_for_result
from bluegreen.tasks.base import Task
from bluegreen.tasks.env_loader import EnvironmentLoader

logger = logging.getLogger(__name__)


class FixedElbFlipEc2Task(Task):
    """Registers the new live EC2 instance, then deregisters the old one.

    The new instance must be InService before the old one is removed, so
    the load balancer never has an empty pool.
    """

    def __init__(self, position: int, old_live_env: str, new_live_env: str, fixed_lb_name: str, *,
                 environment_store: IEnvironmentStore, ec2_client: IEc2Client, elb_client: IElbClient,
                 waiter_parameters: WaiterParameters, sleeper: ISleeper) -> None:
        super().__init__(position)
        if old_live_env == new_live_env:
            raise ConfigurationError(
                f"Live env must be different from stage env, cannot target env '{old_live_env}' for both"
            )
        if not fixed_lb_name or not fixed_lb_name.strip():
            raise ConfigurationError("Fixed load balancer name is blank")
        self._old_live_env = old_live_env
        self._new_live_env = new_live_env
        self._fixed_lb_name = fixed_lb_name
        self._environment_store = environment_store
        self._ec2_client = ec2_client
        self._elb_client = elb_client
        self._waiter_parameters = waiter_parameters
        self._sleeper = sleeper

    def process(self, noop: bool) -> TaskStatus:
        old_loader = EnvironmentLoader(self._environment_store, self._old_live_env)
        new_loader = EnvironmentLoader(self._environment_store, self._new_live_env)
        _, old_vm = old_loader.load_application_vm()
        _, new_vm = new_loader.load_application_vm()
        old_instance_id = self._find_ec2_instance_id(old_vm.ip_address)
        new_instance_id = self._find_ec2_instance_id(new_vm.ip_address)

        logger.info("%sRegister new live EC2 instance %s with fixed ELB '%s'%s",
                    new_loader.context(), new_instance_id, self._fixed_lb_name, self.noop_remark(noop))
        if not noop:
            self._elb_client.register_instance(self._fixed_lb_name, new_instance_id)
            logger.info("%sWaiting for new live EC2 instance to be declared in service", new_loader.context())
            health_checker = ElbInstanceHealthProgressChecker(
                self._fixed_lb_name, new_instance_id, new_loader.context(), self._elb_client,
            )
            wait_for_result(self._waiter(health_checker),
                            f"{new_loader.context()}ELB says new live EC2 instance was not declared in service")

        logger.info("%sDeregister old live EC2 instance %s from fixed ELB '%s'%s",
                    old_loader.context(), old_instance_id, self._fixed_lb_name, self.noop_remark(noop))
        if noop:
            return TaskStatus.NOOP
        self._elb_client.deregister_instance(self._fixed_lb_name, old_instance_id)
        logger.info("%sWaiting for old live EC2 instance to be removed from service", old_loader.context())
        gone_checker = ElbInstanceGoneProgressChecker(
            self._fixed_lb_name, old_instance_id, old_loader.context(), self._elb_client,
        )
        wait_for_result(self._waiter(gone_checker),
                        f"{old_loader.context()}ELB says old live EC2 instance was not removed from service")
        return TaskStatus.DONE

    def _find_ec2_instance_id(self, ip_address: str) -> str:
        return self._ec2_client.describe_instance_by_private_ip(ip_address)["InstanceId"]

    def _waiter(self, checker) -> Waiter:
        return Waiter(self._waiter_parameters, self._sleeper, checker)
