"""Tests for the fixed load balancer flip."""

from __future__ import annotations

import pytest

from bluegreen.core.config import WaiterParameters
from bluegreen.core.exceptions import ConfigurationError, UnexpectedStatusError, WaitTimeoutError
from bluegreen.models.history import TaskStatus
from bluegreen.tasks.fixed_elb_flip import FixedElbFlipEc2Task
from tests.fakes import FakeEc2Client, FakeElbClient, MemoryEnvironmentStore, RecordingSleeper
from tests.fakes.clients import elb_description, elb_health
from tests.fakes.environments import live_env, stage_env

PARAMS = WaiterParameters(initial_wait_delay_ms=1, followup_wait_delay_ms=1,
                          wait_report_interval=5, max_num_waits=3)


def _task(elb, lb_name="fixed-lb"):
    store = MemoryEnvironmentStore([live_env("blue"), stage_env("green")])
    ec2 = FakeEc2Client({"10.0.0.11": "i-old", "10.0.0.21": "i-new"})
    return FixedElbFlipEc2Task(4, "blue", "green", lb_name, environment_store=store, ec2_client=ec2,
                               elb_client=elb, waiter_parameters=PARAMS, sleeper=RecordingSleeper())


class TestFixedElbFlipEc2Task:
    def test_registers_new_before_deregistering_old(self):
        elb = FakeElbClient()
        elb.health = [elb_health("i-new", "OutOfService"), elb_health("i-new", "InService")]
        elb.load_balancers = [elb_description("fixed-lb", "i-old", "i-new"), elb_description("fixed-lb", "i-new")]
        assert _task(elb).process(noop=False) == TaskStatus.DONE
        mutations = [c for c in elb.calls if c[0].endswith("register_instance")]
        assert mutations == [("register_instance", "fixed-lb", "i-new"), ("deregister_instance", "fixed-lb", "i-old")]

    def test_new_instance_never_healthy(self):
        elb = FakeElbClient()
        elb.health = [elb_health("i-new", "OutOfService")]
        with pytest.raises(WaitTimeoutError):
            _task(elb).process(noop=False)
        assert not any(c[0] == "deregister_instance" for c in elb.calls)

    def test_balancer_emptied_raises(self):
        elb = FakeElbClient()
        elb.health = [elb_health("i-new", "InService")]
        elb.load_balancers = [elb_description("fixed-lb")]
        with pytest.raises(UnexpectedStatusError):
            _task(elb).process(noop=False)

    def test_noop_makes_no_elb_calls(self):
        elb = FakeElbClient()
        assert _task(elb).process(noop=True) == TaskStatus.NOOP
        assert elb.calls == []

    def test_blank_lb_name(self):
        with pytest.raises(ConfigurationError):
            _task(FakeElbClient(), lb_name=" ")
