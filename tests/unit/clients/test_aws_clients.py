"""Tests for the boto3 RDS, ELB and EC2 wrappers using moto and stubbed clients."""

from __future__ import annotations

from unittest.mock import MagicMock

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

from bluegreen.clients.aws import rds_analyzer
from bluegreen.clients.aws.ec2_client import Ec2Client
from bluegreen.clients.aws.elb_client import ElbClient
from bluegreen.clients.aws.rds_client import RdsClient
from bluegreen.core.exceptions import ExternalServiceError, RdsInstanceNotFoundError, RdsSnapshotNotFoundError
from bluegreen.models.aws_status import RdsParameterApplyStatus
from tests.fakes.clients import rds_instance

REGION = "us-east-1"


def _client_error(code: str, operation: str = "Op") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


@pytest.fixture
def rds():
    with mock_aws():
        client = boto3.client("rds", region_name=REGION)
        client.create_db_parameter_group(
            DBParameterGroupName="orders-live-params", DBParameterGroupFamily="mysql8.0",
            Description="live params",
        )
        client.create_db_instance(
            DBInstanceIdentifier="orders-live", DBInstanceClass="db.t3.micro", Engine="mysql",
            AllocatedStorage=20, MasterUsername="admin", MasterUserPassword="password123",
            DBParameterGroupName="orders-live-params",
        )
        yield RdsClient(region=REGION, client=client)


class TestRdsClient:
    def test_describe_instance(self, rds):
        instance = rds.describe_instance("orders-live")
        assert instance["DBInstanceIdentifier"] == "orders-live"
        assert rds_analyzer.find_self_named_param_group_name(instance) == "orders-live-params"

    def test_describe_missing_instance(self, rds):
        with pytest.raises(RdsInstanceNotFoundError):
            rds.describe_instance("nope")

    def test_snapshot_lifecycle(self, rds):
        snapshot = rds.create_snapshot("bluegreen9blue9orders9orders-live", "orders-live")
        assert snapshot["DBSnapshotIdentifier"] == "bluegreen9blue9orders9orders-live"
        assert rds.describe_snapshot("bluegreen9blue9orders9orders-live")["DBInstanceIdentifier"] == "orders-live"
        rds.delete_snapshot("bluegreen9blue9orders9orders-live")
        with pytest.raises(RdsSnapshotNotFoundError):
            rds.describe_snapshot("bluegreen9blue9orders9orders-live")

    def test_copy_parameter_group(self, rds):
        group = rds.copy_parameter_group("orders-live-params", "orders-stage-params")
        assert group["DBParameterGroupName"] == "orders-stage-params"

    def test_other_errors_wrap(self):
        client = MagicMock()
        client.reboot_db_instance.side_effect = _client_error("InvalidDBInstanceState")
        with pytest.raises(ExternalServiceError, match="reboot instance"):
            RdsClient(client=client).reboot_instance("orders-stage")

    def test_not_found_fault_code(self):
        client = MagicMock()
        client.describe_db_snapshots.side_effect = _client_error("DBSnapshotNotFoundFault")
        with pytest.raises(RdsSnapshotNotFoundError):
            RdsClient(client=client).describe_snapshot("x")

    def test_restore_omits_blank_subnet_group(self):
        client = MagicMock()
        client.restore_db_instance_from_db_snapshot.return_value = {"DBInstance": {"DBInstanceIdentifier": "s"}}
        RdsClient(client=client).restore_instance_from_snapshot("s", "snap", None)
        assert "DBSubnetGroupName" not in client.restore_db_instance_from_db_snapshot.call_args.kwargs


class TestRdsAnalyzer:
    def test_default_param_group_fallback(self):
        instance = rds_instance("orders-live", "available", param_group=("default.mysql8.0", "in-sync"))
        assert rds_analyzer.find_self_named_param_group_name(instance) is None
        assert rds_analyzer.find_self_named_or_default_param_group_name(instance) == "default.mysql8.0"

    def test_extractors(self):
        instance = rds_instance("orders-live", "available", param_group=("orders-live-params", "pending-reboot"),
                                address="db.example", subnet_group="private", security_groups=("sg-1",))
        assert rds_analyzer.extract_endpoint_address(instance) == "db.example"
        assert rds_analyzer.extract_subnet_group_name(instance) == "private"
        assert rds_analyzer.extract_vpc_security_group_ids(instance) == ["sg-1"]
        assert rds_analyzer.find_parameter_apply_status(instance, "orders-live-params") == \
            RdsParameterApplyStatus.PENDING_REBOOT
        assert rds_analyzer.find_parameter_apply_status(instance, "other") is None

    def test_empty_instance(self):
        assert rds_analyzer.find_self_named_or_default_param_group_name({}) is None
        assert rds_analyzer.extract_vpc_security_group_ids(None) == []
        assert rds_analyzer.extract_endpoint_address(None) is None


class TestElbClient:
    def test_describe_instance_health(self):
        client = MagicMock()
        client.describe_instance_health.return_value = {
            "InstanceStates": [{"InstanceId": "i-new", "State": "InService"}],
        }
        assert ElbClient(client=client).describe_instance_health("fixed-lb", "i-new")["State"] == "InService"
        client.describe_instance_health.assert_called_once_with(
            LoadBalancerName="fixed-lb", Instances=[{"InstanceId": "i-new"}],
        )

    def test_describe_missing_load_balancer(self):
        client = MagicMock()
        client.describe_load_balancers.side_effect = _client_error("LoadBalancerNotFound")
        with pytest.raises(ExternalServiceError, match="fixed-lb"):
            ElbClient(client=client).describe_load_balancer("fixed-lb")

    def test_register_and_deregister(self):
        client = MagicMock()
        client.register_instances_with_load_balancer.return_value = {"Instances": [{"InstanceId": "i-new"}]}
        client.deregister_instances_from_load_balancer.return_value = {"Instances": []}
        elb = ElbClient(client=client)
        assert elb.register_instance("fixed-lb", "i-new") == [{"InstanceId": "i-new"}]
        assert elb.deregister_instance("fixed-lb", "i-old") == []


class TestEc2Client:
    def test_find_by_private_ip(self):
        with mock_aws():
            client = boto3.client("ec2", region_name=REGION)
            image_id = client.describe_images(Owners=["amazon"])["Images"][0]["ImageId"]
            reservation = client.run_instances(ImageId=image_id, MinCount=1, MaxCount=1)
            instance = reservation["Instances"][0]
            found = Ec2Client(region=REGION, client=client).describe_instance_by_private_ip(
                instance["PrivateIpAddress"],
            )
            assert found["InstanceId"] == instance["InstanceId"]

    def test_no_match_raises(self):
        client = MagicMock()
        client.describe_instances.return_value = {"Reservations": []}
        with pytest.raises(ExternalServiceError, match="found 0"):
            Ec2Client(client=client).describe_instance_by_private_ip("10.9.9.9")
