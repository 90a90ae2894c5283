"""Unit tests for the CloudFormation stack manager."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from eksboot.adapters.cloudformation_adapter import CLUSTER_NAME_TAG, StackCollection
from eksboot.core.exceptions import AWSError
from eksboot.core.models import ClusterConfig
from eksboot.interfaces.stack_manager import StackManager


@pytest.fixture
def cloudformation() -> MagicMock:
    return MagicMock()


@pytest.fixture
def stack_collection(cloudformation: MagicMock, sample_cluster_config: ClusterConfig) -> StackCollection:
    provider = MagicMock()
    provider.cloudformation.return_value = cloudformation
    provider.cloudformation_role_arn = "arn:aws:iam::123456789012:role/cfn"
    provider.cloudformation_disable_rollback = True
    return StackCollection(provider, sample_cluster_config)


class TestStackCollection:
    """Tests for StackCollection."""

    def test_implements_interface(self, stack_collection: StackCollection) -> None:
        assert isinstance(stack_collection, StackManager)
        assert stack_collection.role_arn == "arn:aws:iam::123456789012:role/cfn"
        assert stack_collection.disable_rollback is True

    def test_stack_request_options(self, stack_collection: StackCollection) -> None:
        """Test the service role, rollback flag and cluster tag are carried."""
        assert stack_collection.stack_request_options() == {
            "DisableRollback": True,
            "RoleARN": "arn:aws:iam::123456789012:role/cfn",
            "Tags": [{"Key": CLUSTER_NAME_TAG, "Value": "test-cluster"}],
        }

    def test_stack_request_options_without_role(
        self, cloudformation: MagicMock, sample_cluster_config: ClusterConfig
    ) -> None:
        """Test no RoleARN is sent when no service role is configured."""
        provider = MagicMock()
        provider.cloudformation.return_value = cloudformation
        provider.cloudformation_role_arn = None
        provider.cloudformation_disable_rollback = False

        options = StackCollection(provider, sample_cluster_config).stack_request_options()

        assert "RoleARN" not in options
        assert options["DisableRollback"] is False

    def test_cluster_stack_name(self, stack_collection: StackCollection) -> None:
        assert stack_collection.cluster_stack_name == "eksboot-test-cluster-cluster"

    def test_list_cluster_stacks_filters_by_tag(
        self, stack_collection: StackCollection, cloudformation: MagicMock
    ) -> None:
        """Test only stacks tagged with the cluster name are returned."""
        ours = {"StackName": "eksboot-test-cluster-cluster", "Tags": [{"Key": CLUSTER_NAME_TAG, "Value": "test-cluster"}]}
        theirs = {"StackName": "other", "Tags": [{"Key": CLUSTER_NAME_TAG, "Value": "other"}]}
        untagged = {"StackName": "untagged"}
        cloudformation.get_paginator.return_value.paginate.return_value = [
            {"Stacks": [ours, theirs]},
            {"Stacks": [untagged]},
        ]

        assert stack_collection.list_cluster_stacks() == [ours]
        cloudformation.get_paginator.assert_called_once_with("describe_stacks")

    def test_list_cluster_stacks_error(
        self, stack_collection: StackCollection, cloudformation: MagicMock
    ) -> None:
        cloudformation.get_paginator.return_value.paginate.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "DescribeStacks"
        )

        with pytest.raises(AWSError, match="AccessDenied"):
            stack_collection.list_cluster_stacks()

    def test_describe_cluster_stack(self, stack_collection: StackCollection, cloudformation: MagicMock) -> None:
        cloudformation.describe_stacks.return_value = {"Stacks": [{"StackName": "eksboot-test-cluster-cluster"}]}

        assert stack_collection.describe_cluster_stack() == {"StackName": "eksboot-test-cluster-cluster"}
        cloudformation.describe_stacks.assert_called_once_with(StackName="eksboot-test-cluster-cluster")

    def test_describe_missing_stack(self, stack_collection: StackCollection, cloudformation: MagicMock) -> None:
        """Test a missing stack is None rather than an error."""
        cloudformation.describe_stacks.side_effect = ClientError(
            {"Error": {"Code": "ValidationError", "Message": "Stack with id x does not exist"}},
            "DescribeStacks",
        )

        assert stack_collection.describe_cluster_stack() is None

    def test_describe_other_validation_error(
        self, stack_collection: StackCollection, cloudformation: MagicMock
    ) -> None:
        cloudformation.describe_stacks.side_effect = ClientError(
            {"Error": {"Code": "ValidationError", "Message": "bad name"}}, "DescribeStacks"
        )

        with pytest.raises(AWSError):
            stack_collection.describe_cluster_stack()
