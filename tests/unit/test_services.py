"""Unit tests for provider services."""

from datetime import timedelta
from unittest.mock import MagicMock, patch

from eksboot.clients.sts_presigner import STSPresigner
from eksboot.core.config import ProviderConfig
from eksboot.provider.services import ProviderServices


def make_builder(region: str = "us-west-2") -> MagicMock:
    builder = MagicMock()

    def build(config: ProviderConfig) -> MagicMock:
        config.region = config.region or region
        return MagicMock()

    builder.build.side_effect = build
    return builder


class TestFromConfig:
    """Tests for ProviderServices.from_config."""

    def test_region_back_filled(self) -> None:
        """Test the builder's region lands on the config."""
        config = ProviderConfig()

        services = ProviderServices.from_config(config, environ={}, builder=make_builder("eu-north-1"))

        assert services.region == "eu-north-1"
        assert config.region == "eu-north-1"

    def test_endpoint_overrides(self) -> None:
        """Test endpoint overrides are read from the environment."""
        services = ProviderServices.from_config(
            ProviderConfig(),
            environ={
                "AWS_CLOUDFORMATION_ENDPOINT": "http://localhost:4566",
                "AWS_CLOUDTRAIL_ENDPOINT": "http://localhost:4567",
            },
            builder=make_builder(),
        )

        assert services.endpoints == {
            "cloudformation": "http://localhost:4566",
            "cloudtrail": "http://localhost:4567",
        }

    def test_credential_cache_switch(self) -> None:
        """Test the cache switch is passed to the session builder."""
        with patch("eksboot.provider.services.SessionBuilder") as mock_builder_class:
            mock_builder_class.return_value = make_builder()

            ProviderServices.from_config(
                ProviderConfig(), verbosity=4, environ={"EKSBOOT_ENABLE_CREDENTIAL_CACHE": "1"}
            )

        mock_builder_class.assert_called_once_with(verbosity=4, enable_credential_cache=True)

    def test_credential_cache_off_by_default(self) -> None:
        with patch("eksboot.provider.services.SessionBuilder") as mock_builder_class:
            mock_builder_class.return_value = make_builder()

            ProviderServices.from_config(ProviderConfig(), environ={})

        assert mock_builder_class.call_args.kwargs["enable_credential_cache"] is False


class TestClients:
    """Tests for service client creation."""

    def test_clients_cached(self, mock_aws_session: MagicMock) -> None:
        """Test each service client is created once."""
        services = ProviderServices(ProviderConfig(region="us-west-2"), mock_aws_session)

        assert services.ec2() is services.ec2()
        assert mock_aws_session.client.call_count == 1

    def test_client_uses_region_and_endpoint(self, mock_aws_session: MagicMock) -> None:
        services = ProviderServices(
            ProviderConfig(region="us-west-2"),
            mock_aws_session,
            endpoints={"cloudformation": "http://localhost:4566"},
        )

        services.cloudformation()

        args, kwargs = mock_aws_session.client.call_args
        assert args == ("cloudformation",)
        assert kwargs["region_name"] == "us-west-2"
        assert kwargs["endpoint_url"] == "http://localhost:4566"
        assert kwargs["config"].retries["max_attempts"] == 13

    def test_no_endpoint_override(self, mock_aws_session: MagicMock) -> None:
        services = ProviderServices(ProviderConfig(region="us-west-2"), mock_aws_session)

        services.ssm()

        assert mock_aws_session.client.call_args.kwargs["endpoint_url"] is None

    def test_service_names(self, mock_aws_session: MagicMock) -> None:
        """Test getters map to boto3 service names."""
        services = ProviderServices(ProviderConfig(region="us-west-2"), mock_aws_session)

        services.cloudwatch_logs()
        services.autoscaling()
        services.sts()
        services.eks()
        services.cloudtrail()

        names = [c.args[0] for c in mock_aws_session.client.call_args_list]
        assert names == ["logs", "autoscaling", "sts", "eks", "cloudtrail"]

    def test_accessors(self, mock_aws_session: MagicMock) -> None:
        config = ProviderConfig(
            region="us-west-2",
            profile="dev",
            wait_timeout=timedelta(minutes=5),
            cloudformation_role_arn="arn:aws:iam::123:role/cfn",
        )
        services = ProviderServices(config, mock_aws_session)

        assert services.profile == "dev"
        assert services.wait_timeout == timedelta(minutes=5)
        assert services.cloudformation_role_arn == "arn:aws:iam::123:role/cfn"
        assert services.cloudformation_disable_rollback is False
        assert isinstance(services.sts_presigner(), STSPresigner)
