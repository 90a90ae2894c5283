"""Resolve AMIs from the public SSM parameters published for EKS."""

from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from eksboot.ami.instance_types import (
    architecture,
    is_arm_instance_type,
    is_gpu_instance_type,
    is_neuron_instance_type,
)
from eksboot.ami.resolver import Resolver
from eksboot.core.exceptions import AWSError, ConfigurationError
from eksboot.core.models import AMIFamily
from eksboot.utils.logging import get_logger

logger = get_logger(__name__)

_WINDOWS_IMAGE_NAMES = {
    AMIFamily.WINDOWS_SERVER_2019_CORE: "Windows_Server-2019-English-Core",
    AMIFamily.WINDOWS_SERVER_2019_FULL: "Windows_Server-2019-English-Full",
    AMIFamily.WINDOWS_SERVER_2022_CORE: "Windows_Server-2022-English-Core",
    AMIFamily.WINDOWS_SERVER_2022_FULL: "Windows_Server-2022-English-Full",
}


def make_ssm_parameter_name(version: str, instance_type: str, ami_family: str) -> str:
    """Build the SSM parameter path holding the recommended image id.

    Args:
        version: Kubernetes version
        instance_type: Instance type the image has to support
        ami_family: Image family

    Returns:
        SSM parameter name

    Raises:
        ConfigurationError: If the family has no published parameter
    """
    arch = architecture(instance_type)

    if ami_family == AMIFamily.AMAZON_LINUX_2:
        suffix = ""
        if is_gpu_instance_type(instance_type) or is_neuron_instance_type(instance_type):
            suffix = "-gpu"
        elif is_arm_instance_type(instance_type):
            suffix = "-arm64"
        return f"/aws/service/eks/optimized-ami/{version}/amazon-linux-2{suffix}/recommended/image_id"

    if ami_family == AMIFamily.AMAZON_LINUX_2023:
        variant = "standard"
        if is_gpu_instance_type(instance_type):
            variant = "nvidia"
        elif is_neuron_instance_type(instance_type):
            variant = "neuron"
        return f"/aws/service/eks/optimized-ami/{version}/amazon-linux-2023/{arch}/{variant}/recommended/image_id"

    if ami_family in (AMIFamily.UBUNTU_2004, AMIFamily.UBUNTU_2204):
        release = "20.04" if ami_family == AMIFamily.UBUNTU_2004 else "22.04"
        ubuntu_arch = "arm64" if arch == "arm64" else "amd64"
        return (
            f"/aws/service/canonical/ubuntu/eks/{release}/{version}/stable/current/"
            f"{ubuntu_arch}/hvm/ebs-gp2/ami-id"
        )

    if ami_family == AMIFamily.BOTTLEROCKET:
        variant = "-nvidia" if is_gpu_instance_type(instance_type) else ""
        return f"/aws/service/bottlerocket/aws-k8s-{version}{variant}/{arch}/latest/image_id"

    if ami_family in _WINDOWS_IMAGE_NAMES:
        return f"/aws/service/ami-windows-latest/{_WINDOWS_IMAGE_NAMES[ami_family]}-EKS_Optimized-{version}/image_id"

    raise ConfigurationError(f"unknown value for AMI family: {ami_family!r}")


class SSMResolver(Resolver):
    """Reads the recommended image id from SSM Parameter Store."""

    def __init__(self, ssm_client: Any):
        self.ssm = ssm_client

    def resolve(self, region: str, version: str, instance_type: str, ami_family: str) -> str:
        parameter_name = make_ssm_parameter_name(version, instance_type, ami_family)
        logger.debug("resolving_ami_from_ssm", parameter=parameter_name, region=region)

        try:
            response = self.ssm.get_parameter(Name=parameter_name)
        except ClientError as e:
            error_code = e.response["Error"]["Code"]
            if error_code == "ParameterNotFound":
                logger.debug("ssm_parameter_not_found", parameter=parameter_name)
                return ""
            logger.error("ssm_get_parameter_failed", parameter=parameter_name, error_code=error_code)
            raise AWSError(f"error getting AMI from SSM parameter {parameter_name}: {error_code}") from e
        except BotoCoreError as e:
            raise AWSError(f"error getting AMI from SSM parameter {parameter_name}: {e}") from e

        return str(response.get("Parameter", {}).get("Value", "")).strip()
