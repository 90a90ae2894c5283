"""Resolve AMIs by searching EC2 images published by their vendors."""

from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from eksboot.ami.instance_types import architecture, is_gpu_instance_type, is_neuron_instance_type
from eksboot.ami.resolver import Resolver
from eksboot.core.exceptions import AWSError, ConfigurationError
from eksboot.core.models import AMIFamily
from eksboot.utils.logging import get_logger

logger = get_logger(__name__)

# Accounts publishing EKS optimized images, by region
_EKS_AMI_ACCOUNT = "602401143452"
_EKS_AMI_REGIONAL_ACCOUNTS = {
    "af-south-1": "877085696533",
    "ap-east-1": "800184023465",
    "ap-southeast-3": "296578399912",
    "eu-south-1": "590381155156",
    "me-central-1": "759879836304",
    "me-south-1": "558608220178",
    "cn-north-1": "918309763551",
    "cn-northwest-1": "961992271922",
    "us-gov-east-1": "151742754352",
    "us-gov-west-1": "013241004608",
}

_CANONICAL_ACCOUNT = "099720109477"
_CANONICAL_REGIONAL_ACCOUNTS = {
    "cn-north-1": "837727238323",
    "cn-northwest-1": "837727238323",
    "us-gov-east-1": "513442679011",
    "us-gov-west-1": "513442679011",
}

_WINDOWS_NAME_PREFIXES = {
    AMIFamily.WINDOWS_SERVER_2019_CORE: "Windows_Server-2019-English-Core",
    AMIFamily.WINDOWS_SERVER_2019_FULL: "Windows_Server-2019-English-Full",
    AMIFamily.WINDOWS_SERVER_2022_CORE: "Windows_Server-2022-English-Core",
    AMIFamily.WINDOWS_SERVER_2022_FULL: "Windows_Server-2022-English-Full",
}


def image_search_params(
    region: str, version: str, instance_type: str, ami_family: str
) -> tuple[str, str]:
    """Return the (owner, name pattern) used to search images for a family.

    Raises:
        ConfigurationError: If the family cannot be searched for
    """
    arch = architecture(instance_type)
    eks_owner = _EKS_AMI_REGIONAL_ACCOUNTS.get(region, _EKS_AMI_ACCOUNT)

    if ami_family == AMIFamily.AMAZON_LINUX_2:
        if is_gpu_instance_type(instance_type) or is_neuron_instance_type(instance_type):
            return eks_owner, f"amazon-eks-gpu-node-{version}-v*"
        if arch == "arm64":
            return eks_owner, f"amazon-eks-arm64-node-{version}-v*"
        return eks_owner, f"amazon-eks-node-{version}-v*"

    if ami_family == AMIFamily.AMAZON_LINUX_2023:
        variant = "standard"
        if is_gpu_instance_type(instance_type):
            variant = "nvidia"
        elif is_neuron_instance_type(instance_type):
            variant = "neuron"
        return eks_owner, f"amazon-eks-node-al2023-{arch}-{variant}-{version}-v*"

    if ami_family in (AMIFamily.UBUNTU_2004, AMIFamily.UBUNTU_2204):
        codename = "focal-20.04" if ami_family == AMIFamily.UBUNTU_2004 else "jammy-22.04"
        ubuntu_arch = "arm64" if arch == "arm64" else "amd64"
        owner = _CANONICAL_REGIONAL_ACCOUNTS.get(region, _CANONICAL_ACCOUNT)
        return owner, f"ubuntu-eks/k8s_{version}/images/hvm-ssd/ubuntu-{codename}-{ubuntu_arch}-server-*"

    if ami_family == AMIFamily.BOTTLEROCKET:
        variant = "-nvidia" if is_gpu_instance_type(instance_type) else ""
        return "amazon", f"bottlerocket-aws-k8s-{version}{variant}-{arch}-*"

    if ami_family in _WINDOWS_NAME_PREFIXES:
        return "amazon", f"{_WINDOWS_NAME_PREFIXES[ami_family]}-EKS_Optimized-{version}-*"

    raise ConfigurationError(f"unknown value for AMI family: {ami_family!r}")


class AutoResolver(Resolver):
    """Picks the newest available image matching the family's naming scheme."""

    def __init__(self, ec2_client: Any):
        self.ec2 = ec2_client

    def resolve(self, region: str, version: str, instance_type: str, ami_family: str) -> str:
        owner, name_pattern = image_search_params(region, version, instance_type, ami_family)
        logger.debug("searching_ami", owner=owner, name=name_pattern, region=region)

        try:
            response = self.ec2.describe_images(
                Owners=[owner],
                Filters=[
                    {"Name": "name", "Values": [name_pattern]},
                    {"Name": "state", "Values": ["available"]},
                    {"Name": "architecture", "Values": [architecture(instance_type)]},
                    {"Name": "virtualization-type", "Values": ["hvm"]},
                    {"Name": "root-device-type", "Values": ["ebs"]},
                ],
            )
        except ClientError as e:
            error_code = e.response["Error"]["Code"]
            logger.error("describe_images_failed", name=name_pattern, error_code=error_code)
            raise AWSError(f"error querying AWS for images: {error_code}") from e
        except BotoCoreError as e:
            raise AWSError(f"error querying AWS for images: {e}") from e

        images = response.get("Images", [])
        if not images:
            logger.debug("no_ami_found", name=name_pattern, owner=owner)
            return ""

        latest = max(images, key=lambda image: image.get("CreationDate", ""))
        return str(latest["ImageId"])
