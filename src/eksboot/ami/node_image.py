"""Resolve the image of a node group from its requested mode."""

from __future__ import annotations

from typing import TYPE_CHECKING

from eksboot.ami.auto_resolver import AutoResolver
from eksboot.ami.instance_types import select_instance_type
from eksboot.ami.resolver import AMIMode, MultiResolver, Resolver
from eksboot.ami.ssm_resolver import SSMResolver
from eksboot.core.exceptions import EksbootError, ResolutionFailure
from eksboot.utils.logging import get_logger

if TYPE_CHECKING:
    from eksboot.core.models import NodeGroup
    from eksboot.provider.services import ProviderServices

logger = get_logger(__name__)


def new_resolver(mode: AMIMode, provider: ProviderServices) -> Resolver:
    """Build the resolver for a mode.

    An unspecified mode tries the SSM parameter first and falls back to
    searching EC2 images.
    """
    if mode is AMIMode.AUTO:
        return AutoResolver(provider.ec2())
    if mode is AMIMode.AUTO_SSM:
        return SSMResolver(provider.ssm())
    return MultiResolver(SSMResolver(provider.ssm()), AutoResolver(provider.ec2()))


def resolve_ami(provider: ProviderServices, version: str, node_group: NodeGroup) -> str:
    """Ensure a node group has an image, resolving it from its ``ami`` mode.

    On success the id is written to ``node_group.ami``.

    Args:
        provider: Provider whose EC2 and SSM clients are used
        version: Kubernetes version of the cluster
        node_group: Node group to resolve the image for

    Returns:
        Resolved image id

    Raises:
        ConfigurationError: If ``node_group.ami`` is not a resolution mode
        ResolutionFailure: If no image could be found
    """
    mode = AMIMode.parse(node_group.ami)
    resolver = new_resolver(mode, provider)

    region = provider.region
    instance_type = select_instance_type(node_group)

    try:
        image_id = resolver.resolve(region, version, instance_type, node_group.ami_family)
    except ResolutionFailure:
        raise
    except EksbootError as e:
        raise ResolutionFailure(region, version, instance_type, node_group.ami_family) from e

    if not image_id:
        raise ResolutionFailure(region, version, instance_type, node_group.ami_family)

    logger.info(
        "ami_resolved",
        node_group=node_group.name,
        ami=image_id,
        mode=mode.value or "unspecified",
        instance_type=instance_type,
        ami_family=node_group.ami_family,
    )
    node_group.ami = image_id
    return image_id
