"""Availability zone selection and local zone validation."""

from collections.abc import Callable, Sequence
from functools import partial
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from eksboot.core.exceptions import AWSError, TooFewAvailabilityZonesError, ValidationError
from eksboot.core.models import (
    MIN_REQUIRED_AVAILABILITY_ZONES,
    RECOMMENDED_AVAILABILITY_ZONES,
    ClusterConfig,
)
from eksboot.utils.logging import get_logger

logger = get_logger(__name__)

LOCAL_ZONE_TYPE = "local-zone"

# Zone IDs without EKS control plane capacity
ZONE_IDS_TO_AVOID = {
    "cn-north-1": ("cnn1-az4",),
    "us-east-1": ("use1-az3",),
    "us-west-1": ("usw1-az2",),
    "ca-central-1": ("cac1-az3",),
}

Discovery = Callable[[], list[str]]


def _describe_zones(ec2_client: Any, **kwargs: Any) -> list[dict[str, Any]]:
    try:
        response = ec2_client.describe_availability_zones(**kwargs)
    except ClientError as e:
        error_code = e.response["Error"]["Code"]
        logger.error("describe_availability_zones_failed", error_code=error_code)
        raise AWSError(f"error describing availability zones: {error_code}") from e
    except BotoCoreError as e:
        raise AWSError(f"error describing availability zones: {e}") from e

    return list(response.get("AvailabilityZones", []))


def get_availability_zones(ec2_client: Any, region: str) -> list[str]:
    """Discover the zones a new cluster in a region should span.

    Picks available standard zones, skipping zones without EKS capacity, in
    name order up to the recommended count.

    Args:
        ec2_client: EC2 client
        region: AWS region

    Returns:
        Zone names

    Raises:
        AWSError: If zones cannot be described
    """
    zones = _describe_zones(
        ec2_client,
        Filters=[
            {"Name": "region-name", "Values": [region]},
            {"Name": "state", "Values": ["available"]},
            {"Name": "zone-type", "Values": ["availability-zone"]},
        ],
    )

    avoid = ZONE_IDS_TO_AVOID.get(region, ())
    names = sorted(z["ZoneName"] for z in zones if z.get("ZoneId") not in avoid)
    return names[:RECOMMENDED_AVAILABILITY_ZONES]


def _check_minimum(zones: Sequence[str]) -> None:
    if len(zones) < MIN_REQUIRED_AVAILABILITY_ZONES:
        raise TooFewAvailabilityZonesError(list(zones), MIN_REQUIRED_AVAILABILITY_ZONES)


def select_zones(given: Sequence[str], existing: Sequence[str], discover: Discovery) -> list[str]:
    """Decide the availability zones of a cluster.

    Zones given explicitly win over zones already in the cluster spec; both
    must meet the minimum count. Only when neither is set are zones discovered,
    and the discovered list is taken as is.

    Args:
        given: Zones passed by the caller
        existing: Zones already set on the cluster spec
        discover: Returns zones from the provider

    Returns:
        Zone names

    Raises:
        TooFewAvailabilityZonesError: If given or existing zones are too few
    """
    if given:
        _check_minimum(given)
        return list(given)

    if existing:
        _check_minimum(existing)
        return list(existing)

    logger.debug("determining_availability_zones")
    return discover()


def set_availability_zones(
    spec: ClusterConfig,
    given: Sequence[str],
    ec2_client: Any,
    region: str,
    discover: Discovery | None = None,
) -> list[str]:
    """Set the availability zones of a cluster spec, choosing them if needed.

    Args:
        spec: Cluster spec to update
        given: Zones passed by the caller
        ec2_client: EC2 client used for discovery
        region: AWS region
        discover: Discovery override, defaults to get_availability_zones

    Returns:
        Zones set on the cluster config

    Raises:
        TooFewAvailabilityZonesError: If given or existing zones are too few
        AWSError: If discovery fails
    """
    if discover is None:
        discover = partial(get_availability_zones, ec2_client, region)

    discovered = not given and not spec.availability_zones
    zones = select_zones(given, spec.availability_zones, discover)

    if discovered:
        logger.info("availability_zones_set", zones=zones, region=region)
    spec.availability_zones = zones
    return zones


def validate_local_zones(ec2_client: Any, local_zones: Sequence[str], region: str) -> None:
    """Check that every named zone is an available local zone in the region.

    Args:
        ec2_client: EC2 client
        local_zones: Local zone names
        region: AWS region

    Raises:
        ValidationError: If a zone is missing, unavailable or not a local zone
        AWSError: If zones cannot be described
    """
    # An empty ZoneNames would describe every zone in the region
    if not local_zones:
        return

    zones = _describe_zones(
        ec2_client,
        ZoneNames=list(local_zones),
        Filters=[
            {"Name": "region-name", "Values": [region]},
            {"Name": "state", "Values": ["available"]},
        ],
    )

    if len(zones) != len(local_zones):
        raise ValidationError(
            f"failed to find all local zones; expected to find {len(local_zones)} "
            f"available local zones but found only {len(zones)}"
        )

    for zone in zones:
        if zone.get("ZoneType") != LOCAL_ZONE_TYPE:
            raise ValidationError(f"non local-zone {zone.get('ZoneName')!r} specified in localZones")

    logger.debug("local_zones_validated", local_zones=list(local_zones), region=region)
