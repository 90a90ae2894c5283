"""Custom exceptions for eksboot."""


class EksbootError(Exception):
    """Base exception for all eksboot errors."""


class ConfigurationError(EksbootError):
    """Malformed or unsupported input."""


class TooFewAvailabilityZonesError(ConfigurationError):
    """Fewer availability zones were supplied than a cluster requires."""

    def __init__(self, zones: list[str], minimum: int):
        self.zones = list(zones)
        self.minimum = minimum
        super().__init__(
            f"only {len(zones)} zones specified {zones}, "
            f"{minimum} are required (can be non-unique)"
        )


class AuthError(EksbootError):
    """Identity verification failed or returned an unusable response."""


class ResolutionFailure(EksbootError):
    """No AMI could be resolved for a node group."""

    def __init__(self, region: str, version: str, instance_type: str, ami_family: str):
        self.region = region
        self.version = version
        self.instance_type = instance_type
        self.ami_family = ami_family
        super().__init__(
            f"unable to determine AMI for region {region}, version {version}, "
            f"instance type {instance_type} and image family {ami_family}"
        )


class ValidationError(EksbootError):
    """Requested zones do not match live provider state."""


class CacheError(EksbootError):
    """Credential cache is unavailable or corrupt."""


class AWSError(EksbootError):
    """AWS operation failed."""


class KubernetesError(EksbootError):
    """Kubernetes client construction or call failed."""
