"""Bearer tokens for EKS, built from presigned STS GetCallerIdentity URLs."""

import base64
import functools
from datetime import datetime, timedelta, timezone

import boto3
from botocore.loaders import create_loader
from botocore.model import ServiceId
from botocore.regions import EndpointResolver
from botocore.signers import RequestSigner

from eksboot.core.exceptions import AWSError
from eksboot.interfaces.cloud_types import ClusterToken
from eksboot.utils.logging import get_logger

logger = get_logger(__name__)

TOKEN_PREFIX = "k8s-aws-v1."
CLUSTER_ID_HEADER = "x-k8s-aws-id"
# The URL is valid for 60s; EKS accepts tokens up to 15 minutes after signing
PRESIGN_EXPIRY_SECONDS = 60
TOKEN_EXPIRY = timedelta(minutes=14)


@functools.lru_cache(maxsize=None)
def _endpoint_resolver() -> EndpointResolver:
    return EndpointResolver(create_loader().load_data("endpoints"))


def sts_hostname(region: str) -> str:
    """Return the regional STS hostname, including the partition's DNS suffix.

    Raises:
        AWSError: If botocore knows no partition for the region
    """
    endpoint = _endpoint_resolver().construct_endpoint("sts", region)
    if not endpoint:
        raise AWSError(f"No STS endpoint known for region {region}")
    return str(endpoint["hostname"])


class STSPresigner:
    """Signs STS GetCallerIdentity requests on behalf of a session."""

    def __init__(self, session: boto3.Session, region: str):
        """Initialize presigner.

        Args:
            session: Authenticated boto3 session
            region: Region whose STS endpoint is signed for
        """
        self.session = session
        self.region = region

    def get_token(self, cluster_name: str) -> ClusterToken:
        """Generate a bearer token for a cluster, as `aws eks get-token` does.

        Args:
            cluster_name: Name of the EKS cluster

        Returns:
            ClusterToken with the token and its expiration

        Raises:
            AWSError: If credentials are missing or signing fails
        """
        try:
            credentials = self.session.get_credentials()
            if credentials is None:
                raise AWSError(f"Failed to get credentials for cluster {cluster_name}")

            signer = RequestSigner(
                ServiceId("sts"),
                self.region,
                "sts",
                "v4",
                credentials.get_frozen_credentials(),
                self.session.events,
            )

            request_params = {
                "method": "GET",
                "url": f"https://{sts_hostname(self.region)}/?Action=GetCallerIdentity&Version=2011-06-15",
                "body": {},
                "headers": {CLUSTER_ID_HEADER: cluster_name},
                "context": {},
            }

            presigned_url = signer.generate_presigned_url(
                request_params,
                region_name=self.region,
                expires_in=PRESIGN_EXPIRY_SECONDS,
                operation_name="",
            )
        except AWSError:
            raise
        except Exception as e:
            logger.error("cluster_token_generation_failed", cluster_name=cluster_name, error=str(e))
            raise AWSError(f"Failed to generate token for {cluster_name}: {e}") from e

        token_b64 = base64.urlsafe_b64encode(presigned_url.encode("utf-8")).decode("utf-8").rstrip("=")

        logger.debug("cluster_token_generated", cluster_name=cluster_name)
        return ClusterToken(
            token=f"{TOKEN_PREFIX}{token_b64}",
            expiration=datetime.now(timezone.utc) + TOKEN_EXPIRY,
        )
