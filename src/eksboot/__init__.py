"""eksboot.

Resolve sessions, machine images and availability zones before bootstrapping an EKS cluster.
"""

__version__ = "0.1.0"
__author__ = "Platform Engineering Team"
__license__ = "Apache-2.0"
