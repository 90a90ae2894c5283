"""Instance type classification used to pick image variants."""

import re

from eksboot.core.models import NodeGroup

_GPU_FAMILY_PREFIXES = ("p2", "p3", "p4d", "p4de", "p5", "g3", "g4dn", "g5", "g6", "gr6")
_NEURON_FAMILY_PREFIXES = ("inf1", "inf2", "trn1", "trn2")
_FAMILY_RE = re.compile(r"^([a-z]+)(\d+)([a-z]*)$")


def instance_family(instance_type: str) -> str:
    return instance_type.split(".", 1)[0].lower()


def is_gpu_instance_type(instance_type: str) -> bool:
    """NVIDIA GPU instance types."""
    return instance_family(instance_type).startswith(_GPU_FAMILY_PREFIXES)


def is_neuron_instance_type(instance_type: str) -> bool:
    """Inferentia and Trainium instance types."""
    return instance_family(instance_type).startswith(_NEURON_FAMILY_PREFIXES)


def is_arm_instance_type(instance_type: str) -> bool:
    """Graviton and A1 instance types."""
    family = instance_family(instance_type)
    if family == "a1":
        return True
    match = _FAMILY_RE.match(family)
    return bool(match and "g" in match.group(3))


def architecture(instance_type: str) -> str:
    """EC2 architecture name for an instance type (x86_64 or arm64)."""
    return "arm64" if is_arm_instance_type(instance_type) else "x86_64"


def select_instance_type(node_group: NodeGroup) -> str:
    """Pick the instance type an image has to support.

    With several instance types, a GPU type wins so that a GPU-capable image is
    chosen; otherwise the first one is used.

    Args:
        node_group: Node group to inspect

    Returns:
        Instance type name
    """
    candidates: list[str] = []
    if node_group.instances_distribution is not None:
        candidates = node_group.instances_distribution.instance_types
    if not candidates:
        candidates = node_group.instance_types

    if candidates:
        return next((t for t in candidates if is_gpu_instance_type(t)), candidates[0])
    return node_group.instance_type
