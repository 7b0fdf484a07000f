from __future__ import annotations

from typing import Any, Callable, Dict, Mapping

from ..errors import ConfigurationError
from .base import ConditionBackend, ModifiedSince, Probe, Target, TargetCondition
from .local import LocalFileCondition
from .remote import GCSObjectCondition, ObjectURL, RemoteObjectCondition, S3ObjectCondition, remote_object_condition
from .sleep import SleepCondition

CONDITION_KINDS: Dict[str, Callable[[Mapping[str, Any]], ConditionBackend]] = {
    "sleep": SleepCondition.from_params,
    "local_file": LocalFileCondition.from_params,
    "s3": S3ObjectCondition.from_params,
    "gcs": GCSObjectCondition.from_params,
    "remote_object": remote_object_condition,
}


def build_condition(kind: str, params: Mapping[str, Any]) -> ConditionBackend:
    """Construct the condition backend registered under `kind`."""
    factory = CONDITION_KINDS.get(kind)
    if factory is None:
        raise ConfigurationError(
            f"unknown condition kind {kind!r}; expected one of {sorted(CONDITION_KINDS)}"
        )
    return factory(params)


__all__ = [
    "CONDITION_KINDS",
    "ConditionBackend",
    "GCSObjectCondition",
    "LocalFileCondition",
    "ModifiedSince",
    "ObjectURL",
    "Probe",
    "RemoteObjectCondition",
    "S3ObjectCondition",
    "SleepCondition",
    "Target",
    "TargetCondition",
    "build_condition",
]
