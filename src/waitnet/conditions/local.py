# conditions/local.py
from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Any, List, Mapping, Union

from pydantic import field_validator

from .base import PredicateParams, Probe, Target, TargetCondition, non_empty_target, parse_params


class LocalFileParams(PredicateParams):
    path: Union[str, List[str]]

    path_not_empty = field_validator("path")(non_empty_target)


class LocalFileCondition(TargetCondition):
    """
    Holds when every path exists and satisfies the modified-since predicate.

    A path that cannot be stat'ed (absent, permission denied, broken link)
    is simply not satisfied yet.
    """

    kind = "local_file"

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> LocalFileCondition:
        p = parse_params(LocalFileParams, params, cls.kind)
        return cls(Target.of(p.path), p.predicate())

    def probe(self, target: str) -> Probe:
        try:
            st = os.stat(target)
        except OSError as e:
            return Probe.miss(target, e)

        mtime = datetime.fromtimestamp(st.st_mtime, tz=timezone.utc)
        if self.predicate.matches(mtime):
            return Probe.hit()
        return Probe.miss(target)
