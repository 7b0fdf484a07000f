# conditions/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Generic, Iterator, Literal, Mapping, Optional, Protocol, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from ..errors import ConfigurationError, TransientError

T = TypeVar("T")
P = TypeVar("P", bound=BaseModel)


# ---------------------------------------------------------------------
# Backend contract
# ---------------------------------------------------------------------

class ConditionBackend(Protocol):
    """Anything a Waiter can poll."""

    def check(self) -> bool:
        """Return True when the condition holds right now. Must not raise for missing targets."""
        ...

    def describe(self) -> str:
        ...


@dataclass(frozen=True)
class Probe:
    """Outcome of checking a single target."""
    ok: bool
    error: Optional[TransientError] = None

    @classmethod
    def hit(cls) -> Probe:
        return cls(ok=True)

    @classmethod
    def miss(cls, target: str, cause: BaseException | None = None) -> Probe:
        if cause is None:
            return cls(ok=False)
        return cls(ok=False, error=TransientError(target, cause))


# ---------------------------------------------------------------------
# Targets: one identifier or many, always AND-reduced
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class Target(Generic[T]):
    kind: Literal["single", "many"]
    items: tuple[T, ...]

    @classmethod
    def single(cls, value: T) -> Target[T]:
        return cls(kind="single", items=(value,))

    @classmethod
    def many(cls, values) -> Target[T]:
        items = tuple(values)
        if not items:
            raise ConfigurationError("target list must not be empty")
        return cls(kind="many", items=items)

    @classmethod
    def of(cls, value: Union[T, list[T], tuple[T, ...]]) -> Target[T]:
        if isinstance(value, (list, tuple)):
            return cls.many(value)
        return cls.single(value)

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __str__(self) -> str:
        if self.kind == "single":
            return str(self.items[0])
        return "[" + ", ".join(str(i) for i in self.items) + "]"


# ---------------------------------------------------------------------
# Modified-since predicate
# ---------------------------------------------------------------------

def as_utc(value: datetime) -> datetime:
    # naive datetimes are taken as local time
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class ModifiedSince:
    if_modified_since: Optional[datetime] = None
    if_unmodified_since: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.if_modified_since is not None and self.if_unmodified_since is not None:
            raise ConfigurationError("if_modified_since and if_unmodified_since are mutually exclusive")

    def matches(self, last_modified: datetime) -> bool:
        last_modified = as_utc(last_modified)
        if self.if_modified_since is not None:
            return last_modified > as_utc(self.if_modified_since)
        if self.if_unmodified_since is not None:
            return last_modified <= as_utc(self.if_unmodified_since)
        return True


# ---------------------------------------------------------------------
# Parameter models
# ---------------------------------------------------------------------

class ConditionParams(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class PredicateParams(ConditionParams):
    if_modified_since: Optional[datetime] = None
    if_unmodified_since: Optional[datetime] = None

    @model_validator(mode="after")
    def check_exclusive(self):
        if self.if_modified_since is not None and self.if_unmodified_since is not None:
            raise ValueError("if_modified_since and if_unmodified_since are mutually exclusive")
        return self

    def predicate(self) -> ModifiedSince:
        return ModifiedSince(
            if_modified_since=self.if_modified_since,
            if_unmodified_since=self.if_unmodified_since,
        )


def non_empty_target(value):
    if isinstance(value, (list, tuple)) and not value:
        raise ValueError("must not be an empty list")
    return value


def parse_params(model: Type[P], params: Mapping[str, Any], kind: str) -> P:
    """Validate a keyword map against a parameter model, raising ConfigurationError."""
    try:
        return model.model_validate(dict(params))
    except ValidationError as e:
        problems = []
        for err in e.errors():
            loc = ".".join(str(p) for p in err["loc"]) or "<params>"
            problems.append(f"{loc}: {err['msg']}")
        raise ConfigurationError(f"invalid {kind} parameters: " + "; ".join(problems)) from e


# ---------------------------------------------------------------------
# Shared base for target-based conditions
# ---------------------------------------------------------------------

class TargetCondition(ABC):
    """A condition that holds when every target individually holds."""

    kind = "target"

    def __init__(self, targets: Target[str], predicate: ModifiedSince | None = None):
        self.targets = targets
        self.predicate = predicate or ModifiedSince()

    def check(self) -> bool:
        return all(self.probe(t).ok for t in self.targets)

    @abstractmethod
    def probe(self, target: str) -> Probe:
        raise NotImplementedError

    def describe(self) -> str:
        return f"{self.kind}({self.targets})"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.targets!s})"


__all__ = [
    "ConditionBackend",
    "ConditionParams",
    "ModifiedSince",
    "PredicateParams",
    "Probe",
    "Target",
    "TargetCondition",
    "as_utc",
    "non_empty_target",
    "parse_params",
]
