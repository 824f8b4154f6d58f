"""Epoch records, genesis state, hooks and store keys of the epochs module."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

MODULE_NAME = "epochs"
STORE_KEY = MODULE_NAME
ROUTER_KEY = MODULE_NAME
QUERIER_ROUTE = MODULE_NAME

KEY_PREFIX_EPOCH = bytes([1])

EVENT_TYPE_EPOCH_END = "epoch_end"
EVENT_TYPE_EPOCH_START = "epoch_start"
ATTRIBUTE_EPOCH_NUMBER = "epoch_number"
ATTRIBUTE_EPOCH_START_TIME = "start_time"

# The unset instant: January 1 of year 1, UTC.
ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_RFC3339 = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[Tt ](\d{2}):(\d{2}):(\d{2})"
    r"(?:\.(\d+))?(Z|z|[+-]\d{2}:\d{2})$"
)
_DURATION = re.compile(r"^(-?)(\d+)(?:\.(\d+))?s$")


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _format_time(moment: datetime) -> str:
    moment = _as_utc(moment)
    text = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    return text + "Z"


def _parse_time(value: Any) -> datetime:
    if isinstance(value, datetime):
        return _as_utc(value)
    match = _RFC3339.match(str(value))
    if match is None:
        raise ValueError(f"invalid timestamp: {value!r}")
    year, month, day, hour, minute, second, frac, zone = match.groups()
    micro = int(frac[:6].ljust(6, "0")) if frac else 0
    if zone in ("Z", "z"):
        tz = timezone.utc
    else:
        sign = -1 if zone[0] == "-" else 1
        tz = timezone(sign * timedelta(hours=int(zone[1:3]), minutes=int(zone[4:6])))
    moment = datetime(
        int(year), int(month), int(day), int(hour), int(minute), int(second), micro, tzinfo=tz
    )
    return _as_utc(moment)


def _format_duration(duration: timedelta) -> str:
    total = duration // timedelta(microseconds=1)
    sign = "-" if total < 0 else ""
    seconds, micros = divmod(abs(total), 1_000_000)
    text = f"{sign}{seconds}"
    if micros:
        text += "." + f"{micros:06d}".rstrip("0")
    return text + "s"


def _parse_duration(value: Any) -> timedelta:
    if isinstance(value, timedelta):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return timedelta(seconds=value)
    match = _DURATION.match(str(value))
    if match is None:
        raise ValueError(f"invalid duration: {value!r}")
    sign, seconds, frac = match.groups()
    micros = int(frac[:6].ljust(6, "0")) if frac else 0
    duration = timedelta(seconds=int(seconds), microseconds=micros)
    return -duration if sign else duration


@dataclass(frozen=True)
class EpochInfo:
    """State of one named epoch."""

    identifier: str
    start_time: datetime = ZERO_TIME
    duration: timedelta = timedelta(0)
    current_epoch: int = 0
    current_epoch_start_height: int = 0
    current_epoch_start_time: datetime = ZERO_TIME
    epoch_counting_started: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "start_time", _as_utc(self.start_time))
        object.__setattr__(self, "current_epoch_start_time", _as_utc(self.current_epoch_start_time))

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form of the record, with 64-bit integers as strings."""
        return {
            "identifier": self.identifier,
            "start_time": _format_time(self.start_time),
            "duration": _format_duration(self.duration),
            "current_epoch": str(self.current_epoch),
            "current_epoch_start_height": str(self.current_epoch_start_height),
            "current_epoch_start_time": _format_time(self.current_epoch_start_time),
            "epoch_counting_started": self.epoch_counting_started,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EpochInfo:
        """Build a record from its JSON form; missing fields take their zero value."""
        return cls(
            identifier=str(data.get("identifier", "")),
            start_time=_parse_time(data.get("start_time", ZERO_TIME)),
            duration=_parse_duration(data.get("duration", "0s")),
            current_epoch=int(data.get("current_epoch", 0)),
            current_epoch_start_height=int(data.get("current_epoch_start_height", 0)),
            current_epoch_start_time=_parse_time(data.get("current_epoch_start_time", ZERO_TIME)),
            epoch_counting_started=bool(data.get("epoch_counting_started", False)),
        )


class GenesisValidationError(ValueError):
    """Raised when a genesis state is not valid."""


@dataclass
class GenesisState:
    """Genesis state of the epochs module."""

    epochs: list[EpochInfo] = field(default_factory=list)

    def validate(self) -> None:
        """Check identifiers are present and unique and durations non-zero."""
        seen: set[str] = set()
        for epoch in self.epochs:
            if epoch.identifier == "":
                raise GenesisValidationError("epoch identifier should NOT be empty")
            if epoch.identifier in seen:
                raise GenesisValidationError("epoch identifier should be unique")
            if epoch.duration == timedelta(0):
                raise GenesisValidationError("epoch duration should NOT be 0")
            seen.add(epoch.identifier)

    def to_dict(self) -> dict[str, Any]:
        return {"epochs": [epoch.to_dict() for epoch in self.epochs]}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GenesisState:
        return cls(epochs=[EpochInfo.from_dict(item) for item in data.get("epochs") or []])


def new_genesis_state(epochs: Iterable[EpochInfo]) -> GenesisState:
    return GenesisState(epochs=list(epochs))


def default_genesis() -> GenesisState:
    """Return the default genesis: a weekly and a daily epoch, not yet started."""
    return new_genesis_state(
        [
            EpochInfo(identifier="week", duration=timedelta(days=7)),
            EpochInfo(identifier="day", duration=timedelta(days=1)),
        ]
    )


class EpochHooks(ABC):
    """Callbacks run when epochs end and start."""

    @abstractmethod
    def after_epoch_end(self, ctx: Any, epoch_identifier: str, epoch_number: int) -> None:
        """Called on the first block whose time is past the epoch's end."""

    @abstractmethod
    def before_epoch_start(self, ctx: Any, epoch_identifier: str, epoch_number: int) -> None:
        """Called when a new epoch is about to start."""


class MultiEpochHooks(EpochHooks):
    """Several hooks run one after another, in the order given."""

    def __init__(self, *hooks: EpochHooks) -> None:
        self._hooks = tuple(hooks)

    def __iter__(self) -> Iterator[EpochHooks]:
        return iter(self._hooks)

    def __len__(self) -> int:
        return len(self._hooks)

    def after_epoch_end(self, ctx: Any, epoch_identifier: str, epoch_number: int) -> None:
        for hook in self._hooks:
            hook.after_epoch_end(ctx, epoch_identifier, epoch_number)

    def before_epoch_start(self, ctx: Any, epoch_identifier: str, epoch_number: int) -> None:
        for hook in self._hooks:
            hook.before_epoch_start(ctx, epoch_identifier, epoch_number)


def validate_epoch_identifier_interface(value: Any) -> None:
    """Check that a parameter value is a non-blank identifier string."""
    if not isinstance(value, str):
        raise TypeError(f"invalid parameter type: {type(value).__name__}")
    validate_epoch_identifier_string(value)


def validate_epoch_identifier_string(s: str) -> None:
    """Check that an identifier is not blank."""
    s = s.strip()
    if s == "":
        raise ValueError(f"blank epoch identifier: {s}")


def key_prefix(p: str) -> bytes:
    return p.encode()