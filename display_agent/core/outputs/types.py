"""
Output data model - modes, scenarios, info and (sparse) state documents.

``State`` doubles as the desired-state document accepted on the ``/set``
topic: every field is optional and ``None`` means "leave unchanged", which
keeps "unset" apart from an explicit ``False`` or ``0``.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Mapping, Optional, Tuple, Union

from ..errors import PayloadError


class ScenarioName(str, Enum):
    """Content variants an output can show."""
    BLANK = "blank"
    URL = "url"
    VIDEO = "video"


TRANSFORMS = (
    "normal",
    "90",
    "180",
    "270",
    "flipped",
    "flipped-90",
    "flipped-180",
    "flipped-270",
)

# Order in which set_state applies fields; later fields are skipped when an
# earlier one fails.
STATE_FIELD_ORDER = ("enabled", "mode", "power", "scale", "transform", "scenario")


def format_number(value: float) -> str:
    """``60.0`` renders as ``60``; fractional digits such as ``1.3333333`` are kept."""
    return f"{value:.15g}"


def _require_bool(key: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise PayloadError(f"{key} must be a boolean, got {value!r}")
    return value


def _require_number(key: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PayloadError(f"{key} must be a number, got {value!r}")
    return float(value)


def _require_str(key: str, value: Any) -> str:
    if not isinstance(value, str):
        raise PayloadError(f"{key} must be a string, got {value!r}")
    return value


@dataclass(frozen=True)
class Mode:
    """A display mode; ``refresh`` is in Hz and 0 means unspecified."""
    width: int
    height: int
    refresh: float = 0.0
    picture_aspect_ratio: str = ""

    def __str__(self) -> str:
        if self.refresh:
            return f"{self.width}x{self.height}@{format_number(self.refresh)}"
        return f"{self.width}x{self.height}"

    @classmethod
    def parse(cls, text: str) -> "Mode":
        """Parse ``WxH`` or ``WxH@R`` (a trailing ``Hz`` is accepted)."""
        raw = text.strip()
        size, sep, refresh_text = raw.partition("@")
        width_text, x, height_text = size.partition("x")
        if not x:
            raise PayloadError(f"invalid mode {text!r}, expected WIDTHxHEIGHT[@REFRESH]")
        try:
            width = int(width_text)
            height = int(height_text)
        except ValueError as exc:
            raise PayloadError(f"invalid mode size in {text!r}") from exc

        refresh = 0.0
        if sep:
            refresh_text = refresh_text.strip()
            if refresh_text.lower().endswith("hz"):
                refresh_text = refresh_text[:-2]
            try:
                refresh = float(refresh_text)
            except ValueError as exc:
                raise PayloadError(f"invalid refresh rate in {text!r}") from exc

        if width <= 0 or height <= 0 or refresh < 0:
            raise PayloadError(f"invalid mode {text!r}")
        return cls(width=width, height=height, refresh=refresh)

    @classmethod
    def from_value(cls, value: Union[str, Mapping[str, Any]]) -> "Mode":
        """Build a mode from its JSON object form or its textual form."""
        if isinstance(value, str):
            return cls.parse(value)
        if not isinstance(value, Mapping):
            raise PayloadError(f"mode must be an object or a string, got {value!r}")
        try:
            width = value["width"]
            height = value["height"]
        except KeyError as exc:
            raise PayloadError(f"mode is missing {exc.args[0]!r}") from exc
        if isinstance(width, bool) or isinstance(height, bool) or not isinstance(width, int) or not isinstance(height, int):
            raise PayloadError("mode width and height must be integers")
        refresh = value.get("refresh") or 0
        aspect = value.get("picture_aspect_ratio") or ""
        return cls(
            width=width,
            height=height,
            refresh=_require_number("mode.refresh", refresh),
            picture_aspect_ratio=_require_str("mode.picture_aspect_ratio", aspect),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "refresh": self.refresh,
            "picture_aspect_ratio": self.picture_aspect_ratio,
        }


@dataclass(frozen=True)
class Scenario:
    """Content assigned to an output: a name plus its ordered arguments."""
    name: str
    args: Tuple[str, ...] = ()

    @classmethod
    def blank(cls) -> "Scenario":
        return cls(ScenarioName.BLANK.value)

    @classmethod
    def from_value(cls, value: Mapping[str, Any]) -> "Scenario":
        if not isinstance(value, Mapping):
            raise PayloadError(f"scenario must be an object, got {value!r}")
        name = _require_str("scenario.name", value.get("name"))
        args = value.get("args") or []
        if not isinstance(args, list) or not all(isinstance(arg, str) for arg in args):
            raise PayloadError("scenario.args must be a list of strings")
        return cls(name=name, args=tuple(args))

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "args": list(self.args)}


@dataclass(frozen=True)
class Info:
    """Quasi-static capability snapshot of an output."""
    name: str
    make: str = ""
    model: str = ""
    serial: str = ""
    modes: Tuple[Mode, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "make": self.make,
            "model": self.model,
            "modes": [mode.to_dict() for mode in self.modes],
            "name": self.name,
            "serial": self.serial,
        }


@dataclass(frozen=True)
class State:
    """Mutable output state, fully or sparsely populated."""
    enabled: Optional[bool] = None
    mode: Optional[Mode] = None
    power: Optional[bool] = None
    scale: Optional[float] = None
    transform: Optional[str] = None
    scenario: Optional[Scenario] = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def present_fields(self) -> Tuple[str, ...]:
        return tuple(name for name in STATE_FIELD_ORDER if getattr(self, name) is not None)

    def without(self, *names: str) -> "State":
        return replace(self, **{name: None for name in names})

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "State":
        """Parse a (sparse) state document; absent or null keys stay unset."""
        if not isinstance(data, Mapping):
            raise PayloadError(f"state must be a JSON object, got {type(data).__name__}")

        values: dict[str, Any] = {}
        if data.get("enabled") is not None:
            values["enabled"] = _require_bool("enabled", data["enabled"])
        if data.get("mode") is not None:
            values["mode"] = Mode.from_value(data["mode"])
        if data.get("power") is not None:
            values["power"] = _require_bool("power", data["power"])
        if data.get("scale") is not None:
            scale = _require_number("scale", data["scale"])
            if scale <= 0:
                raise PayloadError(f"scale must be positive, got {scale!r}")
            values["scale"] = scale
        if data.get("transform") is not None:
            transform = _require_str("transform", data["transform"])
            if transform not in TRANSFORMS:
                raise PayloadError(f"transform must be one of {', '.join(TRANSFORMS)}")
            values["transform"] = transform
        if data.get("scenario") is not None:
            values["scenario"] = Scenario.from_value(data["scenario"])
        return cls(**values)

    @classmethod
    def from_json(cls, payload: Union[bytes, str]) -> "State":
        try:
            data = json.loads(payload)
        except (TypeError, ValueError) as exc:
            raise PayloadError(f"state payload is not valid JSON: {exc}") from exc
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "mode": self.mode.to_dict() if self.mode is not None else None,
            "power": self.power,
            "scale": self.scale,
            "transform": self.transform,
            "scenario": self.scenario.to_dict() if self.scenario is not None else None,
        }


@dataclass(frozen=True)
class OutputSnapshot:
    """Immutable copy of an output handed to registry observers."""
    name: str
    info: Info
    state: State


class Output(ABC):
    """One physical output as seen by a window-manager backend."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def get_info(self) -> Info:
        """Current capability info; no external call."""

    @abstractmethod
    def get_state(self) -> State:
        """Current state; no external call."""

    @abstractmethod
    async def set_state(self, desired: State) -> State:
        """Apply a sparse desired state field by field and return the new state.

        Raises ConfigurationError naming the first field that failed;
        fields applied before it are not rolled back.
        """

    def snapshot(self) -> OutputSnapshot:
        return OutputSnapshot(name=self.name, info=self.get_info(), state=self.get_state())


__all__ = [
    "Info",
    "Mode",
    "Output",
    "OutputSnapshot",
    "STATE_FIELD_ORDER",
    "Scenario",
    "ScenarioName",
    "State",
    "TRANSFORMS",
]
