"""Parse sway ``get_outputs`` replies into ``OutputRecord``s."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence

from ...errors import InventoryError
from ..backend import OutputRecord
from ..types import Mode


def parse_sway_mode(raw: Optional[Mapping[str, Any]]) -> Mode:
    """Sway reports refresh in mHz; ``Mode.refresh`` is in Hz."""
    if not raw:
        return Mode(0, 0)
    try:
        refresh_mhz = raw.get("refresh") or 0
        return Mode(
            width=int(raw["width"]),
            height=int(raw["height"]),
            refresh=float(refresh_mhz) / 1000.0,
            picture_aspect_ratio=str(raw.get("picture_aspect_ratio") or ""),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise InventoryError(f"invalid mode in sway output: {raw!r}") from exc


def parse_sway_output(raw: Mapping[str, Any]) -> OutputRecord:
    if not isinstance(raw, Mapping):
        raise InventoryError(f"sway output entry is not an object: {raw!r}")
    name = raw.get("name")
    if not isinstance(name, str) or not name:
        raise InventoryError(f"sway output entry has no name: {raw!r}")

    try:
        return OutputRecord(
            name=name,
            active=bool(raw.get("active", False)),
            current_mode=parse_sway_mode(raw.get("current_mode")),
            make=str(raw.get("make") or ""),
            model=str(raw.get("model") or ""),
            serial=str(raw.get("serial") or ""),
            modes=tuple(parse_sway_mode(mode) for mode in raw.get("modes") or ()),
            power=bool(raw.get("power", raw.get("dpms", False))),
            scale=float(raw.get("scale") or 1.0),
            transform=str(raw.get("transform") or "normal"),
        )
    except (TypeError, ValueError) as exc:
        raise InventoryError(f"invalid sway output {name!r}: {exc}") from exc


def parse_sway_outputs(raw_outputs: Sequence[Mapping[str, Any]]) -> List[OutputRecord]:
    return [parse_sway_output(raw) for raw in raw_outputs]


__all__ = ["parse_sway_mode", "parse_sway_output", "parse_sway_outputs"]
