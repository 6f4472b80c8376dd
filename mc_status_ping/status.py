"""Typed status document returned by a Server List Ping.

The JSON layout is documented at
https://minecraft.wiki/w/Java_Edition_protocol/Server_List_Ping#Status_Response
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from .errors import JsonDeserializationFailed

KNOWN_KEYS = ("version", "description", "players", "mods", "favicon")


@dataclass
class Version:
    name: str
    protocol: int


@dataclass
class PlayerSample:
    name: str
    id: str


@dataclass
class Players:
    max: int
    online: int
    sample: list[PlayerSample] = field(default_factory=list)


@dataclass
class ModInfo:
    id: str
    name: str


@dataclass
class ServerStatus:
    """Server status as reported by the server itself.

    ``description`` is either a plain string or a chat component (any JSON
    value).  Keys this class does not model are kept in ``extra``.
    """

    version: Version
    description: Any
    players: Players
    mods: list[ModInfo] = field(default_factory=list)
    favicon: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def motd(self) -> str:
        """The description flattened to plain text (formatting dropped)."""
        return flatten_chat(self.description)


def flatten_chat(component: Any) -> str:
    """Concatenate the text of a chat component and all of its children.

    The component is walked with an explicit stack, not recursion.  Values
    of unexpected types (a non-list ``extra``, numbers, null) contribute
    nothing.
    """
    parts: list[str] = []
    stack = [component]
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            parts.append(item)
        elif isinstance(item, list):
            stack.extend(reversed(item))
        elif isinstance(item, dict):
            extra = item.get("extra")
            if isinstance(extra, list):
                stack.extend(reversed(extra))
            # Pushed last so the parent's own text comes before its children.
            stack.append(item.get("text", ""))
    return "".join(parts)


# ---------------------------------------------------------------------------
# Deserialization
# ---------------------------------------------------------------------------


def _require(data: dict[str, Any], key: str, expected_type: type, where: str) -> Any:
    """Fetch a mandatory *key* from *data* and check its JSON type."""
    if key not in data:
        raise JsonDeserializationFailed(f"Missing field '{where}{key}'")
    value = data[key]
    # bool is a subclass of int; JSON true is not a number.
    if not isinstance(value, expected_type) or (
        expected_type is int and isinstance(value, bool)
    ):
        raise JsonDeserializationFailed(
            f"Field '{where}{key}': expected {expected_type.__name__}, got {type(value).__name__}"
        )
    return value


def _mapping(value: Any, where: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise JsonDeserializationFailed(f"Field '{where}' must be an object")
    return value


def _load_players(raw: Any) -> Players:
    raw = _mapping(raw, "players")
    sample_raw = raw.get("sample") or []
    if not isinstance(sample_raw, list):
        raise JsonDeserializationFailed("Field 'players.sample' must be an array")
    sample = []
    for entry in sample_raw:
        entry = _mapping(entry, "players.sample[]")
        sample.append(
            PlayerSample(
                name=_require(entry, "name", str, "players.sample[]."),
                id=_require(entry, "id", str, "players.sample[]."),
            )
        )
    return Players(
        max=_require(raw, "max", int, "players."),
        online=_require(raw, "online", int, "players."),
        sample=sample,
    )


def _load_mods(data: dict[str, Any]) -> list[ModInfo]:
    if "mods" in data:
        raw_mods = data["mods"] or []
        if not isinstance(raw_mods, list):
            raise JsonDeserializationFailed("Field 'mods' must be an array")
        return [
            ModInfo(
                id=_require(_mapping(m, "mods[]"), "id", str, "mods[]."),
                name=_require(m, "name", str, "mods[]."),
            )
            for m in raw_mods
        ]
    # Legacy Forge servers report {"modinfo": {"modList": [{"modid", "version"}]}}.
    modinfo = data.get("modinfo")
    if isinstance(modinfo, dict) and isinstance(modinfo.get("modList"), list):
        return [
            ModInfo(id=str(m.get("modid", "")), name=str(m.get("version", "")))
            for m in modinfo["modList"]
            if isinstance(m, dict)
        ]
    return []


def parse_status(text: str) -> ServerStatus:
    """Deserialize the JSON status document into a :class:`ServerStatus`.

    Raises
    ------
    JsonDeserializationFailed
        If *text* is not valid JSON or lacks a required field.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise JsonDeserializationFailed(f"Invalid status JSON: {exc}") from exc
    except RecursionError as exc:
        raise JsonDeserializationFailed("Status JSON is nested too deeply") from exc
    data = _mapping(data, "<root>")

    version_raw = _require(data, "version", dict, "")
    version = Version(
        name=_require(version_raw, "name", str, "version."),
        protocol=_require(version_raw, "protocol", int, "version."),
    )

    if "description" not in data:
        raise JsonDeserializationFailed("Missing field 'description'")

    if "players" not in data:
        raise JsonDeserializationFailed("Missing field 'players'")

    favicon = data.get("favicon")
    if favicon is not None and not isinstance(favicon, str):
        raise JsonDeserializationFailed("Field 'favicon' must be a string")

    return ServerStatus(
        version=version,
        description=data["description"],
        players=_load_players(data["players"]),
        mods=_load_mods(data),
        favicon=favicon,
        extra={k: v for k, v in data.items() if k not in KNOWN_KEYS},
    )
