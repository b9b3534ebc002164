"""Config domains that can be reloaded without restarting Home Assistant."""

from __future__ import annotations

from enum import Enum


class ReloadDomain(str, Enum):
    """Reloadable config domain, valued by its reload service path."""

    AUTOMATION = "automation/reload"
    SCRIPT = "script/reload"
    SCENE = "scene/reload"
    GROUP = "group/reload"
    INPUT_BOOLEAN = "input_boolean/reload"
    INPUT_NUMBER = "input_number/reload"
    INPUT_SELECT = "input_select/reload"
    INPUT_DATETIME = "input_datetime/reload"
    INPUT_TEXT = "input_text/reload"
    INPUT_BUTTON = "input_button/reload"
    TIMER = "timer/reload"
    COUNTER = "counter/reload"
    SCHEDULE = "schedule/reload"
    ZONE = "zone/reload"
    TEMPLATE = "template/reload"
    PERSON = "person/reload"
    # Core config has its own service instead of core/reload
    CORE = "homeassistant/reload_core_config"

    @property
    def key(self) -> str:
        """Return the domain keyword callers use, e.g. 'input_boolean'."""
        return self.name.lower()


RELOAD_DOMAINS: tuple[str, ...] = tuple(member.key for member in ReloadDomain)


def reload_path(domain: str) -> str | None:
    """Return the service path that reloads ``domain``, or None if unknown."""
    member = ReloadDomain.__members__.get(domain.upper())
    if member is None or member.key != domain:
        return None
    return member.value
