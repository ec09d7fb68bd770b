"""
rsyslog selector analysis — where does each facility.level go?

A selector names facilities and a level; it matches that level and
everything more severe. So ``news.err`` covers news.err, news.crit,
news.alert and news.emerg, and ``mail,uucp.alert`` covers mail.alert,
mail.emerg, uucp.alert and uucp.emerg.

Supported selector syntax:
    facility[,facility...].level     level and more severe
    *.level                          every facility except mark
    facility.*                       every level
    facility.=level                  exactly that level
    facility.!level                  remove level and more severe
    facility.none                    remove the facility entirely
    sel1;sel2                        applied left to right
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

FACILITIES = (
    "kern", "user", "mail", "daemon", "auth", "syslog", "lpr", "news", "uucp",
    "cron", "authpriv", "ftp", "local0", "local1", "local2", "local3", "local4",
    "local5", "local6", "local7", "mark",
)
LEVELS = ("emerg", "alert", "crit", "err", "warning", "notice", "info", "debug")
NO_ACTION = "no action"

_LEVEL_ALIASES = {"panic": "emerg", "error": "err", "warn": "warning"}
_FACILITY_ALIASES = {"security": "auth"}
_SEVERITY = {name: i for i, name in enumerate(LEVELS)}


@dataclass(frozen=True)
class Rule:
    """One ``selector  action`` line."""

    selector: str
    action: str


def parse_rules(text: str) -> list[Rule]:
    """Selector rules from rsyslog.conf text.

    Directives (``$Foo``), RainerScript statements and lines without
    an action are not selector rules and are ignored.
    """
    rules = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith(("#", "$")):
            continue
        parts = line.split(None, 1)
        if len(parts) < 2:
            continue
        selector, action = parts[0], parts[1].strip()
        if "." not in selector or "(" in selector or "{" in selector:
            continue
        rules.append(Rule(selector=selector, action=action))
    return rules


def _levels_for(level: str) -> tuple[str, ...] | None:
    if level == "*":
        return LEVELS
    exact = level.startswith("=")
    name = _LEVEL_ALIASES.get(level.lstrip("="), level.lstrip("="))
    if name not in _SEVERITY:
        return None
    if exact:
        return (name,)
    return tuple(lev for lev in LEVELS if _SEVERITY[lev] <= _SEVERITY[name])


def selected_events(selector: str) -> set[str]:
    """Every ``facility.level`` a selector matches."""
    events: set[str] = set()
    for part in selector.split(";"):
        facils, _, level = part.strip().partition(".")
        level = level.lower()
        if not facils or not level:
            continue

        if facils == "*":
            facilities = [f for f in FACILITIES if f != "mark"]
        else:
            facilities = [_FACILITY_ALIASES.get(f, f) for f in facils.lower().split(",") if f]

        if level == "none":
            events = {e for e in events if e.split(".", 1)[0] not in facilities}
            continue

        negate = level.startswith("!")
        levels = _levels_for(level.lstrip("!"))
        if levels is None:
            logger.debug("Ignoring unknown level in selector %r", part)
            continue

        matched = {f"{facil}.{lev}" for facil in facilities for lev in levels}
        events = events - matched if negate else events | matched
    return events


def analyze(text: str) -> dict[str, list[str]]:
    """Map every facility.level to the actions that receive it."""
    routes: dict[str, list[str]] = {
        f"{facil}.{lev}": [] for facil in FACILITIES for lev in LEVELS
    }
    for rule in parse_rules(text):
        for event in selected_events(rule.selector):
            routes.setdefault(event, []).append(rule.action)
    return routes


def describe(routes: dict[str, list[str]]) -> list[str]:
    return [
        f"Event:  {event:<16}\tAction:  {', '.join(actions) or NO_ACTION}"
        for event, actions in sorted(routes.items())
    ]
