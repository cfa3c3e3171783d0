"""
Hotplug event resolution.

The hook is called from two places that export different variables:

    Caller     Interface    Action
    ---------  -----------  --------------------
    ifupdown   IFACE        MODE=start|stop
    udev       INTERFACE    ACTION=add|remove

When both are present the udev variable wins.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass

from netconf.core.config import Interface


class Action(enum.Enum):
    START = "start"
    STOP = "stop"


# (variable, {value: action}) in increasing priority
ACTION_VARS = (
    ("MODE", {"start": Action.START, "stop": Action.STOP}),
    ("ACTION", {"add": Action.START, "remove": Action.STOP}),
)
INTERFACE_VARS = ("IFACE", "INTERFACE")


@dataclass(frozen=True)
class Event:
    interface: Interface
    action: Action


def resolve_interface(
    environ: Mapping[str, str], interfaces: Mapping[str, Interface]
) -> Interface | None:
    """Return the handled interface named by the environment, if any."""
    found = None
    for var in INTERFACE_VARS:
        iface = interfaces.get(environ.get(var, ""))
        if iface is not None:
            found = iface
    return found


def resolve_action(environ: Mapping[str, str]) -> Action | None:
    """Return START/STOP from MODE or ACTION. Unrecognized values are ignored."""
    found = None
    for var, actions in ACTION_VARS:
        action = actions.get(environ.get(var, ""))
        if action is not None:
            found = action
    return found


def resolve_event(
    environ: Mapping[str, str], interfaces: Mapping[str, Interface]
) -> Event | None:
    iface = resolve_interface(environ, interfaces)
    action = resolve_action(environ)
    if iface is None or action is None:
        return None
    return Event(iface, action)
