"""
pi3g-netconf - Tor and DHCP reconfiguration on tethering hotplug events.

Binds Tor to the subnet of a wireless AP or wired tethering interface when it
comes up and unbinds it when it goes away.
"""

from __future__ import annotations

__version__ = "0.2.6"

from netconf.netconf import handle_event

__all__ = ["handle_event", "__version__"]
