import logging

import psutil

from models import DeviceSignals

logger = logging.getLogger(__name__)

# Interface name prefixes used by VPN tunnels across desktop and mobile OSes
VPN_INTERFACE_PREFIXES = ("tap", "tun", "ppp", "ipsec", "utun", "wg")


def battery_level() -> int:
    """Battery charge in percent. Hosts without a battery report 100 (mains power)."""
    battery = psutil.sensors_battery()
    if battery is None:
        return 100
    return max(0, min(100, int(round(battery.percent))))


def vpn_active() -> bool:
    for name, stats in psutil.net_if_stats().items():
        if stats.isup and name.lower().startswith(VPN_INTERFACE_PREFIXES):
            return True
    return False


def read_device_signals() -> DeviceSignals:
    signals = DeviceSignals(battery_level=battery_level(), vpn_active=vpn_active())
    logger.info("Device signals: battery=%d vpn=%s", signals.battery_level, signals.vpn_active)
    return signals
