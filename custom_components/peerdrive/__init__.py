import logging

from homeassistant import config_entries, core
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryNotReady

from .const import CONF_RELAY_URL, DEFAULT_RELAY_URL, DOMAIN
from .coordinator import PeerDriveCoordinator
from .relay import check_relay_availability

PLATFORMS: list[Platform] = [Platform.DEVICE_TRACKER, Platform.SENSOR, Platform.BINARY_SENSOR, Platform.SWITCH]
_LOGGER = logging.getLogger(__name__)


async def async_setup(hass: core.HomeAssistant, config: dict) -> bool:
    """Set up the integration."""
    hass.data.setdefault(DOMAIN, {})
    return True


async def _validate_relay(relay_url: str) -> str | None:
    """Return an error key when the relay cannot be reached, else None."""
    if not await check_relay_availability(relay_url):
        return "cannot_connect"
    return None


async def async_setup_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> bool:
    """Set up PeerDrive from a ConfigEntry."""
    relay_url = entry.data.get(CONF_RELAY_URL) or DEFAULT_RELAY_URL
    error = await _validate_relay(relay_url)
    if error == "cannot_connect":
        raise ConfigEntryNotReady(f"Cannot reach the PeerDrive relay at {relay_url}")

    coordinator = PeerDriveCoordinator(hass, dict(entry.data), dict(entry.options))
    await coordinator.async_config_entry_first_refresh()
    entry.runtime_data = coordinator

    entry.async_on_unload(
        entry.add_update_listener(_async_update_listener)
    )

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    return True


async def async_remove_config_entry_device(
    hass: core.HomeAssistant, config_entry: config_entries.ConfigEntry, device_entry
) -> bool:
    """Allow removing stale peer devices from the UI."""
    return True


async def _async_update_listener(hass: HomeAssistant, config_entry):
    """Reload the integration when the options change."""
    await hass.config_entries.async_reload(config_entry.entry_id)


async def async_unload_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> bool:
    """Unload a config entry."""
    unloaded = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unloaded:
        await entry.runtime_data.async_shutdown()
    return unloaded
