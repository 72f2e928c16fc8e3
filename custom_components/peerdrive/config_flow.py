"""Config flow for the PeerDrive integration."""
from __future__ import annotations
import dataclasses
import logging
import uuid
from typing import Any, Dict, Optional
import homeassistant.helpers.config_validation as cv
import voluptuous as vol

from homeassistant import config_entries
from homeassistant.core import callback

from .config import ProximityConfig
from .const import (
    CONF_ENTRY_NAME,
    CONF_RELAY_URL,
    CONF_SOURCE_ENTITY,
    CONF_VEHICLE_ID,
    CONF_VEHICLE_TYPE,
    DEFAULT_RELAY_URL,
    DOMAIN,
    EMPTY_PAYLOAD_CLEAR,
    EMPTY_PAYLOAD_KEEP,
    MIN_TICK_INTERVAL_MS,
    VEHICLE_TYPE_NAMES,
)
from .relay import check_relay_availability

_LOGGER = logging.getLogger(__name__)

positive_float = vol.All(vol.Coerce(float), vol.Range(min=0))

CONFIG_SCHEMA = vol.Schema(
            {
                vol.Required(CONF_ENTRY_NAME, default='My Vehicle'): cv.string,
                vol.Required(CONF_VEHICLE_ID, default=''): cv.string,
                vol.Required(CONF_VEHICLE_TYPE, default=0): vol.In(VEHICLE_TYPE_NAMES),
                vol.Required(CONF_RELAY_URL, default=DEFAULT_RELAY_URL): cv.string,
                vol.Required(CONF_SOURCE_ENTITY, default=''): cv.string,
            }
        )


class CustomFlow(config_entries.ConfigFlow, domain=DOMAIN):
    data: Optional[Dict[str, Any]]

    async def async_step_user(self, user_input: Optional[Dict[str, Any]] = None):
        errors: Dict[str, str] = {}
        if user_input is not None:
            self.data = dict(user_input)
            self.data['guid'] = str(uuid.uuid4())
            if not self.data[CONF_ENTRY_NAME]:
                errors['base'] = 'entry_name_required'
            elif not self.data[CONF_VEHICLE_ID].strip():
                errors['base'] = 'vehicle_id_required'
            elif not self.data[CONF_SOURCE_ENTITY].strip():
                errors['base'] = 'source_required'
            elif not await check_relay_availability(self.data[CONF_RELAY_URL]):
                errors['base'] = 'cannot_connect'
            if not errors:
                self.data[CONF_VEHICLE_ID] = self.data[CONF_VEHICLE_ID].strip()
                # One entry per vehicle id on the relay
                self._async_abort_entries_match({CONF_VEHICLE_ID: self.data[CONF_VEHICLE_ID]})
                return self.async_create_entry(title=f"{self.data[CONF_ENTRY_NAME]}", data=self.data)

        return self.async_show_form(step_id="user", data_schema=CONFIG_SCHEMA, errors=errors)

    @staticmethod
    @callback
    def async_get_options_flow(config_entry):
        """Get the options flow for this handler."""
        return OptionsFlowHandler(config_entry)


class OptionsFlowHandler(config_entries.OptionsFlow):
    """Edits the proximity thresholds; any change reloads the entry."""

    def __init__(self, config_entry: config_entries.ConfigEntry) -> None:
        self._entry = config_entry

    def _defaults(self) -> Dict[str, Any]:
        defaults = dataclasses.asdict(ProximityConfig())
        for key in defaults:
            if key in self._entry.options:
                defaults[key] = self._entry.options[key]
        return defaults

    async def async_step_init(
        self, user_input: Dict[str, Any] = None
    ) -> Dict[str, Any]:
        errors: Dict[str, str] = {}

        if user_input is not None:
            # Omitted keys take the built-in values, as in from_options()
            builtin = ProximityConfig()
            fade_start_ms = user_input.get('fade_start_ms', builtin.fade_start_ms)
            remove_ms = user_input.get('remove_ms', builtin.remove_ms)
            if float(remove_ms) <= float(fade_start_ms):
                errors['base'] = 'invalid_fade_window'
            else:
                try:
                    ProximityConfig.from_options(user_input)
                except ValueError as e:
                    _LOGGER.debug("Rejected options %s: %s", user_input, e)
                    errors['base'] = 'invalid_options'
            if not errors:
                return self.async_create_entry(title="", data=dict(user_input))

        defaults = self._defaults()
        schema: Dict[Any, Any] = {}
        for key, value in defaults.items():
            if key == 'empty_payload_policy':
                schema[vol.Required(key, default=value)] = vol.In([EMPTY_PAYLOAD_CLEAR, EMPTY_PAYLOAD_KEEP])
            elif key == 'tick_interval_ms':
                schema[vol.Required(key, default=value)] = vol.All(
                    vol.Coerce(float), vol.Range(min=MIN_TICK_INTERVAL_MS)
                )
            elif key == 'approach_relative_speed_kmh':
                schema[vol.Required(key, default=value)] = vol.Coerce(float)
            else:
                schema[vol.Required(key, default=value)] = positive_float

        return self.async_show_form(step_id="init", data_schema=vol.Schema(schema), errors=errors)
