"""Runtime configuration read from the environment."""

import logging
import os
from typing import Any, Dict, Optional

import voluptuous as vol
from dotenv import load_dotenv

from .const import CONF_BASE_URL, CONF_PASSWORD, CONF_SESSION_FILE, CONF_TIMEOUT, CONF_USERNAME
from .tms.auth import DEFAULT_SESSION_FILE
from .tms.client import DEFAULT_BASE_URL

_LOGGER = logging.getLogger(__name__)

ENV_VARS = {
	CONF_BASE_URL: "TMS_BASE_URL",
	CONF_USERNAME: "TMS_USERNAME",
	CONF_PASSWORD: "TMS_PASSWORD",
	CONF_SESSION_FILE: "TMS_SESSION_FILE",
	CONF_TIMEOUT: "TMS_TIMEOUT",
}

CONFIG_SCHEMA = vol.Schema(
	{
		vol.Optional(CONF_BASE_URL, default=DEFAULT_BASE_URL): vol.All(str, vol.Length(min=1)),
		vol.Optional(CONF_USERNAME): vol.Any(None, str),
		vol.Optional(CONF_PASSWORD): vol.Any(None, str),
		vol.Optional(CONF_SESSION_FILE, default=DEFAULT_SESSION_FILE): str,
		vol.Optional(CONF_TIMEOUT): vol.Any(None, vol.All(vol.Coerce(float), vol.Range(min=0, min_included=False))),
	}
)


def load_config(env_file: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
	"""Build the validated configuration.

	Environment variables (optionally loaded from a ``.env`` file) are read
	first, then ``overrides`` win over them.

	Raises:
		vol.Invalid: if a value has the wrong shape
	"""
	load_dotenv(env_file)
	raw: Dict[str, Any] = {}
	for key, env_name in ENV_VARS.items():
		value = os.getenv(env_name)
		if value:
			raw[key] = value
	for key, value in (overrides or {}).items():
		if value is not None:
			raw[key] = value

	config = CONFIG_SCHEMA(raw)
	_LOGGER.debug("Loaded configuration for %s", config[CONF_BASE_URL])
	return config
