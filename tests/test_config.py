"""Configuration loading and session persistence."""

import json
import os

import pytest
import voluptuous as vol

from conftest import run
from teachdesk.config import ENV_VARS, load_config
from teachdesk.const import CONF_BASE_URL, CONF_SESSION_FILE, CONF_TIMEOUT, CONF_USERNAME
from teachdesk.tms.auth import TMSAuth
from teachdesk.tms.client import DEFAULT_BASE_URL


@pytest.fixture(autouse=True)
def clean_env():
	# load_dotenv writes straight into os.environ
	for name in ENV_VARS.values():
		os.environ.pop(name, None)
	yield
	for name in ENV_VARS.values():
		os.environ.pop(name, None)


def test_defaults(tmp_path):
	config = load_config(str(tmp_path / "missing.env"))
	assert config[CONF_BASE_URL] == DEFAULT_BASE_URL == "http://localhost:3000/api"
	assert config[CONF_SESSION_FILE].endswith("session.json")


def test_env_file_and_overrides(tmp_path):
	env_file = tmp_path / ".env"
	env_file.write_text("TMS_BASE_URL=http://school/api\nTMS_USERNAME=rao\nTMS_TIMEOUT=5\n")

	config = load_config(str(env_file), {CONF_BASE_URL: "http://override/api", CONF_USERNAME: None})

	assert config[CONF_BASE_URL] == "http://override/api"
	assert config[CONF_USERNAME] == "rao"
	assert config[CONF_TIMEOUT] == 5.0


def test_bad_timeout_is_rejected(monkeypatch):
	monkeypatch.setenv("TMS_TIMEOUT", "-1")
	with pytest.raises(vol.Invalid):
		load_config()


def test_session_round_trip(tmp_path):
	path = tmp_path / "nested" / "session.json"
	auth = TMSAuth(session_file=str(path))
	run(auth.set_session("abc", {"name": "Ms Rao"}))
	assert json.loads(path.read_text())["token"] == "abc"

	restored = TMSAuth(session_file=str(path))
	assert run(restored.load()) is True
	assert restored.headers() == {"Authorization": "Bearer abc"}
	assert restored.profile.initial == "M"


def test_corrupt_session_file_is_ignored(tmp_path):
	path = tmp_path / "session.json"
	path.write_text("{not json")
	auth = TMSAuth(session_file=str(path))
	assert run(auth.load()) is False
	assert auth.headers() == {}


@pytest.mark.parametrize("payload", ["[]", '"abc"', "null"])
def test_session_file_that_is_not_an_object_is_ignored(tmp_path, payload):
	path = tmp_path / "session.json"
	path.write_text(payload)
	auth = TMSAuth(session_file=str(path))
	assert run(auth.load()) is False
	assert auth.headers() == {}
