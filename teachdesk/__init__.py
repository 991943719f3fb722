"""Teacher desk: client core for the teacher management web backend."""

import logging
from typing import Any, Callable, Dict, Optional

from .const import CONF_BASE_URL, CONF_SESSION_FILE, CONF_TIMEOUT, PAGE_DASHBOARD
from .flows import ModalFlow, build_flows
from .router import LoadTicket, PageRouter
from .services import ActionDispatcher, register_actions
from .store import StateStore
from .surface import MemorySurface
from .tms.auth import TMSAuth
from .tms.client import TMSClient
from .views import PageViews, utc_today

__version__ = "1.0.0"

_LOGGER = logging.getLogger(__name__)


class TeacherDesk:
	"""Wires the gateway, store, router, views, flows and actions together."""

	def __init__(self, client: TMSClient, surface: Any = None, today: Callable[[], str] = utc_today) -> None:
		self.client = client
		self.surface = surface if surface is not None else MemorySurface()
		self.client.notifier = self.surface
		self.store = StateStore()
		self.router = PageRouter(self.surface)
		self.views = PageViews(client, self.store, self.router, self.surface, today=today)
		self.views.register_pages()
		self.flows: Dict[str, ModalFlow] = build_flows(self.views)
		self.actions = ActionDispatcher()
		register_actions(self.actions, self.views, self.flows, self.logout)

	async def __aenter__(self):
		await self.client.__aenter__()
		return self

	async def __aexit__(self, exc_type, exc_val, exc_tb):
		await self.client.close()

	async def start(self) -> bool:
		"""Restore a stored session and open the dashboard.

		Returns:
			False if nobody is signed in and the login screen is showing
		"""
		await self.client.auth.load()
		if not self.client.auth.authenticated:
			_LOGGER.debug("No stored session, showing login")
			self.views.show_signed_out()
			self.surface.show_login(True)
			return False

		self.surface.show_login(False)
		profile = await self.client.get_profile()
		self.views.show_profile(profile or self.client.auth.profile)
		await self.router.navigate(PAGE_DASHBOARD)
		return True

	async def navigate(self, page: str) -> LoadTicket:
		return await self.router.navigate(page)

	async def dispatch(self, action: str, payload: Optional[Dict[str, Any]] = None) -> Any:
		return await self.actions.dispatch(action, payload)

	def flow(self, name: str) -> ModalFlow:
		return self.flows[name]

	async def logout(self) -> None:
		await self.client.logout()
		self.views.show_signed_out()
		self.surface.show_login(True)
		_LOGGER.info("Logged out")


def create_desk(config: Dict[str, Any], surface: Any = None) -> TeacherDesk:
	"""Build a desk from a configuration produced by :func:`config.load_config`."""
	auth = TMSAuth(session_file=config.get(CONF_SESSION_FILE))
	client = TMSClient(
		base_url=config[CONF_BASE_URL],
		auth=auth,
		timeout=config.get(CONF_TIMEOUT),
	)
	return TeacherDesk(client, surface)
