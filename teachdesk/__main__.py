"""Console session for the teacher desk.

Usage:
    python -m teachdesk [--page PAGE] [--chart FILE.png] [-v]

Credentials and the backend URL come from the environment or a .env file:
    TMS_BASE_URL=http://localhost:3000/api
    TMS_USERNAME=teacher
    TMS_PASSWORD=secret

If no session is stored and no password is configured, you'll be prompted.
"""

import argparse
import asyncio
import getpass
import logging
import sys
from typing import List, Optional

import voluptuous as vol

from . import create_desk
from .chart import render_png
from .config import load_config
from .const import CHART_PERFORMANCE, CONF_BASE_URL, CONF_PASSWORD, CONF_USERNAME, DOMAIN, FLOW_LOGIN, PAGE_DASHBOARD, PAGES
from .surface import ConsoleSurface

_LOGGER = logging.getLogger(__name__)


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
	parser = argparse.ArgumentParser(prog=DOMAIN, description="Teacher management console")
	parser.add_argument("--page", choices=PAGES, default=PAGE_DASHBOARD, help="page to open after login")
	parser.add_argument("--base-url", help="backend root, overrides TMS_BASE_URL")
	parser.add_argument("--env-file", help="path to a .env file")
	parser.add_argument("--chart", metavar="PNG", help="write the analytics chart to this file")
	parser.add_argument("--logout", action="store_true", help="forget the stored session and exit")
	parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
	return parser.parse_args(argv)


async def _login(desk, config) -> bool:
	username = config.get(CONF_USERNAME) or (await asyncio.to_thread(input, "Username: ")).strip()
	password = config.get(CONF_PASSWORD) or await asyncio.to_thread(getpass.getpass, "Password: ")
	flow = desk.flow(FLOW_LOGIN)
	await flow.open()
	flow.update(username=username, password=password)
	return await flow.submit()


async def run(argv: Optional[List[str]] = None) -> int:
	args = _parse_args(argv)
	logging.basicConfig(
		level=logging.DEBUG if args.verbose else logging.WARNING,
		format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
	)

	try:
		config = load_config(args.env_file, {CONF_BASE_URL: args.base_url})
	except vol.Invalid as err:
		print(f"❌ Invalid configuration: {err}")
		return 2
	_LOGGER.debug("Using backend %s", config[CONF_BASE_URL])

	async with create_desk(config, ConsoleSurface()) as desk:
		if args.logout:
			await desk.logout()
			return 0

		if not await desk.start():
			if not await _login(desk, config):
				return 1

		if args.page != PAGE_DASHBOARD:
			await desk.navigate(args.page)

		if args.chart:
			chart = desk.surface.charts.get(CHART_PERFORMANCE)
			if chart is None:
				print("⚠️ No chart drawn; open the analytics page with --page analytics")
			else:
				render_png(chart, args.chart)
				print(f"✅ Chart written to {args.chart}")
	return 0


def main() -> None:
	sys.exit(asyncio.run(run()))


if __name__ == "__main__":
	main()
