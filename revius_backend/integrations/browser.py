from __future__ import annotations

import logging
from typing import Protocol

import requests
from selenium import webdriver
from selenium.common.exceptions import WebDriverException
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.common.by import By
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

from revius_backend.integrations.http import DEFAULT_USER_AGENT, PageFetchError, fetch_html

logger = logging.getLogger(__name__)

DEFAULT_PAGE_TIMEOUT_SECONDS = 30.0


class BrowserLaunchError(RuntimeError):
    pass


class PageFetcher(Protocol):
    def fetch(self, url: str, *, timeout_seconds: float = DEFAULT_PAGE_TIMEOUT_SECONDS) -> str:
        """Return the rendered HTML for `url` or raise `PageFetchError`."""
        ...

    def close(self) -> None: ...


class SeleniumPageFetcher:
    """
    Headless Chrome page fetcher.

    One driver (one tab) is reused serially for every page of a scrape run.
    """

    def __init__(
        self,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        locale: str = "pt-BR",
        headless: bool = True,
    ) -> None:
        self.user_agent = user_agent
        self.locale = locale
        self.headless = headless
        self._driver: webdriver.Chrome | None = None

    def _build_options(self) -> Options:
        chrome_options = Options()
        if self.headless:
            chrome_options.add_argument("--headless=new")
        chrome_options.add_argument("--no-sandbox")
        chrome_options.add_argument("--disable-setuid-sandbox")
        chrome_options.add_argument("--disable-dev-shm-usage")
        chrome_options.add_argument("--disable-gpu")
        chrome_options.add_argument("--window-size=1920,1080")
        chrome_options.add_argument(f"--lang={self.locale}")
        chrome_options.add_argument(f"--user-agent={self.user_agent}")
        chrome_options.add_argument("--disable-blink-features=AutomationControlled")
        chrome_options.add_experimental_option("excludeSwitches", ["enable-automation"])
        return chrome_options

    def start(self) -> webdriver.Chrome:
        if self._driver is not None:
            return self._driver
        try:
            self._driver = webdriver.Chrome(options=self._build_options())
        except WebDriverException as exc:
            raise BrowserLaunchError(f"Failed to initialize browser: {exc.msg or exc}") from exc
        logger.info("Browser initialized")
        return self._driver

    def fetch(self, url: str, *, timeout_seconds: float = DEFAULT_PAGE_TIMEOUT_SECONDS) -> str:
        driver = self.start()
        try:
            driver.set_page_load_timeout(timeout_seconds)
            driver.get(url)
            WebDriverWait(driver, 5).until(EC.presence_of_element_located((By.TAG_NAME, "body")))
            return driver.page_source or ""
        except WebDriverException as exc:
            raise PageFetchError(f"Page fetch failed: {exc.msg or exc}", url=url) from exc

    def close(self) -> None:
        if self._driver is None:
            return
        try:
            self._driver.quit()
        except WebDriverException as exc:
            logger.warning("Error closing browser: %s", exc)
        finally:
            self._driver = None
            logger.info("Browser closed")

    def __enter__(self) -> "SeleniumPageFetcher":
        self.start()
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()


class HttpPageFetcher:
    """Plain `requests` fetcher for pages that render server-side (Wikipedia does)."""

    def __init__(self, *, session: requests.Session | None = None, user_agent: str = DEFAULT_USER_AGENT) -> None:
        self.session = session or requests.Session()
        self.user_agent = user_agent

    def fetch(self, url: str, *, timeout_seconds: float = DEFAULT_PAGE_TIMEOUT_SECONDS) -> str:
        html, _ = fetch_html(
            url,
            session=self.session,
            headers={"user-agent": self.user_agent},
            timeout_seconds=timeout_seconds,
        )
        return html

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpPageFetcher":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()
