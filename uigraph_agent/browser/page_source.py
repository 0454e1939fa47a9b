import logging

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from uigraph_agent.graph.errors import ExternalCallError


async def fetch_page_html(url: str, timeout: float = 60.0) -> str:
    """Open ``url`` in headless Chromium and return the rendered HTML."""
    try:
        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=True)
            try:
                page = await browser.new_page()
                await page.goto(url, wait_until="domcontentloaded", timeout=timeout * 1000)
                await page.wait_for_load_state("networkidle", timeout=timeout * 1000)
                html = await page.content()
            finally:
                await browser.close()
    except PlaywrightError as e:
        raise ExternalCallError(f"Failed to load {url}: {e}") from e
    logging.info(f"Fetched {len(html)} characters of HTML from {url}")
    return html
