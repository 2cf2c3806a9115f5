"""
Browser Extension Downloader
Fetches .crx packages from Chrome Web Store and Microsoft Edge Add-ons
"""

import re
from enum import Enum
from pathlib import Path

import requests
from tqdm import tqdm

from .config import DEFAULT_CONFIG

MIN_PACKAGE_SIZE = 1000


class BrowserType(Enum):
    """Supported browser extension stores"""
    CHROME = "chrome"
    EDGE = "edge"


class DownloadError(Exception):
    """The store did not return a usable extension package"""


def validate_extension_id(extension_id):
    """Chrome IDs are 32 letters a-p; Edge IDs are 32 lowercase alphanumerics"""
    return bool(re.match(r'^[a-z0-9]{32}$', extension_id or ''))


class ExtensionDownloader:
    """Downloads browser extensions from Chrome Web Store and Microsoft Edge Add-ons"""

    def __init__(self, config=None):
        settings = dict(DEFAULT_CONFIG['downloader'])
        if config:
            settings.update(config.get('downloader', {}))

        self.download_dir = Path(settings['download_dir'])
        self.timeout = settings['timeout']
        self.prodversion = settings['prodversion']

        # Download URLs for each store
        self.download_urls = {
            BrowserType.CHROME: "https://clients2.google.com/service/update2/crx",
            BrowserType.EDGE: "https://edge.microsoft.com/extensionwebstorebase/v1/crx"
        }

        # User agent to mimic browser
        self.headers = {
            'User-Agent': settings['user_agent']
        }

    def build_params(self, extension_id, browser):
        if browser == BrowserType.CHROME:
            return {
                'response': 'redirect',
                'prodversion': self.prodversion,
                'acceptformat': 'crx2,crx3',
                'x': f'id={extension_id}&installsource=ondemand&uc'
            }
        return {
            'response': 'redirect',
            'prod': 'edgecrx',
            'x': f'id={extension_id}&installsource=ondemand&uc'
        }

    def download_extension(self, extension_id, browser=BrowserType.CHROME, save=False, show_progress=True):
        """
        Download a browser extension by its ID

        Args:
            extension_id (str): The extension ID (32-character string)
            browser (BrowserType or str): Store to download from
            save (bool): Also write the package to download_dir
            show_progress (bool): Display a tqdm byte progress bar

        Returns:
            bytes: Raw .crx package

        Raises:
            DownloadError: Unknown ID, store error or a response that is not a package
        """
        browser = BrowserType(browser)
        browser_name = browser.value.capitalize()
        print(f"\n[+] Downloading {browser_name} extension: {extension_id}")

        if not validate_extension_id(extension_id):
            raise DownloadError(f"Invalid extension ID: {extension_id}")

        try:
            response = requests.get(
                self.download_urls[browser],
                params=self.build_params(extension_id, browser),
                headers=self.headers,
                stream=True,
                timeout=self.timeout
            )
            response.raise_for_status()

            # The store answers unknown IDs with an HTML page
            content_type = response.headers.get('content-type', '')
            if 'text/html' in content_type.lower():
                raise DownloadError(f"Extension not found in {browser_name} store")

            total_size = int(response.headers.get('content-length', 0) or 0)
            chunks = []
            with tqdm(total=total_size or None, unit='B', unit_scale=True, desc=extension_id,
                      disable=not show_progress) as pbar:
                for chunk in response.iter_content(chunk_size=8192):
                    if chunk:
                        chunks.append(chunk)
                        pbar.update(len(chunk))
            data = b''.join(chunks)

        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else 'unknown'
            if status == 404:
                raise DownloadError(f"Extension not found in {browser_name} store") from e
            raise DownloadError(f"Download failed (HTTP {status})") from e
        except requests.exceptions.RequestException as e:
            raise DownloadError(f"Download failed: {e}") from e

        # CRX files should be at least a few KB
        if len(data) < MIN_PACKAGE_SIZE:
            raise DownloadError(f"Downloaded file too small ({len(data)} bytes) - extension may not exist")

        print(f"[[OK]] Downloaded: {extension_id} ({len(data):,} bytes)")

        if save:
            self.save_package(extension_id, data, browser)

        return data

    def save_package(self, extension_id, data, browser=BrowserType.CHROME):
        """Write package bytes under download_dir with a browser prefix"""
        browser = BrowserType(browser)
        self.download_dir.mkdir(parents=True, exist_ok=True)
        prefix = "edge_" if browser == BrowserType.EDGE else ""
        output_path = self.download_dir / f"{prefix}{extension_id}.crx"
        output_path.write_bytes(data)
        print(f"[+] Saved package: {output_path}")
        return output_path
