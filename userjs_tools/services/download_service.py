import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

import requests

from userjs_tools.config import Settings
from userjs_tools.models.schemas import DownloadError
from userjs_tools.services.pref_reconciler import split_lines
from userjs_tools.services.profile_manager import ENCODING, ERRORS, read_text

logger = logging.getLogger(__name__)


class DownloadService:
    """Service for retrieving remote files"""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session or requests.Session()
        self.session.max_redirects = settings.max_redirects

    def fetch_text(self, url: str) -> str:
        try:
            response = self.session.get(url, timeout=self.settings.request_timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Error downloading {url}: {e}")
            raise DownloadError(f"Failed to download file from the URL: {url}.")

        if not 200 <= response.status_code < 300:
            raise DownloadError(f"Failed to download file from the URL: {url}.")

        response.encoding = response.encoding or ENCODING
        logger.info(f"Downloaded {url} ({len(response.content)} bytes)")
        return response.text

    def fetch_userjs(self) -> str:
        return self.fetch_text(self.settings.userjs_url)

    def download_to_temp(self, url: str, suffix: str = '') -> Path:
        """Download ``url`` into a new temporary file and return its path.

        The file is left for the caller (or the OS) to clean up.
        """
        text = self.fetch_text(url)
        fd, name = tempfile.mkstemp(prefix='userjs-', suffix=suffix)
        with os.fdopen(fd, 'w', encoding=ENCODING, errors=ERRORS, newline='') as f:
            f.write(text)
        return Path(name)


def userjs_version(text: Optional[str]) -> str:
    """The version line of a user.js: its 4th line, or 'Unknown'."""
    if text is None:
        return 'Unknown'
    lines = split_lines(text)
    if len(lines) < 4:
        return 'Unknown'
    return lines[3].strip()


def userjs_file_version(path: Path) -> str:
    if not path.is_file():
        return 'Unknown'
    return userjs_version(read_text(path))
