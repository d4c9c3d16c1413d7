"""HTTP session for the remote store, with optional retry and exponential backoff."""

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry


def build_session(retries: int = 0) -> requests.Session:
    """Return a requests.Session for JSON calls to the remote store.

    With retries > 0, 429/5xx answers are retried with exponential backoff
    (1s, 2s, 4s, ...). The default of 0 leaves retrying to the caller.
    """
    session = requests.Session()
    session.headers.update({"Accept": "application/json"})
    if retries > 0:
        retry = Retry(
            total=retries,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET", "POST", "PATCH", "DELETE"],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
    return session
