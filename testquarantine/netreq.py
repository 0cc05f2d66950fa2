"""Network API functions
"""

import logging
import time
from typing import Callable, Optional, Type

import requests
from requests import adapters

import testquarantine


# The User-Agent: header to use
USER_AGENT = f'testquarantine/{testquarantine.__version__}'


class Session(requests.Session):
    """Set up a requests session with a standard configuration"""

    def __init__(self, total: int = 4, backoff_factor: int = 10,
                 status_forcelist: Optional[list[int]] = None,
                 allowed_methods: Optional[list[str]] = None):
        super().__init__()
        if not status_forcelist:
            status_forcelist = [429, 500, 502, 503, 504]
        if not allowed_methods:
            allowed_methods = ['HEAD', 'GET', 'OPTIONS']

        # This delays a total of 10+20+40+80 seconds before giving up
        retry_strategy = adapters.Retry(
            total=total, backoff_factor=backoff_factor, status_forcelist=status_forcelist,
            allowed_methods=allowed_methods)
        adapter = adapters.HTTPAdapter(max_retries=retry_strategy)
        self.mount('https://', adapter)
        self.mount('http://', adapter)
        self.headers['User-Agent'] = USER_AGENT


def retry_on_exception(func: Callable, exception: Type[Exception],
                       retries: int = 10, delay: float = 10):
    """Retry a function call on an exception, with fixed delay"""
    for attempt in range(retries):
        try:
            return func()
        except exception as e:
            exc = e
            if attempt + 1 < retries:
                logging.info(f'Attempt {attempt} failed; retrying after delay')
                time.sleep(delay)

    # all attempts raised an exception, so raise it now
    raise exc


def get_json(session: requests.Session, url: str, timeout: float):
    """Retrieve a JSON document, retrying if the connection drops part way through"""
    def fetch():
        resp = session.get(url, timeout=timeout)
        resp.raise_for_status()
        return resp.json()
    return retry_on_exception(fetch, requests.exceptions.ConnectionError, retries=3, delay=5)
