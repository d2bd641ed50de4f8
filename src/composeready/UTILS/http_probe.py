"""
Minimal HTTP calls used to probe services.
"""
import json
from http.client import HTTPException
from typing import Any, Dict, Optional, Tuple
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen


def get_status(url: str, timeout: float = 5.0) -> Optional[int]:
    """
    Issues a GET and returns the response status.
    HTTP error statuses are returned as-is; None means no response at all.
    """
    try:
        with urlopen(Request(url, method="GET"), timeout=timeout) as response:
            return response.status
    except HTTPError as e:
        return e.code
    except (URLError, HTTPException, OSError, ValueError):
        return None


def post_json(url: str, payload: Dict[str, Any],
              timeout: float = 5.0) -> Tuple[Optional[int], Optional[Any]]:
    """
    POSTs a JSON document.

    :param url: Target URL.
    :param payload: Body to serialize as JSON.
    :param timeout: Seconds to wait for a response.
    :return: (status, parsed body). Status is None without a response,
             body is None when it is not valid JSON.
    """
    data = json.dumps(payload).encode("utf-8")
    try:
        request = Request(url, data=data, method="POST",
                          headers={"Content-Type": "application/json"})
        with urlopen(request, timeout=timeout) as response:
            status = response.status
            raw = response.read()
    except HTTPError as e:
        return e.code, None
    except (URLError, HTTPException, OSError, ValueError):
        return None, None

    try:
        return status, json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return status, None
