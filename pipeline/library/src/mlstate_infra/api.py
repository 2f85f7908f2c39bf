"""
Remote model capability over HTTP.

This module reaches a model served by an HTTP model server. A module handle
owns a requests session rooted at {base_url}/{module_name}; instances are
created, called and deleted through REST endpoints under it:

- POST   /instances                 {"class_name": str, "args": list} -> {"instance_id": str}
- POST   /instances/{id}/{method}   {"args": list} -> JSON result
- DELETE /instances/{id}
"""

import logging
from typing import Any

import requests

from mlstate.errors import CapabilityLoadError, ModelCallError

logger = logging.getLogger(__name__)


class HttpModelInstance:
    """Instance handle for a model object living in a model server."""

    def __init__(self, session: requests.Session, url: str, timeout: float) -> None:
        self._session: requests.Session | None = session
        self.url = url
        self.timeout = timeout

    def call(self, method: str, *args: Any) -> Any:
        """
        POST the arguments to the instance's method endpoint.

        Raises
        ------
        ModelCallError
            If the instance was released, the request fails, or the server
            answers with an error status.
        """
        if self._session is None:
            raise ModelCallError(method, "instance has been released")

        try:
            response = self._session.post(f"{self.url}/{method}", json={"args": list(args)}, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as exc:
            raise ModelCallError(method, str(exc)) from exc

        try:
            result = response.json()
        except ValueError as exc:
            raise ModelCallError(method, f"invalid JSON response: {exc}") from exc

        logger.debug(f"Called {method} on {self.url}")
        return result

    def release(self) -> None:
        session, self._session = self._session, None
        if session is None:
            return
        try:
            session.delete(self.url, timeout=self.timeout).raise_for_status()
        except requests.exceptions.RequestException as exc:
            logger.warning(f"Failed to delete model instance {self.url}: {exc}")


class HttpModelModule:
    """Module handle for a model module hosted by a model server."""

    def __init__(self, url: str, timeout: float = 30) -> None:
        self.url = url
        self.timeout = timeout
        self._session: requests.Session | None = requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})

    def instantiate(self, class_name: str, *args: Any) -> HttpModelInstance:
        """
        Ask the server to create an instance of class_name.

        Raises
        ------
        CapabilityLoadError
            If the module was released, the request fails, or the response
            lacks an instance_id.
        """
        if self._session is None:
            raise CapabilityLoadError(f"cannot instantiate '{class_name}': module has been released")

        try:
            response = self._session.post(
                f"{self.url}/instances", json={"class_name": class_name, "args": list(args)}, timeout=self.timeout
            )
            response.raise_for_status()
            instance_id = response.json()["instance_id"]
        except requests.exceptions.RequestException as exc:
            raise CapabilityLoadError(f"cannot instantiate '{class_name}' at {self.url}: {exc}") from exc
        except (ValueError, KeyError, TypeError) as exc:
            raise CapabilityLoadError(f"unexpected response instantiating '{class_name}': {exc}") from exc

        logger.info(f"Created remote instance {instance_id} of {class_name}")
        return HttpModelInstance(self._session, f"{self.url}/instances/{instance_id}", self.timeout)

    def release(self) -> None:
        session, self._session = self._session, None
        if session is not None:
            session.close()


class HttpModelLoader:
    """
    Resolves model modules hosted by an HTTP model server.

    Parameters
    ----------
    base_url : str
        Model server URL (e.g., 'http://ml-api:8000').
    timeout : float, optional
        Per-request timeout in seconds (default: 30).

    Notes
    -----
    module_path is ignored: the server decides where modules come from.
    Loading does not contact the server; the first request is made when an
    instance is created.
    """

    def __init__(self, base_url: str, timeout: float = 30) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def load(self, module_path: str, module_name: str) -> HttpModelModule:
        if not module_name:
            raise CapabilityLoadError("module_name must not be empty")
        return HttpModelModule(f"{self.base_url}/{module_name}", timeout=self.timeout)
