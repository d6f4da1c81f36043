"""ClinGen Allele Registry client used to query or register batch payloads.

Responses are decoded once here: a JSON array is the success shape and is
turned into :class:`Resolved`/:class:`Unresolved` entries, while a JSON object
is an error body, even when the registry answers with HTTP 200.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import requests
from jsonschema.validators import validator_for

from variantnaming.config import FatalConfigError
from variantnaming.models import UNRESOLVED_IDENTIFIER, BatchError, RegistryResult, Resolved, Unresolved


DEFAULT_REGISTRY_URL = "http://reg.genome.network/alleles"
DEFAULT_TIMEOUT_SECONDS = 1200

_SUCCESS_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "array",
    "items": {
        "type": "object",
        "required": ["@id"],
        "properties": {
            "@id": {"type": "string"},
            "externalRecords": {"type": "object"},
        },
    },
}

_ERROR_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
}


def _compile(schema: dict[str, Any]):
    validator_cls = validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


_SUCCESS_VALIDATOR = _compile(_SUCCESS_SCHEMA)
_ERROR_VALIDATOR = _compile(_ERROR_SCHEMA)


class RegistryError(Exception):
    """A whole batch submission failed."""

    def __init__(self, message: str, *, status_code: int | None = None, payload: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_batch_error(self) -> BatchError:
        return BatchError(
            message=self.message,
            status_code=self.status_code,
            payload=self.payload,
            timed_out=isinstance(self, RegistryTimeoutError),
        )


class RegistryResponseError(RegistryError):
    """The registry answered, but with an error status or an error-shaped body."""


class RegistryTransportError(RegistryError):
    """The request never produced a usable answer."""


class RegistryTimeoutError(RegistryTransportError):
    """The request timed out; the payload itself was not judged invalid."""


@dataclass(frozen=True)
class Credentials:
    """Registry login used to sign name/register requests."""

    login: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(login={self.login!r}, password='***')"


def load_credentials(path: str | Path) -> Credentials:
    """Read one ``login:password`` line from a login file."""

    login_path = Path(path)
    if not login_path.is_file():
        raise FatalConfigError(f"User login file: {login_path} does not exist")

    lines = login_path.read_text().splitlines()
    first = lines[0].strip() if lines else ""
    login, sep, password = first.partition(":")
    if not sep or not login or not password:
        raise FatalConfigError(
            f"User login file: {login_path} must contain one line as [login]:[password]"
        )
    return Credentials(login=login, password=password)


def sign_url(url: str, credentials: Credentials, gb_time: str) -> str:
    """Append the time-boxed login token the registry expects on PUT requests."""

    identity = hashlib.sha1(f"{credentials.login}{credentials.password}".encode("utf-8")).hexdigest()
    token = hashlib.sha1(f"{url}{identity}{gb_time}".encode("utf-8")).hexdigest()
    return f"{url}&gbLogin={credentials.login}&gbTime={gb_time}&gbToken={token}"


def decode_response(body: str, *, status_code: int | None = None) -> list[RegistryResult]:
    """Decode a registry response body into per-record results."""

    try:
        payload = json.loads(body)
    except json.JSONDecodeError as exc:
        raise RegistryResponseError(
            f"Registry response is not JSON: {exc.msg}",
            status_code=status_code,
            payload=body,
        ) from exc

    if _ERROR_VALIDATOR.is_valid(payload):
        raise RegistryResponseError(
            "Registry returned an error response",
            status_code=status_code,
            payload=payload,
        )

    errors = sorted(_SUCCESS_VALIDATOR.iter_errors(payload), key=lambda err: list(err.path))
    if errors:
        first = errors[0]
        location = "/" + "/".join(str(part) for part in first.path)
        raise RegistryResponseError(
            f"Unexpected registry response shape at {location}: {first.message}",
            status_code=status_code,
            payload=body,
        )

    results: list[RegistryResult] = []
    for entry in payload:
        identifier = entry["@id"]
        external_records = dict(entry.get("externalRecords") or {})
        if identifier == UNRESOLVED_IDENTIFIER:
            results.append(Unresolved(external_records=external_records))
        else:
            results.append(Resolved(identifier=identifier, external_records=external_records))
    return results


class RegistryClient:
    """Submit VCF payloads to the registry in query or name/register mode."""

    def __init__(
        self,
        credentials: Credentials | None = None,
        *,
        base_url: str = DEFAULT_REGISTRY_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        include_external_records: bool = True,
        session_factory: Callable[[], requests.Session] = requests.Session,
        clock: Callable[[], float] = time.time,
        logger: logging.Logger | None = None,
    ) -> None:
        self.credentials = credentials
        self.base_url = base_url
        self.timeout = timeout
        self.include_external_records = include_external_records
        self.session_factory = session_factory
        self._local = threading.local()
        self.clock = clock
        self.logger = logger or logging.getLogger("variantnaming.client")

    @property
    def session(self) -> requests.Session:
        """Session owned by the calling thread; sessions are not shared across threads."""

        session = getattr(self._local, "session", None)
        if session is None:
            session = self.session_factory()
            self._local.session = session
        return session

    @property
    def url(self) -> str:
        fields = "none+@id+externalRecords" if self.include_external_records else "none+@id"
        return f"{self.base_url}?file=vcf&fields={fields}"

    def submit(self, payload: str, authenticated: bool = False) -> list[RegistryResult]:
        """Send one batch payload and return results aligned with its lines."""

        if authenticated:
            if self.credentials is None:
                raise FatalConfigError("Name/register mode requires registry credentials")
            # Signature embeds the current time, so it is never reused.
            request_url = sign_url(self.url, self.credentials, str(int(self.clock())))
            method = "PUT"
        else:
            request_url = self.url
            method = "POST"

        body = payload.encode("utf-8")
        self.logger.debug("%s %s (%d bytes)", method, self.url, len(body))
        try:
            response = self.session.request(
                method,
                request_url,
                data=body,
                timeout=self.timeout,
            )
        except requests.Timeout as exc:
            self.logger.warning("%s request to %s timed out after %ss", method, self.url, self.timeout)
            raise RegistryTimeoutError(
                f"{method} request timed out after {self.timeout}s: {exc}"
            ) from exc
        except requests.RequestException as exc:
            raise RegistryTransportError(f"{method} request failed: {exc}") from exc

        self.logger.debug("%s response: HTTP %d, %d bytes", method, response.status_code, len(response.text))
        if not response.ok:
            raise RegistryResponseError(
                f"Error for {method} request: HTTP {response.status_code}",
                status_code=response.status_code,
                payload=self._error_payload(response.text),
            )

        return decode_response(response.text, status_code=response.status_code)

    @staticmethod
    def _error_payload(body: str) -> Any:
        try:
            return json.loads(body)
        except json.JSONDecodeError:
            return body
