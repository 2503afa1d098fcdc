"""
Google GenAI client access shared by the generation adapters.

The client is built lazily from the credential provider and rebuilt whenever
the key changes. Provider errors are translated into the domain taxonomy
here, so adapters never leak SDK exceptions.
"""
import logging
from contextlib import contextmanager
from typing import Optional, Callable, Any

from google import genai
from google.genai import errors as genai_errors

from markova.core.domain.errors import AuthExpiredError, RemoteServiceError
from markova.core.ports.outbound import CredentialProviderPort

logger = logging.getLogger(__name__)

ENTITY_NOT_FOUND = "Requested entity was not found"


def translate_api_error(error: genai_errors.APIError, during_poll: bool = False):
    """Map an SDK error onto AuthExpiredError or RemoteServiceError"""
    code = getattr(error, "code", None)
    message = getattr(error, "message", None) or str(error)

    if code in (401, 403):
        return AuthExpiredError(message)
    if during_poll and (code == 404 or ENTITY_NOT_FOUND in message):
        return AuthExpiredError(message)
    return RemoteServiceError(message, remote_status=code)


class GenAIClientProvider:
    """Owns the SDK client for the current credential"""

    def __init__(self, credentials: CredentialProviderPort,
                 client_factory: Optional[Callable[[str], Any]] = None):
        self.credentials = credentials
        self._client_factory = client_factory or (lambda api_key: genai.Client(api_key=api_key))
        self._client = None
        self._client_key: Optional[str] = None

    @property
    def api_key(self) -> str:
        api_key = self.credentials.get_api_key()
        if not api_key:
            raise AuthExpiredError("Remote service credential is not configured")
        return api_key

    def get_client(self):
        api_key = self.api_key
        if self._client is None or self._client_key != api_key:
            self._client = self._client_factory(api_key)
            self._client_key = api_key
        return self._client

    def credential_rejected(self) -> None:
        """Drop the client; the next call picks up a refreshed key"""
        self._client = None
        self._client_key = None
        self.credentials.refresh()

    @contextmanager
    def translate_errors(self, operation: str, during_poll: bool = False):
        try:
            yield
        except genai_errors.APIError as e:
            translated = translate_api_error(e, during_poll=during_poll)
            logger.warning("Remote generation call failed", extra={
                "operation": operation,
                "remote_status": getattr(e, "code", None),
                "error_type": type(translated).__name__,
                "error": translated.message
            })
            if isinstance(translated, AuthExpiredError):
                self.credential_rejected()
            raise translated from e
