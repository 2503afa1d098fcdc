import getpass
import logging
import os
import threading
from typing import Optional, Callable

from markova.core.ports.outbound import CredentialProviderPort

logger = logging.getLogger(__name__)


class EnvironmentCredentialProvider(CredentialProviderPort):
    """Key configured by the operator through the environment"""

    def __init__(self, api_key: Optional[str] = None, env_var: str = "GEMINI_API_KEY"):
        self.env_var = env_var
        self._api_key = api_key or None

    def get_api_key(self) -> Optional[str]:
        return self._api_key or os.getenv(self.env_var) or None

    def refresh(self) -> Optional[str]:
        # Nothing to prompt for; pick up a key rotated into the environment
        self._api_key = os.getenv(self.env_var) or self._api_key
        logger.warning("Remote credential rejected; reloaded from environment", extra={
            "env_var": self.env_var,
            "has_key": bool(self._api_key)
        })
        return self._api_key


class InteractiveCredentialProvider(CredentialProviderPort):
    """
    Asks the operator on the terminal.

    The first prompt happens at startup, before requests are served. After a
    rejection the key is dropped and the prompt runs on a background thread,
    so the event loop keeps serving while the operator types; calls made in
    the meantime fail with AuthExpiredError.
    """

    def __init__(self, initial_key: Optional[str] = None,
                 prompt: Callable[[str], str] = getpass.getpass,
                 prompt_text: str = "Gemini API key: "):
        self._api_key = initial_key or None
        self._prompt = prompt
        self.prompt_text = prompt_text
        self._lock = threading.Lock()
        self._prompt_thread: Optional[threading.Thread] = None

    def get_api_key(self) -> Optional[str]:
        return self._api_key

    def prompt_for_key(self) -> Optional[str]:
        """Blocking terminal prompt; never call it on the event loop thread"""
        with self._lock:
            entered = (self._prompt(self.prompt_text) or "").strip()
            self._api_key = entered or None
        logger.info("Remote credential entered", extra={"has_key": bool(self._api_key)})
        return self._api_key

    def refresh(self) -> Optional[str]:
        self._api_key = None
        if self._prompt_thread is not None and self._prompt_thread.is_alive():
            return None
        logger.warning("Remote credential rejected; waiting for a new key on the terminal")
        self._prompt_thread = threading.Thread(target=self.prompt_for_key, name="credential-prompt", daemon=True)
        self._prompt_thread.start()
        return None

    def wait_for_prompt(self, timeout: Optional[float] = None) -> Optional[str]:
        if self._prompt_thread is not None:
            self._prompt_thread.join(timeout)
        return self._api_key


def build_credential_provider(source: str, api_key: Optional[str] = None) -> CredentialProviderPort:
    if source == "interactive":
        provider = InteractiveCredentialProvider(initial_key=api_key)
        if not provider.has_valid_key():
            provider.prompt_for_key()
        return provider
    if source == "environment":
        return EnvironmentCredentialProvider(api_key=api_key)
    raise ValueError(f"Unknown credential source: {source}")
