"""
Vendor Registry & Selector.

Holds the configured vendor clients and resolves exactly one vendor and
model for a request. Model discovery runs concurrently against the
candidates registered ahead of the first vendor claiming the model; a
vendor whose listing fails or times out simply contributes no
discovered models.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Optional, Sequence

from ..domain.exceptions import (
    ModelNotAvailableError,
    NoVendorsConfiguredError,
    VendorNotConfiguredError,
)
from ..domain.ports import IVendorClient

logger = logging.getLogger(__name__)


class VendorRegistry:
    """Registry of vendor clients with model-based selection.

    Registration is copy-on-write under a lock, so selections that are
    already running keep iterating the snapshot they started with.

    Usage:
        registry = VendorRegistry(model_list_timeout=5.0)
        registry.register(OpenAIVendor(openai_config))
        registry.register(OllamaVendor(ollama_config))
        registry.set_default("openai", "gpt-4o")

        client, model = await registry.select(model_hint="qwen3:4b")

    Selection rules:
        - Only vendors whose is_configured() is True are candidates
        - A vendor hint narrows the candidates to that vendor
        - A model hint picks the first candidate, in registration order,
          that claims or lists the model
        - Without hints the default vendor/model pair is used, falling
          back to the first configured vendor and its default model
    """

    def __init__(self, model_list_timeout: float = 10.0, discover_models: bool = True):
        """Initialize the registry.

        Args:
            model_list_timeout: Seconds to wait for one vendor's model list
            discover_models: Query vendors for their models during selection
        """
        self.model_list_timeout = model_list_timeout
        self.discover_models = discover_models
        self._lock = threading.RLock()
        self._clients: tuple[IVendorClient, ...] = ()
        self._default: Optional[tuple[str, str]] = None

    # ============================================
    # Configuration
    # ============================================

    def register(self, client: IVendorClient) -> None:
        """Register a vendor client, replacing one with the same name in place."""
        key = client.name.lower()
        with self._lock:
            clients = list(self._clients)
            for index, existing in enumerate(clients):
                if existing.name.lower() == key:
                    clients[index] = client
                    break
            else:
                clients.append(client)
            self._clients = tuple(clients)

        logger.info(
            f"Registered vendor {client.name} "
            f"(configured={client.is_configured()})"
        )

    def unregister(self, name: str) -> bool:
        """Remove a vendor by name. Returns True if one was removed."""
        key = name.lower()
        with self._lock:
            remaining = tuple(c for c in self._clients if c.name.lower() != key)
            removed = len(remaining) != len(self._clients)
            self._clients = remaining
        return removed

    def set_default(self, vendor: Optional[str], model: Optional[str]) -> None:
        """Set the vendor/model pair used when a request names neither."""
        with self._lock:
            self._default = (vendor, model) if vendor and model else None

    @property
    def default(self) -> Optional[tuple[str, str]]:
        return self._default

    def snapshot(self) -> tuple[tuple[IVendorClient, ...], Optional[tuple[str, str]]]:
        """Return the registered clients and default pair as one consistent view."""
        with self._lock:
            return self._clients, self._default

    def get(self, name: str) -> Optional[IVendorClient]:
        clients, _ = self.snapshot()
        return self._find(clients, name)

    def configured_vendors(self) -> list[IVendorClient]:
        clients, _ = self.snapshot()
        return [c for c in clients if c.is_configured()]

    @staticmethod
    def _find(clients: Sequence[IVendorClient], name: str) -> Optional[IVendorClient]:
        key = name.lower()
        for client in clients:
            if client.name.lower() == key:
                return client
        return None

    # ============================================
    # Model Discovery
    # ============================================

    async def _list_one(self, client: IVendorClient) -> list[str]:
        try:
            return list(
                await asyncio.wait_for(client.list_models(), self.model_list_timeout)
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Model listing for {client.name} timed out after "
                f"{self.model_list_timeout}s"
            )
        except Exception as e:
            logger.warning(f"Model listing for {client.name} failed: {e}")
        return []

    async def _discover(self, clients: Sequence[IVendorClient]) -> dict[str, list[str]]:
        results = await asyncio.gather(*(self._list_one(c) for c in clients))
        return {client.name: models for client, models in zip(clients, results)}

    async def list_models(self) -> dict[str, list[str]]:
        """List models of every configured vendor.

        Returns:
            Vendor name to sorted model names (claimed plus discovered)
        """
        configured = self.configured_vendors()
        discovered = await self._discover(configured)
        return {
            client.name: sorted(set(client.descriptor.models) | set(discovered[client.name]))
            for client in configured
        }

    # ============================================
    # Selection
    # ============================================

    async def select(
        self,
        model_hint: Optional[str] = None,
        vendor_hint: Optional[str] = None,
    ) -> tuple[IVendorClient, str]:
        """Select the vendor and model for a request.

        Args:
            model_hint: Model requested by the caller
            vendor_hint: Vendor requested by the caller

        Returns:
            Tuple of (vendor client, model)

        Raises:
            NoVendorsConfiguredError: If no registered vendor is configured
            VendorNotConfiguredError: If the requested vendor is absent or
                not configured
            ModelNotAvailableError: If no candidate serves the model
        """
        clients, default = self.snapshot()
        candidates = [c for c in clients if c.is_configured()]
        if not candidates:
            raise NoVendorsConfiguredError()

        if vendor_hint:
            client = self._find(candidates, vendor_hint)
            if client is None:
                raise VendorNotConfiguredError(vendor_hint)
            candidates = [client]

        if model_hint:
            client = await self._select_for_model(candidates, model_hint)
            if client is None:
                raise ModelNotAvailableError(model_hint, vendor_hint)
            logger.info(f"Selected vendor {client.name} for model {model_hint}")
            return client, model_hint

        if vendor_hint:
            client = candidates[0]
            if default and default[0].lower() == client.name.lower():
                return client, default[1]
            model = client.descriptor.default_model
            if not model:
                raise ModelNotAvailableError(None, client.name)
            return client, model

        if default:
            vendor_name, model = default
            client = self._find(candidates, vendor_name)
            if client is None:
                raise VendorNotConfiguredError(vendor_name)
            logger.debug(f"Using default vendor {client.name} with model {model}")
            return client, model

        client = candidates[0]
        model = client.descriptor.default_model
        if not model:
            raise ModelNotAvailableError(None, client.name)
        logger.debug(f"No default pair set, using {client.name} with model {model}")
        return client, model

    async def _select_for_model(
        self, candidates: list[IVendorClient], model: str
    ) -> Optional[IVendorClient]:
        # Only vendors registered ahead of the first claimant need listing
        claimant = next((c for c in candidates if c.descriptor.serves(model)), None)
        ahead = candidates[:candidates.index(claimant)] if claimant else candidates

        if self.discover_models and ahead:
            discovered = await self._discover(ahead)
            for client in ahead:
                if model in discovered[client.name]:
                    return client
        return claimant
