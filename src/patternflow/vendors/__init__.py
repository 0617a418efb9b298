"""Vendor client implementations and the vendor registry."""

from .anthropic import AnthropicVendor
from .base import BaseVendorClient, VendorConfig
from .dryrun import DryRunVendor
from .ollama import OllamaVendor
from .openai import OpenAIVendor
from .registry import VendorRegistry

__all__ = [
    "AnthropicVendor",
    "BaseVendorClient",
    "DryRunVendor",
    "OllamaVendor",
    "OpenAIVendor",
    "VendorConfig",
    "VendorRegistry",
]
