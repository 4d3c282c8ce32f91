from .registry import load_providers, ProviderSet

__all__ = [
    "load_providers",
    "ProviderSet",
]
