from .registry import get_providers, reload_providers, load_providers, ProviderSet

__all__ = [
    "get_providers",
    "reload_providers",
    "load_providers",
    "ProviderSet",
]
