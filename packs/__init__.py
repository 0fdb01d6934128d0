"""Pack management for ProjectHub.

Packs are directories under the managed pack root holding templates and
libraries. This package scans them into cached listings, installs and removes
them, and talks to remote marketplaces.
"""

from .cache import CacheState, MetadataCache, SingleFlight
from .installer import InstallError, PackInstaller, derive_pack_name
from .manifest import ManifestError, PackInfo, PackManifest, list_installed_packs
from .marketplace import (
    Marketplace,
    MarketplaceClient,
    MarketplaceError,
    MarketplacePack,
    MarketplaceRegistry,
)

__all__ = [
    # Cache
    "CacheState",
    "MetadataCache",
    "SingleFlight",
    # Installer
    "InstallError",
    "PackInstaller",
    "derive_pack_name",
    # Manifests
    "ManifestError",
    "PackInfo",
    "PackManifest",
    "list_installed_packs",
    # Marketplace
    "Marketplace",
    "MarketplaceClient",
    "MarketplaceError",
    "MarketplacePack",
    "MarketplaceRegistry",
]
