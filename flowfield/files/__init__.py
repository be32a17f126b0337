from .asset_provider import (
    BuiltinAssetProvider, ChainedAssetProvider, DirectoryAssetProvider, HttpAssetProvider, build_asset_provider
)
