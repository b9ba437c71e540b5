from media_rules.interfaces.repositories import (
    IFolderSink,
    IItemSource,
    ILibrary,
    IMetadataProvider,
    IRuleSource,
)

__all__ = [
    "IFolderSink",
    "IItemSource",
    "ILibrary",
    "IMetadataProvider",
    "IRuleSource",
]
