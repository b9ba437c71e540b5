from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional

from media_rules.models import Folder, ItemMetadata
from media_rules.rules.models import Rule


class IRuleSource(ABC):
    @abstractmethod
    def get_enabled(self) -> list[Rule]:
        """Enabled rules, ascending by priority (stable)."""
        raise NotImplementedError

    @abstractmethod
    def get(self, rule_id: str) -> Optional[Rule]:
        raise NotImplementedError

    @abstractmethod
    def list_rules(self) -> list[Rule]:
        raise NotImplementedError


class IMetadataProvider(ABC):
    @abstractmethod
    def get_metadata(self, item_id: int) -> Optional[ItemMetadata]:
        raise NotImplementedError


class IItemSource(ABC):
    @abstractmethod
    def list_item_ids(
        self,
        unassigned_only: bool = False,
        mime_type: Optional[str] = None,
        item_ids: Optional[Iterable[int]] = None,
    ) -> list[int]:
        """Filtered item ids in ascending order."""
        raise NotImplementedError

    @abstractmethod
    def counts(self) -> tuple[int, int]:
        """Return (total items, items with a folder)."""
        raise NotImplementedError


class IFolderSink(ABC):
    @abstractmethod
    def get_folder(self, folder_id: int) -> Optional[Folder]:
        raise NotImplementedError

    @abstractmethod
    def list_folders(self) -> list[Folder]:
        raise NotImplementedError

    @abstractmethod
    def folder_of(self, item_id: int) -> Optional[int]:
        raise NotImplementedError

    @abstractmethod
    def assign(self, item_id: int, folder_id: int) -> bool:
        """Assign ``folder_id`` to ``item_id``; False when the folder is gone."""
        raise NotImplementedError

    @contextmanager
    def batch(self) -> Iterator[None]:
        """Group many assignments; stores may hold writes until the block exits."""
        yield


class ILibrary(IMetadataProvider, IItemSource, IFolderSink):
    """Everything the batch processor needs from the media library."""
