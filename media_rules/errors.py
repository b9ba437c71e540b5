from pathlib import Path


class MediaRulesError(Exception):
    """Base user-facing application error."""


class StoreFileError(MediaRulesError):
    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{message}: {path}")


class InvalidJsonFormatError(StoreFileError):
    def __init__(self, path: Path, detail: str) -> None:
        self.detail = detail
        super().__init__(path=path, message=f"Invalid JSON format ({detail})")


class InvalidRulesFileError(StoreFileError):
    def __init__(self, path: Path, detail: str) -> None:
        self.detail = detail
        super().__init__(path=path, message=f"Invalid rules file ({detail})")


class InvalidRuleError(MediaRulesError):
    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Invalid rule ({detail})")


class RuleNotFoundError(MediaRulesError):
    def __init__(self, rule_id: str) -> None:
        self.rule_id = rule_id
        super().__init__(f"Rule not found: {rule_id}")


class FolderNotFoundError(MediaRulesError):
    def __init__(self, folder_id: int) -> None:
        self.folder_id = folder_id
        super().__init__(f"Folder not found: {folder_id}")


class ItemNotFoundError(MediaRulesError):
    def __init__(self, item_id: int) -> None:
        self.item_id = item_id
        super().__init__(f"Media item not found: {item_id}")


class MatcherRegistryLockedError(MediaRulesError):
    def __init__(self, condition_type: str) -> None:
        self.condition_type = condition_type
        super().__init__(
            f"Cannot register matcher '{condition_type}' after evaluation started"
        )
