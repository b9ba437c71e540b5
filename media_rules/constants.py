from typing import Final


APP_DIRNAME: Final[str] = "media-rules"
HOME_ENV_VAR: Final[str] = "MEDIA_RULES_HOME"

RULES_FILENAME: Final[str] = "rules.yaml"
LIBRARY_FILENAME: Final[str] = "library.json"

RULE_ID_PREFIX: Final[str] = "rule_"
RULE_ID_LENGTH: Final[int] = 8
DEFAULT_RULE_PRIORITY: Final[int] = 10

UPLOAD_CONTEXT_CREATE: Final[str] = "create"

PREVIEW_DEFAULT_LIMIT: Final[int] = 50
PREVIEW_MIN_LIMIT: Final[int] = 1
PREVIEW_MAX_LIMIT: Final[int] = 200

PREVIEW_DEFAULT_TARGET_MATCHES: Final[int] = 50
PREVIEW_MIN_TARGET_MATCHES: Final[int] = 1
PREVIEW_MAX_TARGET_MATCHES: Final[int] = 200

PREVIEW_DEFAULT_MAX_SCAN: Final[int] = 500
PREVIEW_MIN_MAX_SCAN: Final[int] = 50
PREVIEW_MAX_MAX_SCAN: Final[int] = 5000

KILOBYTE: Final[int] = 1024
