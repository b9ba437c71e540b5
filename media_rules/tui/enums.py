from enum import Enum

from media_rules.models import ApplyStatus, PreviewStatus


class UIStyle(str, Enum):
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"
    CYAN = "cyan"
    DIM = "dim"
    WHITE = "white"


PREVIEW_STATUS_STYLE = {
    PreviewStatus.WILL_ASSIGN: UIStyle.GREEN.value,
    PreviewStatus.NO_MATCH: UIStyle.DIM.value,
}

APPLY_STATUS_STYLE = {
    ApplyStatus.ASSIGNED: UIStyle.GREEN.value,
    ApplyStatus.SKIPPED: UIStyle.YELLOW.value,
    ApplyStatus.ERROR: UIStyle.RED.value,
}
