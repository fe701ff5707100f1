"""Work item model for the analyzer's batch/watch orchestrator."""

from enum import Enum

from pydantic import BaseModel


class ItemStatus(str, Enum):
    """Per-item lifecycle.

    discovered → classifying → retained | discarded | failed

    The last three are terminal; nothing is retried automatically.
    """

    DISCOVERED = "discovered"
    CLASSIFYING = "classifying"
    RETAINED = "retained"
    DISCARDED = "discarded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ItemStatus.RETAINED, ItemStatus.DISCARDED, ItemStatus.FAILED)


class ItemResult(BaseModel):
    """Outcome of pushing one scraped-post file through the pipeline."""

    source: str
    status: ItemStatus = ItemStatus.DISCOVERED
    post_id: str | None = None
    analysis_id: str | None = None
    risk_level: str | None = None
    flagged: bool | None = None
    priority_score: int | None = None
    stored_path: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status in (ItemStatus.RETAINED, ItemStatus.DISCARDED)
