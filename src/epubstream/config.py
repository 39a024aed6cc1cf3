"""Extraction configuration."""

from pydantic import BaseModel, ConfigDict, Field

from epubstream.models.chapter import ParseMode


class ExtractorConfig(BaseModel):
    """Options controlling how chapters are streamed.

    ``workers`` above 1 switches the pipeline to a thread pool that parses up
    to ``lookahead`` chapters ahead of the consumer while still delivering
    them in spine order.
    """

    model_config = ConfigDict(frozen=True)

    mode: ParseMode = ParseMode.TEXT
    workers: int = Field(default=1, ge=1)
    lookahead: int = Field(default=4, ge=1)
    max_entry_size: int | None = Field(default=None, gt=0)
