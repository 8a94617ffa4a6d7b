"""On-demand fee reports for the API."""

from __future__ import annotations

from datetime import datetime, timezone

from app.core.config import METHODOLOGY, Settings
from app.domain import FeeReport
from app.schemas import ChainInfo
from pipelines.daily_run import ReportFn, build_report


class FeeService:
    def __init__(self, settings: Settings, *, report_fn: ReportFn = build_report) -> None:
        self.settings = settings
        self.report_fn = report_fn

    def list_chains(self) -> list[ChainInfo]:
        return [
            ChainInfo(
                chain=name,
                endpoint=str(config.endpoint),
                start_timestamp=config.start_timestamp,
                methodology=dict(METHODOLOGY),
            )
            for name, config in self.settings.chains.items()
        ]

    def report(self, chain: str, timestamp: int | None = None) -> FeeReport:
        """Build the report for a chain; raises UnknownChainError for unconfigured chains."""

        config = self.settings.chain(chain)
        if timestamp is None:
            timestamp = int(datetime.now(timezone.utc).timestamp())
        return self.report_fn(
            str(config.endpoint),
            config.start_timestamp,
            timestamp,
            settings=self.settings,
        )
