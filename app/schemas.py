from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.services.aggregation import format_amount


class FeeReportOut(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True
    )

    timestamp: int
    daily_fees: str
    daily_revenue: str
    total_fees: str
    total_revenue: str

    @field_validator("daily_fees", "daily_revenue", "total_fees", "total_revenue", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> str:
        if isinstance(value, (int, float)):
            return format_amount(float(value))
        return value


class ChainInfo(BaseModel):
    chain: str
    endpoint: str
    start_timestamp: int
    methodology: dict[str, str] = Field(default_factory=dict)


class ChainList(BaseModel):
    total: int
    items: list[ChainInfo]
