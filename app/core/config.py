from functools import lru_cache
from typing import Any

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.domain.errors import UnknownChainError


METHODOLOGY: dict[str, str] = {
    "Fees": "Total pools profits (equals total bets amount minus total won bets amount)",
    "Revenue": "Total pools profits (equals total bets amount minus total won bets amount)",
}


class ChainConfig(BaseModel):
    """Subgraph endpoint and inception timestamp for one deployment."""

    model_config = ConfigDict(frozen=True)

    endpoint: AnyHttpUrl
    start_timestamp: int = Field(ge=0, description="Protocol inception on the chain (unix seconds)")


def _default_chains() -> dict[str, ChainConfig]:
    return {
        "polygon": ChainConfig(
            endpoint="https://thegraph.azuro.org/subgraphs/name/azuro-protocol/azuro-api-polygon-v3",
            start_timestamp=1675209600,
        ),
        "xdai": ChainConfig(
            endpoint="https://thegraph.azuro.org/subgraphs/name/azuro-protocol/azuro-api-gnosis-v3",
            start_timestamp=1654646400,
        ),
        "arbitrum": ChainConfig(
            endpoint="https://thegraph.azuro.org/subgraphs/name/azuro-protocol/azuro-api-arbitrum-one-v3",
            start_timestamp=1686009600,
        ),
        "linea": ChainConfig(
            endpoint="https://thegraph.bookmaker.xyz/subgraphs/name/azuro-protocol/azuro-api-linea-v3",
            start_timestamp=1691452800,
        ),
        "chiliz": ChainConfig(
            endpoint="https://thegraph.bookmaker.xyz/subgraphs/name/azuro-protocol/azuro-api-chiliz-v3",
            start_timestamp=1716422400,
        ),
    }


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    debug: bool = Field(False, description="Enable FastAPI debug mode")
    environment: str = Field(
        default="development",
        description="Runtime environment (development|staging|production)",
    )
    subgraph_page_size: int = Field(
        1000,
        description="Number of bets requested per subgraph page",
        ge=1,
        le=1000,
    )
    subgraph_timeout_seconds: float = Field(
        default=30.0,
        description="HTTP timeout applied to each subgraph request",
        gt=0,
    )
    subgraph_max_pages: int | None = Field(
        default=None,
        description="Optional cap on pages per fetch (unset keeps paging until a short page)",
        ge=1,
    )
    report_fetch_workers: int = Field(
        default=4,
        description="Number of subgraph fetches run concurrently for one report",
        ge=1,
    )
    chains: dict[str, ChainConfig] = Field(
        default_factory=_default_chains,
        description="Chain name to subgraph endpoint and inception timestamp",
    )

    @field_validator("chains", mode="after")
    @classmethod
    def _normalize_chain_names(cls, value: dict[str, ChainConfig]) -> dict[str, ChainConfig]:
        normalized: dict[str, ChainConfig] = {}
        for name, config in value.items():
            key = name.strip().lower()
            if not key:
                raise ValueError("CHAINS entries must have a non-empty chain name")
            if key in normalized:
                raise ValueError(f"CHAINS contains duplicate chain name '{key}'")
            normalized[key] = config
        return normalized

    @field_validator("subgraph_max_pages", mode="before")
    @classmethod
    def _blank_max_pages(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def chain(self, name: str) -> ChainConfig:
        key = name.strip().lower()
        try:
            return self.chains[key]
        except KeyError:
            raise UnknownChainError(key, sorted(self.chains)) from None


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
