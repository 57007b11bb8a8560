"""Cross-chain protocol metrics from the warehouse."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping

from snx_api.core.aggregator import NULL_AS_NULL, parse_decimal
from snx_api.core.exceptions import ValidationError
from snx_api.handlers.base import MetricHandler
from snx_api.schemas.responses import TopAssetResponse, Tvl420Response, TvlResponse

# chain label -> warehouse schema suffix, for chains running V3 pools
V3_CHAINS = {
    "base": "base_mainnet",
    "ethereum": "eth_mainnet",
    "arbitrum": "arbitrum_mainnet",
}


def latest_per_collateral(chain: str, schema: str, columns: str, join: str = "") -> str:
    return f"""SELECT '{chain}' AS chain,
                   {columns},
                   ROW_NUMBER() OVER (
                       PARTITION BY apr.collateral_type
                       ORDER BY apr.ts DESC
                   ) AS rn
               FROM prod_{schema}.fct_core_apr_{schema} apr
               {join}"""


TVL_QUERY = """SELECT ROUND(SUM(collateral_value), 2) AS tvl
FROM (
    {union}
) sub
WHERE rn = 1""".format(union="\n    UNION ALL\n    ".join(
    latest_per_collateral(chain, schema, "apr.collateral_type, apr.collateral_value, apr.ts")
    for chain, schema in V3_CHAINS.items()
))

TOP_ASSET_QUERY = """WITH combined AS (
    {union}
)
SELECT chain,
    token_symbol,
    ROUND(apy_7d, 8) AS apy,
    ROUND(apr_7d, 8) AS apr
FROM combined
WHERE rn = 1
ORDER BY apy_7d DESC
LIMIT 1""".format(union="\n    UNION ALL\n    ".join(
    latest_per_collateral(
        chain, schema, "t.token_symbol, apr.apy_7d, apr.apr_7d",
        join=f"JOIN prod_seeds.{schema}_tokens t ON LOWER(apr.collateral_type) = LOWER(t.token_address)",
    )
    for chain, schema in V3_CHAINS.items()
))


class TvlHandler(MetricHandler):
    """Total collateral value across every V3 deployment."""

    name = "v3-tvl"
    ttl_seconds = 60
    response_model = TvlResponse
    refresh_params = [{}]

    async def compute(self, params: Dict[str, str]) -> Dict:
        rows = await self.query(TVL_QUERY)
        return {
            "timestamp": datetime.now(timezone.utc),
            "tvl": parse_decimal(rows[0]["tvl"] if rows else None, NULL_AS_NULL),
        }


class TopAssetHandler(MetricHandler):
    """Collateral with the highest 7-day APY on any chain."""

    name = "v3-top-asset"
    ttl_seconds = 60
    response_model = TopAssetResponse
    refresh_params = [{}]

    async def compute(self, params: Dict[str, str]) -> Dict:
        rows = await self.query(TOP_ASSET_QUERY)
        row = rows[0] if rows else {}
        return {
            "timestamp": datetime.now(timezone.utc),
            "chain": row.get("chain"),
            "token_symbol": row.get("token_symbol"),
            "apr": parse_decimal(row.get("apr"), NULL_AS_NULL),
            "apy": parse_decimal(row.get("apy"), NULL_AS_NULL),
        }


# network -> warehouse schema for protocol-owned liquidity stats
TVL420_NETWORKS = {
    "cross": "cross_chains",
    "ethereum": "eth_mainnet",
    "optimism": "optimism_mainnet",
}

# span -> (lookback interval, row limit)
TVL420_SPANS = {
    "hourly": ("7 days", 200),
    "daily": ("2 months", 100),
    "weekly": ("1 year", 100),
    "monthly": ("5 years", 100),
}


class Tvl420Handler(MetricHandler):
    """Cumulative protocol-owned liquidity series for the 420 pool."""

    name = "tvl420"
    ttl_seconds = 600
    response_model = Tvl420Response
    refresh_params = [{"network": "cross", "span": "daily"}]

    def validate(self, params: Mapping[str, Any]) -> Dict[str, str]:
        network, span = params.get("network"), params.get("span")
        if network not in TVL420_NETWORKS or span not in TVL420_SPANS:
            raise ValidationError("Invalid network or span.")
        return {"network": network, "span": span}

    async def compute(self, params: Dict[str, str]) -> List[Dict]:
        schema = TVL420_NETWORKS[params["network"]]
        span = params["span"]
        interval, limit = TVL420_SPANS[span]

        rows = await self.query(
            f"""SELECT t.ts, t.{span}_cumulative_amount AS value
                FROM prod_{schema}.fct_pol_stats_{span}_{schema} t
                WHERE t.ts >= NOW() - INTERVAL '{interval}'
                LIMIT :limit""",
            {"limit": limit},
        )
        return [
            {"ts": row["ts"], "value": parse_decimal(row["value"], NULL_AS_NULL)}
            for row in rows
        ]
