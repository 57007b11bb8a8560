"""Spartan council pool APR/APY metrics from the warehouse."""

from typing import Dict, List, Sequence, Tuple

from snx_api.core.aggregator import NULL_AS_NULL, parse_decimal
from snx_api.core.exceptions import NotFoundError
from snx_api.handlers.base import ChainMetricHandler
from snx_api.schemas.responses import PoolApyListResponse, PoolApyResponse

# chain -> warehouse schema suffix
CHAIN_SCHEMAS = {
    "base": "base_mainnet",
    "arbitrum": "arbitrum_mainnet",
    "mainnet": "eth_mainnet",
}

SC_POOL_ID = 1

# (column, field) pairs for a pool snapshot
CORE_COLUMNS: List[Tuple[str, str]] = [
    ("collateral_value", "collateralValue"),
    ("debt", "debtAmount"),
    ("hourly_issuance", "hourlyIssuance"),
    ("hourly_pnl", "hourlyPnl"),
    ("cumulative_pnl", "cumulativePnl"),
    ("cumulative_issuance", "cumulativeIssuance"),
    ("rewards_usd", "rewardsUSD"),
    ("hourly_pnl_pct", "hourlyPnlPct"),
    ("hourly_rewards_pct", "hourlyRewardsPct"),
]

WINDOWS = ("24h", "7d", "28d")


def _rate_columns(suffix: str = "", field_suffix: str = "") -> List[Tuple[str, str]]:
    columns = []
    for window in WINDOWS:
        for kind in ("apr", "apy"):
            columns.append((f"{kind}_{window}{suffix}", f"{kind}{window}{field_suffix}"))
    return columns


RATE_COLUMNS = (
    _rate_columns()
    + _rate_columns("_pnl", "Pnl")
    + _rate_columns("_rewards", "Rewards")
)

EXTENDED_RATE_COLUMNS = (
    _rate_columns("_incentive_rewards", "IncentiveRewards")
    + _rate_columns("_performance", "Performance")
)

# only the arbitrum model carries incentive and performance breakdowns
EXTENDED_CHAINS = {"arbitrum"}


def apr_table(chain: str) -> str:
    schema = CHAIN_SCHEMAS.get(chain)
    if schema is None:
        raise NotFoundError(f"No APR table for chain {chain}")
    return f"prod_{schema}.fct_core_apr_{schema}"


def snapshot_columns(chain: str, extended: bool = True) -> List[Tuple[str, str]]:
    columns = CORE_COLUMNS + RATE_COLUMNS
    if extended and chain in EXTENDED_CHAINS:
        columns = columns + EXTENDED_RATE_COLUMNS
    return columns


def to_pool_record(row: Dict, columns: Sequence[Tuple[str, str]]) -> Dict:
    """Map a warehouse row to camelCase fields. Missing numbers become null."""

    record = {
        "timestamp": row["ts"],
        "poolId": row["pool_id"],
        "collateralType": row["collateral_type"],
    }
    for column, field in columns:
        record[field] = parse_decimal(row.get(column), NULL_AS_NULL)

    # first-generation APY fields, still read by older clients
    record["aprPnl"] = record.get("apr7dPnl")
    record["aprRewards"] = record.get("apr7dRewards")
    record["aprCombined"] = record.get("apr7d")
    return record


class PoolApyHandler(ChainMetricHandler):
    """Latest 7-day APR of the pool, split into PnL and rewards."""

    name = "sc-pool-apy"
    ttl_seconds = 60
    response_model = PoolApyResponse
    chains = {"base": "base_mainnet", "arbitrum": "arbitrum_mainnet"}

    async def compute(self, params: Dict[str, str]) -> Dict:
        rows = await self.query(
            f"""SELECT ts, pool_id, collateral_type, apr_7d, apr_7d_pnl, apr_7d_rewards
                FROM {apr_table(params['chain'])}
                WHERE pool_id = :pool_id
                ORDER BY ts DESC
                LIMIT 1""",
            {"pool_id": SC_POOL_ID},
        )
        row = rows[0] if rows else {}

        return {
            "aprPnl": parse_decimal(row.get("apr_7d_pnl"), NULL_AS_NULL),
            "aprRewards": parse_decimal(row.get("apr_7d_rewards"), NULL_AS_NULL),
            "aprCombined": parse_decimal(row.get("apr_7d"), NULL_AS_NULL),
        }


class PoolApyAllHandler(ChainMetricHandler):
    """Most recent snapshot for every collateral type in the pool."""

    name = "sc-pool-apy-all"
    ttl_seconds = 300
    response_model = PoolApyListResponse
    chains = dict(CHAIN_SCHEMAS)
    refresh_params = [{"chain": chain} for chain in CHAIN_SCHEMAS]

    async def compute(self, params: Dict[str, str]) -> List[Dict]:
        chain = params["chain"]
        columns = snapshot_columns(chain)
        select = ", ".join(column for column, _ in columns)

        rows = await self.query(
            f"""WITH latest_records AS (
                    SELECT DISTINCT ON (collateral_type)
                        ts, pool_id, collateral_type, {select}
                    FROM {apr_table(chain)}
                    WHERE pool_id = :pool_id
                    ORDER BY collateral_type, ts DESC
                )
                SELECT * FROM latest_records
                ORDER BY ts DESC""",
            {"pool_id": SC_POOL_ID},
        )
        return [to_pool_record(row, columns) for row in rows]


class PoolApyHistoryHandler(ChainMetricHandler):
    """Pool APR history sampled once a day from the hourly series."""

    name = "sc-pool-apy-history"
    ttl_seconds = 300
    response_model = PoolApyListResponse
    chains = {"base": "base_mainnet", "arbitrum": "arbitrum_mainnet"}
    refresh_params = [{"chain": "base"}, {"chain": "arbitrum"}]

    HOURS_PER_SAMPLE = 24
    MAX_ROWS = 100000

    async def compute(self, params: Dict[str, str]) -> List[Dict]:
        chain = params["chain"]
        columns = snapshot_columns(chain, extended=False)
        select = ", ".join(column for column, _ in columns)

        rows = await self.query(
            f"""SELECT ts, pool_id, collateral_type, {select}
                FROM {apr_table(chain)}
                WHERE pool_id = :pool_id
                ORDER BY ts DESC
                LIMIT :max_rows""",
            {"pool_id": SC_POOL_ID, "max_rows": self.MAX_ROWS},
        )
        return [
            to_pool_record(row, columns)
            for row in rows[::self.HOURS_PER_SAMPLE]
        ]
