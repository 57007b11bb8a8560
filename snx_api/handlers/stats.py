"""Trading statistics from the warehouse."""

from datetime import datetime, timezone
from typing import Dict

from snx_api.core.aggregator import NULL_AS_ZERO, parse_decimal
from snx_api.handlers.base import MetricHandler
from snx_api.schemas.responses import PerpsVolumeResponse

# hourly perps stats tables contributing to the headline volume
PERPS_TABLES = [
    "prod_base_mainnet.fct_perp_stats_hourly_base_mainnet",
    "prod_arbitrum_mainnet.fct_perp_stats_hourly_arbitrum_mainnet",
    "prod_optimism_mainnet.fct_v2_stats_hourly_optimism_mainnet",
]

VOLUME_WINDOWS = {
    "volume_24h": "24 HOURS",
    "volume_7d": "7 DAYS",
}

PERPS_VOLUME_QUERY = """WITH volume AS (
    {union}
)
SELECT label, ROUND(SUM(volume), 2) AS volume
FROM volume
GROUP BY label""".format(union="\n    UNION ALL\n    ".join(
    f"SELECT ts, '{label}' AS label, volume FROM {table} WHERE ts >= NOW() - INTERVAL '{window}'"
    for label, window in VOLUME_WINDOWS.items()
    for table in PERPS_TABLES
))


class PerpsVolumeHandler(MetricHandler):
    """Perps volume over the last day and week, all markets combined."""

    name = "perps-volume"
    ttl_seconds = 60
    response_model = PerpsVolumeResponse
    refresh_params = [{}]

    async def compute(self, params: Dict[str, str]) -> Dict:
        rows = await self.query(PERPS_VOLUME_QUERY)
        volumes = {row["label"]: row["volume"] for row in rows}

        # a window with no trades has no row
        return {
            "timestamp": datetime.now(timezone.utc),
            "volume_24h": parse_decimal(volumes.get("volume_24h"), NULL_AS_ZERO),
            "volume_7d": parse_decimal(volumes.get("volume_7d"), NULL_AS_ZERO),
        }
