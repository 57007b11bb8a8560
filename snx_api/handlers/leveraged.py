"""Leveraged token trades and leaderboard from the warehouse."""

import re
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from snx_api.core.aggregator import NULL_AS_NULL, parse_decimal
from snx_api.core.exceptions import ValidationError
from snx_api.handlers.base import ChainMetricHandler, MetricHandler
from snx_api.schemas.responses import LtLeaderboardResponse, LtTradesResponse

ACCOUNT_ADDRESS_PATTERN = re.compile(r"(?:0x)?([0-9a-fA-F]{40})")

MAX_TRADES = 100

# first epoch of the current leaderboard season
LEADERBOARD_START = date(2025, 1, 14)

TRADE_AMOUNT_COLUMNS = ("leverage", "leveraged_token_amount", "base_asset_amount")
LEADERBOARD_AMOUNT_COLUMNS = ("total_fees_paid", "fees_paid_pct", "volume", "volume_pct")


def validate_account_address(raw: Optional[str]) -> Optional[str]:
    """Return a 0x-prefixed account address, or None when no account was given."""

    account = raw.replace("\r", "").replace("\n", "") if raw else ""
    if not account:
        return None
    match = ACCOUNT_ADDRESS_PATTERN.fullmatch(account)
    if not match:
        raise ValidationError("account must be a 20-byte hex address")
    return f"0x{match.group(1)}"


class LtTradesHandler(ChainMetricHandler):
    """Latest leveraged token trades, optionally for one account."""

    name = "lt-trades"
    ttl_seconds = 60
    response_model = LtTradesResponse
    # both routes read the optimism trades model
    chains = {"base": "optimism_mainnet", "optimism": "optimism_mainnet"}
    refresh_params = [{"chain": "base"}, {"chain": "optimism"}]

    def validate(self, params: Mapping[str, Any]) -> Dict[str, str]:
        clean = super().validate(params)
        account = validate_account_address(params.get("account"))
        if account:
            clean["account"] = account
        return clean

    async def compute(self, params: Dict[str, str]) -> List[Dict]:
        schema = self.chains[params["chain"]]
        bind: Dict[str, Any] = {"limit": MAX_TRADES}
        where = ""
        if "account" in params:
            where = "WHERE account = :account"
            bind["account"] = params["account"]

        rows = await self.query(
            f"""SELECT block_number, ts, transaction_hash, event_name, account, market,
                       leverage, token, leveraged_token_amount, base_asset_amount
                FROM prod_{schema}.lt_trades_{schema}
                {where}
                ORDER BY block_number DESC
                LIMIT :limit""",
            bind,
        )
        return [
            {
                **row,
                **{column: parse_decimal(row.get(column), NULL_AS_NULL) for column in TRADE_AMOUNT_COLUMNS},
            }
            for row in rows
        ]


class LtLeaderboardHandler(MetricHandler):
    """Fees and volume per account and epoch, ranked, on base."""

    name = "lt-leaderboard"
    ttl_seconds = 300
    response_model = LtLeaderboardResponse
    refresh_params = [{}]

    async def compute(self, params: Dict[str, str]) -> List[Dict]:
        rows = await self.query(
            """SELECT epoch_start, account, total_fees_paid, fees_paid_pct, fees_rank,
                      volume, volume_rank, volume_pct
               FROM prod_base_mainnet.lt_leaderboard
               WHERE epoch_start > :since""",
            {"since": LEADERBOARD_START},
        )
        return [
            {
                **row,
                **{column: parse_decimal(row.get(column), NULL_AS_NULL) for column in LEADERBOARD_AMOUNT_COLUMNS},
            }
            for row in rows
        ]
