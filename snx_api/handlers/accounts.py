"""Account-scoped metrics from the warehouse."""

from typing import Any, Dict, List, Mapping, Type

from pydantic import BaseModel

from snx_api.core.aggregator import NULL_AS_NULL, parse_decimal
from snx_api.handlers.base import ChainMetricHandler, MetricHandler, validate_account_id
from snx_api.handlers.pools import SC_POOL_ID
from snx_api.schemas.responses import (
    CollateralRewardsClaimedResponse,
    IssuedDebtResponse,
    RewardsClaimedResponse,
)


class RewardsClaimedHandler(ChainMetricHandler):
    """USD value of rewards an account has claimed.

    Base returns one total; mainnet splits it per collateral type.
    """

    name = "rewards-claimed"
    ttl_seconds = 300
    chains = {"base": "base_mainnet", "mainnet": "eth_mainnet"}

    response_models = {
        "base": RewardsClaimedResponse,
        "mainnet": CollateralRewardsClaimedResponse,
    }

    def validate(self, params: Mapping[str, Any]) -> Dict[str, str]:
        clean = super().validate(params)
        clean["accountId"] = validate_account_id(params.get("accountId"))
        return clean

    def schema_for(self, params: Dict[str, str]) -> Type[BaseModel]:
        return self.response_models[params["chain"]]

    async def compute(self, params: Dict[str, str]) -> Any:
        schema = self.chains[params["chain"]]
        table = f"prod_{schema}.fct_core_rewards_claimed_{schema}"

        if params["chain"] == "base":
            rows = await self.query(
                f"""SELECT SUM(CAST(amount_usd AS DECIMAL)) AS total_amount_usd
                    FROM {table}
                    WHERE account_id = :account_id""",
                {"account_id": params["accountId"]},
            )
            return parse_decimal(rows[0]["total_amount_usd"] if rows else None, NULL_AS_NULL)

        rows = await self.query(
            f"""SELECT collateral_type, SUM(CAST(amount_usd AS DECIMAL)) AS total_amount_usd
                FROM {table}
                WHERE account_id = :account_id
                GROUP BY collateral_type""",
            {"account_id": params["accountId"]},
        )
        return [
            {
                "collateral_type": row["collateral_type"],
                "total_amount_usd": parse_decimal(row["total_amount_usd"], NULL_AS_NULL),
            }
            for row in rows
        ]


class IssuedDebtHandler(MetricHandler):
    """sUSD issued by an account against the mainnet pool, per collateral type."""

    name = "issued-debt"
    ttl_seconds = 300
    response_model = IssuedDebtResponse

    def validate(self, params: Mapping[str, Any]) -> Dict[str, str]:
        return {"accountId": validate_account_id(params.get("accountId"))}

    async def compute(self, params: Dict[str, str]) -> List[Dict]:
        rows = await self.query(
            """SELECT collateral_type, SUM(CAST(amount AS DECIMAL)) AS issuance
               FROM prod_eth_mainnet.fct_pool_issuance_eth_mainnet
               WHERE account_id = :account_id
                 AND pool_id = :pool_id
               GROUP BY collateral_type""",
            {"account_id": params["accountId"], "pool_id": SC_POOL_ID},
        )
        return [
            {
                "collateral_type": row["collateral_type"],
                "issuance": parse_decimal(row["issuance"], NULL_AS_NULL),
            }
            for row in rows
        ]
