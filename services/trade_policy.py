"""
Per-user trade sizing.

A policy decides how much to spend on a buy and how aggressively to bid for
block space. Policies are looked up by the tweet-catcher task user, falling
back to a default when the user has no entry.
"""

from typing import Literal, Mapping, Optional

from pydantic import BaseModel, Field


PriorityLevel = Literal["medium", "high", "veryHigh"]


class TradePolicy(BaseModel):
    """Trade size and fee settings for one user."""

    # 0.5 SOL, spent on pump-fun mints
    pump_amount: int = Field(default=500_000_000, gt=0)
    # 1000 USDC (6 decimals), spent through Jupiter on everything else
    default_amount: int = Field(default=1_000_000_000, gt=0)
    # 1 SOL cap on the priority fee
    max_lamports: int = Field(default=1_000_000_000, gt=0)
    priority_level: PriorityLevel = "veryHigh"

    def amount_for(self, address: str) -> int:
        """Raw input amount for a buy of the given mint."""
        if "pump" in address:
            return self.pump_amount
        return self.default_amount


def policy_for(
    user: Optional[str],
    overrides: Mapping[str, TradePolicy],
    default: TradePolicy,
) -> TradePolicy:
    """Return the user's policy, or the default one."""
    if user and user in overrides:
        return overrides[user]
    return default
