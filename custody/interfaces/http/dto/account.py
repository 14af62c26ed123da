from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictInt


class AmountRequestDTO(BaseModel):
    # StrictInt: "10", 10.0 and true are rejected rather than coerced
    amount: StrictInt


class BalanceDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    account_id: str = Field(serialization_alias="accountId")
    balance: int
