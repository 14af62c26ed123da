from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictStr


class CredentialsRequestDTO(BaseModel):
    """Body of register and login.

    Only the types are checked here. Length and emptiness rules live in the
    authenticator: register answers ``invalid_input`` for them, while login
    folds them into ``invalid_credentials``.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_id: StrictStr = Field(alias="userId")
    password: StrictStr


class RegisterResponseDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(serialization_alias="userId")
    message: str = "registered"


class LoginResponseDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str
    token_type: str = Field("bearer", serialization_alias="tokenType")
    expires_at: str = Field(serialization_alias="expiresAt")


class OkDTO(BaseModel):
    ok: bool = True
