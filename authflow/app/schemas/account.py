# authflow/app/schemas/account.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Request bodies use camelCase keys; every field is optional here so that
# missing values reach the service layer and get its stable error messages.
_camel_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
# Numeric codes (123456) are accepted as well as strings
_code_config = ConfigDict(coerce_numbers_to_str=True)


class SignupRequest(BaseModel):
    model_config = _camel_config

    full_name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    model_config = ConfigDict(**_camel_config, **_code_config)

    email: Optional[str] = None
    password: Optional[str] = None
    two_factor_code: Optional[str] = None


class VerifyEmailRequest(BaseModel):
    model_config = _code_config

    code: Optional[str] = None


class TwoFactorVerifyRequest(BaseModel):
    model_config = _code_config

    token: Optional[str] = None


# Schema returned to clients (NEVER includes password, code or 2FA secret)
class AccountResponse(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    id: int
    full_name: str
    email: str
    is_verified: bool
    two_factor_enabled: bool
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


def serialize_account(account) -> dict:
    return AccountResponse.model_validate(account).model_dump(mode="json", by_alias=True)
