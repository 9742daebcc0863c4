"""
Errors reported by CIP-30 host wallets.

Hosts reject calls with loosely typed values, usually `{code, info}` objects,
or `{maxSize}` for pagination overruns. decode_host_error() turns those values
into exceptions; anything it cannot understand becomes an internal APIError.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any

from pydantic import BaseModel, Field, ValidationError


class APIErrorCode(IntEnum):
    INVALID_REQUEST = -1
    INTERNAL_ERROR = -2
    REFUSED = -3
    ACCOUNT_CHANGE = -4


class DataSignErrorCode(IntEnum):
    PROOF_GENERATION = 1
    ADDRESS_NOT_PK = 2
    USER_DECLINED = 3


_API_ERROR_DESCRIPTIONS = {
    APIErrorCode.INVALID_REQUEST: "Invalid inputs",
    APIErrorCode.INTERNAL_ERROR: "An error occurred during the execution of this API call",
    APIErrorCode.REFUSED: "The request was denied. The wallet may be disconnected",
    APIErrorCode.ACCOUNT_CHANGE: "The account has changed",
}

_DATA_SIGN_ERROR_DESCRIPTIONS = {
    DataSignErrorCode.PROOF_GENERATION: "Wallet could not sign the data",
    DataSignErrorCode.ADDRESS_NOT_PK: "Address is not a P2PK address",
    DataSignErrorCode.USER_DECLINED: "User declined to sign the data",
}


def _known(enum: type[IntEnum], code: int) -> IntEnum | int:
    try:
        return enum(code)
    except ValueError:
        return code


class HostCallError(Exception):
    """A host wallet call was rejected. `payload` is the raw rejection value."""

    def __init__(self, payload: Any):
        self.payload = payload
        super().__init__(f"Host call failed: {payload!r}")


class APIError(Exception):
    """
    Generic CIP-30 API error.

    `code` is an APIErrorCode, or the plain integer when the host used a
    code outside the standard set.
    """

    def __init__(self, code: APIErrorCode | int, info: str = ""):
        self.code = _known(APIErrorCode, int(code))
        self.info = info
        super().__init__(f"{self.description}. {info}" if info else self.description)

    @property
    def is_unknown(self) -> bool:
        return not isinstance(self.code, APIErrorCode)

    @property
    def description(self) -> str:
        if isinstance(self.code, APIErrorCode):
            return _API_ERROR_DESCRIPTIONS[self.code]
        return f"Unknown error code {self.code}"

    @classmethod
    def internal(cls, info: str) -> APIError:
        return cls(APIErrorCode.INTERNAL_ERROR, info)


class DataSignError(Exception):
    def __init__(self, code: DataSignErrorCode | int, info: str = ""):
        self.code = _known(DataSignErrorCode, int(code))
        self.info = info
        if isinstance(self.code, DataSignErrorCode):
            description = _DATA_SIGN_ERROR_DESCRIPTIONS[self.code]
        else:
            description = f"Unknown data sign error code {self.code}"
        super().__init__(f"{description}. {info}" if info else description)


class PaginateError(Exception):
    """The requested page is past the end; `max_size` is the number of pages."""

    def __init__(self, max_size: int):
        self.max_size = max_size
        super().__init__(f"Pagination out of range, maximum size is {max_size}")


class HostErrorPayload(BaseModel):
    code: int
    info: str = ""


class PaginateErrorPayload(BaseModel):
    max_size: int = Field(..., alias="maxSize", ge=0)


def decode_host_error(payload: Any) -> APIError | PaginateError:
    """
    Convert a host rejection value into an APIError or PaginateError.

    Payloads that match neither shape yield APIError(INTERNAL_ERROR).
    """
    if isinstance(payload, dict) and "maxSize" in payload:
        try:
            return PaginateError(PaginateErrorPayload.model_validate(payload).max_size)
        except ValidationError as e:
            return APIError.internal(f"Couldn't decode the pagination error: {e}")

    try:
        parsed = HostErrorPayload.model_validate(payload)
    except ValidationError as e:
        return APIError.internal(f"Couldn't decode the error content: {e}")
    return APIError(parsed.code, parsed.info)


def decode_data_sign_error(payload: Any) -> DataSignError | APIError | PaginateError:
    """Like decode_host_error, but positive codes are signData-specific errors."""
    error = decode_host_error(payload)
    if isinstance(error, APIError) and isinstance(error.code, int) and error.code > 0:
        return DataSignError(error.code, error.info)
    return error
