from pydantic import BaseModel


class FeeAuthorityOut(BaseModel):
    owner: str
    fee_rate_ppt: int


class FeeRateUpdate(BaseModel):
    # Диапазон 0..1000 проверяет FeeAuthorityService: сначала права, потом параметры
    rate: int


class OwnerUpdate(BaseModel):
    new_owner: str
