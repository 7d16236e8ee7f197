"""
Utilitários para respostas do backend com formato irregular
"""
from typing import Any, Iterable, List, Optional


def first_present(record: dict, *keys: str) -> Any:
    """Primeiro valor não vazio entre as chaves informadas"""
    for key in keys:
        value = record.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def extract_records(payload: Any, keys: Iterable[str]) -> Optional[List[dict]]:
    """
    Extrai uma lista de registros de:
    - uma lista
    - um objeto com uma das `keys` apontando para lista
    - qualquer dos anteriores sob `data` (um nível)
    Retorna None se nenhum formato for reconhecido.
    """
    keys = tuple(keys)
    records = _extract_level(payload, keys)
    if records is None and isinstance(payload, dict):
        records = _extract_level(payload.get("data"), keys)
    if records is None:
        return None
    return [r for r in records if isinstance(r, dict)]


def _extract_level(payload: Any, keys) -> Optional[list]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in keys:
            value = payload.get(key)
            if isinstance(value, list):
                return value
    return None


def as_text(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


ONBOARDED_KEYS = (
    "order_date", "created_at", "onboarded_time", "onboarded_at",
    "onboarding_date", "placedAt",
)


def onboarded_at(record: dict) -> Optional[str]:
    """Data de entrada do animal; o backend usa vários nomes de campo"""
    details = record.get("investment_details")
    if isinstance(details, dict) and details.get("order_date"):
        return as_text(details["order_date"])
    return as_text(first_present(record, *ONBOARDED_KEYS))
