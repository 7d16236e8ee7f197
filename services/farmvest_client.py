"""
Cliente HTTP assíncrono da API FarmVest
Apenas os endpoints usados pela alocação de galpões
"""
import logging
import os
from typing import Any, List, Optional

import httpx
from dotenv import load_dotenv

from services.payloads import extract_records

load_dotenv()

logger = logging.getLogger(__name__)


class FarmvestAPIError(Exception):
    """Falha de transporte, status HTTP ou corpo inválido"""

    def __init__(self, message: str, status_code: Optional[int] = None, detail: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class FarmvestClient:
    """Configuração padrão via .env"""

    BASE_URL = os.getenv("FARMVEST_BASE_URL", "https://farmvest-live-apis-jn6cma3vvq-el.a.run.app")
    API_KEY = os.getenv("FARMVEST_API_KEY", "")
    ACCESS_TOKEN = os.getenv("FARMVEST_ACCESS_TOKEN", "")
    TIMEOUT = float(os.getenv("FARMVEST_TIMEOUT", "30"))
    PAGE_SIZE = int(os.getenv("ALLOCATED_PAGE_SIZE", "500"))
    MAX_PAGES = int(os.getenv("ALLOCATED_MAX_PAGES", "20"))

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        access_token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.api_key = self.API_KEY if api_key is None else api_key
        self.access_token = self.ACCESS_TOKEN if access_token is None else access_token
        self.timeout = self.TIMEOUT if timeout is None else timeout
        self._transport = transport

    def _headers(self) -> dict:
        headers = {
            "Content-Type": "application/json",
            "X-Requested-With": "XMLHttpRequest",
        }
        # Sem token de sessão, a chave vai crua (sem "Bearer")
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        elif self.api_key:
            headers["Authorization"] = self.api_key
        return headers

    async def _request(self, method: str, path: str, params: Optional[dict] = None, json: Any = None) -> Any:
        params = {k: v for k, v in (params or {}).items() if v is not None}
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self._headers(),
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, params=params, json=json)
                response.raise_for_status()
                if not response.content:
                    return None
                return response.json()
        except httpx.HTTPStatusError as e:
            detail = _error_detail(e.response)
            logger.error("%s %s -> %d: %s", method, path, e.response.status_code, detail)
            raise FarmvestAPIError(
                f"Erro {e.response.status_code} em {path}",
                status_code=e.response.status_code,
                detail=detail,
            ) from e
        except httpx.HTTPError as e:
            logger.error("%s %s falhou: %s", method, path, e)
            raise FarmvestAPIError(f"Falha de conexão em {path}: {e}") from e
        except ValueError as e:
            logger.error("%s %s retornou corpo inválido: %s", method, path, e)
            raise FarmvestAPIError(f"Resposta inválida em {path}") from e

    async def get_all_farms(self) -> Any:
        return await self._request("GET", "/api/farm/get_all_farms")

    async def get_sheds(self, farm_id) -> Any:
        return await self._request("GET", "/api/shed/list", params={"farm_id": farm_id})

    async def get_shed_positions(self, shed_id) -> Any:
        return await self._request("GET", "/api/shed/available_positions", params={"shed_id": shed_id})

    async def get_allocated_animals(self, farm_id, shed_id) -> List[dict]:
        """
        Busca paginada dos animais alocados no galpão.
        Para na primeira página incompleta ou em MAX_PAGES.
        """
        animals: List[dict] = []
        for page in range(1, self.MAX_PAGES + 1):
            payload = await self._request(
                "GET",
                "/api/animal/get_total_animals",
                params={"farm_id": farm_id, "shed_id": shed_id, "page": page, "size": self.PAGE_SIZE},
            )
            records = extract_records(payload, ("animals", "allocations")) or []
            animals.extend(records)
            if len(records) < self.PAGE_SIZE:
                break
        else:
            logger.warning("Limite de %d páginas atingido para o galpão %s", self.MAX_PAGES, shed_id)
        return animals

    async def get_unallocated_animals(self, farm_id) -> Any:
        return await self._request("GET", "/api/animal/unallocated_animals", params={"farm_id": farm_id})

    async def allocate_animals(self, shed_id, allocations: List[dict]) -> Any:
        """POST em lote; um pedido por galpão"""
        logger.info("Enviando %d alocações para o galpão %s", len(allocations), shed_id)
        return await self._request(
            "POST",
            f"/api/animal/shed_allocation/{shed_id}",
            json={"allocations": allocations},
        )

    async def get_animal_position_details(
        self,
        parking_id: str,
        farm_id=None,
        shed_id=None,
        row_number: Optional[str] = None,
    ) -> Any:
        return await self._request(
            "GET",
            "/api/animal/get-position",
            params={
                "parking_id": parking_id,
                "farm_id": farm_id,
                "shed_id": shed_id,
                "row_number": row_number,
            },
        )


def _error_detail(response: httpx.Response) -> Any:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        return body.get("message") or body.get("detail") or body
    return body
