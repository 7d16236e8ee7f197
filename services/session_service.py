"""
Sessão de alocação do console
Mantém a seleção (fazenda, galpão, animal), a grade, o buffer e o pool,
descartando respostas que chegam depois de uma troca de seleção
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from models.farm import Farm, Shed
from models.slot import Slot
from services.codecs import row_for_label
from services.commit_service import AllocationCommitService
from services.farm_service import FarmService
from services.farmvest_client import FarmvestAPIError, FarmvestClient
from services.payloads import as_text
from services.pool_service import UnallocatedPool
from services.reconciler_service import OccupancyReconciler
from services.staging_service import AllocationStagingBuffer, StagingError, derive_slot_state

logger = logging.getLogger(__name__)


class SessionHaltedError(Exception):
    """A primeira carga de fazendas falhou; só uma recarga manual libera"""


@dataclass(frozen=True)
class SelectionToken:
    """Identifica a seleção vigente quando uma busca foi disparada"""
    generation: int
    farm_id: Optional[str]
    shed_id: Optional[str]


@dataclass
class DetailHandoff:
    """Dados entregues ao visualizador externo de um slot ocupado"""
    parking_id: str
    farm_id: Optional[str]
    shed_id: Optional[str]
    row_context: Optional[str]

    def to_payload(self) -> dict:
        return {
            "parkingId": self.parking_id,
            "farmId": self.farm_id,
            "shedId": self.shed_id,
            "rowContext": self.row_context,
        }


class AllocationSession:
    """Estado do console de alocação; um escritor, um event loop"""

    def __init__(self, client: Optional[FarmvestClient] = None):
        self.client = client or FarmvestClient()
        self.halted = False
        self.halt_reason: Optional[str] = None
        self._initialized = False
        self._init_task: Optional[asyncio.Future] = None
        self._generation = 0
        self._committing = False
        self._reset_state()

    def _reset_state(self):
        self.farms: List[Farm] = []
        self.sheds: List[Shed] = []
        self.pool = UnallocatedPool()
        self.grid: List[Slot] = []
        self.buffer = AllocationStagingBuffer()
        self.selected_farm_id: Optional[str] = None
        self.selected_shed_id: Optional[str] = None
        self.selected_animal_id: Optional[str] = None
        self.loading_animals = False
        self.loading_grid = False

    # ------------------------------------------------------------------
    # Token de geração
    # ------------------------------------------------------------------

    @property
    def token(self) -> SelectionToken:
        return SelectionToken(self._generation, self.selected_farm_id, self.selected_shed_id)

    def is_current(self, token: SelectionToken) -> bool:
        return token == self.token

    def _advance(self):
        self._generation += 1

    def _ensure_running(self):
        if self.halted:
            raise SessionHaltedError(self.halt_reason or "Sessão interrompida; recarregue")

    async def _fetch(self, coro, what: str, default: Any = None) -> Any:
        try:
            return await coro
        except FarmvestAPIError as e:
            logger.error("Falha ao buscar %s: %s", what, e)
            return default

    # ------------------------------------------------------------------
    # Inicialização
    # ------------------------------------------------------------------

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> List[Farm]:
        """Carga única das fazendas; chamadas seguintes reutilizam o resultado"""
        if not self._initialized:
            self._initialized = True
            self._init_task = asyncio.ensure_future(self._load_farms())
        await self._init_task
        self._ensure_running()
        return self.farms

    async def _load_farms(self):
        try:
            payload = await self.client.get_all_farms()
        except FarmvestAPIError as e:
            # Sem fazendas não há o que buscar: para tudo até recarga manual
            logger.critical("Carga de fazendas falhou; sessão interrompida: %s", e)
            self.halted = True
            self.halt_reason = f"Falha ao carregar fazendas: {e}"
            return
        self.farms = FarmService.normalize_farms(payload)
        logger.info("%d fazendas carregadas", len(self.farms))

    async def reload(self) -> List[Farm]:
        """Recarga manual completa; única saída do modo interrompido"""
        logger.info("Recarga manual da sessão")
        self._advance()
        self.halted = False
        self.halt_reason = None
        self._initialized = False
        self._init_task = None
        self._reset_state()
        return await self.initialize()

    # ------------------------------------------------------------------
    # Seleção
    # ------------------------------------------------------------------

    @property
    def selected_shed(self) -> Optional[Shed]:
        for shed in self.sheds:
            if shed.shed_id == self.selected_shed_id:
                return shed
        return None

    @property
    def capacity(self) -> int:
        return FarmService.capacity_for(self.selected_shed)

    async def select_farm(self, farm_id) -> bool:
        """Troca a fazenda; limpa galpão, grade, buffer, pool e animal"""
        self._ensure_running()
        self._advance()
        self.selected_farm_id = as_text(farm_id)
        self.selected_shed_id = None
        self.selected_animal_id = None
        self.sheds = []
        self.pool = UnallocatedPool()
        self.grid = []
        self.buffer.clear()
        if not self.selected_farm_id:
            self.loading_animals = False
            self.loading_grid = False
            return False
        return await self.refresh_farm(self.token)

    async def refresh_farm(self, token: SelectionToken) -> bool:
        """Galpões e pool em paralelo; False se a resposta ficou obsoleta"""
        self.loading_animals = True
        try:
            sheds_payload, animals_payload = await asyncio.gather(
                self._fetch(self.client.get_sheds(token.farm_id), "galpões"),
                self._fetch(self.client.get_unallocated_animals(token.farm_id), "animais não alocados"),
            )
        finally:
            if self.is_current(token):
                self.loading_animals = False

        if not self.is_current(token):
            logger.info("Resposta obsoleta da fazenda %s descartada", token.farm_id)
            return False

        if sheds_payload is None and self.selected_shed_id:
            logger.warning("Lista de galpões indisponível; mantendo a anterior")
        else:
            self.sheds = FarmService.normalize_sheds(sheds_payload)
        self.pool = UnallocatedPool.from_payload(animals_payload)
        if self.pool.find(self.selected_animal_id) is None:
            self.selected_animal_id = None
        return True

    async def select_shed(self, shed_id) -> bool:
        """Troca o galpão; a grade é recalculada do zero e o buffer limpo"""
        self._ensure_running()
        if not self.selected_farm_id:
            raise StagingError("Selecione uma fazenda primeiro")
        self._advance()
        self.selected_shed_id = as_text(shed_id)
        self.grid = []
        self.buffer.clear()
        if not self.selected_shed_id:
            self.loading_grid = False
            return False
        return await self.refresh_shed(self.token)

    async def refresh_shed(self, token: SelectionToken) -> bool:
        """Posições e animais alocados em paralelo, depois reconciliação"""
        # lida antes das buscas: um refresh_farm concorrente pode trocar self.sheds
        capacity = self.capacity
        self.loading_grid = True
        try:
            positions, allocated = await asyncio.gather(
                self._fetch(self.client.get_shed_positions(token.shed_id), "posições", default=[]),
                self._fetch(
                    self.client.get_allocated_animals(token.farm_id, token.shed_id),
                    "animais alocados",
                    default=[],
                ),
            )
        finally:
            if self.is_current(token):
                self.loading_grid = False

        if not self.is_current(token):
            logger.info("Resposta obsoleta do galpão %s descartada", token.shed_id)
            return False

        self.grid = OccupancyReconciler.reconcile(positions, allocated, capacity)
        return True

    def select_animal(self, animal_id) -> Optional[str]:
        self._ensure_running()
        animal_id = as_text(animal_id)
        if animal_id is None:
            self.selected_animal_id = None
            return None
        if self.pool.find(animal_id) is None:
            raise StagingError(f"Animal {animal_id} não está no pool")
        self.selected_animal_id = animal_id
        return animal_id

    # ------------------------------------------------------------------
    # Slots
    # ------------------------------------------------------------------

    def find_slot(self, label: str) -> Optional[Slot]:
        wanted = label.strip().upper()
        for slot in self.grid:
            if slot.label == label or slot.label.strip().upper() == wanted:
                return slot
        return None

    def detail_handoff(self, slot: Slot) -> DetailHandoff:
        return DetailHandoff(
            parking_id=slot.label,
            farm_id=self.selected_farm_id,
            shed_id=self.selected_shed_id,
            row_context=slot.row_context or row_for_label(slot.label),
        )

    def click_slot(self, label: str, force: bool = False) -> dict:
        """
        Clique do operador num slot.
        - ocupado e não pendente: abre o detalhe (sem alterar o buffer)
        - demais casos: alterna a alocação pendente do animal selecionado
        `force` permite marcar um slot ocupado (pendente inválido até o commit).
        """
        self._ensure_running()
        if not self.selected_farm_id:
            raise StagingError("Selecione uma fazenda primeiro")
        if not self.selected_shed_id:
            raise StagingError("Selecione um galpão primeiro")

        slot = self.find_slot(label)
        if slot is None:
            raise StagingError(f"Slot {label} não existe neste galpão")

        if slot.occupied and slot.label not in self.buffer and not force:
            return {
                "action": "detail",
                "slot_label": slot.label,
                "detail": self.detail_handoff(slot).to_payload(),
            }

        staged = self.buffer.toggle_stage(slot.label, self.selected_animal_id)
        return {
            "action": "staged" if staged else "unstaged",
            "slot_label": slot.label,
            "animal_id": self.selected_animal_id,
            "state": derive_slot_state(slot, self.buffer),
        }

    async def slot_detail(self, label: str) -> dict:
        """Repassa o handoff ao endpoint de posição do backend"""
        self._ensure_running()
        slot = self.find_slot(label)
        if slot is None:
            raise StagingError(f"Slot {label} não existe neste galpão")

        handoff = self.detail_handoff(slot)
        try:
            details = await self.client.get_animal_position_details(
                handoff.parking_id,
                farm_id=handoff.farm_id,
                shed_id=handoff.shed_id,
                row_number=handoff.row_context,
            )
        except FarmvestAPIError as e:
            logger.error("Detalhe do slot %s indisponível: %s", slot.label, e)
            return {"handoff": handoff.to_payload(), "details": None, "error": str(e)}
        return {"handoff": handoff.to_payload(), "details": details, "error": None}

    def slot_views(self) -> List[dict]:
        return [
            {
                "slot": slot,
                "state": derive_slot_state(slot, self.buffer),
                "pending_animal_id": self.buffer.animal_for_slot(slot.label),
            }
            for slot in self.grid
        ]

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    async def commit(self) -> dict:
        """Confirma o buffer; em sucesso limpa o animal e ressincroniza tudo"""
        self._ensure_running()
        if not self.selected_farm_id or not self.selected_shed_id:
            raise StagingError("Selecione fazenda e galpão primeiro")
        if self._committing:
            raise StagingError("Já existe um commit em andamento")

        token = self.token
        self._committing = True
        try:
            result = await AllocationCommitService.commit(
                self.client, token.shed_id, self.buffer, self.grid, self.pool
            )
        finally:
            self._committing = False

        if not result["success"]:
            return result
        if not self.is_current(token):
            logger.info("Seleção mudou durante o commit; buffer e grade da nova seleção mantidos")
            return result

        for item in result["allocations"]:
            self.buffer.unstage(item["parking_id"])
        self.selected_animal_id = None
        await self.resync(token)
        return result

    async def resync(self, token: SelectionToken):
        """Recarrega pool e grade; sem mutação otimista"""
        await asyncio.gather(self.refresh_farm(token), self.refresh_shed(token))

    # ------------------------------------------------------------------
    # Resumo
    # ------------------------------------------------------------------

    def stats(self) -> dict:
        allocated = sum(1 for slot in self.grid if slot.occupied)
        return {
            "capacity": self.capacity if self.selected_shed_id else 0,
            "allocated": allocated,
            "available": len(self.grid) - allocated,
            "pending": len(self.pool),
            "staged": len(self.buffer),
        }

    def status(self) -> dict:
        return {
            "initialized": self._initialized,
            "halted": self.halted,
            "halt_reason": self.halt_reason,
            "farm_id": self.selected_farm_id,
            "shed_id": self.selected_shed_id,
            "animal_id": self.selected_animal_id,
            "loading_animals": self.loading_animals,
            "loading_grid": self.loading_grid,
            "generation": self._generation,
        }


_session: Optional[AllocationSession] = None


def get_session() -> AllocationSession:
    """Dependency para FastAPI (uma sessão de console por processo)"""
    global _session
    if _session is None:
        _session = AllocationSession(FarmvestClient())
    return _session
