"""
Welding consumables inventory (rods and flux-core wire) per job.

Every rod inventory update re-checks stock levels and emits a `low_stock`
event for each rod at or below its minimum.
"""
from typing import Callable, List

from ..schemas.base import utcnow
from ..schemas.qc import FCWire, JobInventory, WeldingRod, WeldingRodUpdate
from .events import EventEmitter, Listener


class ConsumablesInventory:
    def __init__(self) -> None:
        self._rods: List[WeldingRod] = []
        self._fc_wire: List[FCWire] = []
        self._current_job = ""
        self.events = EventEmitter("consumables")

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.events.subscribe(listener)

    @property
    def current_job(self) -> str:
        return self._current_job

    def set_job_number(self, job_number: str) -> None:
        self._current_job = job_number
        self.events.emit("current_job", job_number)

    def update_rod_inventory(self, data: WeldingRodUpdate) -> WeldingRod:
        rod = next(
            (
                r
                for r in self._rods
                if r.type == data.type
                and r.classification == data.classification
                and r.size == data.size
                and r.job_number == data.job_number
            ),
            None,
        )
        if rod is not None:
            rod.quantity = data.quantity
            rod.last_inventory_date = utcnow()
        else:
            rod = WeldingRod(**data.model_dump())
            self._rods.append(rod)

        self.events.emit("welding_rods", list(self._rods))
        self._check_low_stock()
        return rod

    def update_fc_wire_inventory(self, wire: FCWire) -> FCWire:
        existing = next(
            (w for w in self._fc_wire if w.size == wire.size and w.job_number == wire.job_number),
            None,
        )
        if existing is not None:
            existing.spools = wire.spools
        else:
            existing = wire.model_copy()
            self._fc_wire.append(existing)
        self.events.emit("fc_wire", list(self._fc_wire))
        return existing

    def low_stock(self) -> List[WeldingRod]:
        return [r for r in self._rods if r.quantity <= r.minimum_stock]

    def inventory_by_job(self, job_number: str) -> JobInventory:
        return JobInventory(
            welding_rods=[r for r in self._rods if r.job_number == job_number],
            fc_wire=[w for w in self._fc_wire if w.job_number == job_number],
        )

    def current_inventory(self) -> JobInventory:
        return self.inventory_by_job(self._current_job)

    def _check_low_stock(self) -> None:
        for rod in self.low_stock():
            self.events.emit(
                "low_stock",
                {
                    "type": rod.type,
                    "classification": rod.classification,
                    "size": rod.size,
                    "quantity": rod.quantity,
                    "minimum": rod.minimum_stock,
                    "job_number": rod.job_number,
                },
            )
