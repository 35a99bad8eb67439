"""
Motor de alertas y horarios

Recorre los medicamentos de todas las cajas, compara sus horarios con la hora
actual, descuenta dosis y genera alertas sin duplicados.
"""
from datetime import datetime, timedelta
from typing import Iterable, List, Optional
import logging

from medbox.core.clock import now_local, ensure_aware
from medbox.core.config import Settings
from medbox.core.storage import StorageAdapter
from medbox.schemas.alert import Alert, AlertList, AlertType, LowStockDedupPolicy
from medbox.schemas.box import BoxList, MedicineBox
from medbox.schemas.medicine import Medicine

logger = logging.getLogger(__name__)


class AlertEngine:
    """Reglas de alertas de dosis y de existencias"""

    def __init__(
            self,
            storage: StorageAdapter,
            low_stock_policy: LowStockDedupPolicy = LowStockDedupPolicy.UNREAD,
            low_count_threshold: int = 3,
            low_stock_days: float = 3.0,
            retention: timedelta = timedelta(hours=24)
    ):
        self.storage = storage
        self.low_stock_policy = LowStockDedupPolicy(low_stock_policy)
        self.low_count_threshold = low_count_threshold
        self.low_stock_days = low_stock_days
        self.retention = retention

    @classmethod
    def from_settings(cls, storage: StorageAdapter, settings: Settings) -> "AlertEngine":
        return cls(
            storage,
            low_stock_policy=LowStockDedupPolicy(settings.LOW_STOCK_DEDUP_POLICY),
            low_count_threshold=settings.LOW_COUNT_THRESHOLD,
            low_stock_days=settings.LOW_STOCK_DAYS,
            retention=timedelta(hours=settings.ALERT_RETENTION_HOURS)
        )

    # ------------------------------------------------------------------
    # Acceso al almacenamiento
    # ------------------------------------------------------------------

    def load_boxes(self) -> List[MedicineBox]:
        return self.storage.get(self.storage.keys.boxes, [], BoxList)

    def save_boxes(self, boxes: List[MedicineBox]) -> None:
        self.storage.set(self.storage.keys.boxes, boxes, BoxList)

    def load_alerts(self) -> List[Alert]:
        return self.storage.get(self.storage.keys.alerts, [], AlertList)

    def save_alerts(self, alerts: List[Alert]) -> None:
        self.storage.set(self.storage.keys.alerts, alerts, AlertList)

    # ------------------------------------------------------------------
    # Construcción de alertas
    # ------------------------------------------------------------------

    @staticmethod
    def medicine_time_alert(box: MedicineBox, medicine: Medicine, token: str, now: datetime) -> Alert:
        reminder = medicine.custom_message or "Tómalo según lo indicado."
        return Alert(
            medicine_id=medicine.id,
            medicine_name=medicine.name,
            box_name=box.name,
            box_id=box.id,
            type=AlertType.MEDICINE_TIME,
            message=f"Es hora de tomar tu {medicine.name} ({token}). {reminder}",
            created_at=now,
            schedule_token=token,
            dose_date=now.date()
        )

    @staticmethod
    def low_count_alert(box: MedicineBox, medicine: Medicine, now: datetime) -> Alert:
        return Alert(
            medicine_id=medicine.id,
            medicine_name=medicine.name,
            box_name=box.name,
            box_id=box.id,
            type=AlertType.LOW_COUNT,
            message=(
                f"A {medicine.name} le quedan pocas pastillas "
                f"({medicine.current_count} restantes). ¡Es momento de reponer!"
            ),
            created_at=now
        )

    @staticmethod
    def out_of_stock_alert(box: MedicineBox, medicine: Medicine, now: datetime) -> Alert:
        return Alert(
            medicine_id=medicine.id,
            medicine_name=medicine.name,
            box_name=box.name,
            box_id=box.id,
            type=AlertType.OUT_OF_STOCK,
            message=f"¡{medicine.name} se ha agotado! Repónlo de inmediato.",
            created_at=now
        )

    # ------------------------------------------------------------------
    # Reglas de deduplicación
    # ------------------------------------------------------------------

    def has_low_count_alert(self, alerts: Iterable[Alert], medicine_id: str) -> bool:
        """Verificar si una nueva alerta low_count quedaría suprimida"""
        for alert in alerts:
            if alert.medicine_id != medicine_id or alert.type != AlertType.LOW_COUNT:
                continue
            if self.low_stock_policy == LowStockDedupPolicy.ANY or not alert.is_read:
                return True
        return False

    @staticmethod
    def dose_already_processed(alerts: Iterable[Alert], medicine_id: str, token: str, now: datetime) -> bool:
        day = now.date()
        return any(alert.matches_dose(medicine_id, token, day) for alert in alerts)

    def is_low_count(self, count: int) -> bool:
        return 0 < count <= self.low_count_threshold

    # ------------------------------------------------------------------
    # Operaciones
    # ------------------------------------------------------------------

    def evaluate_due_doses(self, now: Optional[datetime] = None) -> List[Alert]:
        """
        Descontar las dosis programadas para el minuto actual.

        Cada combinación (medicamento, hora, día) se procesa una sola vez,
        por lo que llamar dos veces en el mismo minuto no descuenta dos veces.
        """
        now = ensure_aware(now) if now else now_local()
        current_time = now.strftime("%H:%M")
        new_alerts: List[Alert] = []

        with self.storage.transaction():
            boxes = self.load_boxes()
            alerts = self.load_alerts()

            for box in boxes:
                for medicine in box.medicines:
                    for token in medicine.schedule_tokens:
                        if token != current_time or medicine.current_count <= 0:
                            continue
                        if self.dose_already_processed(alerts, medicine.id, token, now):
                            continue

                        medicine.current_count = max(0, medicine.current_count - 1)
                        medicine.updated_at = now

                        emitted = [self.medicine_time_alert(box, medicine, token, now)]

                        if self.is_low_count(medicine.current_count) and \
                                not self.has_low_count_alert(alerts + emitted, medicine.id):
                            emitted.append(self.low_count_alert(box, medicine, now))

                        if medicine.current_count == 0:
                            emitted.append(self.out_of_stock_alert(box, medicine, now))

                        alerts.extend(emitted)
                        new_alerts.extend(emitted)

                        logger.info(
                            f"Dosis de {medicine.name} ({token}) descontada en '{box.name}': "
                            f"quedan {medicine.current_count}"
                        )

            if new_alerts:
                self.save_boxes(boxes)
                self.save_alerts(alerts)

        return new_alerts

    def evaluate_low_stock(self, now: Optional[datetime] = None) -> List[Alert]:
        """Generar alertas low_count según los días de suministro restantes"""
        now = ensure_aware(now) if now else now_local()
        new_alerts: List[Alert] = []

        with self.storage.transaction():
            boxes = self.load_boxes()
            alerts = self.load_alerts()

            for box in boxes:
                for medicine in box.medicines:
                    days_remaining = medicine.days_remaining
                    if not (0 < days_remaining <= self.low_stock_days):
                        continue
                    if self.has_low_count_alert(alerts, medicine.id):
                        continue

                    alert = self.low_count_alert(box, medicine, now)
                    alerts.append(alert)
                    new_alerts.append(alert)
                    logger.info(f"Existencias bajas de {medicine.name}: {days_remaining:.1f} días restantes")

            if new_alerts:
                self.save_alerts(alerts)

        return new_alerts

    def retention_sweep(self, now: Optional[datetime] = None) -> List[Alert]:
        """Eliminar alertas más antiguas que la ventana de retención"""
        now = ensure_aware(now) if now else now_local()
        cutoff = now - self.retention

        with self.storage.transaction():
            alerts = self.load_alerts()
            recent = [alert for alert in alerts if alert.created_at > cutoff]

            # Solo guardar si se eliminó algo
            if len(recent) != len(alerts):
                self.save_alerts(recent)
                logger.info(f"{len(alerts) - len(recent)} alertas antiguas eliminadas")

        return recent

    # ------------------------------------------------------------------
    # Borrado en cascada
    # ------------------------------------------------------------------

    @staticmethod
    def remove_medicine_alerts(alerts: List[Alert], medicine_id: str) -> List[Alert]:
        return [alert for alert in alerts if alert.medicine_id != medicine_id]

    @staticmethod
    def remove_box_alerts(alerts: List[Alert], box: MedicineBox) -> List[Alert]:
        """
        Quitar las alertas de la caja y de sus medicamentos.

        Las alertas antiguas sin ``box_id`` se asocian por nombre de caja.
        """
        medicine_ids = box.medicine_ids

        def belongs(alert: Alert) -> bool:
            if alert.box_id is not None:
                return alert.box_id == box.id or alert.medicine_id in medicine_ids
            return alert.medicine_id in medicine_ids or alert.box_name == box.name

        return [alert for alert in alerts if not belongs(alert)]
