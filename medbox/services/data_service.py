"""
Servicio de datos: cajas, medicamentos, alertas y dispositivos
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Set, Tuple
import logging

from medbox.core.clock import now_local
from medbox.core.exceptions import NotFoundError
from medbox.core.storage import StorageAdapter
from medbox.schemas.alert import Alert
from medbox.schemas.box import BoxCreate, BoxUpdate, MedicineBox
from medbox.schemas.device import ConnectionResult, DeviceResult, SyncResult
from medbox.schemas.medicine import Medicine, MedicineCreate, MedicineUpdate
from medbox.services.alert_engine import AlertEngine
from medbox.services.device_client import DeviceClient
from medbox.services.seed_data import default_alerts, default_boxes

logger = logging.getLogger(__name__)


class DataService:
    """Servicio para gestión de cajas de medicamentos"""

    def __init__(self, storage: StorageAdapter, engine: AlertEngine, device_client: DeviceClient):
        self.storage = storage
        self.engine = engine
        self.device_client = device_client

    # ------------------------------------------------------------------
    # Inicialización
    # ------------------------------------------------------------------

    def initialize(self, seed: bool = True, user_id: str = "1") -> bool:
        """
        Cargar datos de ejemplo la primera vez.

        Devuelve True si se escribieron los datos por defecto.
        """
        keys = self.storage.keys
        with self.storage.transaction():
            if self.storage.contains(keys.initialized):
                return False

            if seed:
                self.engine.save_boxes(default_boxes(user_id))
                self.engine.save_alerts(default_alerts())
                logger.info("📦 Datos de ejemplo cargados")
            self.storage.set(keys.initialized, True)
        return seed

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _find_box(boxes: List[MedicineBox], box_id: str, user_id: Optional[str] = None) -> MedicineBox:
        for box in boxes:
            if box.id == box_id and (user_id is None or box.user_id == user_id):
                return box
        raise NotFoundError("Caja", box_id)

    @staticmethod
    def _find_medicine(box: MedicineBox, medicine_id: str) -> Medicine:
        medicine = box.find_medicine(medicine_id)
        if medicine is None:
            raise NotFoundError("Medicamento", medicine_id)
        return medicine

    def _user_scope(self, user_id: str) -> Tuple[Set[str], Set[str]]:
        """Ids de cajas y medicamentos del usuario"""
        boxes = self.get_boxes(user_id)
        box_ids = {box.id for box in boxes}
        medicine_ids = set()
        for box in boxes:
            medicine_ids |= box.medicine_ids
        return box_ids, medicine_ids

    @staticmethod
    def _visible(alert: Alert, scope: Tuple[Set[str], Set[str]]) -> bool:
        box_ids, medicine_ids = scope
        return alert.box_id in box_ids or alert.medicine_id in medicine_ids

    def _update_box_fields(self, box_id: str, **fields) -> MedicineBox:
        """
        Aplicar cambios sobre una lectura fresca del almacenamiento.

        La caja se reconstruye y valida antes de guardar, de modo que un
        cambio inválido nunca llega al documento de cajas.
        """
        with self.storage.transaction():
            boxes = self.engine.load_boxes()
            current = self._find_box(boxes, box_id)
            box = MedicineBox.model_validate(
                {**current.model_dump(), **fields, "updated_at": now_local()}
            )
            self.engine.save_boxes([box if b.id == box_id else b for b in boxes])
        return box

    # ------------------------------------------------------------------
    # Cajas
    # ------------------------------------------------------------------

    def get_boxes(self, user_id: str) -> List[MedicineBox]:
        """Obtener las cajas de un usuario"""
        return [box for box in self.engine.load_boxes() if box.user_id == user_id]

    def get_box(self, box_id: str, user_id: Optional[str] = None) -> MedicineBox:
        """Obtener caja por ID"""
        return self._find_box(self.engine.load_boxes(), box_id, user_id)

    def create_box(self, user_id: str, box_data: BoxCreate) -> MedicineBox:
        """Emparejar una caja nueva"""
        box = MedicineBox(
            name=box_data.name,
            box_id=box_data.box_id,
            ip_address=box_data.ip_address,
            user_id=user_id,
            medicines=[],
            is_connected=box_data.is_connected
        )

        with self.storage.transaction():
            boxes = self.engine.load_boxes()
            boxes.append(box)
            self.engine.save_boxes(boxes)

        logger.info(f"Caja creada: {box.name} (ID: {box.id})")
        return box

    def update_box(self, box_id: str, box_update: BoxUpdate) -> MedicineBox:
        """Actualizar caja"""
        update_data = box_update.model_dump(exclude_unset=True)
        box = self._update_box_fields(box_id, **update_data)
        logger.info(f"Caja actualizada: {box.name} (ID: {box.id})")
        return box

    def delete_box(self, box_id: str) -> MedicineBox:
        """Eliminar caja junto con sus medicamentos y alertas"""
        with self.storage.transaction():
            boxes = self.engine.load_boxes()
            box = self._find_box(boxes, box_id)

            self.engine.save_boxes([b for b in boxes if b.id != box_id])

            alerts = self.engine.load_alerts()
            remaining = self.engine.remove_box_alerts(alerts, box)
            self.engine.save_alerts(remaining)

        logger.info(
            f"Caja eliminada: {box.name} (ID: {box.id}), "
            f"{len(alerts) - len(remaining)} alertas eliminadas"
        )
        return box

    # ------------------------------------------------------------------
    # Medicamentos
    # ------------------------------------------------------------------

    def add_medicine(self, box_id: str, medicine_data: MedicineCreate) -> Medicine:
        """Agregar medicamento a una caja"""
        medicine = Medicine(
            name=medicine_data.name,
            times_per_day=medicine_data.times_per_day,
            total_count=medicine_data.total_count,
            current_count=medicine_data.current_count,
            custom_message=medicine_data.custom_message,
            schedule_time=medicine_data.schedule_time
        )

        with self.storage.transaction():
            boxes = self.engine.load_boxes()
            box = self._find_box(boxes, box_id)
            box.medicines.append(medicine)
            box.updated_at = now_local()

            alerts = self.engine.load_alerts()
            if self.engine.is_low_count(medicine.current_count) and \
                    not self.engine.has_low_count_alert(alerts, medicine.id):
                alerts.append(self.engine.low_count_alert(box, medicine, now_local()))

            self.engine.save_boxes(boxes)
            self.engine.save_alerts(alerts)

        logger.info(f"Medicamento agregado: {medicine.name} en {box.name} (ID: {medicine.id})")
        return medicine

    def update_medicine(self, box_id: str, medicine_id: str, medicine_update: MedicineUpdate) -> Medicine:
        """Actualizar medicamento"""
        update_data = medicine_update.model_dump(exclude_unset=True)

        with self.storage.transaction():
            boxes = self.engine.load_boxes()
            box = self._find_box(boxes, box_id)
            current = self._find_medicine(box, medicine_id)

            medicine = Medicine.model_validate(
                {**current.model_dump(), **update_data, "updated_at": now_local()}
            )
            box.medicines = [medicine if m.id == medicine_id else m for m in box.medicines]
            box.updated_at = medicine.updated_at

            self.engine.save_boxes(boxes)

        logger.info(f"Medicamento actualizado: {medicine.name} (ID: {medicine.id})")
        return medicine

    def delete_medicine(self, box_id: str, medicine_id: str) -> Medicine:
        """Eliminar medicamento y sus alertas"""
        with self.storage.transaction():
            boxes = self.engine.load_boxes()
            box = self._find_box(boxes, box_id)
            medicine = self._find_medicine(box, medicine_id)

            box.medicines = [m for m in box.medicines if m.id != medicine_id]
            box.updated_at = now_local()
            self.engine.save_boxes(boxes)

            alerts = self.engine.load_alerts()
            self.engine.save_alerts(self.engine.remove_medicine_alerts(alerts, medicine_id))

        logger.info(f"Medicamento eliminado: {medicine.name} (ID: {medicine.id})")
        return medicine

    # ------------------------------------------------------------------
    # Alertas
    # ------------------------------------------------------------------

    def _for_user(self, alerts: List[Alert], user_id: Optional[str]) -> List[Alert]:
        if user_id is None:
            return alerts
        scope = self._user_scope(user_id)
        return [alert for alert in alerts if self._visible(alert, scope)]

    def get_alerts(self, user_id: Optional[str] = None, now: Optional[datetime] = None) -> List[Alert]:
        """Obtener alertas recientes (elimina las de más de 24 horas)"""
        return self._for_user(self.engine.retention_sweep(now), user_id)

    def _change_alert(self, alert_id: str, user_id: Optional[str], remove: bool) -> Alert:
        scope = self._user_scope(user_id) if user_id is not None else None

        with self.storage.transaction():
            alerts = self.engine.load_alerts()
            for alert in alerts:
                if alert.id == alert_id and (scope is None or self._visible(alert, scope)):
                    break
            else:
                raise NotFoundError("Alerta", alert_id)

            if remove:
                alerts = [a for a in alerts if a.id != alert_id]
            else:
                alert.is_read = True
            self.engine.save_alerts(alerts)
        return alert

    def mark_alert_as_read(self, alert_id: str, user_id: Optional[str] = None) -> Alert:
        """Marcar alerta como leída"""
        return self._change_alert(alert_id, user_id, remove=False)

    def delete_alert(self, alert_id: str, user_id: Optional[str] = None) -> Alert:
        """Eliminar alerta"""
        return self._change_alert(alert_id, user_id, remove=True)

    def mark_all_alerts_as_read(self, user_id: Optional[str] = None) -> int:
        """Marcar todas las alertas como leídas; devuelve cuántas cambiaron"""
        scope = self._user_scope(user_id) if user_id is not None else None
        changed = 0

        with self.storage.transaction():
            alerts = self.engine.load_alerts()
            for alert in alerts:
                if alert.is_read or (scope is not None and not self._visible(alert, scope)):
                    continue
                alert.is_read = True
                changed += 1
            if changed:
                self.engine.save_alerts(alerts)
        return changed

    def check_medicine_times(self, now: Optional[datetime] = None, user_id: Optional[str] = None) -> List[Alert]:
        """
        Ejecutar la verificación de dosis.

        La verificación recorre todas las cajas; con ``user_id`` solo se
        devuelven las alertas nuevas de ese usuario.
        """
        return self._for_user(self.engine.evaluate_due_doses(now), user_id)

    def check_low_medicines(self, now: Optional[datetime] = None, user_id: Optional[str] = None) -> List[Alert]:
        return self._for_user(self.engine.evaluate_low_stock(now), user_id)

    def get_summary(self, user_id: str) -> Dict[str, Any]:
        """Resumen para el panel principal"""
        boxes = self.get_boxes(user_id)
        alerts = self.get_alerts(user_id)
        low_stock = [
            {"box_id": box.id, "medicine_id": m.id, "name": m.name, "current_count": m.current_count}
            for box in boxes
            for m in box.medicines
            if m.days_remaining <= self.engine.low_stock_days
        ]

        return {
            "total_boxes": len(boxes),
            "connected_boxes": len([box for box in boxes if box.is_connected]),
            "total_medicines": sum(len(box.medicines) for box in boxes),
            "unread_alerts": len([alert for alert in alerts if not alert.is_read]),
            "low_stock_medicines": low_stock,
            "generated_at": now_local().isoformat()
        }

    # ------------------------------------------------------------------
    # Dispositivos
    # ------------------------------------------------------------------

    async def sync_box(self, box_id: str, user_id: Optional[str] = None) -> SyncResult:
        """Enviar el horario de la caja al ESP32"""
        box = self.get_box(box_id, user_id)
        result = await self.device_client.sync(box)
        synced_at = now_local()

        if result.success:
            self._update_box_fields(box_id, is_connected=True, last_sync_at=synced_at)
            logger.info(f"Caja sincronizada: {box.name} ({box.box_id})")
        else:
            self._update_box_fields(box_id, is_connected=False)
            logger.warning(f"Sincronización fallida para {box.name}: {result.message}")

        return SyncResult(
            box_id=box.id,
            status="success" if result.success else "failed",
            message=result.message,
            synced_at=synced_at
        )

    async def connect_box(self, box_id: str, user_id: Optional[str] = None) -> ConnectionResult:
        """Probar la conexión con el ESP32 y actualizar su estado"""
        box = self.get_box(box_id, user_id)
        result = await self.device_client.health(box.ip_address)

        fields = {"is_connected": result.success}
        if result.success:
            fields["last_sync_at"] = now_local()
        self._update_box_fields(box_id, **fields)

        return ConnectionResult(
            box_id=box.id,
            success=result.success,
            message=result.message,
            is_connected=result.success
        )

    async def disconnect_box(self, box_id: str, user_id: Optional[str] = None) -> ConnectionResult:
        """Desconectar la caja; siempre queda desconectada"""
        box = self.get_box(box_id, user_id)
        result = await self.device_client.disconnect(box.ip_address)
        if not result.success:
            logger.warning(f"Señal de desconexión fallida para {box.name}: {result.message}")

        self._update_box_fields(box_id, is_connected=False)
        return ConnectionResult(
            box_id=box.id,
            success=True,
            message=result.message,
            is_connected=False
        )

    def toggle_connection(self, box_id: str, user_id: Optional[str] = None) -> MedicineBox:
        """Alternar el estado de conexión (pruebas sin hardware)"""
        box = self.get_box(box_id, user_id)
        fields = {"is_connected": not box.is_connected}
        if fields["is_connected"]:
            fields["last_sync_at"] = now_local()
        return self._update_box_fields(box_id, **fields)

    async def device_status(self, box_id: str, user_id: Optional[str] = None) -> DeviceResult:
        """Consultar el estado reportado por el ESP32"""
        box = self.get_box(box_id, user_id)
        return await self.device_client.status(box.ip_address)
