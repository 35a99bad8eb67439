"""
Cliente HTTP para las cajas ESP32

Cada operación devuelve un DeviceResult; los errores de red, timeouts y
respuestas no 2xx nunca se propagan como excepciones.
"""
from typing import Any, Dict, Optional
import logging

import httpx

from medbox.core.config import Settings
from medbox.schemas.box import MedicineBox
from medbox.schemas.device import DeviceResult, SyncMedicine, SyncPayload

logger = logging.getLogger(__name__)

# Fallos de red, timeouts y direcciones mal formadas
TRANSPORT_ERRORS = (httpx.HTTPError, httpx.InvalidURL)


class DeviceClient:
    """Peticiones request/response a la IP de una caja"""

    def __init__(
            self,
            scheme: str = "http",
            timeout: float = 5.0,
            sync_timeout: float = 10.0,
            transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.scheme = scheme
        self.timeout = timeout
        self.sync_timeout = sync_timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "DeviceClient":
        return cls(
            scheme=settings.DEVICE_SCHEME,
            timeout=settings.DEVICE_TIMEOUT,
            sync_timeout=settings.DEVICE_SYNC_TIMEOUT,
            transport=transport
        )

    def _url(self, ip_address: str, path: str) -> str:
        return f"{self.scheme}://{ip_address}{path}"

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self.transport)

    @staticmethod
    def build_sync_payload(box: MedicineBox) -> Dict[str, Any]:
        """Cuerpo de POST /sync con el horario de todos los medicamentos"""
        payload = SyncPayload(
            box_id=box.box_id,
            medicines=[
                SyncMedicine(
                    id=medicine.id,
                    name=medicine.name,
                    times=medicine.schedule_tokens,
                    message=medicine.custom_message or f"Hora de tomar {medicine.name}"
                )
                for medicine in box.medicines
            ]
        )
        return payload.model_dump(by_alias=True)

    async def health(self, ip_address: str) -> DeviceResult:
        """Probar conectividad (GET /health)"""
        try:
            async with self._client(self.timeout) as client:
                response = await client.get(self._url(ip_address, "/health"))
        except TRANSPORT_ERRORS as e:
            logger.warning(f"Prueba de conexión fallida con {ip_address}: {e!r}")
            return DeviceResult(success=False, message="Conexión fallida: dispositivo inalcanzable")

        if not response.is_success:
            return DeviceResult(
                success=False,
                message=f"HTTP {response.status_code}: {response.reason_phrase}"
            )

        try:
            data = response.json()
        except ValueError:
            data = {}
        device_id = data.get("boxId") if isinstance(data, dict) else None
        return DeviceResult(
            success=True,
            message=f"Conectado al ESP32 ({device_id or 'ID desconocido'})",
            data=data
        )

    async def sync(self, box: MedicineBox) -> DeviceResult:
        """Enviar los horarios de la caja (POST /sync)"""
        payload = self.build_sync_payload(box)
        try:
            async with self._client(self.sync_timeout) as client:
                response = await client.post(self._url(box.ip_address, "/sync"), json=payload)
        except TRANSPORT_ERRORS as e:
            logger.warning(f"Sincronización fallida con {box.ip_address}: {e!r}")
            return DeviceResult(success=False, message="Sincronización fallida: no se pudo contactar el dispositivo")

        if not response.is_success:
            return DeviceResult(success=False, message=f"Sincronización fallida: HTTP {response.status_code}")

        try:
            result = response.json()
        except ValueError:
            logger.warning(f"Respuesta de /sync no es JSON ({box.ip_address})")
            return DeviceResult(success=False, message="Sincronización fallida: respuesta inválida del dispositivo")

        if not isinstance(result, dict):
            return DeviceResult(success=False, message="Sincronización fallida: respuesta inválida del dispositivo")

        return DeviceResult(
            success=result.get("status") == "success",
            message=result.get("message") or "Sincronización completada",
            data=result
        )

    async def status(self, ip_address: str) -> DeviceResult:
        """Estado actual del dispositivo (GET /status)"""
        try:
            async with self._client(self.timeout) as client:
                response = await client.get(self._url(ip_address, "/status"))
        except TRANSPORT_ERRORS as e:
            logger.warning(f"Consulta de estado fallida con {ip_address}: {e!r}")
            return DeviceResult(success=False, message="Consulta de estado fallida: dispositivo inalcanzable")

        if not response.is_success:
            return DeviceResult(success=False, message=f"No se pudo obtener el estado: HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError:
            return DeviceResult(success=False, message="No se pudo obtener el estado: respuesta inválida")

        return DeviceResult(success=True, message="Estado obtenido correctamente", data=data)

    async def disconnect(self, ip_address: str) -> DeviceResult:
        """
        Enviar señal de desconexión (POST /disconnect).

        Si el dispositivo no responde se considera desconectado igualmente.
        """
        try:
            async with self._client(self.timeout) as client:
                response = await client.post(self._url(ip_address, "/disconnect"))
        except TRANSPORT_ERRORS:
            return DeviceResult(success=True, message="Desconectado (dispositivo inalcanzable)")

        if response.is_success:
            return DeviceResult(success=True, message="Desconectado correctamente")
        return DeviceResult(success=False, message="La señal de desconexión falló")
