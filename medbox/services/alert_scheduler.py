"""
Verificaciones periódicas de dosis y existencias
"""
from typing import Callable, List, Optional
import asyncio
import logging

from medbox.services.alert_engine import AlertEngine

logger = logging.getLogger(__name__)


class AlertScheduler:
    """
    Ejecuta el motor de alertas en segundo plano.

    - Dosis: cada ``dose_interval`` segundos, y una vez al arrancar
    - Existencias bajas: cada ``low_stock_interval`` segundos
    """

    def __init__(
            self,
            engine: AlertEngine,
            dose_interval: float = 60,
            low_stock_interval: float = 30,
            on_alerts: Optional[Callable[[str, list], None]] = None
    ):
        self.engine = engine
        self.dose_interval = dose_interval
        self.low_stock_interval = low_stock_interval
        self.on_alerts = on_alerts
        self._tasks: List[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def run_once(self, name: str, check: Callable[[], list]) -> list:
        """Ejecutar una verificación en un hilo; los errores se registran"""
        try:
            alerts = await asyncio.to_thread(check)
        except Exception as e:
            logger.error(f"❌ Error en verificación '{name}': {e}")
            return []

        if alerts:
            logger.info(f"🔔 Verificación '{name}': {len(alerts)} alertas nuevas")
            if self.on_alerts:
                self.on_alerts(name, alerts)
        return alerts

    async def _loop(self, name: str, check: Callable[[], list], interval: float, run_first: bool):
        """
        Ejecutar ``check`` en intervalos fijos desde el arranque.

        La espera se mide hasta el siguiente múltiplo de ``interval``, así la
        duración de cada verificación no se acumula y no se salta ningún minuto.
        """
        loop = asyncio.get_running_loop()
        started = loop.time()
        if run_first:
            await self.run_once(name, check)
        while True:
            elapsed = loop.time() - started
            await asyncio.sleep(interval - elapsed % interval)
            await self.run_once(name, check)

    def start(self):
        """Iniciar ambas verificaciones en el event loop actual"""
        if self.running:
            return
        self._tasks = [
            asyncio.create_task(
                self._loop("dosis", self.engine.evaluate_due_doses, self.dose_interval, run_first=True)
            ),
            asyncio.create_task(
                self._loop("existencias", self.engine.evaluate_low_stock, self.low_stock_interval, run_first=False)
            ),
        ]
        logger.info(
            f"⏰ Verificaciones iniciadas (dosis cada {self.dose_interval}s, "
            f"existencias cada {self.low_stock_interval}s)"
        )

    async def stop(self):
        """Cancelar las verificaciones"""
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("🛑 Verificaciones detenidas")
