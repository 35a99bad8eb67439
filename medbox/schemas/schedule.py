"""
Horarios de toma: lista de horas HH:MM separadas por comas
"""
from datetime import datetime
from typing import List
import logging

logger = logging.getLogger(__name__)

# Horarios sugeridos según el número de tomas diarias
DEFAULT_SCHEDULES = {
    1: ["08:00"],
    2: ["08:00", "20:00"],
    3: ["08:00", "14:00", "20:00"],
    4: ["08:00", "12:00", "16:00", "20:00"],
}


def normalize_token(token: str) -> str:
    """
    Normalizar una hora a HH:MM con ceros a la izquierda ("8:00" -> "08:00").

    Lanza ValueError si no es una hora válida.
    """
    value = token.strip()
    try:
        parsed = datetime.strptime(value, "%H:%M")
    except ValueError:
        raise ValueError(f"Hora inválida '{value}': use el formato HH:MM")
    return parsed.strftime("%H:%M")


def parse_schedule(value: str) -> List[str]:
    """Validar y normalizar un horario completo"""
    tokens = [t for t in (value or "").split(",") if t.strip()]
    if not tokens:
        raise ValueError("El horario debe tener al menos una hora")
    return [normalize_token(t) for t in tokens]


def format_schedule(tokens: List[str]) -> str:
    return ",".join(tokens)


def schedule_tokens(value: str) -> List[str]:
    """
    Leer las horas de un horario ya guardado.

    Las horas ilegibles se omiten con un aviso en lugar de fallar.
    """
    tokens = []
    for raw in (value or "").split(","):
        if not raw.strip():
            continue
        try:
            tokens.append(normalize_token(raw))
        except ValueError as e:
            logger.warning(f"Se omite hora de horario: {e}")
    return tokens


def default_schedule(times_per_day: int) -> str:
    return format_schedule(DEFAULT_SCHEDULES.get(times_per_day, ["08:00"]))
