"""
Excepciones del dominio
"""


class MedBoxError(Exception):
    """Error base de la aplicación"""


class NotFoundError(MedBoxError):
    """La caja, medicamento o alerta referenciada no existe"""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} no encontrado: {entity_id}")
