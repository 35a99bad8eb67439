"""
MedBox - cajas de medicamentos ESP32
"""
__version__ = "1.0.0"
