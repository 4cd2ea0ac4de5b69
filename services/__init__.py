"""
Servicios de negocio del flujo de limpieza
"""
