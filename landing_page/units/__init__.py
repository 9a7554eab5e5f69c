# landing_page/units/__init__.py
from .Unit import Unit
from .SimUnit import SimUnit
from .SystemdUnit import SystemdUnit
from .UnitFactory import create_unit

__all__ = ['Unit', 'SimUnit', 'SystemdUnit', 'create_unit']
