# landing_page/controller/__init__.py
from .ServerController import ServerController, ServerStatus

__all__ = ['ServerController', 'ServerStatus']
