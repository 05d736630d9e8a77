from usergate.core.base.usergate_base import UserGate, UserGateMeta

__all__ = ["UserGate", "UserGateMeta"]
