"""Application services.

Submodules are not imported here so that ``import services`` stays cheap;
import what you need directly, e.g.::

    from services import client_service as cs
    from services.backup_service import BackupAction
"""

__all__: list[str] = []
