# -*- coding: utf-8 -*-
"""BoHelper web service package.

- Backend: FastAPI (ASGI)
- Data: game content catalog + save snapshot (refreshed by a watcher thread)
- API: JSON under /api/v1
"""

__all__ = ["__version__"]
__version__ = "0.3.0"
