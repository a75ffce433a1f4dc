"""Entry point for `python -m kustomap`.

Usage:
    python -m kustomap
"""

from __future__ import annotations

import asyncio

from kustomap.app import main

asyncio.run(main())
