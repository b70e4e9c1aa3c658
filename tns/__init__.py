# -*- coding: utf-8 -*-
"""Topic Name Service (TNS)."""

__version__ = "1.0.0"
