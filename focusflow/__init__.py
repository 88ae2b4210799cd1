# -*- coding: utf-8 -*-
"""FocusFlow billing and entitlement API."""

__version__ = "0.1.0"
