# -*- coding: utf-8 -*-
"""WSGI entry point: ``gunicorn focusflow.main:app``."""

from focusflow.factory import create_app

app = create_app()
