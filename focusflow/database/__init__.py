# -*- coding: utf-8 -*-
from focusflow.database.db import db

__all__ = ["db"]
