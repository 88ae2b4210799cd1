# -*- coding: utf-8 -*-
"""
Per-request tracing context.

Each request gets a request id (the caller's ``X-Request-ID`` when it looks
sane, otherwise a fresh UUID), echoed back on the response together with
``X-Response-Time``. Routes attach the acting user once the body is parsed so
checkout attempts and entitlement denials can be traced per user.
"""

import re
import time
import uuid
from typing import Optional

from flask import Flask, Response, g, request

REQUEST_ID_HEADER = 'X-Request-ID'

_REQUEST_ID_RE = re.compile(r'^[A-Za-z0-9._:-]{8,128}$')


def _incoming_request_id() -> Optional[str]:
    candidate = (request.headers.get(REQUEST_ID_HEADER) or '').strip()
    if _REQUEST_ID_RE.match(candidate):
        return candidate
    return None


def _open_context():
    g.request_id = _incoming_request_id() or str(uuid.uuid4())
    g.request_start_time = time.time()
    g.user_id = None


def _close_context(response: Response) -> Response:
    request_id = getattr(g, 'request_id', None)
    if request_id:
        response.headers[REQUEST_ID_HEADER] = request_id
    started = getattr(g, 'request_start_time', None)
    if started:
        response.headers['X-Response-Time'] = f"{round((time.time() - started) * 1000, 2)}ms"
    return response


def get_request_id() -> Optional[str]:
    return getattr(g, 'request_id', None)


def get_request_context() -> dict:
    """Fields merged into every log line emitted during a request."""
    return {
        'request_id': get_request_id(),
        'method': request.method,
        'path': request.path,
        'user_id': getattr(g, 'user_id', None),
    }


def set_user_context(user_id: Optional[str]):
    if user_id:
        g.user_id = user_id


def init_request_context(app: Flask):
    app.before_request(_open_context)
    app.after_request(_close_context)
