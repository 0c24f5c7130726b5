"""Vercel serverless info endpoint for this repository.

Points callers at the clue endpoint instead of a generic NOT_FOUND page.
"""

from __future__ import annotations

import json


def handler(request):
    """Vercel Python serverless function handler."""
    body = {
        "ok": True,
        "project": "word-clue-proxy",
        "message": (
            "Request a definition, sentence clue and illustration for a word "
            "with GET /api/generate?word=<word>. Add image=0 to skip the illustration."
        ),
        "endpoints": {"generate": "/api/generate"},
    }

    return {
        "statusCode": 200,
        "headers": {"content-type": "application/json"},
        "body": json.dumps(body),
    }
