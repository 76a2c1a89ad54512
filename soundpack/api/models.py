"""
API Models for response documentation
"""

from flask_restx import fields

from soundpack.api import api

# =============================================================================
# Response Models
# =============================================================================

preview_url_response = api.model(
    "PreviewUrlResponse",
    {
        "url": fields.String(
            description="Relative URL of the signed preview stream",
            example="/preview/labubu1.mp3?token=bGFidWJ1MS5tcDMu...",
        ),
        "expiresAt": fields.Integer(description="Token expiry as epoch milliseconds"),
    },
)

preview_sample = api.model(
    "PreviewSample",
    {
        "filename": fields.String(description="Sample name", example="labubu1.mp3"),
        "labelEn": fields.String(description="English label", example="Labubu Chirp"),
        "labelZh": fields.String(description="Chinese label"),
    },
)

preview_list_response = api.model(
    "PreviewListResponse",
    {
        "samples": fields.List(fields.Nested(preview_sample)),
    },
)

accepted_response = api.model(
    "AcceptedResponse",
    {
        "status": fields.String(description="Processing status", example="accepted"),
    },
)

unsubscribe_response = api.model(
    "UnsubscribeResponse",
    {
        "status": fields.String(example="unsubscribed"),
        "message": fields.String(),
    },
)

error_response = api.model(
    "ErrorResponse",
    {
        "error": fields.String(description="Error category"),
        "title": fields.String(description="Short error title"),
        "message": fields.String(description="User-facing message"),
        "action": fields.String(description="Suggested next step"),
    },
)
