"""
Sound Pack HTTP API

Preview, download and checkout endpoints with OpenAPI/Swagger documentation.
"""

from flask import Blueprint
from flask_restx import Api

api_bp = Blueprint("api", __name__)

# Initialize Flask-RESTX API with Swagger documentation
api = Api(
    api_bp,
    version="1.0",
    title="Sound Pack API",
    description="Signed previews and gated downloads for the Tesla lock sound pack",
    doc="/docs",  # Swagger UI will be available at /docs
)

# Import namespaces after api is created to avoid circular imports.
# Each namespace is rooted at "/", so routes are served without a prefix.
from .namespaces import checkout_ns, download_ns, preview_ns  # noqa: E402

api.add_namespace(preview_ns)
api.add_namespace(download_ns)
api.add_namespace(checkout_ns)
