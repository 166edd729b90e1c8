"""Registry services: adaptation, validation, import and listing."""

from __future__ import annotations

from mcp_registry.services.endpoint_spec import EndpointSpec, to_endpoint_spec
from mcp_registry.services.external_adaptor import (ExternalDataAdaptor,
                                                    UrlPageResult,
                                                    generate_server_id)
from mcp_registry.services.import_service import ImportPipeline
from mcp_registry.services.registry_listing import RegistryListingService
from mcp_registry.services.server_operations import ServerOperationService
from mcp_registry.services.validation import RecordValidationService

__all__ = [
    "EndpointSpec",
    "ExternalDataAdaptor",
    "ImportPipeline",
    "RecordValidationService",
    "RegistryListingService",
    "ServerOperationService",
    "UrlPageResult",
    "generate_server_id",
    "to_endpoint_spec",
]
