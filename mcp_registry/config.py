"""
MCP Registry Index
Introductory remarks: This module is part of the mcp-registry-index codebase.

Central configuration constants for the registry index and import pipeline.
"""

from __future__ import annotations

# Backing store layout -------------------------------------------------------

SERVER_VERSIONS_GROUP = "mcp-server-versions"
"""Group holding one version-info document per registered server."""

SERVER_VERSION_DATA_ID_SUFFIX = "-mcp-versions.json"
"""Suffix appended to a server id to form its version-info document id."""

SERVER_NAME_TAG_PREFIX = "mcp-server-name:"
"""Tag prefix used to look a server up by name inside one partition."""

SERVER_CONFIG_MARK = "mcp-server"
"""Tag attached to every document written by the registry."""

ALL_PATTERN = "*"

SEARCH_BLUR = "blur"
"""Fuzzy name search; the name is wrapped in wildcards."""

SEARCH_ACCURATE = "accurate"
"""Exact name search."""

# Cache-aside index ----------------------------------------------------------

DEFAULT_CACHE_ENABLED = True
DEFAULT_SYNC_INTERVAL_SECONDS = 300.0
RESYNC_PAGE_SIZE = 1000
"""Upper bound on records pulled per partition during a full resync."""

# External registry adaptor --------------------------------------------------

FETCH_ALL_LIMIT = -1
"""Sentinel ``limit`` value that requests every page of a remote listing."""

FETCH_ALL_PAGE_SIZE = 30
MAX_PAGES_GUARD = 200
"""Hard stop for remotes that never stop returning a cursor."""

CONNECT_TIMEOUT_SECONDS = 10.0
READ_TIMEOUT_SECONDS = 20.0

# Registry listing -----------------------------------------------------------

DEFAULT_LIST_LIMIT = 30
DEFAULT_HTTP_PORT = 80
DEFAULT_HTTPS_PORT = 443
