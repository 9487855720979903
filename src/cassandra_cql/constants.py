"""
Constants used throughout cassandra-cql.
"""

# Default keyspace selected after every physical connect
DEFAULT_KEYSPACE = "system"

# Default connect timeout in seconds
DEFAULT_CONNECT_TIMEOUT = 5

# Default contact point and native protocol port
DEFAULT_CONTACT_POINTS = ["127.0.0.1"]
DEFAULT_PORT = 9042

# Default consistency used when none has been set
DEFAULT_CONSISTENCY = "quorum"

# Server API version from which execute_cql3_query is available
VERSIONED_RPC_API_VERSION = "19.35.0"

# Lowest requested CQL version that may use execute_cql3_query
VERSIONED_CQL_FLOOR = "3.0.0"

# Final Thrift API version, reported by servers that no longer expose one
FINAL_THRIFT_API_VERSION = "20.1.0"
