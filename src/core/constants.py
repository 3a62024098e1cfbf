"""Core constants used across Nodekit modules.

This module centralizes tool defaults and on-disk naming conventions.
Keeping values here avoids magic literals in workflow logic.
"""

from __future__ import annotations

NODEKIT_VERSION = "2.0"

DEFAULT_RSYNC_BIN = "rsync"
DEFAULT_SSH_BIN = "ssh"
DEFAULT_OPENSSL_BIN = "openssl"
DEFAULT_KEYTOOL_BIN = "keytool"
RSYNC_TRANSFER_FLAGS = ("-azPog",)

ALWAYS_EXCLUDED_KEYSPACES = ("system", "system_traces", "system_auth")
SNAPSHOTS_DIR_NAME = "snapshots"
SCRATCH_DIR_SUFFIX = "_tmp"
MOVE_SCRIPT_NAME = "sstable_mv.sh"
GENERATION_DISAMBIGUATION_FACTOR = 10

TRANSFER_MODES = ("indirect", "direct")
DEFAULT_TRANSFER_MODE = "indirect"
CONFLICT_POLICIES = ("preserve", "overwrite")
DEFAULT_CONFLICT_POLICY = "preserve"
DIRECT_CONFLICT_POLICY = "overwrite"

CA_SCOPES = ("host", "cluster")
DEFAULT_CA_SCOPE = "host"
DEFAULT_NODE_ID = "cassandra-node"
DEFAULT_KEYSTORE_PREFIX = ""
DEFAULT_KEYSTORE_SUFFIX = "-keystore"
DEFAULT_TRUSTSTORE_NAME = "common-truststore.jks"
STORE_FILE_EXTENSION = ".jks"
DEFAULT_KEY_SIZE = 2048
DEFAULT_VALID_DAYS = 365
DEFAULT_OUTPUT_DIR_PREFIX = "ssl_artifacts_"
CERTS_DIR_NAME = "certs"
STORES_PASSWORD_FILE_NAME = "stores.password"
CA_SERIAL_FILE_NAME = ".srl"
GENERATED_PASSWORD_LENGTH = 32
RUN_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

TRUSTSTORE_PASSWORD_ENV = "TRUSTSTORE_PASSWORD"
EXISTING_TRUSTSTORE_PASSWORD_ENV = "EXISTING_TRUSTSTORE_PASSWORD"
