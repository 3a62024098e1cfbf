"""Run-spec option object builders.

This module converts raw run-spec step arguments into typed option dataclasses.
It keeps parsing logic isolated from run-spec orchestration.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, cast

from core.constants import (
    CA_SCOPES,
    CONFLICT_POLICIES,
    DEFAULT_CA_SCOPE,
    DEFAULT_KEY_SIZE,
    DEFAULT_KEYSTORE_PREFIX,
    DEFAULT_KEYSTORE_SUFFIX,
    DEFAULT_NODE_ID,
    DEFAULT_TRANSFER_MODE,
    DEFAULT_TRUSTSTORE_NAME,
    DEFAULT_VALID_DAYS,
    TRANSFER_MODES,
)
from core.errors import NodekitRunSpecError
from core.run_spec import RunSpecDefaults
from core.run_spec_fields import (
    choice_with_default,
    optional_bool,
    optional_positive_int,
    optional_string,
    positive_int_with_default,
    required_string,
    string_list,
    string_with_default,
)
from core.types import (
    CaScope,
    ConflictPolicy,
    RemoteTarget,
    StoreOptions,
    TransferMode,
    TransferOptions,
    default_conflict_policy,
)


def build_transfer_options_for_run_spec(
    args: Mapping[str, object],
    defaults: RunSpecDefaults,
) -> TransferOptions:
    """Build snapshot transfer options from one run-spec copy-snapshot step."""
    remote_user = optional_string(args, "remote_user") or defaults.remote_user
    remote_host = optional_string(args, "remote_host") or defaults.remote_host
    if not remote_user or not remote_host:
        raise NodekitRunSpecError(
            "Run-spec command 'copy-snapshot' requires remote_user and remote_host. "
            "Set them on the step or in top-level defaults."
        )
    mode = cast(
        TransferMode,
        choice_with_default(args, "mode", TRANSFER_MODES, DEFAULT_TRANSFER_MODE),
    )
    return TransferOptions(
        local_data_dir=Path(required_string(args, "local_data_dir")).expanduser(),
        snapshot_tag=required_string(args, "snapshot_tag"),
        remote=RemoteTarget(
            user=remote_user,
            host=remote_host,
            data_dir=required_string(args, "remote_data_dir"),
        ),
        include=string_list(args, "include"),
        exclude=string_list(args, "exclude"),
        bandwidth_limit=optional_positive_int(args, "bandwidth_limit"),
        mode=mode,
        conflict_policy=cast(
            ConflictPolicy,
            choice_with_default(
                args, "conflict_policy", CONFLICT_POLICIES, default_conflict_policy(mode)
            ),
        ),
        assume_yes=True,
    )


def build_store_options_for_run_spec(args: Mapping[str, object]) -> StoreOptions:
    """Build store generation options from one run-spec generate-stores step."""
    existing_truststore = optional_string(args, "existing_truststore")
    output_dir = optional_string(args, "output_dir")
    return StoreOptions(
        ca_config_path=Path(required_string(args, "ca_config")).expanduser(),
        nodes=string_list(args, "nodes") or (DEFAULT_NODE_ID,),
        scope=cast(CaScope, choice_with_default(args, "scope", CA_SCOPES, DEFAULT_CA_SCOPE)),
        generate_passwords=optional_bool(args, "generate_passwords", default_value=True),
        keystore_prefix=string_with_default(args, "keystore_prefix", DEFAULT_KEYSTORE_PREFIX),
        keystore_suffix=string_with_default(args, "keystore_suffix", DEFAULT_KEYSTORE_SUFFIX),
        truststore_name=optional_string(args, "truststore_name") or DEFAULT_TRUSTSTORE_NAME,
        key_size=positive_int_with_default(args, "key_size", DEFAULT_KEY_SIZE),
        valid_days=positive_int_with_default(args, "valid_days", DEFAULT_VALID_DAYS),
        existing_truststore=Path(existing_truststore) if existing_truststore else None,
        output_dir=Path(output_dir) if output_dir else None,
        dname=optional_string(args, "dname"),
    )
