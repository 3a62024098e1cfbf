"""Keystore and truststore generation.

For every node this module creates a key pair and signing request with
keytool, signs the request with a root authority minted by openssl, and
assembles the node keystore. Each authority certificate is imported into
one common truststore and, for rotations, an existing truststore.
Authorities are minted per node (``host`` scope) or once per run
(``cluster`` scope) and are never reused across runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
import shutil

from core.config import NodekitConfig
from core.constants import (
    CA_SERIAL_FILE_NAME,
    CERTS_DIR_NAME,
    DEFAULT_OUTPUT_DIR_PREFIX,
    EXISTING_TRUSTSTORE_PASSWORD_ENV,
    RUN_TIMESTAMP_FORMAT,
    STORE_FILE_EXTENSION,
    STORES_PASSWORD_FILE_NAME,
)
from core.errors import CommandError, NodekitConfigError, StoreGenerationError
from core.logging_config import get_logger
from core.process_runner import CommandRunner, SubprocessRunner
from core.types import (
    AuthorityArtifacts,
    NodeStoreArtifacts,
    PasswordPrompt,
    StoreGenerationResult,
    StoreOptions,
)
from pki.ca_config import CaConfig, build_node_dname, load_ca_config, parse_dname
from pki.passwords import PasswordLedger, generate_password, obtain_password

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class _RunContext:
    """Values fixed for one generation run."""

    options: StoreOptions
    ca_config: CaConfig
    dname_entries: tuple[tuple[str, str], ...]
    authority_password: str
    timestamp: str
    output_dir: Path
    certs_dir: Path
    truststore_path: Path
    truststore_password: str


def generate_stores(
    options: StoreOptions,
    config: NodekitConfig,
    runner: CommandRunner | None = None,
    password_prompt: PasswordPrompt | None = None,
    now: datetime | None = None,
) -> StoreGenerationResult:
    """Generate node keystores and the shared truststore.

    Args:
        options: Store generation options.
        config: Runtime configuration with tool paths and preset passwords.
        runner: External command runner; subprocess by default.
        password_prompt: Interactive prompt used when passwords are not generated.
        now: Run timestamp; current local time by default.

    Returns:
        Paths of every generated artifact.

    Raises:
        NodekitConfigError: If preconditions fail before any side effect.
        StoreGenerationError: If an openssl or keytool step fails.
    """
    context = _prepare_run(options, config, password_prompt, now or datetime.now())
    command_runner = runner or SubprocessRunner()
    ledger = PasswordLedger(context.output_dir / STORES_PASSWORD_FILE_NAME)
    tool = _StoreTools(config, command_runner)
    nodes: list[NodeStoreArtifacts] = []
    authority: AuthorityArtifacts | None = None
    truststore_pending = True
    try:
        for node_id in options.nodes:
            node_name = node_id.replace(".", "-")
            if options.scope == "host" or authority is None:
                authority = _authority_for(context, node_name)
                tool.create_authority(context, authority)
                truststore_pending = True
            keystore_name = (
                f"{options.keystore_prefix}{node_name}{options.keystore_suffix}{STORE_FILE_EXTENSION}"
            )
            keystore_password = obtain_password(
                f"Please enter a password for the {node_id} keystore: ",
                generate=options.generate_passwords,
                prompt=password_prompt,
            )
            ledger.record(keystore_name, keystore_password)
            artifacts = NodeStoreArtifacts(
                node_id=node_id,
                alias=f"{node_name}_{context.timestamp}",
                keystore_path=context.output_dir / keystore_name,
                signing_request_path=context.certs_dir
                / f"{node_name}_sign_req_{context.timestamp}.cert",
                signed_certificate_path=context.certs_dir
                / f"{node_name}_signed_{context.timestamp}.cert",
                authority=authority,
            )
            tool.build_keystore(context, artifacts, keystore_password)
            if truststore_pending:
                tool.trust_authority(context, authority, config)
                truststore_pending = False
            nodes.append(artifacts)
            _LOGGER.info(
                "store_node_generated",
                node_id=node_id,
                keystore_path=str(artifacts.keystore_path),
                authority_alias=authority.alias,
            )
    except CommandError as error:
        raise StoreGenerationError(
            f"Store generation aborted: {error}. Artifacts created so far remain in "
            f"{context.output_dir}."
        ) from error
    _collect_serial_file(context.output_dir)
    ledger.record(context.truststore_path.name, context.truststore_password)
    _LOGGER.info(
        "stores_generated",
        output_dir=str(context.output_dir),
        node_count=len(nodes),
        scope=options.scope,
    )
    return StoreGenerationResult(
        output_dir=context.output_dir,
        truststore_path=context.truststore_path,
        password_file=ledger.path,
        nodes=tuple(nodes),
    )


def truststore_file_name(name: str) -> str:
    """Append the ``.jks`` extension when missing."""
    return name if name.endswith(STORE_FILE_EXTENSION) else f"{name}{STORE_FILE_EXTENSION}"


def _prepare_run(
    options: StoreOptions,
    config: NodekitConfig,
    password_prompt: PasswordPrompt | None,
    now: datetime,
) -> _RunContext:
    if not options.nodes:
        raise NodekitConfigError("Node list is empty. Pass at least one node with --nodes.")
    if options.existing_truststore is not None and not config.existing_truststore_password:
        raise NodekitConfigError(
            f"Existing truststore {options.existing_truststore} was given but no password is set "
            f"in environment variable {EXISTING_TRUSTSTORE_PASSWORD_ENV}."
        )
    ca_config = load_ca_config(options.ca_config_path)
    dname_entries = parse_dname(options.dname) if options.dname else ca_config.distinguished_name
    if not dname_entries:
        raise NodekitConfigError(
            "No X.500 distinguished name found in certificate authority configuration "
            f"{options.ca_config_path}. Add a distinguished_name section or pass --dname. See "
            "https://docs.oracle.com/javase/8/docs/technotes/tools/unix/keytool.html"
        )
    timestamp = now.strftime(RUN_TIMESTAMP_FORMAT)
    output_dir = options.output_dir or Path(f"{DEFAULT_OUTPUT_DIR_PREFIX}{timestamp}")
    certs_dir = output_dir / CERTS_DIR_NAME
    truststore_password = obtain_password(
        "Please enter a password for the truststore: ",
        generate=options.generate_passwords,
        prompt=password_prompt,
        preset=config.truststore_password,
    )
    certs_dir.mkdir(parents=True, exist_ok=True)
    _LOGGER.info("store_output_prepared", output_dir=str(output_dir))
    return _RunContext(
        options=options,
        ca_config=ca_config,
        dname_entries=dname_entries,
        authority_password=ca_config.output_password or generate_password(),
        timestamp=timestamp,
        output_dir=output_dir,
        certs_dir=certs_dir,
        truststore_path=output_dir / truststore_file_name(options.truststore_name),
        truststore_password=truststore_password,
    )


def _authority_for(context: _RunContext, node_name: str) -> AuthorityArtifacts:
    base_name = f"ca_{context.timestamp}"
    if context.options.scope == "host":
        return AuthorityArtifacts(
            alias=f"{node_name}_CARoot_{context.timestamp}",
            certificate_path=context.certs_dir / f"{node_name}_{base_name}.cert",
            private_key_path=context.certs_dir / f"{node_name}_{base_name}.key",
        )
    return AuthorityArtifacts(
        alias=f"CARoot_{context.timestamp}",
        certificate_path=context.certs_dir / f"{base_name}.cert",
        private_key_path=context.certs_dir / f"{base_name}.key",
    )


class _StoreTools:
    """openssl and keytool invocations used by one run."""

    def __init__(self, config: NodekitConfig, runner: CommandRunner) -> None:
        self._openssl = config.openssl_bin
        self._keytool = config.keytool_bin
        self._runner = runner

    def create_authority(self, context: _RunContext, authority: AuthorityArtifacts) -> None:
        """Mint a self-signed root authority and print its contents."""
        self._runner.run(
            [
                self._openssl,
                "req",
                "-config",
                str(context.ca_config.path),
                "-new",
                "-x509",
                "-keyout",
                str(authority.private_key_path),
                "-out",
                str(authority.certificate_path),
                "-days",
                str(context.options.valid_days),
                "-passout",
                f"pass:{context.authority_password}",
            ]
        )
        self._runner.run(
            [self._openssl, "x509", "-in", str(authority.certificate_path), "-text", "-noout"]
        )
        _LOGGER.info(
            "store_authority_created",
            alias=authority.alias,
            certificate_path=str(authority.certificate_path),
            scope=context.options.scope,
        )

    def build_keystore(
        self,
        context: _RunContext,
        node: NodeStoreArtifacts,
        password: str,
    ) -> None:
        """Generate, sign, and import the node certificate chain."""
        keystore = str(node.keystore_path)
        store_args = ["-keystore", keystore, "-storepass", password, "-keypass", password]
        self._runner.run(
            [
                self._keytool,
                "-genkeypair",
                "-keyalg",
                "RSA",
                "-alias",
                node.alias,
                *store_args,
                "-validity",
                str(context.options.valid_days),
                "-keysize",
                str(context.options.key_size),
                "-dname",
                build_node_dname(context.dname_entries, node.alias),
            ]
        )
        self._runner.run(
            [
                self._keytool,
                "-certreq",
                "-alias",
                node.alias,
                "-file",
                str(node.signing_request_path),
                *store_args,
            ]
        )
        self._runner.run(
            [
                self._openssl,
                "x509",
                "-req",
                "-CA",
                str(node.authority.certificate_path),
                "-CAkey",
                str(node.authority.private_key_path),
                "-in",
                str(node.signing_request_path),
                "-out",
                str(node.signed_certificate_path),
                "-days",
                str(context.options.valid_days),
                "-CAcreateserial",
                "-passin",
                f"pass:{context.authority_password}",
            ]
        )
        self._runner.run(
            [
                self._keytool,
                "-import",
                "-alias",
                node.authority.alias,
                "-file",
                str(node.authority.certificate_path),
                *store_args,
                "-noprompt",
            ]
        )
        self._runner.run(
            [
                self._keytool,
                "-import",
                "-alias",
                node.alias,
                "-file",
                str(node.signed_certificate_path),
                *store_args,
                "-noprompt",
            ]
        )

    def trust_authority(
        self,
        context: _RunContext,
        authority: AuthorityArtifacts,
        config: NodekitConfig,
    ) -> None:
        """Import an authority certificate into the common and existing truststores."""
        self._import_trusted(authority, context.truststore_path, context.truststore_password)
        existing = context.options.existing_truststore
        if existing is not None and config.existing_truststore_password:
            self._import_trusted(authority, existing, config.existing_truststore_password)

    def _import_trusted(
        self,
        authority: AuthorityArtifacts,
        truststore: Path,
        password: str,
    ) -> None:
        self._runner.run(
            [
                self._keytool,
                "-importcert",
                "-alias",
                authority.alias,
                "-file",
                str(authority.certificate_path),
                "-keystore",
                str(truststore),
                "-storepass",
                password,
                "-noprompt",
            ]
        )


def _collect_serial_file(output_dir: Path) -> None:
    serial_file = Path(CA_SERIAL_FILE_NAME)
    if serial_file.is_file():
        shutil.move(str(serial_file), str(output_dir / CA_SERIAL_FILE_NAME))
