"""Precondition checks run before the boot job is launched.

The boot secret is created out of band (``helmboot secrets edit`` or an
import); this module only verifies that it is present and usable.
"""

from __future__ import annotations

import logging

from .errors import (
    KubeError,
    MissingSecretError,
    NamespaceMismatchError,
    NullSecretError,
    SecretKeyMissingError,
    SecretReadError,
)
from .kube import KubeClient
from .requirements import RequirementsDocument

logger = logging.getLogger(__name__)

BOOT_SECRET_NAME = "jx-boot"
BOOT_SECRET_KEY = "secrets.yaml"

KUBE_CONTEXT_DOCS_URL = "https://jenkins-x.io/docs/using-jx/developing/kube-context/"
SECRETS_DOCS_URL = "https://jenkins-x.io/docs/labs/boot/getting-started/secrets/"


class PreconditionVerifier:
    """Verify the namespace and boot secret."""

    def __init__(
        self,
        kube: KubeClient,
        secret_name: str = BOOT_SECRET_NAME,
        secret_key: str = BOOT_SECRET_KEY,
    ):
        self.kube = kube
        self.secret_name = secret_name
        self.secret_key = secret_key

    def verify(self, requirements: RequirementsDocument) -> None:
        """Verify the boot preconditions.

        Raises:
            NamespaceMismatchError: If the current namespace is not the required one.
            MissingSecretError: If the boot secret does not exist.
            SecretReadError: If the boot secret could not be read.
            NullSecretError: If the lookup returned no secret.
            SecretKeyMissingError: If the secret lacks the required key.
        """
        ns = self.kube.current_namespace()

        req_ns = requirements.cluster.namespace
        if req_ns and req_ns != ns:
            raise NamespaceMismatchError(
                f"you are currently in the {ns} namespace but this cluster needs to be booted "
                f"in namespace {req_ns}. please use 'jx ns {req_ns}' to switch namespace"
            )

        name = self.secret_name
        try:
            secret = self.kube.get_secret(ns, name)
        except KubeError as e:
            self._warn_no_secret(ns, name)
            if e.not_found:
                raise MissingSecretError(
                    f"boot secret {name} not found in namespace {ns}. are you sure you are "
                    "running this command in the right namespace and cluster"
                ) from e
            raise SecretReadError(
                f"failed to look for boot secret {name} in namespace {ns}: {e.message}"
            ) from e

        if secret is None:
            raise NullSecretError(
                f"null boot secret {name} found in namespace {ns}. are you sure you are "
                "running this command in the right namespace and cluster"
            )

        data = secret.get("data") or {}
        if not data.get(self.secret_key):
            raise SecretKeyMissingError(
                f"boot secret {name} in namespace {ns} does not contain key: {self.secret_key}"
            )

    def _warn_no_secret(self, ns: str, name: str) -> None:
        logger.warning(f"boot secret {name} not found in namespace {ns}")
        logger.info(f"Are you running in the correct namespace? To change namespaces see: {KUBE_CONTEXT_DOCS_URL}")
        logger.info(f"Did you remember to import or edit the secrets before running boot? see {SECRETS_DOCS_URL}")
