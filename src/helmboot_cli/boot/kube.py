"""Control-plane access through kubectl.

This module reads the objects the boot flow needs (dev environment record,
secrets, pods) and streams pod logs, all via the kubectl CLI.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .errors import KubeError

logger = logging.getLogger(__name__)

SERVICE_ACCOUNT_DIR = Path("/var/run/secrets/kubernetes.io/serviceaccount")

DEV_ENVIRONMENT_RESOURCE = "environments.jenkins.io"
DEV_ENVIRONMENT_NAME = "dev"

_NOT_FOUND_MARKERS = ("(NotFound)", "doesn't have a resource type", "not found")


@dataclass(frozen=True)
class ExecutionContext:
    """Where this process is running."""

    in_cluster: bool = False

    @classmethod
    def detect(cls) -> ExecutionContext:
        """Detect in-cluster execution from the pod environment."""
        in_cluster = bool(os.environ.get("KUBERNETES_SERVICE_HOST")) and (
            SERVICE_ACCOUNT_DIR / "token"
        ).exists()
        return cls(in_cluster=in_cluster)


@dataclass(frozen=True)
class PodObservation:
    """Snapshot of a pod as last read from the control plane."""

    name: str
    phase: str
    ready: bool
    completed: bool
    status: str

    @classmethod
    def from_pod(cls, pod: dict[str, Any]) -> PodObservation:
        return cls(
            name=pod.get("metadata", {}).get("name", ""),
            phase=pod.get("status", {}).get("phase", ""),
            ready=is_pod_ready(pod),
            completed=is_pod_completed(pod),
            status=pod_status(pod),
        )


def _condition(pod: dict[str, Any], condition_type: str) -> dict[str, Any] | None:
    for condition in pod.get("status", {}).get("conditions") or []:
        if condition.get("type") == condition_type:
            return condition
    return None


def is_pod_ready(pod: dict[str, Any]) -> bool:
    """Check whether the pod is running with its Ready condition true."""
    if pod.get("status", {}).get("phase") != "Running":
        return False
    ready = _condition(pod, "Ready")
    return ready is not None and ready.get("status") == "True"


def is_pod_completed(pod: dict[str, Any]) -> bool:
    """Check whether the pod has completed successfully."""
    if pod.get("status", {}).get("phase") == "Succeeded":
        return True
    ready = _condition(pod, "Ready")
    return ready is not None and ready.get("reason") == "PodCompleted"


def pod_status(pod: dict[str, Any]) -> str:
    """Render a short human-readable pod status."""
    status = pod.get("status", {})
    phase = status.get("phase") or "Unknown"
    reasons = []
    for container in status.get("containerStatuses") or []:
        state = container.get("state") or {}
        for key in ("waiting", "terminated"):
            reason = (state.get(key) or {}).get("reason")
            if reason:
                reasons.append(f"{container.get('name', '')}: {reason}")
    if status.get("reason"):
        reasons.insert(0, status["reason"])
    if reasons:
        return f"{phase} ({', '.join(reasons)})"
    return phase


class KubeClient:
    """Read control-plane objects using kubectl."""

    def __init__(
        self,
        kubeconfig: str | None = None,
        namespace: str | None = None,
        poll_interval: float = 2.0,
    ):
        """Initialize client.

        Args:
            kubeconfig: Path to kubeconfig file.
            namespace: Namespace to use instead of the current context's.
            poll_interval: Seconds between pod lookups while waiting.
        """
        self.kubeconfig = kubeconfig
        self.namespace = namespace
        self.poll_interval = poll_interval

    def _kubectl_cmd(self) -> list[str]:
        """Build base kubectl command."""
        cmd = ["kubectl"]
        if self.kubeconfig:
            cmd.extend(["--kubeconfig", self.kubeconfig])
        return cmd

    def _run(self, args: list[str]) -> str:
        try:
            result = subprocess.run(
                self._kubectl_cmd() + args,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as e:
            raise KubeError("kubectl not found. Is kubectl installed?") from e

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            not_found = any(marker in stderr for marker in _NOT_FOUND_MARKERS)
            raise KubeError(
                f"kubectl {' '.join(args)} failed: {stderr}",
                not_found=not_found,
            )
        return result.stdout

    def _get_json(self, args: list[str]) -> dict[str, Any] | None:
        output = self._run(args + ["-o", "json"]).strip()
        if not output:
            return None
        try:
            return json.loads(output)
        except json.JSONDecodeError as e:
            raise KubeError(f"invalid JSON from kubectl {' '.join(args)}: {e}") from e

    def current_namespace(self) -> str:
        """Return the namespace commands operate in."""
        if self.namespace:
            return self.namespace
        sa_namespace = SERVICE_ACCOUNT_DIR / "namespace"
        if not self.kubeconfig and sa_namespace.exists():
            return sa_namespace.read_text().strip()
        ns = self._run(["config", "view", "--minify", "-o", "jsonpath={..namespace}"]).strip()
        return ns or "default"

    def get_dev_environment(self, namespace: str) -> dict[str, Any] | None:
        """Get the dev environment record, or None if there is none."""
        try:
            return self._get_json(
                ["get", DEV_ENVIRONMENT_RESOURCE, DEV_ENVIRONMENT_NAME, "-n", namespace]
            )
        except KubeError as e:
            if e.not_found:
                return None
            raise

    def get_secret(self, namespace: str, name: str) -> dict[str, Any] | None:
        """Get a secret.

        Raises:
            KubeError: With not_found set when the secret does not exist.
        """
        return self._get_json(["get", "secret", name, "-n", namespace])

    def get_pod(self, namespace: str, name: str) -> dict[str, Any] | None:
        """Get a pod by name."""
        return self._get_json(["get", "pod", name, "-n", namespace])

    def list_pods(self, namespace: str, selector: dict[str, str]) -> list[dict[str, Any]]:
        """List pods matching a label selector."""
        label_selector = ",".join(f"{k}={v}" for k, v in selector.items())
        data = self._get_json(["get", "pods", "-n", namespace, "-l", label_selector])
        return (data or {}).get("items") or []

    def wait_for_ready_pod(self, namespace: str, selector: dict[str, str]) -> str:
        """Block until the newest pod matching the selector is ready or has completed.

        Pods being deleted are ignored, and so are older pods left over from a
        previous job. There is no upper bound on the wait.

        Returns:
            Name of the pod.
        """
        waiting_logged = False
        while True:
            pods = [
                pod
                for pod in self.list_pods(namespace, selector)
                if not pod.get("metadata", {}).get("deletionTimestamp")
            ]
            if pods:
                # RFC 3339 timestamps sort lexically
                newest = max(
                    pods, key=lambda p: p.get("metadata", {}).get("creationTimestamp", "")
                )
                if is_pod_ready(newest) or is_pod_completed(newest):
                    return newest.get("metadata", {}).get("name", "")
            if not waiting_logged:
                logger.info(f"waiting for a ready pod in namespace {namespace} with selector {selector}")
                waiting_logged = True
            time.sleep(self.poll_interval)

    def tail_logs(
        self,
        namespace: str,
        pod: str,
        container: str,
        on_line: Callable[[str], None],
    ) -> None:
        """Follow a container's logs until the stream closes.

        Raises:
            KubeError: If kubectl cannot be started or exits non-zero.
        """
        argv = self._kubectl_cmd() + ["logs", "-f", pod, "-c", container, "-n", namespace]
        try:
            process = subprocess.Popen(
                argv,
                text=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
            )
        except FileNotFoundError as e:
            raise KubeError("kubectl not found. Is kubectl installed?") from e

        with process:
            try:
                for line in iter(process.stdout.readline, ""):
                    on_line(line.rstrip("\n"))
            except BaseException:
                process.kill()
                raise
            process.wait()
        if process.returncode != 0:
            raise KubeError(f"log stream for pod {pod} exited with rc={process.returncode}")
