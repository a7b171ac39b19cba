"""Supervision of the boot job pod.

The pod is re-discovered by label selector on every iteration because the job
controller may replace it (for example after a node eviction).
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import click

from .errors import KubeError, NoPodFoundError, PodFetchError
from .kube import KubeClient, PodObservation

logger = logging.getLogger(__name__)

BOOT_JOB_NAME = "jx-boot"
BOOT_CONTAINER_NAME = "boot"


class JobSupervisor:
    """Follow the boot job until its pod completes."""

    def __init__(
        self,
        kube: KubeClient,
        job_name: str = BOOT_JOB_NAME,
        container_name: str = BOOT_CONTAINER_NAME,
        on_log_line: Callable[[str], None] = click.echo,
    ):
        self.kube = kube
        self.selector = {"job-name": job_name}
        self.container_name = container_name
        self.on_log_line = on_log_line

    def supervise(self) -> None:
        """Seek, stream and check the job pod until it completes.

        Raises:
            NoPodFoundError: If the pod lookup returns no pod.
            PodFetchError: If the pod cannot be re-read after streaming.
            KubeError: If the pod lookup itself fails.
        """
        ns = self.kube.current_namespace()
        while True:
            # Seek
            pod_name = self.kube.wait_for_ready_pod(ns, self.selector)
            if not pod_name:
                raise NoPodFoundError(
                    f"No pod found for namespace {ns} with selector {self.selector}"
                )

            # Stream
            try:
                self.kube.tail_logs(ns, pod_name, self.container_name, self.on_log_line)
            except KubeError as e:
                logger.warning(f"log stream for pod {pod_name} ended with error: {e.message}")

            # Check
            observation = self._observe(ns, pod_name)
            if observation.completed:
                logger.info(f"the Job pod {pod_name} has completed successfully")
                return
            logger.warning(
                f"Job pod {pod_name} is not completed but has status: {observation.status}"
            )

    def _observe(self, ns: str, pod_name: str) -> PodObservation:
        try:
            pod = self.kube.get_pod(ns, pod_name)
        except KubeError as e:
            raise PodFetchError(
                f"failed to get pod {pod_name} in namespace {ns}: {e.message}"
            ) from e
        if pod is None:
            raise PodFetchError(f"failed to get pod {pod_name} in namespace {ns}: empty response")
        return PodObservation.from_pod(pod)
