"""Unit tests for the kubectl-backed control-plane client."""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import pytest

from helmboot_cli.boot import ExecutionContext, KubeClient, KubeError, PodObservation
from helmboot_cli.boot.kube import is_pod_completed, is_pod_ready, pod_status


def completed(stdout: str = "", returncode: int = 0, stderr: str = "") -> MagicMock:
    return MagicMock(returncode=returncode, stdout=stdout, stderr=stderr)


class TestPodHelpers:
    """Tests for pod status helpers."""

    def test_ready_pod(self, pod_factory):
        """Test a running pod with Ready=True is ready."""
        pod = pod_factory()
        assert is_pod_ready(pod)
        assert not is_pod_completed(pod)

    def test_pending_pod(self, pod_factory):
        """Test a pending pod is neither ready nor completed."""
        pod = pod_factory(phase="Pending", ready="False")
        assert not is_pod_ready(pod)
        assert not is_pod_completed(pod)

    def test_succeeded_pod(self, pod_factory):
        """Test a succeeded pod is completed."""
        assert is_pod_completed(pod_factory(phase="Succeeded", ready="False"))

    def test_pod_completed_reason(self, pod_factory):
        """Test the PodCompleted reason marks completion."""
        assert is_pod_completed(pod_factory(ready="False", reason="PodCompleted"))

    def test_pod_status_with_reasons(self):
        """Test container reasons are included in the status."""
        pod = {
            "status": {
                "phase": "Failed",
                "containerStatuses": [
                    {"name": "boot", "state": {"terminated": {"reason": "Error"}}}
                ],
            }
        }
        assert pod_status(pod) == "Failed (boot: Error)"

    def test_pod_status_phase_only(self):
        """Test a status with no reasons is just the phase."""
        assert pod_status({"status": {}}) == "Unknown"

    def test_observation_from_pod(self, pod_factory):
        """Test building an observation."""
        obs = PodObservation.from_pod(pod_factory(phase="Succeeded"))

        assert obs.name == "jx-boot-abcde"
        assert obs.completed
        assert obs.status == "Succeeded"


class TestExecutionContext:
    """Tests for in-cluster detection."""

    def test_not_in_cluster(self, monkeypatch):
        """Test detection outside a pod."""
        monkeypatch.delenv("KUBERNETES_SERVICE_HOST", raising=False)
        assert ExecutionContext.detect().in_cluster is False

    def test_in_cluster(self, monkeypatch, tmp_path):
        """Test detection with the service host and token present."""
        (tmp_path / "token").write_text("t")
        monkeypatch.setenv("KUBERNETES_SERVICE_HOST", "10.0.0.1")
        monkeypatch.setattr("helmboot_cli.boot.kube.SERVICE_ACCOUNT_DIR", tmp_path)

        assert ExecutionContext.detect().in_cluster is True


class TestKubeClient:
    """Tests for KubeClient."""

    def test_kubeconfig_flag(self):
        """Test the kubeconfig is passed to kubectl."""
        client = KubeClient(kubeconfig="/tmp/kc")
        assert client._kubectl_cmd() == ["kubectl", "--kubeconfig", "/tmp/kc"]

    def test_current_namespace_explicit(self):
        """Test an explicit namespace wins without calling kubectl."""
        with patch("subprocess.run") as mock_run:
            assert KubeClient(namespace="jx").current_namespace() == "jx"
        mock_run.assert_not_called()

    def test_current_namespace_from_context(self, monkeypatch, tmp_path):
        """Test the namespace is read from the kube context."""
        monkeypatch.setattr("helmboot_cli.boot.kube.SERVICE_ACCOUNT_DIR", tmp_path)
        with patch("subprocess.run", return_value=completed("jx")):
            assert KubeClient().current_namespace() == "jx"

    def test_current_namespace_default(self, monkeypatch, tmp_path):
        """Test an empty context namespace means 'default'."""
        monkeypatch.setattr("helmboot_cli.boot.kube.SERVICE_ACCOUNT_DIR", tmp_path)
        with patch("subprocess.run", return_value=completed("")):
            assert KubeClient().current_namespace() == "default"

    def test_current_namespace_in_cluster(self, monkeypatch, tmp_path):
        """Test the service account namespace file is used in a pod."""
        (tmp_path / "namespace").write_text("jx\n")
        monkeypatch.setattr("helmboot_cli.boot.kube.SERVICE_ACCOUNT_DIR", tmp_path)
        with patch("subprocess.run") as mock_run:
            assert KubeClient().current_namespace() == "jx"
        mock_run.assert_not_called()

    def test_get_secret(self):
        """Test reading a secret as JSON."""
        secret = {"metadata": {"name": "jx-boot"}, "data": {"secrets.yaml": "Zm9v"}}
        with patch("subprocess.run", return_value=completed(json.dumps(secret))) as mock_run:
            result = KubeClient().get_secret("jx", "jx-boot")

        assert result == secret
        assert mock_run.call_args[0][0] == [
            "kubectl", "get", "secret", "jx-boot", "-n", "jx", "-o", "json"
        ]

    def test_get_secret_not_found(self):
        """Test a missing secret raises KubeError with not_found set."""
        err = 'Error from server (NotFound): secrets "jx-boot" not found'
        with patch("subprocess.run", return_value=completed(returncode=1, stderr=err)):
            with pytest.raises(KubeError) as exc_info:
                KubeClient().get_secret("jx", "jx-boot")

        assert exc_info.value.not_found is True

    def test_get_secret_forbidden(self):
        """Test other failures are not reported as not found."""
        err = 'Error from server (Forbidden): secrets "jx-boot" is forbidden'
        with patch("subprocess.run", return_value=completed(returncode=1, stderr=err)):
            with pytest.raises(KubeError) as exc_info:
                KubeClient().get_secret("jx", "jx-boot")

        assert exc_info.value.not_found is False

    def test_get_dev_environment_missing_crd(self):
        """Test a cluster without the environments CRD yields None."""
        err = 'error: the server doesn\'t have a resource type "environments"'
        with patch("subprocess.run", return_value=completed(returncode=1, stderr=err)):
            assert KubeClient().get_dev_environment("jx") is None

    def test_kubectl_missing(self):
        """Test a missing kubectl binary."""
        with patch("subprocess.run", side_effect=FileNotFoundError()):
            with pytest.raises(KubeError, match="kubectl not found"):
                KubeClient().get_pod("jx", "p")

    def test_list_pods_selector(self, pod_factory):
        """Test the label selector is rendered."""
        data = {"items": [pod_factory()]}
        with patch("subprocess.run", return_value=completed(json.dumps(data))) as mock_run:
            pods = KubeClient().list_pods("jx", {"job-name": "jx-boot"})

        assert len(pods) == 1
        assert "job-name=jx-boot" in mock_run.call_args[0][0]


class TestWaitForReadyPod:
    """Tests for waiting on the job pod."""

    def test_returns_ready_pod(self, pod_factory):
        """Test the first ready pod is returned."""
        client = KubeClient()
        with patch.object(client, "list_pods", return_value=[pod_factory(name="p1")]):
            assert client.wait_for_ready_pod("jx", {"job-name": "jx-boot"}) == "p1"

    def test_skips_deleting_pods(self, pod_factory):
        """Test pods being deleted are ignored."""
        client = KubeClient()
        pods = [pod_factory(name="old", deleting=True), pod_factory(name="new")]
        with patch.object(client, "list_pods", return_value=pods):
            assert client.wait_for_ready_pod("jx", {"job-name": "jx-boot"}) == "new"

    def test_ignores_older_completed_pod(self, pod_factory):
        """Test a finished pod from an earlier job is not picked over a newer one."""
        client = KubeClient()
        old = pod_factory(
            name="old", phase="Succeeded", ready="False", reason="PodCompleted",
            created="2024-01-01T00:00:00Z",
        )
        running = pod_factory(
            name="new", phase="Running", ready="False", created="2024-01-02T00:00:00Z"
        )
        ready = pod_factory(name="new", created="2024-01-02T00:00:00Z")
        with patch.object(client, "list_pods", side_effect=[[old, running], [old, ready]]):
            with patch("helmboot_cli.boot.kube.time.sleep") as mock_sleep:
                assert client.wait_for_ready_pod("jx", {"job-name": "jx-boot"}) == "new"

        mock_sleep.assert_called_once()

    def test_newest_completed_pod_returned(self, pod_factory):
        """Test the newest pod is returned once it has completed."""
        client = KubeClient()
        done = pod_factory(
            name="p1", phase="Succeeded", ready="False", reason="PodCompleted",
        )
        with patch.object(client, "list_pods", return_value=[done]):
            assert client.wait_for_ready_pod("jx", {"job-name": "jx-boot"}) == "p1"

    def test_polls_until_ready(self, pod_factory):
        """Test polling continues until a pod becomes ready."""
        client = KubeClient(poll_interval=0.5)
        pending = pod_factory(name="p1", phase="Pending", ready="False")
        responses = [[], [pending], [pod_factory(name="p1")]]
        with patch.object(client, "list_pods", side_effect=responses):
            with patch("helmboot_cli.boot.kube.time.sleep") as mock_sleep:
                assert client.wait_for_ready_pod("jx", {"job-name": "jx-boot"}) == "p1"

        assert mock_sleep.call_count == 2
        mock_sleep.assert_called_with(0.5)


class TestTailLogs:
    """Tests for following pod logs."""

    def test_lines_forwarded(self):
        """Test each log line is passed to the callback."""
        process = MagicMock(returncode=0)
        process.stdout.readline.side_effect = ["line 1\n", "line 2\n", ""]
        lines = []

        with patch("subprocess.Popen", return_value=process) as mock_popen:
            KubeClient().tail_logs("jx", "p1", "boot", lines.append)

        assert lines == ["line 1", "line 2"]
        assert mock_popen.call_args[0][0] == [
            "kubectl", "logs", "-f", "p1", "-c", "boot", "-n", "jx"
        ]

    def test_non_zero_exit(self):
        """Test a failed log stream raises KubeError."""
        process = MagicMock(returncode=1)
        process.stdout.readline.side_effect = [""]

        with patch("subprocess.Popen", return_value=process):
            with pytest.raises(KubeError, match="rc=1"):
                KubeClient().tail_logs("jx", "p1", "boot", lambda line: None)

    def test_callback_error_kills_stream(self):
        """Test the kubectl child is killed when the callback raises."""
        process = MagicMock(returncode=None)
        process.stdout.readline.side_effect = ["line 1\n", ""]

        def broken(line):
            raise BrokenPipeError()

        with patch("subprocess.Popen", return_value=process):
            with pytest.raises(BrokenPipeError):
                KubeClient().tail_logs("jx", "p1", "boot", broken)

        process.kill.assert_called_once()
        process.__exit__.assert_called_once()
