import logging
import os
import shutil
import signal
import subprocess
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from judge.config import SandboxSettings

_logger = logging.getLogger("judge.sandbox")

# Extra time given to docker for container startup
CONTAINER_STARTUP_GRACE_SEC = 5
CONTAINER_MOUNT = "/sandbox"
CONTAINER_SCRIPT = f"{CONTAINER_MOUNT}/main.py"
# Time allowed for a killed child to be reaped
REAP_GRACE_SEC = 5


@dataclass
class ProcessOutcome:
    stdout: str = ""
    stderr: str = ""
    return_code: int | None = None
    timed_out: bool = False
    timeout_sec: float | None = None
    launch_error: str | None = None
    filesystem_error: str | None = None
    duration_ms: int = 0


def _truncate(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit] + f"\n... [output truncated, {len(text) - limit} bytes omitted]"
    return text


def _decode(raw: bytes | None) -> str:
    if not raw:
        return ""
    return raw.decode("utf-8", errors="replace")


class SandboxedExecutor:
    """Runs generated harness programs as child processes.

    Each run writes its program to a uniquely named artifact in the scratch
    directory, executes it, and removes it again whatever happens. Failures
    are reported on the returned :class:`ProcessOutcome`, never raised.
    """

    def __init__(self, settings: SandboxSettings) -> None:
        self.settings = settings
        self.scratch_dir = Path(settings.scratch_path)

    @contextmanager
    def artifact(self, program: str) -> Iterator[Path]:
        """Write ``program`` to a fresh file and delete it on exit."""
        path = self.scratch_dir / f"{uuid.uuid4().hex}.py"
        created = False
        try:
            with open(path, "x", encoding="utf-8") as fh:
                created = True
                fh.write(program)
            _logger.debug("Wrote harness artifact %s", path.name)
            yield path
        finally:
            if created:
                self._discard(path)

    def _discard(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            _logger.warning("Failed to remove harness artifact %s: %s", path, e)

    def command(self, path: Path, container_name: str | None = None) -> list[str]:
        if self.settings.isolation != "docker":
            return [self.settings.interpreter, str(path)]

        memory = f"{self.settings.memory_limit_mb}m" if self.settings.memory_limit_mb else None
        cpu_quota = int(100000 * self.settings.cpu_limit)
        docker_cmd = [
            "docker", "run",
            "--rm",
            "--name", container_name or f"judge-{path.stem}",
            "--network", "none",
            "--cpu-period", "100000",
            "--cpu-quota", str(cpu_quota),
            "--pids-limit", str(self.settings.pids_limit),
            "--read-only",
            "--tmpfs", "/tmp:size=10M,mode=1777",
            "--security-opt", "no-new-privileges:true",
            "--cap-drop", "ALL",
            "--user", "1000:1000",
            "-v", f"{path}:{CONTAINER_SCRIPT}:ro",
        ]
        if memory:
            docker_cmd += ["--memory", memory, "--memory-swap", memory]
        docker_cmd += [
            self.settings.image,
            self.settings.container_interpreter,
            CONTAINER_SCRIPT,
        ]
        return docker_cmd

    def _environment(self) -> dict[str, str]:
        env = {
            "PATH": os.environ.get("PATH", os.defpath),
            "PYTHONIOENCODING": "utf-8",
            "PYTHONDONTWRITEBYTECODE": "1",
        }
        # Windows interpreters refuse to start without these
        for key in ("SYSTEMROOT", "TEMP", "TMP"):
            if key in os.environ:
                env[key] = os.environ[key]
        return env

    def _remove_container(self, name: str) -> None:
        try:
            subprocess.run(["docker", "rm", "-f", name], capture_output=True, timeout=10)
        except (OSError, subprocess.SubprocessError) as e:
            _logger.warning("Failed to remove container %s: %s", name, e)

    def _kill_group(self, proc: subprocess.Popen) -> None:
        """Kill the child and anything it forked into its session."""
        if hasattr(os, "killpg"):
            try:
                os.killpg(proc.pid, signal.SIGKILL)
            except (ProcessLookupError, PermissionError):
                pass
        if proc.poll() is None:
            proc.kill()

    def _spawn(self, path: Path) -> ProcessOutcome:
        container_name = f"judge-{path.stem}"
        cmd = self.command(path, container_name)
        timeout = self.settings.timeout_sec
        if self.settings.isolation == "docker":
            timeout += CONTAINER_STARTUP_GRACE_SEC

        try:
            proc = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                cwd=str(self.scratch_dir),
                env=self._environment(),
                start_new_session=True,
            )
        except OSError as e:
            return ProcessOutcome(launch_error=f"{cmd[0]}: {e}")

        try:
            stdout, stderr = proc.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            self._kill_group(proc)
            try:
                proc.communicate(timeout=REAP_GRACE_SEC)
            except subprocess.TimeoutExpired:
                _logger.warning("Harness process %d did not exit after kill", proc.pid)
            if self.settings.isolation == "docker":
                self._remove_container(container_name)
            return ProcessOutcome(timed_out=True, timeout_sec=self.settings.timeout_sec)

        # the child is gone but background processes it started may linger
        self._kill_group(proc)
        return ProcessOutcome(
            stdout=_truncate(_decode(stdout), self.settings.max_result_chars),
            stderr=_truncate(_decode(stderr), self.settings.max_output_chars),
            return_code=proc.returncode,
        )

    def run(self, program: str) -> ProcessOutcome:
        """Execute ``program`` and return what the child process produced."""
        start_time = time.time()
        try:
            with self.artifact(program) as path:
                outcome = self._spawn(path)
        except OSError as e:
            _logger.error("Harness artifact error in %s: %s", self.scratch_dir, e)
            outcome = ProcessOutcome(filesystem_error=str(e))

        outcome.duration_ms = int((time.time() - start_time) * 1000)
        if outcome.timed_out:
            _logger.warning("Harness run timed out after %ss", self.settings.timeout_sec)
        elif outcome.launch_error:
            _logger.error("Harness launch failed: %s", outcome.launch_error)
        return outcome

    def is_available(self) -> bool:
        if self.settings.isolation == "docker":
            try:
                result = subprocess.run(
                    ["docker", "image", "inspect", self.settings.image],
                    capture_output=True,
                    timeout=10,
                )
                return result.returncode == 0
            except (OSError, subprocess.SubprocessError):
                return False
        interpreter = self.settings.interpreter
        return bool(shutil.which(interpreter) or os.path.isfile(interpreter))
