"""Shared fixtures: a scripted stand-in for external tools and a throwaway git remote."""

import asyncio
import shutil
import subprocess
from pathlib import Path

import pytest
from agentpkg import Store
from agentpkg import SubprocessError


class FakeRunner:
    """Scripted replacement for agentpkg.process.run.

    Responses match on a command prefix; the first match wins. Unmatched
    commands fail the test. A response with ``delay`` sleeps after its action
    runs, standing in for a slow child process that can be cancelled.
    """

    def __init__(self):
        self.calls: list[list[str]] = []
        self.envs: list[dict | None] = []
        self._responses: list[tuple[tuple[str, ...], str, Exception | None, object, float]] = []

    def on(
        self, *prefix: str, stdout: str = "", error: Exception | None = None, action=None, delay: float = 0
    ) -> None:
        self._responses.append((prefix, stdout, error, action, delay))

    def fail(self, *prefix: str, stderr: str = "boom") -> None:
        self.on(*prefix, error=SubprocessError(list(prefix), 1, stderr))

    def commands(self, *prefix: str) -> list[list[str]]:
        return [call for call in self.calls if tuple(call[: len(prefix)]) == prefix]

    async def __call__(self, *args: str, env: dict | None = None, cwd: str | None = None) -> str:
        self.calls.append(list(args))
        self.envs.append(env)
        for prefix, stdout, error, action, delay in self._responses:
            if tuple(args[: len(prefix)]) == prefix:
                if action is not None:
                    action(list(args), env)
                if delay:
                    await asyncio.sleep(delay)
                if error is not None:
                    raise error
                return stdout
        raise AssertionError(f"Unexpected command: {args}")


@pytest.fixture
def fake_run(monkeypatch):
    """Replace every external tool invocation with a FakeRunner."""
    runner = FakeRunner()
    monkeypatch.setattr("agentpkg.process.run", runner)
    return runner


@pytest.fixture
def store(tmp_path):
    return Store(tmp_path / "store")


def _git(*args: str) -> str:
    result = subprocess.run(
        ["git", "-c", "commit.gpgsign=false", "-c", "tag.gpgsign=false", *args],
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout.strip()


@pytest.fixture
def git_remote(tmp_path) -> dict:
    """Bare repository with one commit, a lightweight tag v1.0 and an annotated tag v2.0.

    Files: skills/pdf/SKILL.md and README.md.

    Returns:
        Dict with "url" (bare repo path), "commit" and "tag_object" (hash of v2.0's tag object)
    """
    if shutil.which("git") is None:
        pytest.skip("git not found in PATH")

    work = tmp_path / "work"
    _git("init", "--initial-branch=main", str(work))
    _git("-C", str(work), "config", "user.email", "test@example.com")
    _git("-C", str(work), "config", "user.name", "Test")

    (work / "skills" / "pdf").mkdir(parents=True)
    (work / "skills" / "pdf" / "SKILL.md").write_text("---\nname: pdf\n---\n")
    (work / "README.md").write_text("# test\n")

    _git("-C", str(work), "add", ".")
    _git("-C", str(work), "commit", "-m", "initial commit")
    _git("-C", str(work), "tag", "v1.0")
    _git("-C", str(work), "tag", "-a", "v2.0", "-m", "version 2.0")

    commit = _git("-C", str(work), "rev-parse", "HEAD")
    tag_object = _git("-C", str(work), "rev-parse", "v2.0")

    bare = tmp_path / "remote" / "repo.git"
    _git("clone", "--bare", str(work), str(bare))

    return {"url": str(bare), "commit": commit, "tag_object": tag_object, "path": Path(bare)}
