"""
Tests for MarksmanSession — One registry per project

These tests validate:
- Files map to their project's registry
- Projects are isolated (separate mark files)
- close() flushes every open registry
"""

import pytest

from marksman.config import ConfigManager
from marksman.core.project import ProjectResolver, storage_key
from marksman.core.store import marks_file_path
from marksman.services.git import NullProbe
from marksman.session import MarksmanSession

from tests.factories import ManualScheduler


MARKER = ".marksman-test-root"


@pytest.fixture
def workspace(tmp_path):
    """Two projects, each with a marker and one source file."""
    projects = {}
    for name in ("alpha", "beta"):
        root = tmp_path / name
        (root / "src").mkdir(parents=True)
        (root / MARKER).touch()
        (root / "src" / "main.py").write_text("def main():\n    pass\n")
        projects[name] = root
    return projects


@pytest.fixture
def session(marksman_factory, tmp_path):
    resolver = ProjectResolver(vcs=NullProbe(), markers=[MARKER], cwd=lambda: tmp_path)
    return MarksmanSession(config=marksman_factory.config, resolver=resolver, scheduler=ManualScheduler())


class TestRegistryFor:
    """File to registry mapping."""

    def test_same_project_same_registry(self, session, workspace):
        """Files of one project share a registry."""
        root = workspace["alpha"]
        (root / "README").write_text("x\n")
        assert session.registry_for(root / "src" / "main.py") is session.registry_for(root / "README")

    def test_projects_isolated(self, session, workspace):
        """Different projects get different registries and files."""
        alpha_file = workspace["alpha"] / "src" / "main.py"
        beta_file = workspace["beta"] / "src" / "main.py"

        alpha = session.registry_for(alpha_file)
        beta = session.registry_for(beta_file)
        assert alpha is not beta

        alpha.add((str(alpha_file), 1, 1), name="shared")
        assert beta.add((str(beta_file), 1, 1), name="shared").success
        assert alpha.store.path != beta.store.path

    def test_open_projects(self, session, workspace):
        """open_projects lists touched project roots."""
        session.registry_for(workspace["beta"] / "src" / "main.py")
        assert session.open_projects() == [workspace["beta"]]

    def test_navigator_for(self, session, workspace):
        """navigator_for binds to the file's registry."""
        path = workspace["alpha"] / "src" / "main.py"
        session.registry_for(path).add((str(path), 1, 1), name="m")
        assert session.navigator_for(path).goto_next(str(path), 2).name == "m"


class TestClose:
    """Session teardown."""

    def test_close_flushes_all(self, session, workspace, marksman_factory):
        """Pending debounced saves are written on close."""
        for name, root in workspace.items():
            path = root / "src" / "main.py"
            session.registry_for(path).add((str(path), 1, 1), name=f"{name}_mark")

        results = session.close()
        assert all(r.success for r in results)
        for root in workspace.values():
            assert marks_file_path(marksman_factory.data_dir, storage_key(root)).exists()
        assert session.open_projects() == []

    def test_reopen_after_close(self, session, workspace):
        """A new registry loads what the closed one saved."""
        path = workspace["alpha"] / "src" / "main.py"
        session.registry_for(path).add((str(path), 2, 1), name="kept")
        session.close()

        assert session.registry_for(path).names() == ["kept"]


class TestProjectConfig:
    """Per-project configuration."""

    def test_project_config_layer_used(self, workspace, tmp_path, monkeypatch):
        """Each registry reads its own project's .marksman/config.yaml."""
        monkeypatch.setattr(ConfigManager, "USER_CONFIG_DIR", tmp_path / "user")
        elsewhere = tmp_path / "elsewhere"
        elsewhere.mkdir()
        monkeypatch.chdir(elsewhere)

        config_dir = workspace["alpha"] / ".marksman"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text("max_marks: 1\n")

        resolver = ProjectResolver(vcs=NullProbe(), markers=[MARKER], cwd=lambda: elsewhere)
        session = MarksmanSession(resolver=resolver, scheduler=ManualScheduler())

        alpha = session.registry_for(workspace["alpha"] / "src" / "main.py")
        beta = session.registry_for(workspace["beta"] / "src" / "main.py")
        assert alpha.config.max_marks == 1
        assert beta.config.max_marks == 100

    def test_explicit_config_wins(self, session, workspace, marksman_factory):
        """A config passed to the session applies to every project."""
        registry = session.registry_for(workspace["alpha"] / "src" / "main.py")
        assert registry.config is marksman_factory.config
