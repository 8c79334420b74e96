"""Shared pytest fixtures for depresolve tests."""

import pytest

from depresolve.core.context import Ctx
from fakes import FakeSourceManager


@pytest.fixture
def gopath(tmp_path):
    (tmp_path / "src").mkdir()
    return tmp_path


@pytest.fixture
def ctx(gopath):
    return Ctx(gopath=gopath, working_dir=gopath)


@pytest.fixture
def sm():
    return FakeSourceManager()


@pytest.fixture
def write_go(gopath):
    """Write a Go source file under ``$GOPATH/src/<import path>``."""

    def _write(import_path: str, imports=(), name: str | None = None, fname: str = "a.go"):
        directory = gopath / "src" / import_path
        directory.mkdir(parents=True, exist_ok=True)
        pkg = name or import_path.rsplit("/", 1)[-1].replace("-", "_").replace(".", "_")
        body = f"package {pkg}\n"
        if imports:
            body += "\nimport (\n" + "".join(f'\t"{i}"\n' for i in imports) + ")\n"
        (directory / fname).write_text(body)
        return directory

    return _write
