import pytest

from packflow.core.paths import ResolvedContext


@pytest.fixture
def context(tmp_path):
    return ResolvedContext(base_dir=tmp_path)


def tree(root):
    """Relative POSIX paths of every regular file under root."""
    return sorted(p.relative_to(root).as_posix() for p in root.rglob("*") if p.is_file())
