import json
from pathlib import Path

import pytest

from assetpipe.core.models import ProjectConfig
from assetpipe.core.settings import BuildSettings
from assetpipe.tasks import BuildContext

STYLE_CSS = """\
.used { color: red; }
.unused { color: blue; }
h1, .ghost { margin: 0; }
"""

INDEX_HTML = """\
<!doctype html>
<html>
  <body>
    <h1 class="used title">Hello</h1>
    <script src="assets/js/app.js"></script>
  </body>
</html>
"""


def write(path: Path, content: str | bytes) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding="utf-8")
    return path


class FakeSession:
    def __init__(self):
        self.streamed = []
        self.reloads = []

    def stream(self, paths):
        self.streamed.extend(paths)

    def reload(self, path="*"):
        self.reloads.append(path)


@pytest.fixture
def project(tmp_path, monkeypatch):
    """A minimal source tree with package.json, isolated from PROD in the env."""
    monkeypatch.delenv("PROD", raising=False)
    monkeypatch.delenv("ASSETPIPE_PROD", raising=False)
    write(tmp_path / "package.json", json.dumps({"name": "demo-site"}))
    write(tmp_path / "src" / "index.html", INDEX_HTML)
    write(tmp_path / "src" / "assets" / "css" / "style.css", STYLE_CSS)
    return tmp_path


@pytest.fixture
def make_ctx(project):
    def _make(prod=False, session=None, config=None, **settings):
        settings.setdefault("css_command", "")
        return BuildContext(
            root=project.resolve(),
            settings=BuildSettings(prod=prod, root=project, **settings),
            config=config or ProjectConfig(),
            session=session,
        )

    return _make
