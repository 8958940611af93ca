import pytest

from assetpipe.core.errors import TransformError
from assetpipe.processing import scripts, sourcemaps
from assetpipe.tasks import transforms

from conftest import write

APP_JS = "const greet = (name) => `hi ${name}`;\nconsole.log(greet('x'));\n"


@pytest.fixture
def fake_babel(monkeypatch):
    calls = []

    def transpile(code, *, filename, presets, source_maps):
        calls.append({"filename": filename, "source_maps": source_maps})
        out = "var greet = function (name) {\n  return 'hi ' + name;\n};\n"
        source_map = {"version": 3, "sources": [filename], "mappings": "AAAA"} if source_maps else None
        return out, source_map

    monkeypatch.setattr(scripts, "transpile", transpile)
    return calls


def test_js_development_inlines_babel_source_map(project, make_ctx, fake_babel):
    write(project / "src/assets/js/app.js", APP_JS)

    transforms.js(make_ctx(prod=False))

    text = (project / "dist/assets/js/app.js").read_text()
    assert text.startswith("var greet = function (name) {\n")
    source_map = sourcemaps.extract(text)
    assert source_map["mappings"] == "AAAA"
    assert source_map["sourcesContent"] == [APP_JS]
    assert fake_babel == [{"filename": "src/assets/js/app.js", "source_maps": True}]


def test_js_production_minifies_without_source_map(project, make_ctx, fake_babel):
    write(project / "src/assets/js/app.js", APP_JS)

    transforms.js(make_ctx(prod=True))

    text = (project / "dist/assets/js/app.js").read_text()
    assert "sourceMappingURL" not in text
    assert text.startswith("var greet=function(name){")
    assert fake_babel == [{"filename": "src/assets/js/app.js", "source_maps": False}]


def test_js_mirrors_nested_paths(project, make_ctx, fake_babel):
    write(project / "src/assets/js/app.js", APP_JS)
    write(project / "src/assets/js/vendor/lib.js", APP_JS)

    outputs = transforms.js(make_ctx())

    assert sorted(path.relative_to(project.resolve()).as_posix() for path in outputs) == [
        "dist/assets/js/app.js",
        "dist/assets/js/vendor/lib.js",
    ]


def test_transpile_with_bundled_babel():
    code, source_map = scripts.transpile(
        "const x = 1;\nlet y = () => x;\n",
        filename="app.js",
        presets=["es2015"],
        source_maps=False,
    )

    assert "const" not in code
    assert "var x = 1" in code
    assert source_map is None


def test_transpile_syntax_error_is_a_transform_error():
    with pytest.raises(TransformError, match="babel failed"):
        scripts.transpile("const = ;", filename="bad.js", presets=["es2015"], source_maps=False)


def test_js_task_runs_bundled_babel_with_source_map(project, make_ctx):
    source = "const double = (a) => a * 2;\n"
    write(project / "src/assets/js/app.js", source)

    transforms.js(make_ctx(prod=False))

    text = (project / "dist/assets/js/app.js").read_text()
    code = text.split("//# sourceMappingURL=")[0]
    assert "=>" not in code
    assert "var double" in code
    source_map = sourcemaps.extract(text)
    assert source_map["sources"] == ["src/assets/js/app.js"]
    assert source_map["sourcesContent"] == [source]
    assert source_map["mappings"]


def test_js_task_production_uses_bundled_babel(project, make_ctx):
    write(project / "src/assets/js/app.js", "const double = (a) => a * 2;\n")

    transforms.js(make_ctx(prod=True))

    text = (project / "dist/assets/js/app.js").read_text()
    assert "=>" not in text
    assert "sourceMappingURL" not in text
