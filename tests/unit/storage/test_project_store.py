"""
Unit Tests for ProjectStore
"""
import pytest

from aether.core.exceptions import InvalidFilePathError, StorageError
from aether.modules.generation.models import GeneratedFile, ProjectState, to_collection
from aether.modules.storage.project_store import METADATA_DIR, ProjectStore


@pytest.fixture
def project_state():
    return ProjectState(
        files=to_collection([
            GeneratedFile(name="src/App.tsx", content="export default () => null;\n"),
            GeneratedFile(name="index.html", content="<div id=\"root\"></div>"),
        ]),
        preview_document="<h1>Preview</h1>",
    )


class TestProjectStore:
    """Test saving and loading projects"""

    @pytest.mark.asyncio
    async def test_round_trip(self, tmp_path, project_state):
        store = ProjectStore(tmp_path / "app")

        written = await store.save(project_state)
        loaded = await store.load()

        assert written == ["src/App.tsx", "index.html"]
        assert loaded.files == project_state.files
        assert loaded.preview_document == "<h1>Preview</h1>"

    @pytest.mark.asyncio
    async def test_preview_kept_out_of_project_files(self, tmp_path, project_state):
        store = ProjectStore(tmp_path)

        await store.save(project_state)
        loaded = await store.load()

        assert store.preview_path.parent.name == METADATA_DIR
        assert store.preview_path.exists()
        assert all(not name.startswith(METADATA_DIR) for name in loaded.files)

    @pytest.mark.asyncio
    async def test_missing_root_is_empty_project(self, tmp_path):
        state = await ProjectStore(tmp_path / "missing").load()

        assert state.files == {}
        assert state.preview_document == ""

    @pytest.mark.asyncio
    async def test_binary_files_skipped(self, tmp_path):
        (tmp_path / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n\xff\xfe")
        (tmp_path / "main.js").write_text("console.log(1);", encoding="utf-8")

        state = await ProjectStore(tmp_path).load()

        assert list(state.files) == ["main.js"]

    @pytest.mark.asyncio
    async def test_path_escape_rejected(self, tmp_path):
        store = ProjectStore(tmp_path / "app")
        state = ProjectState(files={
            "ok.js": GeneratedFile(name="ok.js", content="ok"),
            "../evil.js": GeneratedFile(name="../evil.js", content="evil"),
        })

        with pytest.raises(InvalidFilePathError):
            await store.save(state)

        assert not (tmp_path / "evil.js").exists()
        assert not (tmp_path / "app" / "ok.js").exists()

    @pytest.mark.asyncio
    async def test_write_failure_wrapped(self, tmp_path):
        (tmp_path / "src").write_text("not a directory", encoding="utf-8")
        state = ProjectState(files={"src/App.tsx": GeneratedFile(name="src/App.tsx", content="x")})

        with pytest.raises(StorageError):
            await ProjectStore(tmp_path).save(state)

    def test_resolve_inside_root(self, tmp_path):
        store = ProjectStore(tmp_path)
        assert store.resolve("src/App.tsx") == (tmp_path / "src" / "App.tsx").resolve()

    @pytest.mark.parametrize("name", ["", ".", "../x", "src/../../x"])
    def test_resolve_outside_root(self, tmp_path, name):
        with pytest.raises(InvalidFilePathError):
            ProjectStore(tmp_path).resolve(name)


class TestProjectStoreScope:
    """Test which files are read and written"""

    @pytest.mark.asyncio
    async def test_hidden_and_dependency_entries_skipped(self, tmp_path):
        (tmp_path / ".git").mkdir()
        (tmp_path / ".git" / "config").write_text("[core]", encoding="utf-8")
        (tmp_path / ".env").write_text("ANTHROPIC_API_KEY=sk-secret", encoding="utf-8")
        (tmp_path / "node_modules" / "react").mkdir(parents=True)
        (tmp_path / "node_modules" / "react" / "index.js").write_text("module.exports = {};", encoding="utf-8")
        (tmp_path / "package-lock.json").write_text("{}", encoding="utf-8")
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "App.tsx").write_text("export {};", encoding="utf-8")

        state = await ProjectStore(tmp_path).load()

        assert list(state.files) == ["src/App.tsx"]
        assert all("sk-secret" not in f.content for f in state.file_list)

    @pytest.mark.asyncio
    async def test_crlf_content_round_trips(self, tmp_path):
        (tmp_path / "win.txt").write_bytes(b"a\r\nb\r\n")
        store = ProjectStore(tmp_path)

        state = await store.load()
        await store.save(state)

        assert state.files["win.txt"].content == "a\r\nb\r\n"
        assert (tmp_path / "win.txt").read_bytes() == b"a\r\nb\r\n"

    @pytest.mark.asyncio
    async def test_save_writes_only_named_files(self, tmp_path):
        (tmp_path / "notes.txt").write_text("original", encoding="utf-8")
        store = ProjectStore(tmp_path)
        state = await store.load()
        (tmp_path / "notes.txt").write_text("edited meanwhile", encoding="utf-8")

        files = dict(state.files)
        files["src/new.ts"] = GeneratedFile(name="src/new.ts", content="export {};")
        written = await store.save(ProjectState(files=files), ["./src/new.ts"])

        assert written == ["src/new.ts"]
        assert (tmp_path / "src" / "new.ts").read_text(encoding="utf-8") == "export {};"
        assert (tmp_path / "notes.txt").read_text(encoding="utf-8") == "edited meanwhile"
