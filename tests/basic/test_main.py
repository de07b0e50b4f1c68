import logging
import os
from unittest.mock import AsyncMock, patch

import pytest

from claippy.args import resolve_command
from claippy.helpers.file_searcher import generate_search_path_list
from claippy.main import load_dotenv_files, main, setup_logging
from claippy.store import ConversationStore


@pytest.fixture(autouse=True)
def test_env(tmp_path, monkeypatch):
    """Run every test from an empty workspace with an empty home directory."""
    home = tmp_path / "home"
    home.mkdir()
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(workspace)
    for name in list(os.environ):
        if name.startswith("CLAIPPY_"):
            monkeypatch.delenv(name)
    yield workspace
    logger = logging.getLogger("claippy")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def run_main(test_env):
    def run(*argv):
        return main(
            list(argv) + ["--no-pretty", "--no-fancy-input"], force_git_root=str(test_env)
        )

    return run


@pytest.fixture
def workspace_store(test_env):
    return ConversationStore(test_env / ".claippy")


@pytest.fixture
def mock_completion(mock_streaming_chunk_class, async_stream):
    def make(*texts):
        chunks = [mock_streaming_chunk_class(content=t) for t in texts]
        return AsyncMock(side_effect=lambda **kwargs: async_stream(list(chunks)))

    return make


class TestOneShotCommands:
    def test_new(self, run_main, workspace_store):
        assert run_main("new", "my", "topic") == 0

        ids = workspace_store.list_ids()
        assert len(ids) == 1
        assert ids[0].startswith("my-topic-")
        assert workspace_store.get_current_id() == ids[0]

    def test_alias(self, run_main, workspace_store):
        assert run_main("n", "short") == 0
        assert workspace_store.list_ids()[0].startswith("short-")

    def test_add_and_drop(self, run_main, workspace_store, test_env):
        (test_env / "notes.md").write_text("notes", encoding="utf-8")
        run_main("new", "ctx")

        assert run_main("add", "notes.md", "https://example.com") == 0
        context = workspace_store.load_current().context
        assert [ref.literal for ref in context.unseen] == ["notes.md", "https://example.com"]

        assert run_main("drop", "https://example.com") == 0
        context = workspace_store.load_current().context
        assert [ref.literal for ref in context.unseen] == ["notes.md"]

    def test_add_without_conversation(self, run_main, capsys):
        assert run_main("add", "x.py") == 1
        assert "claippy new" in capsys.readouterr().out

    def test_query(self, run_main, workspace_store, test_env, mock_completion, capsys):
        (test_env / "a.py").write_text("x = 1\n", encoding="utf-8")
        run_main("new", "q")
        run_main("add", "a.py")

        with patch("claippy.models.litellm") as mock_litellm:
            mock_litellm.acompletion = mock_completion(
                "Here:\n",
                '<Artifact identifier="demo" language="python">',
                "print(1)",
                "</Artifact>",
            )
            assert run_main("q", "explain", "this") == 0

        conversation = workspace_store.load_current()
        assert len(conversation.turns) == 2
        assert conversation.turns[0].segments[0].text.endswith("explain this")
        assert conversation.turns[1].artifacts[0].identifier == "demo"
        assert [ref.literal for ref in conversation.context.seen] == ["a.py"]

        sent = mock_litellm.acompletion.call_args.kwargs["messages"]
        assert sent[0]["role"] == "system"
        assert '<source type="file" ref="a.py">' in sent[1]["content"]

        out = capsys.readouterr().out
        assert "--- demo (python) ---" in out
        assert "print(1)" in out

    def test_query_transport_failure(self, run_main, workspace_store, capsys):
        run_main("new", "fail")

        with patch("claippy.models.litellm") as mock_litellm:
            mock_litellm.acompletion = AsyncMock(side_effect=Exception("no credentials"))
            assert run_main("query", "hi", "--model", "test-model") == 1

        assert "no credentials" in capsys.readouterr().out
        turns = workspace_store.load_current().turns
        assert [t.role.value for t in turns] == ["user", "assistant"]

    def test_custom_artifact_tag(self, run_main, workspace_store, mock_completion):
        run_main("new", "tags")

        with patch("claippy.models.litellm") as mock_litellm:
            mock_litellm.acompletion = mock_completion('<Code name="x">y</Code>')
            run_main(
                "query", "hi", "--artifact-tag", "Code", "--artifact-identifier-attr", "name"
            )

        system_prompt = mock_litellm.acompletion.call_args.kwargs["messages"][0]["content"]
        assert '<Code name="' in system_prompt
        assert workspace_store.load_current().turns[1].artifacts[0].identifier == "x"

    def test_list(self, run_main, capsys):
        run_main("new", "one")
        capsys.readouterr()

        assert run_main("list") == 0
        assert "Saved conversations:" in capsys.readouterr().out


class TestRepl:
    def test_repl_session(self, run_main, workspace_store, mock_completion):
        inputs = iter(["/new repl topic", "", "hello there", "/context"])

        def fake_input(prompt=""):
            try:
                return next(inputs)
            except StopIteration:
                raise EOFError

        with patch("claippy.models.litellm") as mock_litellm, patch(
            "builtins.input", side_effect=fake_input
        ):
            mock_litellm.acompletion = mock_completion("Hi!")
            assert run_main() == 0

        ids = workspace_store.list_ids()
        current = workspace_store.load_current()
        assert current.id.startswith("repl-topic-")
        assert len(ids) == 2
        assert current.turns[1].segments[0].text == "Hi!"

    def test_repl_exit(self, run_main):
        with patch("builtins.input", side_effect=["/exit"]):
            assert run_main() == 0


class TestConfig:
    def test_shell_completions(self, run_main, capsys):
        assert run_main("--shell-completions", "bash") == 0
        assert "claippy" in capsys.readouterr().out

    def test_env_var_config(self, run_main, workspace_store, monkeypatch, test_env):
        monkeypatch.setenv("CLAIPPY_STORE_DIR", str(test_env / "custom-store"))
        run_main("new", "env")
        assert ConversationStore(test_env / "custom-store").list_ids()
        assert workspace_store.list_ids() == []

    def test_yaml_config_file(self, run_main, test_env):
        (test_env / ".claippy.conf.yml").write_text(
            f"store-dir: {test_env / 'yaml-store'}\n", encoding="utf-8"
        )
        run_main("new", "yaml")
        assert ConversationStore(test_env / "yaml-store").list_ids()

    def test_load_dotenv_files(self, test_env, monkeypatch):
        monkeypatch.delenv("CLAIPPY_DOTENV_TEST", raising=False)
        (test_env / ".env").write_text("CLAIPPY_DOTENV_TEST=loaded\n", encoding="utf-8")

        loaded = load_dotenv_files(str(test_env), None)

        assert str((test_env / ".env").resolve()) in loaded
        assert os.environ["CLAIPPY_DOTENV_TEST"] == "loaded"
        monkeypatch.delenv("CLAIPPY_DOTENV_TEST")

    def test_generate_search_path_list(self, test_env):
        paths = generate_search_path_list(".claippy.conf.yml", str(test_env), "extra.yml")
        assert paths[0].endswith(os.path.join("home", ".claippy.conf.yml"))
        assert paths[-1].endswith("extra.yml")
        # git root and cwd are the same directory here
        assert len(paths) == 3

    def test_setup_logging_debug_file(self, test_env):
        log_file = test_env / "logs" / "debug.log"
        setup_logging(verbose=False, debug_log=log_file)

        logging.getLogger("claippy.test").debug("debug message")
        for handler in logging.getLogger("claippy").handlers:
            handler.flush()

        assert "debug message" in log_file.read_text(encoding="utf-8")

    @pytest.mark.parametrize(
        "name,expected",
        [(None, "repl"), ("n", "new"), ("a", "add"), ("q", "query"), ("list", "list")],
    )
    def test_resolve_command(self, name, expected):
        assert resolve_command(name) == expected
