import os
from unittest.mock import AsyncMock, MagicMock

import pytest

from claippy.chat import Chat
from claippy.commands import CommandRegistry, Commands
from claippy.commands.load import LoadCommand
from claippy.commands.utils.base_command import BaseCommand
from claippy.commands.utils.helpers import (
    match_refs,
    parse_quoted_filenames,
    resolve_context_words,
)
from claippy.conversation import TextSegment
from claippy.exceptions import ConversationNotFound
from claippy.fetch import ContextFetcher


@pytest.fixture
def workspace(tmp_path):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "a.py").write_text("a = 1\n", encoding="utf-8")
    (tmp_path / "src" / "b.py").write_text("b = 2\n", encoding="utf-8")
    (tmp_path / "README.md").write_text("# readme\n", encoding="utf-8")
    cwd = os.getcwd()
    os.chdir(tmp_path)
    try:
        yield tmp_path
    finally:
        os.chdir(cwd)


@pytest.fixture
def io():
    return MagicMock()


@pytest.fixture
def chat(io, store, workspace, fake_model_class):
    chat = Chat(io, fake_model_class(["ok"]), store, ContextFetcher(root=workspace))
    chat.conversation = store.create("test")
    return chat


@pytest.fixture
def commands(io, chat):
    return Commands(io, chat)


def outputs(io):
    return [" ".join(str(a) for a in c.args) for c in io.tool_output.call_args_list]


class TestHelpers:
    def test_parse_quoted_filenames(self):
        args = 'file1.txt "file with spaces.txt" file3.txt'
        assert parse_quoted_filenames(args) == [
            "file1.txt",
            "file with spaces.txt",
            "file3.txt",
        ]

    def test_resolve_context_words(self, workspace):
        refs, missing = resolve_context_words(
            ["src", "README.md", "https://example.com", "missing.py", "src/a.py"], workspace
        )
        assert refs == ["src/a.py", "src/b.py", "README.md", "https://example.com"]
        assert missing == ["missing.py"]

    def test_resolve_glob(self, workspace):
        refs, missing = resolve_context_words(["**/*.py"], workspace)
        assert refs == ["src/a.py", "src/b.py"]
        assert missing == []

    def test_match_refs(self, workspace):
        literals = ["src/a.py", "src/b.py", "README.md", "https://example.com"]
        assert match_refs("src/a.py", literals, workspace) == ["src/a.py"]
        assert match_refs("./README.md", literals, workspace) == ["README.md"]
        assert match_refs("src/*.py", literals, workspace) == ["src/a.py", "src/b.py"]
        assert match_refs("src", literals, workspace) == ["src/a.py", "src/b.py"]
        assert match_refs("https://example.com", literals, workspace) == ["https://example.com"]
        assert match_refs("other.py", literals, workspace) == []


class TestRegistry:
    def test_commands_registered(self, commands):
        assert commands.get_commands() == [
            "/add",
            "/clear",
            "/context",
            "/drop",
            "/exit",
            "/help",
            "/list",
            "/load",
            "/new",
            "/query",
            "/quit",
        ]

    def test_command_class_validation(self):
        with pytest.raises(TypeError):

            class Broken(BaseCommand):
                NORM_NAME = "broken"
                DESCRIPTION = "x"

                @classmethod
                async def execute(cls, io, chat, args, **kwargs):
                    pass

        with pytest.raises(TypeError):

            class NoNameCommand(BaseCommand):
                DESCRIPTION = "x"

                @classmethod
                async def execute(cls, io, chat, args, **kwargs):
                    pass

    def test_help_lists_commands(self):
        help_text = CommandRegistry.get_command_help()
        assert "/add: " in help_text
        assert "/drop: " in help_text
        assert "Command not found: nope" == CommandRegistry.get_command_help("nope")


class TestCommands:
    async def test_add(self, commands, chat, io, store):
        result = await commands.execute("add", "src README.md")

        assert [ref.literal for ref in chat.conversation.context.unseen] == [
            "src/a.py",
            "src/b.py",
            "README.md",
        ]
        assert "Added README.md to the context" in outputs(io)
        assert result.startswith("Successfully executed add")
        assert len(store.load("test").context) == 3

    async def test_add_twice(self, commands, chat, io):
        await commands.execute("add", "README.md")
        await commands.execute("add", "README.md")
        assert "README.md is already in the context" in outputs(io)
        assert len(chat.conversation.context) == 1

    async def test_add_missing(self, commands, io):
        await commands.execute("add", "nope.py")
        io.tool_error.assert_called_with("No files matched 'nope.py'")

    async def test_add_requires_args(self, commands, io):
        await commands.execute("add", "")
        io.tool_error.assert_called_once()

    async def test_drop(self, commands, chat):
        await commands.execute("add", "src README.md")
        await commands.execute("drop", "src")
        assert [ref.literal for ref in chat.conversation.context.unseen] == ["README.md"]

    async def test_drop_all(self, commands, chat, store):
        await commands.execute("add", "src README.md")
        await commands.execute("drop", "")
        assert len(chat.conversation.context) == 0
        assert len(store.load("test").context) == 0

    async def test_drop_unknown(self, commands, io):
        await commands.execute("drop", "nothing.py")
        io.tool_warning.assert_called_with("nothing.py is not in the context")

    async def test_drop_completions(self, commands, chat):
        chat.conversation.add_context(["a file.py", "b.py"])
        assert commands.get_completions("/drop") == ['"a file.py"', "b.py"]

    async def test_context_listing(self, commands, chat, io):
        await commands.execute("add", "README.md")
        await commands.execute("query", "hi")
        await commands.execute("add", "src/a.py")
        io.tool_output.reset_mock()

        await commands.execute("context", "")

        assert outputs(io) == [
            "Sent with the next message:",
            "  src/a.py",
            "Already sent:",
            "  README.md",
        ]

    async def test_query_runs_turn(self, commands, chat, store):
        result = await commands.execute("query", "hello")

        assert chat.conversation.last_turn.segments == [TextSegment("ok")]
        assert len(store.load("test").turns) == 2
        assert result == "Successfully executed query: Received 1 segments"

    async def test_query_missing_context_reported(self, commands, chat, io):
        chat.conversation.add_context(["gone.py"])

        await commands.execute("query", "hello")

        assert "gone.py" in io.tool_error.call_args.args[0]
        assert chat.conversation.turns == []

    async def test_query_missing_context_raises(self, commands, chat):
        chat.conversation.add_context(["gone.py"])
        with pytest.raises(Exception) as cm:
            await commands.execute("query", "hello", raise_errors=True)
        assert "gone.py" in str(cm.value)

    async def test_clear(self, commands, chat):
        await commands.execute("add", "README.md")
        await commands.execute("query", "hi")

        await commands.execute("clear", "")

        assert chat.conversation.turns == []
        assert [ref.literal for ref in chat.conversation.context.unseen] == ["README.md"]

    async def test_new_and_list(self, commands, chat, store, io):
        await commands.execute("new", "second topic")

        assert chat.conversation.id.startswith("second-topic-")
        assert store.get_current_id() == chat.conversation.id

        io.tool_output.reset_mock()
        await commands.execute("list", "")
        lines = outputs(io)
        assert lines[0] == "Saved conversations:"
        assert f" * {chat.conversation.id}" in lines
        assert "   test" in lines

    async def test_load(self, commands, chat, store):
        await commands.execute("new", "other")
        await commands.execute("load", "test")

        assert chat.conversation.id == "test"
        assert store.get_current_id() == "test"

    async def test_load_by_prefix(self, commands, chat):
        await commands.execute("new", "topic")
        new_id = chat.conversation.id
        await commands.execute("load", "test")
        await commands.execute("load", "topic")
        assert chat.conversation.id == new_id

    async def test_load_unknown(self, commands, io):
        await commands.execute("load", "ghost")
        assert "ghost" in io.tool_error.call_args.args[0]

    def test_load_resolve_id(self, store):
        store.create("alpha-1")
        store.create("alpha-2")
        assert LoadCommand.resolve_id(store, "alpha") == "alpha-2"
        assert LoadCommand.resolve_id(store, "alpha-1") == "alpha-1"
        with pytest.raises(ConversationNotFound):
            LoadCommand.resolve_id(store, "beta")

    async def test_help(self, commands, io):
        await commands.execute("help", "add")
        assert "Command: /add" in outputs(io)

    async def test_exit(self, commands):
        with pytest.raises(SystemExit):
            await commands.execute("exit", "")

    async def test_command_without_conversation(self, io, store, workspace, fake_model_class):
        chat = Chat(io, fake_model_class([]), store, ContextFetcher(root=workspace))
        commands = Commands(io, chat)

        await commands.execute("add", "README.md")

        assert "claippy new" in io.tool_error.call_args.args[0]


class TestRun:
    async def test_prefix_match(self, commands, chat):
        await commands.run("/con")
        # /context and nothing else starts with /con
        assert commands.io.tool_error.call_count == 0

    async def test_ambiguous(self, commands, io):
        await commands.run("/l")
        io.tool_error.assert_called_with("Ambiguous command: /list, /load")

    async def test_invalid(self, commands, io):
        await commands.run("/bogus")
        io.tool_error.assert_called_with("Invalid command: /bogus")

    async def test_run_passes_args(self, commands, mocker):
        execute = mocker.patch.object(commands, "execute", new=AsyncMock())
        await commands.run("/add  src/a.py  README.md ")
        execute.assert_awaited_once_with("add", "src/a.py  README.md")

    def test_completes_paths(self, commands):
        assert commands.completes_paths("/add")
        assert commands.completes_paths("/drop")
        assert not commands.completes_paths("/clear")
        assert not commands.completes_paths("/bogus")
