import os
import re
from pathlib import Path

from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.completion import Completer, Completion, PathCompleter
from prompt_toolkit.document import Document
from prompt_toolkit.history import FileHistory, InMemoryHistory
from prompt_toolkit.shortcuts import PromptSession
from prompt_toolkit.styles import Style
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.syntax import Syntax
from rich.text import Text

HEX_COLOR_RE = re.compile(r"^([0-9a-fA-F]{3}){1,2}$")


def ensure_hash_prefix(color):
    """Add a missing # to hex colors like 00cc00."""
    if not color or not isinstance(color, str):
        return color
    if HEX_COLOR_RE.match(color):
        return f"#{color}"
    return color


class AutoCompleter(Completer):
    """Completes slash commands, their arguments, and file paths for commands that take paths."""

    def __init__(self, commands):
        self.commands = commands
        self.path_completer = PathCompleter(expanduser=True)

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor
        if not text.startswith("/"):
            return

        words = text.split()
        if len(words) <= 1 and not text.endswith(" "):
            for cmd in self.commands.get_commands():
                if cmd.startswith(text):
                    yield Completion(cmd, start_position=-len(text))
            return

        cmd = words[0]
        partial = "" if text.endswith(" ") else words[-1]
        for candidate in self.commands.get_completions(cmd):
            if candidate.startswith(partial):
                yield Completion(candidate, start_position=-len(partial))

        if self.commands.completes_paths(cmd):
            path_document = Document(partial, len(partial))
            yield from self.path_completer.get_completions(path_document, complete_event)


class InputOutput:
    """
    Terminal input and output.

    Assistant text arrives one completed line at a time from the stream
    segmenter and is rendered as markdown; artifacts are shown as syntax
    highlighted panels.
    """

    def __init__(
        self,
        pretty=True,
        input_history_file=None,
        input=None,
        output=None,
        user_input_color="blue",
        tool_output_color=None,
        tool_warning_color="#FFA500",
        tool_error_color="red",
        assistant_output_color=None,
        code_theme="default",
        encoding="utf-8",
        fancy_input=True,
    ):
        no_color = os.environ.get("NO_COLOR")
        if no_color is not None and no_color != "":
            pretty = False

        self.pretty = pretty
        self.user_input_color = ensure_hash_prefix(user_input_color) if pretty else None
        self.tool_output_color = ensure_hash_prefix(tool_output_color) if pretty else None
        self.tool_warning_color = ensure_hash_prefix(tool_warning_color) if pretty else None
        self.tool_error_color = ensure_hash_prefix(tool_error_color) if pretty else None
        self.assistant_output_color = ensure_hash_prefix(assistant_output_color)
        self.code_theme = code_theme
        self.encoding = encoding
        self.input_history_file = input_history_file
        self.input = input
        self.output = output
        self.fancy_input = fancy_input
        self.completer = None

        self.console = Console(no_color=not pretty, highlight=False)
        self._prompt_session = None
        self._in_fence = False

    def tool_output(self, *messages, bold=False):
        style = self.tool_output_color or ""
        if bold:
            style = f"bold {style}".strip()
        text = " ".join(str(m) for m in messages)
        self.console.print(Text(text), style=style or None)

    def tool_warning(self, message=""):
        self.console.print(Text(str(message)), style=self.tool_warning_color)

    def tool_error(self, message=""):
        self.console.print(Text(str(message)), style=self.tool_error_color)

    def render_line(self, line):
        """Render one completed line of assistant text."""
        if line.lstrip().startswith("```"):
            self._in_fence = not self._in_fence
            self.console.print(Text(line), style="dim" if self.pretty else None)
            return
        if not self.pretty or self._in_fence or not line.strip():
            self.console.print(Text(line), style=self.assistant_output_color)
            return
        markdown = Markdown(line, code_theme=self.code_theme)
        self.console.print(markdown, style=self.assistant_output_color)

    def render_artifact(self, artifact):
        language = artifact.language or "text"
        body = artifact.body.strip("\n")
        if not self.pretty:
            self.console.print(f"--- {artifact.identifier} ({language}) ---")
            self.console.print(Text(body))
            self.console.print("---")
            return
        syntax = Syntax(body, language, theme=self.code_theme, word_wrap=True)
        self.console.print(
            Panel(syntax, title=artifact.identifier, subtitle=language, title_align="left")
        )

    def end_response(self):
        self._in_fence = False
        self.console.print()

    def get_prompt_session(self):
        if self._prompt_session is None:
            if self.input_history_file:
                Path(self.input_history_file).parent.mkdir(parents=True, exist_ok=True)
                history = FileHistory(self.input_history_file)
            else:
                history = InMemoryHistory()
            style = Style.from_dict({"": self.user_input_color}) if self.user_input_color else None
            self._prompt_session = PromptSession(
                history=history,
                auto_suggest=AutoSuggestFromHistory(),
                completer=self.completer,
                complete_while_typing=True,
                style=style,
                input=self.input,
                output=self.output,
            )
        return self._prompt_session

    async def get_input(self, prompt="> "):
        """Read one line of user input; raises EOFError / KeyboardInterrupt."""
        if not self.fancy_input:
            return input(prompt)
        session = self.get_prompt_session()
        return await session.prompt_async(prompt)
