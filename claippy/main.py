import asyncio
import logging
import os
import sys
from pathlib import Path

import shtab
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from claippy import __version__
from claippy.args import get_parser, resolve_command
from claippy.chat import Chat
from claippy.commands import Commands, quote_filename
from claippy.conversation import ArtifactSyntax
from claippy.exceptions import ClaippyError, ConversationNotFound
from claippy.fetch import ContextFetcher
from claippy.helpers.file_searcher import generate_search_path_list
from claippy.io import AutoCompleter, InputOutput
from claippy.llm import litellm
from claippy.models import Model
from claippy.prompts import system_prompt_for
from claippy.store import ConversationStore, get_git_root

logger = logging.getLogger("claippy")

CONF_FNAME = ".claippy.conf.yml"
PATH_COMMANDS = ("add", "drop")


def setup_logging(verbose=False, debug_log=None, encoding="utf-8"):
    """Attach handlers to the package logger; returns the log file path, if any."""
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_level = logging.INFO if verbose else logging.WARNING
    console_handler = RichHandler(
        level=console_level, console=Console(stderr=True), show_path=False
    )
    logger.addHandler(console_handler)
    logger.setLevel(console_level)

    if debug_log:
        debug_log = Path(debug_log)
        debug_log.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(debug_log, mode="w", encoding=encoding)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)
        logger.setLevel(logging.DEBUG)
    return debug_log


def load_dotenv_files(git_root, dotenv_fname, encoding="utf-8"):
    dotenv_files = generate_search_path_list(".env", git_root, dotenv_fname)
    loaded = []
    for fname in dotenv_files:
        try:
            if Path(fname).exists():
                load_dotenv(fname, override=True, encoding=encoding)
                loaded.append(fname)
        except OSError as e:
            print(f"OSError loading {fname}: {e}")
    return loaded


def disable_ssl_verification():
    import httpx

    os.environ["SSL_VERIFY"] = ""
    litellm._load_litellm()
    litellm._lazy_module.client_session = httpx.Client(verify=False)
    litellm._lazy_module.aclient_session = httpx.AsyncClient(verify=False)


def command_args(command, words):
    if command in PATH_COMMANDS:
        return " ".join(quote_filename(word) for word in words)
    return " ".join(words)


def main(argv=None, input=None, output=None, force_git_root=None):
    return asyncio.run(main_async(argv, input, output, force_git_root))


async def main_async(argv=None, input=None, output=None, force_git_root=None):
    if argv is None:
        argv = sys.argv[1:]
    git_root = force_git_root or get_git_root()

    default_config_files = generate_search_path_list(CONF_FNAME, git_root, None)
    parser = get_parser(default_config_files, git_root)
    args, unknown = parser.parse_known_args(argv)
    if args.verbose:
        print("Config files search order, if no --config:")
        for file in default_config_files:
            exists = "(exists)" if Path(file).exists() else ""
            print(f"  - {file} {exists}")

    loaded_dotenvs = load_dotenv_files(git_root, args.env_file, args.encoding)
    # re-parse so CLAIPPY_* values from .env files apply
    args, unknown = parser.parse_known_args(argv)
    if len(unknown):
        print("Unknown Args: ", unknown)

    if args.shell_completions:
        parser.prog = "claippy"
        print(shtab.complete(parser, shell=args.shell_completions))
        return await graceful_exit(None, 0)

    store = ConversationStore.for_workspace(
        cwd=git_root, store_dir=args.store_dir, encoding=args.encoding
    )
    debug_log = setup_logging(
        args.verbose, store.path / "logs" / "debug.log" if args.debug else None, args.encoding
    )
    for fname in loaded_dotenvs:
        logger.info("Loaded %s", fname)
    if debug_log:
        logger.debug("claippy %s, args: %s", __version__, vars(args))

    if not args.verify_ssl:
        disable_ssl_verification()

    syntax = ArtifactSyntax(
        tag=args.artifact_tag,
        identifier_attr=args.artifact_identifier_attr,
        language_attr=args.artifact_language_attr,
    )
    model = Model(
        args.model,
        system_prompt=args.system_prompt or system_prompt_for(syntax),
        temperature=args.temperature,
        max_tokens=args.max_tokens,
        aws_region=args.aws_region,
        aws_profile=args.aws_profile,
        timeout=args.timeout,
    )
    fetcher = ContextFetcher(
        root=git_root or os.getcwd(),
        encoding=args.encoding,
        verify_ssl=args.verify_ssl,
        timeout=args.timeout or 30,
    )
    io = InputOutput(
        pretty=args.pretty,
        input_history_file=args.input_history_file or str(store.path / "input.history"),
        input=input,
        output=output,
        user_input_color=args.user_input_color,
        tool_output_color=args.tool_output_color,
        tool_warning_color=args.tool_warning_color,
        tool_error_color=args.tool_error_color,
        assistant_output_color=args.assistant_output_color,
        code_theme=args.code_theme,
        encoding=args.encoding,
        fancy_input=args.fancy_input,
    )
    chat = Chat(io, model, store, fetcher, syntax=syntax)
    commands = Commands(io, chat, verbose=args.verbose)
    io.completer = AutoCompleter(commands)

    command = resolve_command(args.command)
    if command != "repl":
        try:
            await commands.execute(
                command, command_args(command, args.words), raise_errors=True
            )
        except ClaippyError as err:
            io.tool_error(str(err))
            return await graceful_exit(chat, 1)
        return await graceful_exit(chat, 0)

    return await run_repl(io, chat, commands)


async def run_repl(io, chat, commands):
    io.tool_output(f"claippy v{__version__}")
    io.tool_output(f"Model: {chat.model}")
    try:
        conversation = chat.require_conversation()
        io.tool_output(f"Conversation: {conversation.id}")
    except ConversationNotFound:
        await commands.execute("new", "")
    io.tool_output("Type /help for commands, Ctrl-D to exit.")

    while True:
        try:
            inp = await io.get_input()
        except EOFError:
            break
        except KeyboardInterrupt:
            continue

        inp = inp.strip()
        if not inp:
            continue
        try:
            if commands.is_command(inp):
                await commands.run(inp)
            else:
                await commands.execute("query", inp)
        except SystemExit:
            break

    return await graceful_exit(chat)


async def graceful_exit(chat=None, exit_code=0):
    if chat:
        chat.fetcher.close()
    return exit_code


if __name__ == "__main__":
    status = main()
    sys.exit(status)
