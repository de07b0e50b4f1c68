"""
Command system for claippy.

Each command is a BaseCommand subclass registered by name. The same
commands back the slash commands of the interactive prompt and the
one-shot command line.
"""

from .add import AddCommand
from .clear import ClearCommand
from .context import ContextCommand
from .core import Commands
from .drop import DropCommand
from .exit import ExitCommand, QuitCommand
from .help import HelpCommand
from .list_conversations import ListCommand
from .load import LoadCommand
from .new import NewCommand
from .query import QueryCommand
from .utils.base_command import BaseCommand
from .utils.helpers import format_command_result, parse_quoted_filenames, quote_filename
from .utils.registry import CommandRegistry

CommandRegistry.register(AddCommand)
CommandRegistry.register(ClearCommand)
CommandRegistry.register(ContextCommand)
CommandRegistry.register(DropCommand)
CommandRegistry.register(ExitCommand)
CommandRegistry.register(HelpCommand)
CommandRegistry.register(ListCommand)
CommandRegistry.register(LoadCommand)
CommandRegistry.register(NewCommand)
CommandRegistry.register(QueryCommand)
CommandRegistry.register(QuitCommand)

__all__ = [
    "AddCommand",
    "BaseCommand",
    "ClearCommand",
    "CommandRegistry",
    "Commands",
    "ContextCommand",
    "DropCommand",
    "ExitCommand",
    "HelpCommand",
    "ListCommand",
    "LoadCommand",
    "NewCommand",
    "QueryCommand",
    "QuitCommand",
    "format_command_result",
    "parse_quoted_filenames",
    "quote_filename",
]
