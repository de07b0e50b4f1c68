from claippy.commands.utils.base_command import BaseCommand
from claippy.commands.utils.helpers import format_command_result
from claippy.commands.utils.registry import CommandRegistry


class HelpCommand(BaseCommand):
    NORM_NAME = "help"
    DESCRIPTION = "Show available commands, or details for one command"

    @classmethod
    async def execute(cls, io, chat, args, **kwargs):
        name = args.strip().lstrip("/") or None
        for line in CommandRegistry.get_command_help(name).splitlines():
            io.tool_output(line)
        if not name:
            io.tool_output()
            io.tool_output("Anything not starting with / is sent to the model.")
        return format_command_result(io, "help", "Displayed help")
