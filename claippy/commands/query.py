from claippy.commands.utils.base_command import BaseCommand
from claippy.commands.utils.helpers import format_command_result


class QueryCommand(BaseCommand):
    NORM_NAME = "query"
    DESCRIPTION = "Send a message to the model (plain input does the same)"

    @classmethod
    async def execute(cls, io, chat, args, **kwargs):
        if not args.strip():
            io.tool_error("Please provide a message.")
            return format_command_result(io, "query", "No message provided")

        turn = await chat.run_interruptible(args)
        if turn is None:
            return format_command_result(io, "query", "Interrupted")
        return format_command_result(io, "query", f"Received {len(turn.segments)} segments")
