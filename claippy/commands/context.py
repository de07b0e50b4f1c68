from claippy.commands.utils.base_command import BaseCommand
from claippy.commands.utils.helpers import format_command_result


class ContextCommand(BaseCommand):
    NORM_NAME = "context"
    DESCRIPTION = "List the files and URLs in the conversation context"

    @classmethod
    async def execute(cls, io, chat, args, **kwargs):
        conversation = chat.require_conversation()
        context = conversation.context

        if not len(context):
            io.tool_output("No context. Use /add to include files or URLs.")
            return format_command_result(io, "context", "No context")

        if context.unseen:
            io.tool_output("Sent with the next message:", bold=True)
            for ref in context.unseen:
                io.tool_output(f"  {ref}")
        if context.seen:
            io.tool_output("Already sent:", bold=True)
            for ref in context.seen:
                io.tool_output(f"  {ref}")

        return format_command_result(io, "context", f"Listed {len(context)} context references")
