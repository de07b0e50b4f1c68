from claippy.commands.utils.base_command import BaseCommand
from claippy.commands.utils.helpers import format_command_result


class ListCommand(BaseCommand):
    NORM_NAME = "list"
    DESCRIPTION = "List saved conversations"

    @classmethod
    async def execute(cls, io, chat, args, **kwargs):
        ids = chat.store.list_ids()
        if not ids:
            io.tool_output("No saved conversations found.")
            return format_command_result(io, "list", "No saved conversations found")

        current = chat.store.get_current_id()
        io.tool_output("Saved conversations:")
        for conversation_id in ids:
            marker = "*" if conversation_id == current else " "
            io.tool_output(f" {marker} {conversation_id}")

        return format_command_result(io, "list", f"Listed {len(ids)} saved conversations")
