import logging

from claippy.commands.utils.registry import CommandRegistry

logger = logging.getLogger(__name__)


class Commands:
    def __init__(self, io, chat, verbose=False):
        self.io = io
        self.chat = chat
        self.verbose = verbose

    def is_command(self, inp):
        return bool(inp) and inp[0] == "/"

    def get_completions(self, cmd):
        assert cmd.startswith("/")
        command_class = CommandRegistry.get_command(cmd[1:])
        if command_class:
            return command_class.get_completions(self.io, self.chat, "")
        return []

    def completes_paths(self, cmd):
        command_class = CommandRegistry.get_command(cmd.lstrip("/"))
        return bool(command_class and command_class.TAKES_PATHS)

    def get_commands(self):
        registry_commands = CommandRegistry.list_commands()
        commands = [f"/{cmd}" for cmd in registry_commands]
        return sorted(commands)

    async def execute(self, cmd_name, args, raise_errors=False, **kwargs):
        command_class = CommandRegistry.get_command(cmd_name)
        if not command_class:
            self.io.tool_output(f"Error: Command {cmd_name} not found.")
            return
        kwargs.update({"verbose": self.verbose, "raise_errors": raise_errors})
        try:
            return await CommandRegistry.execute(cmd_name, self.io, self.chat, args, **kwargs)
        except Exception as e:
            if raise_errors:
                raise
            logger.debug("Command %s failed", cmd_name, exc_info=True)
            self.io.tool_error(f"Error executing command {cmd_name}: {str(e)}")
            return

    def matching_commands(self, inp):
        words = inp.strip().split()
        if not words:
            return
        first_word = words[0]
        rest_inp = inp[len(words[0]) :].strip()
        all_commands = self.get_commands()
        matching_commands = [cmd for cmd in all_commands if cmd.startswith(first_word)]
        return matching_commands, first_word, rest_inp

    async def run(self, inp):
        res = self.matching_commands(inp)
        if res is None:
            return
        matching_commands, first_word, rest_inp = res
        if len(matching_commands) == 1:
            command = matching_commands[0][1:]
            return await self.execute(command, rest_inp)
        elif first_word in matching_commands:
            command = first_word[1:]
            return await self.execute(command, rest_inp)
        elif len(matching_commands) > 1:
            self.io.tool_error(f"Ambiguous command: {', '.join(matching_commands)}")
        else:
            self.io.tool_error(f"Invalid command: {first_word}")
