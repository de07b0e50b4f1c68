import sys

from claippy.commands.utils.base_command import BaseCommand


class ExitCommand(BaseCommand):
    NORM_NAME = "exit"
    DESCRIPTION = "Exit the application"

    @classmethod
    async def execute(cls, io, chat, args, **kwargs):
        sys.exit()


class QuitCommand(BaseCommand):
    NORM_NAME = "quit"
    DESCRIPTION = "Exit the application"

    @classmethod
    async def execute(cls, io, chat, args, **kwargs):
        sys.exit()
