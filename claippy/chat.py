import asyncio
import logging
import signal

from claippy.conversation import DEFAULT_SYNTAX, StreamSegmenter
from claippy.exceptions import StoreError, TransportError

logger = logging.getLogger(__name__)


class Chat:
    """
    Runs turns of one conversation against a model.

    Everything a turn needs is passed in explicitly: the io used for live
    rendering, the model, the store, the context fetcher and the artifact
    syntax shared by decoding and encoding.
    """

    def __init__(self, io, model, store, fetcher, conversation=None, syntax=DEFAULT_SYNTAX):
        self.io = io
        self.model = model
        self.store = store
        self.fetcher = fetcher
        self.conversation = conversation
        self.syntax = syntax

    def require_conversation(self):
        """The active conversation, loading the store's current one on first use."""
        if self.conversation is None:
            self.conversation = self.store.load_current()
        return self.conversation

    def save(self):
        if self.conversation is not None:
            self.store.save(self.conversation)

    async def run_turn(self, text):
        """
        Send one user message and record the streamed answer.

        A context fetch failure leaves the conversation untouched. Once the
        request is under way, whatever was segmented before a transport
        error or an interruption is still recorded as the assistant turn
        and saved; the error is re-raised afterwards.
        """
        conversation = self.require_conversation()
        conversation.add_user_message(text, self.fetcher)
        messages = conversation.flatten_for_transmission(self.syntax)

        segmenter = StreamSegmenter(
            self.syntax, on_line=self.io.render_line, on_artifact=self.io.render_artifact
        )
        failure = None
        interrupted = None
        stream = self.model.stream(messages)
        try:
            async for chunk in stream:
                segmenter.feed(chunk)
        except TransportError as err:
            failure = err
        except (asyncio.CancelledError, KeyboardInterrupt) as err:
            interrupted = err
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

        segments = segmenter.finish()
        self.io.end_response()
        turn = conversation.add_assistant_message(segments)
        logger.info(
            "Recorded assistant turn with %d segments (%d artifacts)",
            len(turn.segments),
            len(turn.artifacts),
        )

        store_error = None
        try:
            self.save()
        except StoreError as err:
            store_error = err

        if interrupted is not None:
            if store_error is not None:
                self.io.tool_error(str(store_error))
            raise interrupted
        if failure is not None:
            if store_error is not None:
                self.io.tool_error(str(store_error))
            raise failure
        if store_error is not None:
            raise store_error
        return turn

    async def run_interruptible(self, text):
        """
        Run a turn that Ctrl-C cancels instead of killing the process.

        Returns the assistant turn, or None when the user interrupted it.
        """
        loop = asyncio.get_running_loop()
        task = asyncio.ensure_future(self.run_turn(text))
        try:
            loop.add_signal_handler(signal.SIGINT, task.cancel)
            handler_installed = True
        except (NotImplementedError, RuntimeError, ValueError):
            handler_installed = False

        try:
            return await task
        except (asyncio.CancelledError, KeyboardInterrupt):
            if not task.done():
                task.cancel()
            self.io.tool_warning("Interrupted, partial response kept.")
            return None
        finally:
            if handler_installed:
                loop.remove_signal_handler(signal.SIGINT)
