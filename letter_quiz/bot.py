from __future__ import annotations

import logging
import queue
import sys
import threading
from typing import Any, Callable, Optional

from pubsub import pub

from .config import ConfigError, Settings, load_settings
from .engine import ANSWER_MENU, GENERIC_ERROR_TEXT, ConversationEngine
from .lexicon import Lexicon, LexiconError
from .logs import clean_log, configure_logging, dprint
from .puzzles import PuzzleGenerator
from .replies import PendingReply
from .sessions import SessionStore
from .telegram import RECEIVE_TOPIC, InboundMessage, TelegramTransport, TransportError

logger = logging.getLogger(__name__)

QUEUE_FULL_WAIT_SECONDS = 5


class QuizBot:
    """Feeds inbound messages to the engine one at a time and sends the replies."""

    def __init__(
        self,
        *,
        engine: ConversationEngine,
        transport: Any,
        clean_log: Callable[..., None],
        queue_max: int = 20,
    ) -> None:
        self.engine = engine
        self.transport = transport
        self.clean_log = clean_log
        self.inbound: "queue.Queue[Optional[InboundMessage]]" = queue.Queue(maxsize=queue_max)
        self._thread: Optional[threading.Thread] = None
        self._subscribed = False

    # Inbound ----------------------------------------------------------
    def on_receive(self, message=None):
        if not isinstance(message, InboundMessage):
            return
        try:
            self.inbound.put(message, block=False)
        except queue.Full:
            self.clean_log(f"Inbound queue full ({self.inbound.qsize()}), waiting for a free slot...", "🚨")
            try:
                self.inbound.put(message, block=True, timeout=QUEUE_FULL_WAIT_SECONDS)
            except queue.Full:
                self.clean_log(f"Dropped message from {message.user_id}: queue still full", "⚠️")

    # Processing -------------------------------------------------------
    def build_reply(self, message: InboundMessage) -> Optional[PendingReply]:
        if not message.is_text:
            dprint(f"Ignoring non-text message from {message.user_id}")
            return None
        self.clean_log(f"{message.user_id}: {message.text}", "📨")
        try:
            return self.engine.handle_message(message.user_id, message.text)
        except Exception:
            logger.exception("Unhandled error while handling message from %s", message.user_id)
            return PendingReply(GENERIC_ERROR_TEXT, "error", keyboard=[list(row) for row in ANSWER_MENU])

    def process(self, message: InboundMessage) -> Optional[PendingReply]:
        """Handle one message end to end; send failures are logged, not raised."""
        reply = self.build_reply(message)
        if reply is None:
            return None
        try:
            self.transport.send_reply(message, reply)
        except TransportError as exc:
            self.clean_log(f"Failed to send {reply.reason} reply to {message.user_id}: {exc}", "⚠️")
        else:
            dprint(f"Sent {reply.reason} reply to {message.user_id}")
        return reply

    def _worker(self) -> None:
        while True:
            message = self.inbound.get()
            try:
                if message is None:
                    break
                self.process(message)
            finally:
                self.inbound.task_done()

    # Lifecycle --------------------------------------------------------
    def start(self) -> None:
        if not self._subscribed:
            pub.subscribe(self.on_receive, RECEIVE_TOPIC)
            self._subscribed = True
        if self._thread is None or not self._thread.is_alive():
            self._thread = threading.Thread(target=self._worker, name="letter-quiz-worker", daemon=True)
            self._thread.start()

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        if self._subscribed:
            pub.unsubscribe(self.on_receive, RECEIVE_TOPIC)
            self._subscribed = False
        if self._thread is not None:
            self.inbound.put(None)
            self._thread.join(timeout)
            self._thread = None


def build_bot(settings: Settings, transport: Any) -> QuizBot:
    lexicon = Lexicon.load(settings.words_path)
    generator = PuzzleGenerator()
    unplayable = len(lexicon) - lexicon.playable_count()
    if unplayable:
        clean_log(
            f"{unplayable} of {len(lexicon)} words have fewer than 3 distinct follow-up letters "
            "and will fail as questions.",
            "⚠️",
            show_always=True,
        )
    clean_log(f"Loaded {len(lexicon)} words from {settings.words_path}", "📚", show_always=True)
    engine = ConversationEngine(
        lexicon=lexicon,
        generator=generator,
        store=SessionStore(),
        clean_log=clean_log,
    )
    return QuizBot(
        engine=engine,
        transport=transport,
        clean_log=clean_log,
        queue_max=settings.response_queue_max,
    )


def main(argv: Optional[list] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    settings = load_settings(argv[0] if argv else None)
    configure_logging(
        debug=settings.debug,
        clean_logs=settings.clean_logs,
        rate_limit_seconds=settings.rate_limit_seconds,
    )
    try:
        token = settings.require_token()
    except ConfigError as exc:
        clean_log(str(exc), "❌", show_always=True)
        return 1

    transport = TelegramTransport(
        token=token,
        clean_log=clean_log,
        api_base_url=settings.api_base_url,
        poll_timeout=settings.poll_timeout,
        request_timeout=settings.request_timeout,
        poll_retry_delay=settings.poll_retry_delay,
    )
    try:
        bot = build_bot(settings, transport)
    except LexiconError as exc:
        clean_log(f"Cannot start: {exc}", "❌", show_always=True)
        return 1

    bot.start()
    try:
        transport.run_forever()
    except KeyboardInterrupt:
        clean_log("Shutting down.", "👋", show_always=True)
    finally:
        transport.stop()
        bot.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
