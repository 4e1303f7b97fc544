from __future__ import annotations

import random
import tempfile
import unittest
from pathlib import Path
from unittest import mock

PROJECT_ROOT = Path(__file__).resolve().parents[1]
import sys

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from pubsub import pub

from letter_quiz.bot import QuizBot, build_bot, main
from letter_quiz.config import Settings
from letter_quiz.engine import ANSWER_MENU, GENERIC_ERROR_TEXT, ConversationEngine
from letter_quiz.lexicon import Lexicon, LoadError
from letter_quiz.puzzles import PuzzleGenerator
from letter_quiz.sessions import SessionStore
from letter_quiz.telegram import RECEIVE_TOPIC, InboundMessage, TransportError


class FakeTransport:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent = []

    def send_reply(self, message, reply):
        if self.fail:
            raise TransportError("sendMessage failed: boom")
        self.sent.append((message, reply))
        return {"message_id": len(self.sent)}


def _message(text, user="7", chat=70, message_id=1) -> InboundMessage:
    return InboundMessage(user_id=user, chat_id=chat, text=text, message_id=message_id)


class QuizBotTests(unittest.TestCase):
    def setUp(self) -> None:
        self.log = mock.Mock()
        self.transport = FakeTransport()
        self.engine = ConversationEngine(
            lexicon=Lexicon(["planet"], rng=random.Random(1)),
            generator=PuzzleGenerator(rng=random.Random(1)),
            store=SessionStore(),
            clean_log=self.log,
        )
        self.bot = QuizBot(engine=self.engine, transport=self.transport, clean_log=self.log, queue_max=5)
        self.addCleanup(self.bot.stop)

    def test_process_sends_one_reply(self):
        reply = self.bot.process(_message("/new"))
        self.assertEqual(reply.reason, "question")
        self.assertEqual(len(self.transport.sent), 1)
        sent_message, sent_reply = self.transport.sent[0]
        self.assertEqual(sent_message.chat_id, 70)
        self.assertIs(sent_reply, reply)

    def test_non_text_message_is_ignored(self):
        self.assertIsNone(self.bot.process(_message(None)))
        self.assertEqual(self.transport.sent, [])
        self.assertEqual(len(self.engine.store), 0)

    def test_send_failure_is_logged_and_state_kept(self):
        self.bot.transport = FakeTransport(fail=True)
        reply = self.bot.process(_message("/new"))
        self.assertEqual(reply.reason, "question")
        self.assertIsNotNone(self.engine.store.open_puzzle("7"))
        warnings = [c for c in self.log.call_args_list if c[0][1] == "⚠️"]
        self.assertEqual(len(warnings), 1)
        self.assertIn("Failed to send question reply", warnings[0][0][0])

        # Next message still gets handled.
        self.bot.transport = self.transport
        self.bot.process(_message("/stats"))
        self.assertEqual(len(self.transport.sent), 1)

    def test_engine_crash_becomes_generic_reply(self):
        self.bot.engine = mock.Mock()
        self.bot.engine.handle_message.side_effect = RuntimeError("kaboom")
        with self.assertLogs("letter_quiz.bot", level="ERROR"):
            reply = self.bot.process(_message("/new"))
        self.assertEqual(reply.reason, "error")
        self.assertEqual(reply.text, GENERIC_ERROR_TEXT)
        self.assertEqual(reply.keyboard, ANSWER_MENU)
        self.assertEqual(len(self.transport.sent), 1)

    def test_on_receive_ignores_foreign_payloads(self):
        self.bot.on_receive(message={"text": "/new"})
        self.bot.on_receive()
        self.assertTrue(self.bot.inbound.empty())

    def test_full_queue_drops_with_warning(self):
        with mock.patch("letter_quiz.bot.QUEUE_FULL_WAIT_SECONDS", 0.01):
            for i in range(6):
                self.bot.on_receive(message=_message("/stats", message_id=i))
        self.assertEqual(self.bot.inbound.qsize(), 5)
        emojis = [c[0][1] for c in self.log.call_args_list]
        self.assertIn("🚨", emojis)
        self.assertIn("⚠️", emojis)

    def test_messages_flow_through_pubsub_in_order(self):
        self.bot.start()
        pub.sendMessage(RECEIVE_TOPIC, message=_message("/new", message_id=1))
        pub.sendMessage(RECEIVE_TOPIC, message=_message("/E", message_id=2))
        pub.sendMessage(RECEIVE_TOPIC, message=_message("/stats", message_id=3))
        self.bot.inbound.join()

        reasons = [reply.reason for _, reply in self.transport.sent]
        self.assertEqual(reasons, ["question", "answer", "stats"])
        self.assertIn("Total answers: 1", self.transport.sent[-1][1].text)

    def test_stop_unsubscribes(self):
        self.bot.start()
        self.bot.stop()
        pub.sendMessage(RECEIVE_TOPIC, message=_message("/new"))
        self.assertTrue(self.bot.inbound.empty())


class BuildBotTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory(prefix="letter_quiz_bot_")
        self.addCleanup(self.tmpdir.cleanup)

    def test_build_bot_loads_lexicon(self):
        path = Path(self.tmpdir.name) / "words.txt"
        path.write_text("planet\ngarden\ncat\n", encoding="utf-8")
        settings = Settings(words_path=str(path), response_queue_max=7)
        with mock.patch("letter_quiz.bot.clean_log") as log:
            bot = build_bot(settings, FakeTransport())
        self.assertEqual(len(bot.engine.lexicon), 3)
        self.assertEqual(bot.inbound.maxsize, 7)
        messages = " ".join(c[0][0] for c in log.call_args_list)
        self.assertIn("1 of 3 words", messages)

    def test_build_bot_missing_words(self):
        settings = Settings(words_path=str(Path(self.tmpdir.name) / "missing.txt"))
        with mock.patch("letter_quiz.bot.clean_log"):
            with self.assertRaises(LoadError):
                build_bot(settings, FakeTransport())

    def test_main_fails_without_token(self):
        with mock.patch("letter_quiz.bot.load_settings", return_value=Settings(telegram_token="")), \
                mock.patch("letter_quiz.bot.configure_logging"), \
                mock.patch("letter_quiz.bot.clean_log"):
            self.assertEqual(main([]), 1)

    def test_main_fails_on_empty_lexicon(self):
        path = Path(self.tmpdir.name) / "empty.txt"
        path.write_text("\n", encoding="utf-8")
        settings = Settings(telegram_token="123:abc", words_path=str(path))
        with mock.patch("letter_quiz.bot.load_settings", return_value=settings), \
                mock.patch("letter_quiz.bot.configure_logging"), \
                mock.patch("letter_quiz.bot.clean_log") as log:
            self.assertEqual(main([]), 1)
        self.assertEqual(log.call_args[0][1], "❌")


if __name__ == "__main__":
    unittest.main()
