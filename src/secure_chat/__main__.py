import asyncio
import sys

from dotenv import load_dotenv
from loguru import logger

from secure_chat.app_config import load_json_config, parse_chatbot_config
from secure_chat.bootstrap import bootstrap_runtime
from secure_chat.terminal import TerminalChat


async def main() -> None:
    load_dotenv()

    try:
        config = parse_chatbot_config(load_json_config())
    except ValueError as ex:
        print(f"Invalid configuration: {ex}", file=sys.stderr)
        sys.exit(1)

    terminal: TerminalChat | None = None

    def on_error(error: Exception) -> None:
        if terminal is not None:
            terminal.on_error(error)

    def on_message_sent(text: str) -> None:
        logger.info(f"User sent message ({len(text)} chars)")

    runtime = bootstrap_runtime(config, on_error=on_error, on_message_sent=on_message_sent)
    terminal = TerminalChat(runtime.widget)
    terminal.print_banner(runtime.log_descriptions)

    try:
        await terminal.run()
    finally:
        await runtime.widget.aclose()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
