#!/usr/bin/env python3
"""
Basic chat example.

This example lists the available bots, then holds a short conversation,
retrying once when the service asks us to slow down.

Usage:
    export POE_API_KEY="your-api-key"
    python examples/basic_chat.py
"""

import asyncio

from poe_client import ErrorKind, Message, PoeClient, ServiceError


async def ask(client: PoeClient, bot: str, message: Message, history: list[Message]) -> str:
    """Send one message, retrying a rate-limited exchange once."""
    try:
        reply = await client.chat(bot, message, history=history)
    except ServiceError as e:
        if e.kind is not ErrorKind.RATE_LIMITED:
            raise
        print(f"[rate limited, retrying in {e.retry_after}s]")
        await asyncio.sleep(e.retry_after or 1.0)
        reply = await client.chat(bot, message, history=history)

    history.extend([message, reply.to_message()])
    return reply.text


async def main() -> None:
    """Run basic chat example."""
    async with PoeClient.create() as client:
        bots = await client.list_bots()
        print(f"{len(bots)} bots available")
        for bot in bots[:5]:
            print(f"  {bot.id}: {bot.display_name}")

        history: list[Message] = []
        bot = "GPT-4o"
        for question in ("What is the capital of France?", "And its population?"):
            print(f"\n> {question}")
            print(await ask(client, bot, Message.user(question), history))


if __name__ == "__main__":
    asyncio.run(main())
