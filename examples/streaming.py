#!/usr/bin/env python3
"""
Streaming response example.

This example demonstrates how to render a reply as it arrives, including
the redraws a bot requests when it replaces its text, and how to cancel
an exchange that takes too long.

Usage:
    export POE_API_KEY="your-api-key"
    python examples/streaming.py
"""

import asyncio

from poe_client import CancelToken, ErrorKind, Message, PoeClient, ServiceError


async def main() -> None:
    """Run streaming example."""
    async with PoeClient.create() as client:
        print("Streaming response:\n")
        print("-" * 50)

        stream = client.stream(
            "Claude-3.5-Sonnet",
            Message.user("Tell me a very short story about a robot learning to paint."),
        )
        async for chunk in stream:
            if chunk.is_reset:
                # The bot replaced its text; start over
                print("\n[redraw]\n", end="")
            print(chunk.text, end="", flush=True)

        reply = stream.session.result()
        print("\n" + "-" * 50)
        print(f"[{len(reply.text)} chars in {reply.duration:.1f}s]")
        for suggestion in reply.suggestions:
            print(f"  suggested: {suggestion}")

        # Cancel automatically after two seconds
        print("\n\nStreaming with a deadline:")
        print("-" * 50)
        try:
            async for chunk in client.stream(
                "Claude-3.5-Sonnet",
                Message.user("Count slowly from 1 to 100."),
                token=CancelToken(timeout=2),
            ):
                print(chunk.text, end="", flush=True)
        except ServiceError as e:
            if e.kind is not ErrorKind.CANCELLED:
                raise
            print(f"\n[cancelled: {e.detail}]")


if __name__ == "__main__":
    asyncio.run(main())
