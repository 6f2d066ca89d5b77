"""
Shared fixtures for the herald tests.

- FakeTransport records every post instead of sending it.
- make_client() builds a client with the built-in types and events.
- payload() / message() build inbound records.
- wait_for_posts() yields to the event loop until a prompt was posted.
"""
import asyncio
import itertools

from herald import Client, Message, Options

_ids = itertools.count(1)


class FakeTransport:
    def __init__(self):
        self.posts = []

    async def post(self, channel_id, *, content=None, embed=None):
        self.posts.append((channel_id, content, embed))

    @property
    def contents(self):
        return [content for _, content, _ in self.posts]


def make_client(**options):
    options.setdefault("prefix", "darling")
    transport = FakeTransport()
    return Client(Options("1234", **options), transport), transport


def payload(content, *, author="42", channel="9", bot=False):
    return {
        "id": str(next(_ids)),
        "channel_id": channel,
        "author": {"id": author, "bot": bot, "username": "marin", "discriminator": "0001"},
        "content": content,
    }


def message(content, **options):
    return Message.from_payload(payload(content, **options))


async def wait_for_posts(transport, count, /, *, rounds=500):
    for _ in range(rounds):
        if len(transport.posts) >= count:
            return
        await asyncio.sleep(0)
    raise AssertionError(f"expected {count} posts, got {len(transport.posts)}")
