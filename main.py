import anyio
from rich.pretty import pprint

from herald import *
from herald.logs import configure


class Transport:
    async def post(self, channel_id, *, content=None, embed=None):
        print(f"[#{channel_id}] {content}")


@command(group="util", aliases=["r"], args=[{"key": "sides", "type": "integer", "min": 2}])
async def roll(command, message, args):
    await command.client.post(message.channel_id, content=f"rolling a d{args['sides']}")


async def main():
    configure("DEBUG")
    client = Client(Options("1234", prefix="!"), Transport())
    client.registry.register_group("util", "Utilities")
    client.registry.register_command(roll)
    async with client:
        await client.feed({"id": "1", "channel_id": "9", "author": {"id": "42"}, "content": "!roll"})
        await client.feed({"id": "2", "channel_id": "9", "author": {"id": "42"}, "content": "20"})
    pprint(client.registry.find_commands())


if __name__ == '__main__':
    anyio.run(main)
