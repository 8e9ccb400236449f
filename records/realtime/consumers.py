import json

from channels.generic.websocket import AsyncWebsocketConsumer


class UpdatesConsumer(AsyncWebsocketConsumer):
    """Pushes cache invalidations to signed-in browsers.

    Clients drop and refetch any cached query whose key starts with one
    of the pushed ``keys``.
    """
    GROUP = "updates"

    async def connect(self):
        user = self.scope.get("user")
        if not (user and user.is_authenticated):
            await self.close()
            return
        await self.channel_layer.group_add(self.GROUP, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "message": "connected"}))

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.GROUP, self.channel_name)

    async def broadcast_invalidate(self, event):
        # event: {"type": "broadcast.invalidate", "mutation": str, "keys": [...], "ts": "..."}
        await self.send(json.dumps(event))
